from dependency_injector import containers, providers

from messaging.events import EventTypeEnum
from messaging.outbox_relay import ProcessOutboxEventsUseCase
from order_app.application.create_order import CreateOrderUseCase
from order_app.application.pricing import StaticPriceLookup
from order_app.application.publish_order_event import OrderEventPublisher
from order_app.application.record_stock_adjustment import RecordStockAdjustmentUseCase
from order_app.infrastructure.container import InfrastructureContainer


class ApplicationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    infrastructure_container = providers.Container[InfrastructureContainer](
        InfrastructureContainer,
        config=config.infrastructure,
    )

    price_lookup = providers.Singleton[StaticPriceLookup](
        StaticPriceLookup,
        prices=config.pricing.prices,
        default_price=config.pricing.default_unit_price,
    )
    order_event_publisher = providers.Singleton[OrderEventPublisher](
        OrderEventPublisher,
        kafka_producer=infrastructure_container.kafka_producer,
        topic=config.infrastructure.kafka.order_created_topic,
    )
    create_order_use_case = providers.Singleton[CreateOrderUseCase](
        CreateOrderUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        price_lookup=price_lookup,
        publisher=order_event_publisher,
        publish_mode=config.publishing.mode,
    )
    record_stock_adjustment_use_case = providers.Singleton[
        RecordStockAdjustmentUseCase
    ](
        RecordStockAdjustmentUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
    )
    process_outbox_events_use_case = providers.Singleton[ProcessOutboxEventsUseCase](
        ProcessOutboxEventsUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        kafka_producer=infrastructure_container.kafka_producer,
        topics=providers.Dict(
            {EventTypeEnum.ORDER_CREATED: config.infrastructure.kafka.order_created_topic}
        ),
        batch_size=config.outbox.batch_size,
    )
