from dependency_injector import containers, providers

from inventory_app.application.decrement_stock import DecrementStockUseCase
from inventory_app.application.process_order_created import ProcessOrderCreatedUseCase
from inventory_app.infrastructure.container import InfrastructureContainer
from messaging.events import EventTypeEnum
from messaging.outbox_relay import ProcessOutboxEventsUseCase


class ApplicationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    infrastructure_container = providers.Container[InfrastructureContainer](
        InfrastructureContainer,
        config=config.infrastructure,
    )

    decrement_stock_use_case = providers.Singleton[DecrementStockUseCase](
        DecrementStockUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        deduplicate=config.inventory.deduplicate,
    )
    process_order_created_use_case = providers.Singleton[ProcessOrderCreatedUseCase](
        ProcessOrderCreatedUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        decrement_stock=decrement_stock_use_case,
        report_results=config.inventory.report_results,
    )
    process_outbox_events_use_case = providers.Singleton[ProcessOutboxEventsUseCase](
        ProcessOutboxEventsUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        kafka_producer=infrastructure_container.kafka_producer,
        topics=providers.Dict(
            {EventTypeEnum.STOCK_ADJUSTED: config.infrastructure.kafka.results_topic}
        ),
        batch_size=config.outbox.batch_size,
    )
