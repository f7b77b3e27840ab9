from dependency_injector import containers, providers

from inventory_app.application.container import ApplicationContainer
from inventory_app.presentation.order_event_worker import OrderEventWorker
from messaging.outbox_relay import OutboxWorker


class PresentationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    application = providers.Container[ApplicationContainer](
        ApplicationContainer, config=config
    )

    outbox_worker = providers.Singleton[OutboxWorker](
        OutboxWorker,
        use_case=application.process_outbox_events_use_case,
        poll_interval=config.outbox.poll_interval,
    )
    order_event_worker = providers.Singleton[OrderEventWorker](
        OrderEventWorker,
        process_order_created_use_case=application.process_order_created_use_case,
        bootstrap_servers=config.infrastructure.kafka.bootstrap_servers,
        topic=config.consumer.topic,
        group_id=config.consumer.group_id,
        dead_letter_topic=config.consumer.dead_letter_topic,
        max_attempts=config.consumer.max_attempts,
    )
