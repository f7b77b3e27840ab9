from dependency_injector import containers, providers

from messaging.outbox_relay import OutboxWorker
from order_app.application.container import ApplicationContainer
from order_app.presentation.event_consumer_worker import EventConsumerWorker


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
    event_consumer_worker = providers.Singleton[EventConsumerWorker](
        EventConsumerWorker,
        record_stock_adjustment_use_case=application.record_stock_adjustment_use_case,
        bootstrap_servers=config.infrastructure.kafka.bootstrap_servers,
        topic=config.consumer.topic,
        group_id=config.consumer.group_id,
        dead_letter_topic=config.consumer.dead_letter_topic,
        max_attempts=config.consumer.max_attempts,
    )
