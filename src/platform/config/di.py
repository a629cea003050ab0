"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import settings
from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.service.booking.driven_adapter.broadcaster.in_memory_notifier_impl import (
    InMemoryNotifierImpl,
)
from src.service.booking.driven_adapter.message_queue.kafka_notifier_impl import (
    KafkaNotifierImpl,
)
from src.service.booking.driven_adapter.payment.http_payments_gateway_impl import (
    HttpPaymentsGatewayImpl,
)
from src.service.booking.driven_adapter.rate.http_rate_source_impl import HttpRateSourceImpl


class Container(containers.DeclarativeContainer):
    # Database: one engine per process, disposed in the lifespan shutdown
    database = providers.Singleton(Database)

    # A new UoW per logical operation; use cases receive the factory
    unit_of_work = providers.Factory(
        SqlAlchemyUnitOfWork,
        session_factory=database.provided.session_maker,
    )

    # Notifier backend chosen by NOTIFIER_BACKEND (kafka | memory)
    notifier = providers.Selector(
        lambda: settings.NOTIFIER_BACKEND,
        kafka=providers.Singleton(
            KafkaNotifierImpl,
            producer_config=settings.KAFKA_PRODUCER_CONFIG,
            topic=settings.BOOKING_EVENTS_TOPIC,
        ),
        memory=providers.Singleton(InMemoryNotifierImpl),
    )

    # External collaborators
    payments_gateway = providers.Singleton(
        HttpPaymentsGatewayImpl,
        base_url=settings.PAYMENTS_GATEWAY_BASE_URL,
        timeout_seconds=settings.PAYMENTS_GATEWAY_TIMEOUT_SECONDS,
    )
    rate_source = providers.Singleton(
        HttpRateSourceImpl,
        base_url=settings.RATE_SOURCE_BASE_URL,
        timeout_seconds=settings.RATE_SOURCE_TIMEOUT_SECONDS,
    )


container = Container()
