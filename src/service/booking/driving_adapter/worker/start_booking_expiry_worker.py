"""
Standalone Booking Expiry Worker Entry Point

Usage:
    PYTHONPATH=$PWD python -m src.service.booking.driving_adapter.worker.start_booking_expiry_worker
"""

import signal

import anyio

from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.booking.app.command.expire_pending_bookings_use_case import (
    ExpirePendingBookingsUseCase,
)
from src.service.booking.driving_adapter.worker.booking_expiry_worker import BookingExpiryWorker


async def main() -> None:
    Logger.base.info('🚀 [Expiry Worker] Starting...')

    tracing = TracingConfig(service_name='booking-expiry-worker')
    tracing.setup()

    database = container.database()
    tracing.instrument_sqlalchemy(engine=database.engine)
    notifier = container.notifier()

    worker = BookingExpiryWorker(
        expire_use_case=ExpirePendingBookingsUseCase(
            uow_factory=container.unit_of_work.provider, notifier=notifier
        )
    )

    try:
        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:

            async def signal_watcher() -> None:
                async for signum in signals:
                    Logger.base.info(f'🛑 [Expiry Worker] Received signal {signum}')
                    worker.stop()
                    break

            async with anyio.create_task_group() as tg:
                tg.start_soon(signal_watcher)  # type: ignore[arg-type]
                await worker.start()
                tg.cancel_scope.cancel()
    finally:
        await notifier.close()
        await database.dispose()
        tracing.shutdown()
        Logger.base.info('👋 [Expiry Worker] Shutdown complete')


if __name__ == '__main__':
    anyio.run(main)  # type: ignore[arg-type]
