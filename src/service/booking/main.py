"""
Booking Engine - Main Application
Pending holds, confirmation, cancellation with refunds, discount stacking.

Usage:
    uvicorn src.service.booking.main:app --port 8000
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.booking.app.command.expire_pending_bookings_use_case import (
    ExpirePendingBookingsUseCase,
)
from src.service.booking.driving_adapter.worker.booking_expiry_worker import BookingExpiryWorker


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown"""
    Logger.base.info('🚀 [Booking Engine] Starting up...')

    tracing = TracingConfig(service_name='booking-engine')
    tracing.setup()
    Logger.base.info('📊 [Booking Engine] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Booking Engine] Dependency injection wired')

    database = container.database()
    tracing.instrument_sqlalchemy(engine=database.engine)
    Logger.base.info('🗄️  [Booking Engine] Database engine ready + instrumented')

    worker: Optional[BookingExpiryWorker] = None
    async with anyio.create_task_group() as tg:
        if settings.ENABLE_EXPIRY_REAPER:
            worker = BookingExpiryWorker(
                expire_use_case=ExpirePendingBookingsUseCase(
                    uow_factory=container.unit_of_work.provider,
                    notifier=container.notifier(),
                )
            )
            tg.start_soon(worker.start)  # type: ignore[arg-type]
            Logger.base.info('⏰ [Booking Engine] Expiry reaper started in-process')
        else:
            Logger.base.info('⏭️  [Booking Engine] Expiry reaper disabled')

        Logger.base.info('✅ [Booking Engine] Startup complete')

        yield

        Logger.base.info('🛑 [Booking Engine] Shutting down...')
        if worker is not None:
            # The current tick finishes, then start() returns and the group exits
            worker.stop()

    await container.notifier().close()
    await container.payments_gateway().close()
    await container.rate_source().close()
    await database.dispose()

    tracing.shutdown()
    Logger.base.info('📊 [Booking Engine] Tracing shutdown complete')

    container.unwire()
    Logger.base.info('👋 [Booking Engine] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
