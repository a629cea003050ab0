"""
Booking Expiry Worker (the reaper)

Runs ExpirePendingBookingsUseCase on a fixed interval. Ticks are data-driven and
idempotent, so running several workers side by side is safe.

Shutdown: stop() stops new ticks; a tick already running is shielded from
cancellation and finishes its batch before the loop exits.
"""

from typing import Optional

import anyio

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.expire_pending_bookings_use_case import (
    ExpirePendingBookingsUseCase,
)
from src.service.booking.app.dto.reaper_tick_result import ReaperTickResult


class BookingExpiryWorker:
    def __init__(
        self,
        *,
        expire_use_case: ExpirePendingBookingsUseCase,
        interval_seconds: float = settings.EXPIRY_REAPER_INTERVAL_SECONDS,
    ) -> None:
        self.expire_use_case = expire_use_case
        self.interval_seconds = interval_seconds
        self.running = False
        self.ticks = 0
        self._stop_requested: Optional[anyio.Event] = None
        self._stopped = False

    async def run_once(self) -> Optional[ReaperTickResult]:
        with anyio.CancelScope(shield=True):
            try:
                result = await self.expire_use_case.execute()
            except Exception as e:
                # A failed tick is retried on the next interval
                Logger.base.error(f'❌ [REAPER] Tick failed: {type(e).__name__}: {e}')
                return None
            finally:
                self.ticks += 1

        if result.expired_count or result.swept_locks:
            Logger.base.info(
                f'⏰ [REAPER] expired={result.expired_count} swept={result.swept_locks} '
                f'in {result.duration_seconds:.3f}s'
            )
        return result

    async def start(self) -> None:
        self._stop_requested = anyio.Event()
        if self._stopped:
            self._stop_requested.set()
        self.running = True
        Logger.base.info(f'⏰ [REAPER] Started, interval={self.interval_seconds}s')

        try:
            while not self._stop_requested.is_set():
                await self.run_once()
                with anyio.move_on_after(self.interval_seconds):
                    await self._stop_requested.wait()
        finally:
            self.running = False
            Logger.base.info('⏰ [REAPER] Stopped')

    def stop(self) -> None:
        self._stopped = True
        if self._stop_requested is not None:
            self._stop_requested.set()
