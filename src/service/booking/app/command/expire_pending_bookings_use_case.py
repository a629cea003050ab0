"""
Expire Pending Bookings Use Case

One reaper tick:
1. expire_batch: claim up to `batch_size` overdue pending bookings (SKIP LOCKED),
   mark them expired and release their locks, in one transaction
2. sweep_orphan_locks: release expired locks that never got a booking bound

Both steps only touch rows they claimed under their own predicate, so any number
of reaper instances can run side by side, and a second run with nothing new
overdue expires zero bookings.
"""

from datetime import datetime, timezone
import time
from typing import List, Optional

from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.dto.reaper_tick_result import ReaperTickResult
from src.service.booking.app.interface.i_notifier import INotifier
from src.service.booking.app.service.lifecycle_event_emitter import emit_after_commit
from src.service.booking.domain.domain_event.booking_lifecycle_event import (
    BookingLifecycleEvent,
    BookingLifecycleEventType,
)
from src.service.booking.domain.entity.booking_entity import Booking


class ExpirePendingBookingsUseCase:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        notifier: INotifier,
        batch_size: int = settings.EXPIRY_REAPER_BATCH_SIZE,
        orphan_batch_size: int = settings.ORPHAN_LOCK_SWEEP_BATCH_SIZE,
    ) -> None:
        self.uow_factory = uow_factory
        self.notifier = notifier
        self.batch_size = batch_size
        self.orphan_batch_size = orphan_batch_size
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def expire_batch(
        self, *, limit: Optional[int] = None, at: Optional[datetime] = None
    ) -> List[Booking]:
        at = at or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span('use_case.expire_batch'):
            async with self.uow_factory() as uow:
                expired = await uow.booking_command_repo.expire_due_pending(
                    at=at, limit=limit or self.batch_size
                )
                if not expired:
                    return []
                await uow.slot_capacity_store.release_locks_for_bookings(
                    booking_ids=[b.id for b in expired], at=at
                )
                await uow.commit()

            Logger.base.info(f'⏰ [REAPER] Expired {len(expired)} pending bookings')
            for booking in expired:
                await emit_after_commit(
                    notifier=self.notifier,
                    event=BookingLifecycleEvent.from_booking(
                        event_type=BookingLifecycleEventType.EXPIRED,
                        booking=booking,
                        occurred_at=at,
                    ),
                )
            return expired

    @Logger.io
    async def sweep_orphan_locks(
        self, *, batch_size: Optional[int] = None, at: Optional[datetime] = None
    ) -> int:
        at = at or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span('use_case.sweep_orphan_locks'):
            async with self.uow_factory() as uow:
                swept = await uow.slot_capacity_store.sweep_expired_locks(
                    cutoff=at, batch_size=batch_size or self.orphan_batch_size
                )
                await uow.commit()

            if swept:
                Logger.base.info(f'🧹 [REAPER] Released {swept} orphan inventory locks')
            return swept

    async def execute(self, *, at: Optional[datetime] = None) -> ReaperTickResult:
        start = time.perf_counter()
        expired = await self.expire_batch(at=at)
        swept = await self.sweep_orphan_locks(at=at)
        duration = time.perf_counter() - start

        metrics.record_reaper_tick(expired=len(expired), swept=swept, duration=duration)
        return ReaperTickResult(expired=expired, swept_locks=swept, duration_seconds=duration)
