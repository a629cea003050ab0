from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.interface.i_notifier import INotifier
from src.service.booking.domain.domain_event.booking_lifecycle_event import BookingLifecycleEvent


async def emit_after_commit(*, notifier: INotifier, event: BookingLifecycleEvent) -> bool:
    """
    Hand a lifecycle event to the notifier once its transition is committed.

    Returns False when the notifier failed; the failure is logged and counted,
    never raised, because the state change it describes is already durable.
    """
    metrics.record_transition(transition=event.event_type.value.removeprefix('booking.'))
    try:
        await notifier.publish(event=event)
    except Exception as e:
        metrics.record_notification_failure(event_type=event.event_type.value)
        Logger.base.warning(
            f'⚠️ [NOTIFY] {event.event_type} for booking {event.booking_id} not delivered: '
            f'{type(e).__name__}: {e}'
        )
        return False
    return True
