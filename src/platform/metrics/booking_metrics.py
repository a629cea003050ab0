from prometheus_client import Counter, Histogram


class BookingMetrics:
    """
    Booking Engine Core Metrics Collector

    Tracks lifecycle transitions, capacity rejections and reaper throughput.
    """

    def __init__(self):
        # ========== Lifecycle Metrics ==========
        self.booking_transitions = Counter(
            'booking_transitions_total',
            'Booking status transitions',
            ['transition'],  # pending_created/confirmed/cancelled/expired/completed
        )

        self.capacity_rejections = Counter(
            'booking_capacity_rejections_total',
            'createPending calls rejected for insufficient capacity',
        )

        self.notification_failures = Counter(
            'booking_notification_failures_total',
            'Lifecycle events that could not be handed to the notifier',
            ['event_type'],
        )

        # ========== Reaper Metrics ==========
        self.reaper_expired_bookings = Counter(
            'booking_reaper_expired_total', 'Pending bookings expired by the reaper'
        )

        self.reaper_swept_locks = Counter(
            'booking_reaper_swept_locks_total', 'Orphan inventory locks released by the reaper'
        )

        self.reaper_tick_duration = Histogram(
            'booking_reaper_tick_duration_seconds',
            'Reaper tick processing duration',
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
        )

    # ========== Helper Methods ==========

    def record_transition(self, *, transition: str) -> None:
        self.booking_transitions.labels(transition=transition).inc()

    def record_capacity_rejection(self) -> None:
        self.capacity_rejections.inc()

    def record_notification_failure(self, *, event_type: str) -> None:
        self.notification_failures.labels(event_type=event_type).inc()

    def record_reaper_tick(self, *, expired: int, swept: int, duration: float) -> None:
        self.reaper_expired_bookings.inc(expired)
        self.reaper_swept_locks.inc(swept)
        self.reaper_tick_duration.observe(duration)


# Global metrics instance
metrics = BookingMetrics()
