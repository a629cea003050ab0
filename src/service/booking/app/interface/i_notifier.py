"""
Notifier Interface

Outbound port for booking lifecycle events. Use cases call publish only after
their transaction committed; a publish failure never undoes the transition.
"""

from abc import ABC, abstractmethod

from src.service.booking.domain.domain_event.booking_lifecycle_event import BookingLifecycleEvent


class INotifier(ABC):
    @abstractmethod
    async def publish(self, *, event: BookingLifecycleEvent) -> None:
        pass

    async def close(self) -> None:
        """Flush and release resources (default: nothing to do)."""
        return None
