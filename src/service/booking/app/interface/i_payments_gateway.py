"""
Payments Gateway Interface

Opaque capability owned by the payments collaborator. Failures are typed
(PaymentsGatewayError, RefundWindowExceededError) and must reach the caller as-is.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from src.service.booking.app.dto.payment_record import Refund


class IPaymentsGateway(ABC):
    @abstractmethod
    async def create_refund(
        self,
        *,
        payment_id: UUID,
        reason: str,
        requester_id: UUID,
        check_48h_window: bool = True,
    ) -> Refund:
        pass

    @abstractmethod
    async def cancel_payment(self, *, payment_id: UUID, requester_id: UUID) -> None:
        pass
