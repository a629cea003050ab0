from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.payment_record import PaymentRecord
from src.service.booking.app.interface.i_payment_query_repo import IPaymentQueryRepo
from src.service.booking.domain.enum.payment_status import PaymentStatus
from src.service.booking.driven_adapter.model.payment_model import PaymentModel


class PaymentQueryRepoImpl(IPaymentQueryRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def get_latest_for_booking(self, *, booking_id: UUID) -> Optional[PaymentRecord]:
        result = await self.session.execute(
            select(PaymentModel)
            .where(PaymentModel.booking_id == booking_id)
            .order_by(PaymentModel.created_at.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        if not model:
            return None
        return PaymentRecord(
            id=model.id,
            booking_id=model.booking_id,
            status=PaymentStatus(model.status),
            amount_cents=model.amount_cents,
            currency=model.currency,
            paid_at=model.paid_at,
        )
