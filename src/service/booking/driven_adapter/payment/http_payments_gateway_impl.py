"""
HTTP Payments Gateway Implementation

Thin httpx client for the payments collaborator. Error responses are mapped to
typed exceptions and raised as-is:
- body code `refund_window_exceeded` → RefundWindowExceededError
- any other error status or transport failure → PaymentsGatewayError
"""

from typing import Any, Optional
from uuid import UUID

import httpx
import orjson
from opentelemetry import trace

from src.platform.exception.exceptions import PaymentsGatewayError, RefundWindowExceededError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.payment_record import Refund
from src.service.booking.app.interface.i_payments_gateway import IPaymentsGateway


REFUND_WINDOW_EXCEEDED = 'refund_window_exceeded'


class HttpPaymentsGatewayImpl(IPaymentsGateway):
    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.tracer = trace.get_tracer(__name__)
        self.client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds, transport=transport
        )

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        if response.is_success:
            return

        code: Optional[str] = None
        detail = response.text
        try:
            body: Any = orjson.loads(response.content)
            if isinstance(body, dict):
                code = body.get('code')
                detail = body.get('detail') or body.get('message') or detail
        except orjson.JSONDecodeError:
            pass

        if code == REFUND_WINDOW_EXCEEDED:
            raise RefundWindowExceededError(detail)
        raise PaymentsGatewayError(
            f'Payments gateway returned {response.status_code}: {detail}', code=code
        )

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        try:
            response = await self.client.post(
                path, content=orjson.dumps(payload), headers={'Content-Type': 'application/json'}
            )
        except httpx.HTTPError as e:
            raise PaymentsGatewayError(f'Payments gateway unreachable: {e}') from e
        self._raise_for_error(response)
        return response

    @Logger.io
    async def create_refund(
        self,
        *,
        payment_id: UUID,
        reason: str,
        requester_id: UUID,
        check_48h_window: bool = True,
    ) -> Refund:
        with self.tracer.start_as_current_span('payments_gateway.create_refund'):
            response = await self._post(
                f'/payments/{payment_id}/refunds',
                {
                    'reason': reason,
                    'requester_id': str(requester_id),
                    'check_48h_window': check_48h_window,
                },
            )
            body = orjson.loads(response.content)
            return Refund(id=str(body['id']), amount_cents=int(body['amount_cents']))

    @Logger.io
    async def cancel_payment(self, *, payment_id: UUID, requester_id: UUID) -> None:
        with self.tracer.start_as_current_span('payments_gateway.cancel_payment'):
            await self._post(f'/payments/{payment_id}/cancel', {'requester_id': str(requester_id)})

    async def close(self) -> None:
        await self.client.aclose()
