"""
Unit tests for HttpPaymentsGatewayImpl

Requests are served by httpx.MockTransport; no network is involved.
"""

import httpx
import orjson
import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import PaymentsGatewayError, RefundWindowExceededError
from src.service.booking.driven_adapter.payment.http_payments_gateway_impl import (
    HttpPaymentsGatewayImpl,
)


def _gateway(handler) -> HttpPaymentsGatewayImpl:
    return HttpPaymentsGatewayImpl(
        base_url='http://payments.test',
        timeout_seconds=1.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.unit
class TestHttpPaymentsGateway:
    @pytest.mark.asyncio
    async def test_create_refund(self) -> None:
        payment_id = uuid7()
        requester_id = uuid7()
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={'id': 're_42', 'amount_cents': 9_100})

        gateway = _gateway(handler)
        refund = await gateway.create_refund(
            payment_id=payment_id, reason='weather', requester_id=requester_id
        )
        await gateway.close()

        assert refund.id == 're_42'
        assert refund.amount_cents == 9_100
        assert seen[0].url.path == f'/payments/{payment_id}/refunds'
        body = orjson.loads(seen[0].content)
        assert body == {
            'reason': 'weather',
            'requester_id': str(requester_id),
            'check_48h_window': True,
        }

    @pytest.mark.asyncio
    async def test_refund_window_error_is_typed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                422, json={'code': 'refund_window_exceeded', 'detail': 'Too late to refund'}
            )

        gateway = _gateway(handler)
        with pytest.raises(RefundWindowExceededError) as exc_info:
            await gateway.create_refund(payment_id=uuid7(), reason='x', requester_id=uuid7())

        assert exc_info.value.message == 'Too late to refund'
        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_other_errors_keep_their_code(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={'code': 'already_refunded', 'detail': 'nope'})

        gateway = _gateway(handler)
        with pytest.raises(PaymentsGatewayError) as exc_info:
            await gateway.create_refund(payment_id=uuid7(), reason='x', requester_id=uuid7())

        assert exc_info.value.code == 'already_refunded'
        assert not isinstance(exc_info.value, RefundWindowExceededError)

    @pytest.mark.asyncio
    async def test_non_json_error_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text='upstream unavailable')

        gateway = _gateway(handler)
        with pytest.raises(PaymentsGatewayError) as exc_info:
            await gateway.cancel_payment(payment_id=uuid7(), requester_id=uuid7())

        assert exc_info.value.code is None
        assert 'upstream unavailable' in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_failure_is_gateway_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('connection refused', request=request)

        gateway = _gateway(handler)
        with pytest.raises(PaymentsGatewayError):
            await gateway.cancel_payment(payment_id=uuid7(), requester_id=uuid7())

    @pytest.mark.asyncio
    async def test_cancel_payment_posts_to_cancel(self) -> None:
        payment_id = uuid7()
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(204)

        gateway = _gateway(handler)
        await gateway.cancel_payment(payment_id=payment_id, requester_id=uuid7())

        assert paths == [f'/payments/{payment_id}/cancel']
