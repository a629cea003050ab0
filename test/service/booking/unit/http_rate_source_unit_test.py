import httpx
import pytest

from src.platform.exception.exceptions import ExternalFailureError
from src.service.booking.driven_adapter.rate.http_rate_source_impl import HttpRateSourceImpl


def _handler(request: httpx.Request) -> httpx.Response:
    match request.url.path:
        case '/rates/THB':
            return httpx.Response(200, json={'currency': 'THB', 'rate': 35.4})
        case '/rates/ERR':
            return httpx.Response(500)
    return httpx.Response(404, json={'detail': 'unknown currency'})


@pytest.fixture
def rate_source() -> HttpRateSourceImpl:
    return HttpRateSourceImpl(
        base_url='http://rates.test', timeout_seconds=1.0, transport=httpx.MockTransport(_handler)
    )


@pytest.mark.unit
class TestHttpRateSource:
    @pytest.mark.asyncio
    async def test_known_currency(self, rate_source: HttpRateSourceImpl) -> None:
        assert await rate_source.get_rate(currency_code='thb') == 35.4

    @pytest.mark.asyncio
    async def test_unknown_currency_is_none(self, rate_source: HttpRateSourceImpl) -> None:
        assert await rate_source.get_rate(currency_code='XYZ') is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self, rate_source: HttpRateSourceImpl) -> None:
        with pytest.raises(ExternalFailureError):
            await rate_source.get_rate(currency_code='ERR')
