"""
HTTP Rate Source Implementation

GET /rates/{currency} → {"currency": "EUR", "rate": 0.92}, units per 1 USD.
A 404 means the currency is unknown and yields None.
"""

from typing import Optional

import httpx
import orjson

from src.platform.exception.exceptions import ExternalFailureError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_rate_source import IRateSource


class HttpRateSourceImpl(IRateSource):
    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds, transport=transport
        )

    @Logger.io
    async def get_rate(self, *, currency_code: str) -> Optional[float]:
        try:
            response = await self.client.get(f'/rates/{currency_code.upper()}')
        except httpx.HTTPError as e:
            raise ExternalFailureError(f'Rate source unreachable: {e}') from e

        if response.status_code == 404:
            return None
        if not response.is_success:
            raise ExternalFailureError(f'Rate source returned {response.status_code}')

        rate = orjson.loads(response.content).get('rate')
        return float(rate) if rate is not None else None

    async def close(self) -> None:
        await self.client.aclose()
