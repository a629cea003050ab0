from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_rate_source import IRateSource
from src.service.booking.domain.price_converter import BASE_CURRENCY, convert_price


class GetDisplayPriceUseCase:
    """Convert a price for display; settlement never goes through here."""

    def __init__(self, *, rate_source: IRateSource) -> None:
        self.rate_source = rate_source

    @classmethod
    @inject
    def depends(
        cls,
        rate_source: IRateSource = Depends(Provide[Container.rate_source]),
    ) -> Self:
        return cls(rate_source=rate_source)

    async def _rate(self, currency: str) -> float | None:
        if currency.upper() == BASE_CURRENCY:
            return None
        rate = await self.rate_source.get_rate(currency_code=currency)
        if rate is None:
            raise NotFoundError(f'No exchange rate for {currency.upper()}')
        return rate

    @Logger.io
    async def execute(
        self,
        *,
        amount_cents: int,
        target_currency: str,
        source_currency: str = BASE_CURRENCY,
    ) -> int:
        if source_currency.upper() == target_currency.upper():
            return amount_cents
        return convert_price(
            price_cents=amount_cents,
            source_currency=source_currency,
            target_currency=target_currency,
            source_rate=await self._rate(source_currency),
            target_rate=await self._rate(target_currency),
        )
