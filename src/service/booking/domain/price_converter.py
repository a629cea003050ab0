"""
Display price conversion.

Rates are USD-relative (1 USD = rate units of the currency). Results are for display
only; settlement always uses the booking's own currency and integer cents.
"""

import math

from src.platform.exception.exceptions import InvalidInputError


BASE_CURRENCY = 'USD'


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def round_to_nearest_thousand(value: int) -> int:
    """456_982 -> 457_000, 5_400_234 -> 5_400_000, 1_234 -> 1_234."""
    if value >= 10_000:
        return round_half_up(value / 1000) * 1000
    return value


def convert_price(
    *,
    price_cents: int,
    source_currency: str,
    target_currency: str,
    source_rate: float | None,
    target_rate: float | None,
) -> int:
    source_currency = source_currency.upper()
    target_currency = target_currency.upper()
    if source_currency == target_currency:
        return price_cents

    if source_currency != BASE_CURRENCY and (not source_rate or source_rate <= 0):
        raise InvalidInputError(f'Invalid exchange rate for {source_currency}')
    if target_currency != BASE_CURRENCY and (not target_rate or target_rate <= 0):
        raise InvalidInputError(f'Invalid exchange rate for {target_currency}')

    price_in_usd = float(price_cents)
    if source_currency != BASE_CURRENCY:
        price_in_usd = price_cents / source_rate  # type: ignore[operator]
    price_in_target = price_in_usd
    if target_currency != BASE_CURRENCY:
        price_in_target = price_in_usd * target_rate  # type: ignore[operator]
    return round_to_nearest_thousand(round_half_up(price_in_target))
