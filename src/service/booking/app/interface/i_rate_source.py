from abc import ABC, abstractmethod
from typing import Optional


class IRateSource(ABC):
    @abstractmethod
    async def get_rate(self, *, currency_code: str) -> Optional[float]:
        """Units of `currency_code` per 1 USD, or None if the currency is unknown."""
        pass
