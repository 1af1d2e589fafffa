"""Price oracle protocol — price feed abstraction."""
from typing import Protocol

from ..config import ReserveConfig
from ..models import OraclePrice


class PriceOracle(Protocol):
    """Abstract interface for fetching token prices."""

    async def fetch_prices(
        self, reserves: tuple[ReserveConfig, ...]
    ) -> list[OraclePrice]: ...
