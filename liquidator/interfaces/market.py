"""Market snapshot provider — per-market account and balance fetching."""
from typing import Callable, Protocol

from ..config import MarketConfig
from ..models import Obligation, OraclePrice, Reserve

ObligationParser = Callable[[str, bytes], Obligation]


class MarketSnapshotProvider(Protocol):
    """Abstract interface for reading a lending market's state.

    Fetch methods raise ``NetworkError`` on transport failure, except
    ``fetch_wallet_token_balance`` which returns a negative balance instead.
    """

    async def fetch_oracle(self, market: MarketConfig) -> list[OraclePrice]: ...

    async def fetch_obligations(self, market: MarketConfig) -> list[Obligation]: ...

    async def fetch_reserves(self, market: MarketConfig) -> list[Reserve]: ...

    async def fetch_wallet_token_balance(self, wallet: str, mint: str) -> int: ...

    async def fetch_account_state(self, address: str) -> bytes: ...
