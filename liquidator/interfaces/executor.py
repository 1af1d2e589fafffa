"""Executor protocols — liquidation and redemption actions."""
from typing import Protocol

from ..config import MarketConfig
from ..models import Obligation


class LiquidationExecutor(Protocol):
    """Submits liquidation transactions.

    Raises ``ActionExecutionError`` when the transaction is rejected.
    """

    async def submit_liquidation(
        self,
        wallet: str,
        amount: int,
        repay_symbol: str,
        withdraw_symbol: str,
        market: MarketConfig,
        obligation: Obligation,
    ) -> None: ...


class RedemptionExecutor(Protocol):
    """Submits collateral redemption transactions."""

    async def submit_redemption(
        self, wallet: str, amount: int, symbol: str, market: MarketConfig
    ) -> None: ...
