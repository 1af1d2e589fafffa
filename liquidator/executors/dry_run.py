"""Dry-run executor — logs the actions a signing executor would submit."""
from __future__ import annotations

import logging
from collections import deque

from ..config import MarketConfig
from ..models import Obligation

logger = logging.getLogger(__name__)

DEFAULT_HISTORY = 100


class DryRunExecutor:
    """Implements both executor protocols without sending transactions.

    The most recent ``history`` actions of each kind are kept in
    ``liquidations`` and ``redemptions``; older entries are dropped.
    """

    def __init__(self, history: int = DEFAULT_HISTORY) -> None:
        self.liquidations: deque[tuple[str, int, str, str]] = deque(maxlen=history)
        self.redemptions: deque[tuple[int, str]] = deque(maxlen=history)

    async def submit_liquidation(
        self,
        wallet: str,
        amount: int,
        repay_symbol: str,
        withdraw_symbol: str,
        market: MarketConfig,
        obligation: Obligation,
    ) -> None:
        logger.info(
            "[dry-run] liquidate %s on market %s: repay %d %s, withdraw %s (wallet %s)",
            obligation.pubkey,
            market.name or market.address,
            amount,
            repay_symbol,
            withdraw_symbol,
            wallet,
        )
        self.liquidations.append((obligation.pubkey, amount, repay_symbol, withdraw_symbol))

    async def submit_redemption(
        self, wallet: str, amount: int, symbol: str, market: MarketConfig
    ) -> None:
        logger.info(
            "[dry-run] redeem %d %s collateral on market %s (wallet %s)",
            amount,
            symbol,
            market.name or market.address,
            wallet,
        )
        self.redemptions.append((amount, symbol))
