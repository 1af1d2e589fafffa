"""Per-epoch obligation sweep and per-obligation liquidation state machine."""
from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Iterable

from ..config import AppConfig
from ..errors import ActionExecutionError, NetworkError
from ..interfaces.executor import LiquidationExecutor, RedemptionExecutor
from ..interfaces.market import MarketSnapshotProvider, ObligationParser
from ..models import (
    EpochStats,
    Obligation,
    ObligationResult,
    ObligationState,
    OraclePrice,
    RefreshedObligation,
    Reserve,
    Selection,
)
from ..protocols.solend.layout import parse_obligation
from .health import calculate_refreshed_obligation, select_positions

logger = logging.getLogger(__name__)

Evaluator = Callable[
    [Obligation, Iterable[Reserve], Iterable[OraclePrice]], RefreshedObligation
]


class Event(str, Enum):
    """Outcome of one step of obligation processing."""

    HEALTHY = "HEALTHY"
    NO_SELECTION = "NO_SELECTION"
    UNDERWATER = "UNDERWATER"
    NO_BALANCE = "NO_BALANCE"
    BALANCE_AVAILABLE = "BALANCE_AVAILABLE"
    ACTION_SUCCEEDED = "ACTION_SUCCEEDED"
    ACTION_FAILED = "ACTION_FAILED"
    STALLED = "STALLED"


_S = ObligationState

TRANSITIONS: dict[tuple[ObligationState, Event], ObligationState] = {
    (_S.EVALUATING, Event.HEALTHY): _S.HEALTHY,
    (_S.EVALUATING, Event.NO_SELECTION): _S.TOXIC,
    (_S.EVALUATING, Event.UNDERWATER): _S.AWAITING_BALANCE,
    (_S.EVALUATING, Event.STALLED): _S.FAILED,
    (_S.AWAITING_BALANCE, Event.NO_BALANCE): _S.TOXIC,
    (_S.AWAITING_BALANCE, Event.BALANCE_AVAILABLE): _S.LIQUIDATING,
    (_S.LIQUIDATING, Event.ACTION_SUCCEEDED): _S.EVALUATING,
    (_S.LIQUIDATING, Event.ACTION_FAILED): _S.FAILED,
    (_S.LIQUIDATING, Event.STALLED): _S.FAILED,
}


def transition(state: ObligationState, event: Event) -> ObligationState:
    """Return the state that follows ``state`` on ``event``.

    Raises:
        ValueError: for a pair outside the transition table.
    """
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise ValueError(f"No transition from {state.value} on {event.value}") from None


class LiquidationScanner:
    """Sweeps every obligation of one market and liquidates the unhealthy ones."""

    def __init__(
        self,
        config: AppConfig,
        provider: MarketSnapshotProvider,
        liquidation_executor: LiquidationExecutor,
        redemption_executor: RedemptionExecutor,
        parser: ObligationParser = parse_obligation,
        evaluator: Evaluator = calculate_refreshed_obligation,
    ) -> None:
        self._market = config.market
        self._wallet = config.liquidator.wallet_address
        self._max_rounds = config.liquidator.max_rounds
        self._provider = provider
        self._liquidation_executor = liquidation_executor
        self._redemption_executor = redemption_executor
        self._parse = parser
        self._evaluate = evaluator

    # ------------------------------------------------------------------
    # Epoch
    # ------------------------------------------------------------------

    async def run_epoch(self, epoch: int) -> EpochStats:
        """Snapshot the market, process every obligation, then redeem collateral.

        Snapshot failures propagate; per-obligation failures never do.
        """
        start = time.monotonic()

        oracles = await self._provider.fetch_oracle(self._market)
        logger.info("Oracle prices fetched: %d", len(oracles))

        obligations = await self._provider.fetch_obligations(self._market)
        logger.info("Obligation count: %d", len(obligations))

        reserves = await self._provider.fetch_reserves(self._market)
        logger.info("Reserve count: %d", len(reserves))

        results: list[ObligationResult] = []
        for obligation in obligations:
            results.append(await self.process_obligation(obligation, reserves, oracles))

        redemptions, redemption_failures = await self.redeem_collateral()

        stats = EpochStats(
            epoch=epoch,
            total=len(results),
            healthy=sum(1 for r in results if r.state is ObligationState.HEALTHY),
            toxic=sum(1 for r in results if r.state is ObligationState.TOXIC),
            failed=sum(1 for r in results if r.state is ObligationState.FAILED),
            liquidations=sum(r.actions for r in results),
            redemptions=redemptions,
            redemption_failures=redemption_failures,
            elapsed_seconds=time.monotonic() - start,
        )
        logger.info(
            "Epoch %d done. obligations: %d  healthy: %d  toxic: %d  failed: %d  "
            "liquidations: %d  redemptions: %d (%d failed)  %.1fs",
            stats.epoch,
            stats.total,
            stats.healthy,
            stats.toxic,
            stats.failed,
            stats.liquidations,
            stats.redemptions,
            stats.redemption_failures,
            stats.elapsed_seconds,
        )
        return stats

    # ------------------------------------------------------------------
    # Per-obligation state machine
    # ------------------------------------------------------------------

    async def process_obligation(
        self,
        obligation: Obligation,
        reserves: list[Reserve],
        oracles: list[OraclePrice],
    ) -> ObligationResult:
        """Liquidate ``obligation`` until it is healthy or no longer actionable.

        Every round works on the most recently fetched account state. Any
        exception ends this obligation as FAILED; it is never re-raised.
        """
        state = ObligationState.EVALUATING
        current = obligation
        selection: Selection | None = None
        balance = 0
        rounds = 0
        actions = 0
        reason = ""
        error = ""

        try:
            while not state.is_terminal:
                if state is ObligationState.EVALUATING:
                    refreshed = self._evaluate(current, reserves, oracles)
                    if not refreshed.is_liquidatable:
                        event = Event.HEALTHY
                    else:
                        logger.info(
                            "Obligation %s is underwater. borrowed: %s  unhealthy borrow: %s",
                            current.pubkey,
                            refreshed.borrowed_value,
                            refreshed.unhealthy_borrow_value,
                        )
                        selection = select_positions(refreshed)
                        if selection is None:
                            reason = "no borrow or deposit to liquidate"
                            logger.info("Skipping toxic obligation %s: %s", current.pubkey, reason)
                            event = Event.NO_SELECTION
                        elif rounds >= self._max_rounds:
                            reason = f"still unhealthy after {rounds} rounds"
                            logger.warning("Giving up on obligation %s: %s", current.pubkey, reason)
                            event = Event.STALLED
                        else:
                            event = Event.UNDERWATER

                elif state is ObligationState.AWAITING_BALANCE:
                    balance = await self._wallet_balance(selection.borrow.mint)
                    symbol = selection.borrow.symbol
                    if balance == 0:
                        reason = f"insufficient {symbol} balance"
                        logger.info(
                            "Insufficient %s to liquidate obligation %s", symbol, current.pubkey
                        )
                        event = Event.NO_BALANCE
                    elif balance < 0:
                        reason = f"{symbol} balance unavailable"
                        logger.error(
                            "Failed to get wallet balance for %s; network error or "
                            "token account does not exist in wallet",
                            symbol,
                        )
                        event = Event.NO_BALANCE
                    else:
                        event = Event.BALANCE_AVAILABLE

                else:
                    rounds += 1
                    if not await self._submit_liquidation(current, selection, balance):
                        reason = "liquidation rejected"
                        event = Event.ACTION_FAILED
                    else:
                        actions += 1
                        refetched = await self._refetch(current.pubkey)
                        if refetched == current:
                            reason = "obligation unchanged after liquidation"
                            logger.warning("Giving up on obligation %s: %s", current.pubkey, reason)
                            event = Event.STALLED
                        else:
                            event = Event.ACTION_SUCCEEDED
                        current = refetched

                state = transition(state, event)
        except Exception as e:
            logger.error("Error liquidating %s: %s", current.pubkey, e)
            state = ObligationState.FAILED
            error = str(e)

        return ObligationResult(
            pubkey=obligation.pubkey,
            state=state,
            rounds=rounds,
            actions=actions,
            reason=reason,
            error=error,
        )

    async def _wallet_balance(self, mint: str) -> int:
        try:
            return await self._provider.fetch_wallet_token_balance(self._wallet, mint)
        except NetworkError as e:
            logger.error("Balance lookup for mint %s failed: %s", mint, e)
            return -1

    async def _submit_liquidation(
        self, obligation: Obligation, selection: Selection, amount: int
    ) -> bool:
        """Submit one liquidation round; False when the executor rejects it."""
        logger.info(
            "Liquidating %s: repay %s %s, withdraw %s",
            obligation.pubkey,
            amount,
            selection.borrow.symbol,
            selection.deposit.symbol,
        )
        try:
            # The program caps each round to a fraction of the debt, so the
            # whole wallet balance is offered.
            await self._liquidation_executor.submit_liquidation(
                self._wallet,
                amount,
                selection.borrow.symbol,
                selection.deposit.symbol,
                self._market,
                obligation,
            )
        except ActionExecutionError as e:
            logger.error("Liquidation of %s rejected: %s", obligation.pubkey, e)
            return False
        return True

    async def _refetch(self, pubkey: str) -> Obligation:
        data = await self._provider.fetch_account_state(pubkey)
        return self._parse(pubkey, data)

    # ------------------------------------------------------------------
    # Redemption sweep
    # ------------------------------------------------------------------

    async def redeem_collateral(self) -> tuple[int, int]:
        """Redeem every non-zero collateral balance held by the liquidator.

        Returns ``(submitted, failed)``. Redemptions run concurrently and a
        failure in one does not affect the others.
        """
        pending: list[tuple[str, int]] = []
        for reserve in self._market.reserves:
            if not reserve.collateral_mint:
                continue
            balance = await self._wallet_balance(reserve.collateral_mint)
            if balance < 0:
                logger.error("Failed to get %s collateral balance", reserve.symbol)
                continue
            if balance > 0:
                pending.append((reserve.symbol, balance))

        logger.info(
            "Collateral balances to redeem: %s",
            ", ".join(f"{symbol}={amount}" for symbol, amount in pending) or "none",
        )

        outcomes = await asyncio.gather(
            *(self._redeem(symbol, amount) for symbol, amount in pending)
        )
        failed = sum(1 for ok in outcomes if not ok)
        return len(pending), failed

    async def _redeem(self, symbol: str, amount: int) -> bool:
        try:
            await self._redemption_executor.submit_redemption(
                self._wallet, amount, symbol, self._market
            )
        except Exception as e:
            logger.error("Redemption of %s %s failed: %s", amount, symbol, e)
            return False
        logger.info("Redeemed %s %s", amount, symbol)
        return True
