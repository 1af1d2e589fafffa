"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

WAD = 10**18


# ---------------------------------------------------------------------------
# On-chain accounts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ObligationCollateral:
    """Collateral deposited into an obligation, in collateral-token base units."""

    deposit_reserve: str
    deposited_amount: int


@dataclass(frozen=True)
class ObligationLiquidity:
    """Liquidity borrowed by an obligation, scaled by WAD."""

    borrow_reserve: str
    cumulative_borrow_rate_wads: int
    borrowed_amount_wads: int


@dataclass(frozen=True)
class Obligation:
    """A borrower's position within a lending market."""

    pubkey: str
    owner: str
    lending_market: str
    deposits: tuple[ObligationCollateral, ...] = ()
    borrows: tuple[ObligationLiquidity, ...] = ()


@dataclass(frozen=True)
class Reserve:
    """Per-token pool of a lending market."""

    pubkey: str
    symbol: str
    liquidity_mint: str
    collateral_mint: str
    decimals: int
    available_amount: int = 0
    borrowed_amount_wads: int = 0
    cumulative_borrow_rate_wads: int = WAD
    collateral_mint_total_supply: int = 0
    loan_to_value_ratio: int = 0
    liquidation_threshold: int = 0
    liquidation_bonus: int = 0

    @property
    def total_liquidity(self) -> Decimal:
        return Decimal(self.available_amount) + Decimal(self.borrowed_amount_wads) / WAD

    @property
    def collateral_exchange_rate(self) -> Decimal:
        """Liquidity tokens per collateral token (1 for an empty pool)."""
        total = self.total_liquidity
        if self.collateral_mint_total_supply == 0 or total == 0:
            return Decimal(1)
        return total / Decimal(self.collateral_mint_total_supply)


@dataclass(frozen=True)
class OraclePrice:
    """Oracle price sample for one token."""

    symbol: str
    mint: str
    price: Decimal


# ---------------------------------------------------------------------------
# Valuation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PositionValue:
    """Single deposit or borrow within a refreshed obligation."""

    reserve: str
    symbol: str
    mint: str
    amount: int
    market_value: Decimal


@dataclass(frozen=True)
class RefreshedObligation:
    """Obligation valued against current reserves and oracle prices."""

    deposited_value: Decimal
    borrowed_value: Decimal
    allowed_borrow_value: Decimal
    unhealthy_borrow_value: Decimal
    deposits: tuple[PositionValue, ...] = ()
    borrows: tuple[PositionValue, ...] = ()

    @property
    def is_liquidatable(self) -> bool:
        return self.borrowed_value > self.unhealthy_borrow_value


@dataclass(frozen=True)
class Selection:
    """Repay/withdraw pair chosen for a liquidation round."""

    borrow: PositionValue
    deposit: PositionValue


# ---------------------------------------------------------------------------
# Scan results
# ---------------------------------------------------------------------------


class ObligationState(str, Enum):
    """Per-obligation liquidation state."""

    EVALUATING = "EVALUATING"
    HEALTHY = "HEALTHY"
    AWAITING_BALANCE = "AWAITING_BALANCE"
    LIQUIDATING = "LIQUIDATING"
    TOXIC = "TOXIC"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (
            ObligationState.HEALTHY,
            ObligationState.TOXIC,
            ObligationState.FAILED,
        )


@dataclass(frozen=True)
class ObligationResult:
    """Final outcome of processing one obligation within an epoch."""

    pubkey: str
    state: ObligationState
    rounds: int = 0
    actions: int = 0
    reason: str = ""
    error: str = ""

    @property
    def outcome(self) -> str:
        """``success``, ``skip`` or ``error``."""
        if self.state is ObligationState.HEALTHY:
            return "success"
        if self.state is ObligationState.TOXIC:
            return "skip"
        return "error"


@dataclass(frozen=True)
class EpochStats:
    """Aggregate counters for one epoch."""

    epoch: int
    total: int = 0
    healthy: int = 0
    toxic: int = 0
    failed: int = 0
    liquidations: int = 0
    redemptions: int = 0
    redemption_failures: int = 0
    elapsed_seconds: float = 0.0
