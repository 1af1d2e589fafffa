"""Unit tests for data models."""
from __future__ import annotations

from decimal import Decimal

import pytest

from liquidator.models import (
    WAD,
    ObligationResult,
    ObligationState,
    RefreshedObligation,
    Reserve,
)


def _reserve(**overrides) -> Reserve:
    fields = dict(
        pubkey="R", symbol="SOL", liquidity_mint="M", collateral_mint="C", decimals=9
    )
    fields.update(overrides)
    return Reserve(**fields)


class TestReserve:
    def test_exchange_rate_empty_pool(self) -> None:
        assert _reserve().collateral_exchange_rate == Decimal(1)

    def test_exchange_rate_includes_borrows(self) -> None:
        reserve = _reserve(
            available_amount=1_000,
            borrowed_amount_wads=1_000 * WAD,
            collateral_mint_total_supply=1_000,
        )
        assert reserve.total_liquidity == Decimal(2_000)
        assert reserve.collateral_exchange_rate == Decimal(2)

    def test_frozen(self) -> None:
        reserve = _reserve()
        with pytest.raises(AttributeError):
            reserve.decimals = 6  # type: ignore[misc]


class TestRefreshedObligation:
    def test_liquidatable_only_above_threshold(self) -> None:
        at_threshold = RefreshedObligation(
            deposited_value=Decimal(200),
            borrowed_value=Decimal(160),
            allowed_borrow_value=Decimal(150),
            unhealthy_borrow_value=Decimal(160),
        )
        above = RefreshedObligation(
            deposited_value=Decimal(200),
            borrowed_value=Decimal("160.01"),
            allowed_borrow_value=Decimal(150),
            unhealthy_borrow_value=Decimal(160),
        )
        assert not at_threshold.is_liquidatable
        assert above.is_liquidatable


class TestObligationResult:
    @pytest.mark.parametrize(
        ("state", "outcome"),
        [
            (ObligationState.HEALTHY, "success"),
            (ObligationState.TOXIC, "skip"),
            (ObligationState.FAILED, "error"),
        ],
    )
    def test_outcome(self, state: ObligationState, outcome: str) -> None:
        assert ObligationResult(pubkey="O", state=state).outcome == outcome

    def test_terminal_states(self) -> None:
        terminal = {s for s in ObligationState if s.is_terminal}
        assert terminal == {
            ObligationState.HEALTHY,
            ObligationState.TOXIC,
            ObligationState.FAILED,
        }
