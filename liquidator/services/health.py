"""Obligation valuation and repay/withdraw selection — pure functions, no I/O."""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from ..models import (
    WAD,
    Obligation,
    OraclePrice,
    PositionValue,
    RefreshedObligation,
    Reserve,
    Selection,
)

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)


def _scale(amount: Decimal, decimals: int) -> Decimal:
    return amount.scaleb(-decimals)


def calculate_refreshed_obligation(
    obligation: Obligation,
    reserves: Iterable[Reserve],
    oracles: Iterable[OraclePrice],
) -> RefreshedObligation:
    """Value an obligation against current reserve state and oracle prices.

    Deposits are converted from collateral tokens to liquidity through the
    reserve exchange rate; borrows accrue interest by the ratio of the
    reserve's cumulative borrow rate to the obligation's snapshot of it.
    Entries whose reserve or price is unknown are left out of the result.
    """
    reserves_by_key = {r.pubkey: r for r in reserves}
    prices_by_mint = {o.mint: o.price for o in oracles}

    deposits: list[PositionValue] = []
    deposited_value = _ZERO
    allowed_borrow_value = _ZERO
    unhealthy_borrow_value = _ZERO

    for deposit in obligation.deposits:
        reserve = reserves_by_key.get(deposit.deposit_reserve)
        if reserve is None:
            continue
        price = prices_by_mint.get(reserve.liquidity_mint)
        if price is None:
            continue

        liquidity = Decimal(deposit.deposited_amount) * reserve.collateral_exchange_rate
        market_value = _scale(liquidity, reserve.decimals) * price

        deposited_value += market_value
        allowed_borrow_value += market_value * reserve.loan_to_value_ratio / _HUNDRED
        unhealthy_borrow_value += market_value * reserve.liquidation_threshold / _HUNDRED
        deposits.append(
            PositionValue(
                reserve=reserve.pubkey,
                symbol=reserve.symbol,
                mint=reserve.liquidity_mint,
                amount=deposit.deposited_amount,
                market_value=market_value,
            )
        )

    borrows: list[PositionValue] = []
    borrowed_value = _ZERO

    for borrow in obligation.borrows:
        reserve = reserves_by_key.get(borrow.borrow_reserve)
        if reserve is None:
            continue
        price = prices_by_mint.get(reserve.liquidity_mint)
        if price is None:
            continue

        borrowed_wads = Decimal(borrow.borrowed_amount_wads)
        if borrow.cumulative_borrow_rate_wads:
            borrowed_wads = (
                borrowed_wads
                * reserve.cumulative_borrow_rate_wads
                / borrow.cumulative_borrow_rate_wads
            )
        borrowed_amount = borrowed_wads / WAD
        market_value = _scale(borrowed_amount, reserve.decimals) * price

        borrowed_value += market_value
        borrows.append(
            PositionValue(
                reserve=reserve.pubkey,
                symbol=reserve.symbol,
                mint=reserve.liquidity_mint,
                amount=int(borrowed_amount),
                market_value=market_value,
            )
        )

    return RefreshedObligation(
        deposited_value=deposited_value,
        borrowed_value=borrowed_value,
        allowed_borrow_value=allowed_borrow_value,
        unhealthy_borrow_value=unhealthy_borrow_value,
        deposits=tuple(deposits),
        borrows=tuple(borrows),
    )


def _highest_value(positions: Iterable[PositionValue]) -> PositionValue | None:
    """Return the position with the highest market value; first one wins ties."""
    selected: PositionValue | None = None
    for position in positions:
        if selected is None or position.market_value > selected.market_value:
            selected = position
    return selected


def select_positions(refreshed: RefreshedObligation) -> Selection | None:
    """Pick the borrow to repay and the deposit to withdraw.

    Returns None when either side is empty, which happens for obligations
    priced by missing or bad oracle data.
    """
    borrow = _highest_value(refreshed.borrows)
    deposit = _highest_value(refreshed.deposits)
    if borrow is None or deposit is None:
        return None
    return Selection(borrow=borrow, deposit=deposit)
