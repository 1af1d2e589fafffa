"""Pure decoding functions for Solend account data — no I/O.

Byte layouts of the token-lending program accounts::

    Obligation (1300 bytes)
      0    version                u8
      1    last_update            slot u64, stale u8
      10   lending_market         pubkey
      42   owner                  pubkey
      74   deposited_value        u128 (WAD)
      90   borrowed_value         u128 (WAD)
      106  allowed_borrow_value   u128 (WAD)
      122  unhealthy_borrow_value u128 (WAD)
      138  padding                64 bytes
      202  deposits_len           u8
      203  borrows_len            u8
      204  deposits (88 bytes each) then borrows (112 bytes each)

    Reserve (619 bytes): see ``parse_reserve``.
"""
from __future__ import annotations

import struct

from solders.pubkey import Pubkey

from ...errors import LiquidatorError
from ...models import Obligation, ObligationCollateral, ObligationLiquidity, Reserve

OBLIGATION_LEN = 1300
RESERVE_LEN = 619
LENDING_MARKET_OFFSET = 10

_OBLIGATION_HEADER_LEN = 204
_COLLATERAL_LEN = 88
_LIQUIDITY_LEN = 112


class LayoutError(LiquidatorError):
    """Account data does not match the expected layout."""


def read_pubkey(data: bytes, offset: int) -> str:
    return str(Pubkey.from_bytes(data[offset:offset + 32]))


def read_u8(data: bytes, offset: int) -> int:
    return data[offset]


def read_u64(data: bytes, offset: int) -> int:
    return struct.unpack_from("<Q", data, offset)[0]


def read_u128(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 16], "little")


def parse_obligation(pubkey: str, data: bytes) -> Obligation:
    """Decode an obligation account.

    Raises:
        LayoutError: when the data is too short for the declared entries.
    """
    if len(data) < _OBLIGATION_HEADER_LEN:
        raise LayoutError(f"Obligation {pubkey}: {len(data)} bytes is too short")

    deposits_len = read_u8(data, 202)
    borrows_len = read_u8(data, 203)
    needed = (
        _OBLIGATION_HEADER_LEN
        + deposits_len * _COLLATERAL_LEN
        + borrows_len * _LIQUIDITY_LEN
    )
    if len(data) < needed:
        raise LayoutError(
            f"Obligation {pubkey}: {deposits_len} deposits and {borrows_len} "
            f"borrows need {needed} bytes, got {len(data)}"
        )

    offset = _OBLIGATION_HEADER_LEN
    deposits: list[ObligationCollateral] = []
    for _ in range(deposits_len):
        deposits.append(
            ObligationCollateral(
                deposit_reserve=read_pubkey(data, offset),
                deposited_amount=read_u64(data, offset + 32),
            )
        )
        offset += _COLLATERAL_LEN

    borrows: list[ObligationLiquidity] = []
    for _ in range(borrows_len):
        borrows.append(
            ObligationLiquidity(
                borrow_reserve=read_pubkey(data, offset),
                cumulative_borrow_rate_wads=read_u128(data, offset + 32),
                borrowed_amount_wads=read_u128(data, offset + 48),
            )
        )
        offset += _LIQUIDITY_LEN

    return Obligation(
        pubkey=pubkey,
        owner=read_pubkey(data, 42),
        lending_market=read_pubkey(data, LENDING_MARKET_OFFSET),
        deposits=tuple(deposits),
        borrows=tuple(borrows),
    )


def parse_reserve(pubkey: str, data: bytes, symbol: str = "") -> Reserve:
    """Decode a reserve account.

    Offsets: liquidity mint 42, decimals 74, available amount 171,
    borrowed wads 179, cumulative borrow rate 195, collateral mint 227,
    collateral supply 259, then config bytes ltv 300, bonus 301,
    threshold 302.
    """
    if len(data) < 303:
        raise LayoutError(f"Reserve {pubkey}: {len(data)} bytes is too short")

    return Reserve(
        pubkey=pubkey,
        symbol=symbol,
        liquidity_mint=read_pubkey(data, 42),
        decimals=read_u8(data, 74),
        available_amount=read_u64(data, 171),
        borrowed_amount_wads=read_u128(data, 179),
        cumulative_borrow_rate_wads=read_u128(data, 195),
        collateral_mint=read_pubkey(data, 227),
        collateral_mint_total_supply=read_u64(data, 259),
        loan_to_value_ratio=read_u8(data, 300),
        liquidation_bonus=read_u8(data, 301),
        liquidation_threshold=read_u8(data, 302),
    )
