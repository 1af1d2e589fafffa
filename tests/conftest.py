"""Shared test fixtures and sample data."""
from __future__ import annotations

import struct
import textwrap
from decimal import Decimal
from pathlib import Path
from typing import Callable

import pytest
from solders.pubkey import Pubkey

from liquidator.config import (
    AppConfig,
    ChainConfig,
    LiquidatorConfig,
    MarketConfig,
    PriceOracleConfig,
    PythConfig,
    ReserveConfig,
)
from liquidator.models import (
    WAD,
    Obligation,
    ObligationCollateral,
    ObligationLiquidity,
    OraclePrice,
    Reserve,
)

# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _no_market_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MARKET", raising=False)


@pytest.fixture()
def sample_reserve_configs() -> tuple[ReserveConfig, ...]:
    return (
        ReserveConfig(
            symbol="SOL",
            address="RESERVE_SOL",
            mint="MINT_SOL",
            collateral_mint="CMINT_SOL",
            pyth_feed_id="aaa111",
        ),
        ReserveConfig(
            symbol="USDC",
            address="RESERVE_USDC",
            mint="MINT_USDC",
            collateral_mint="CMINT_USDC",
            pyth_feed_id="0xBBB222",
        ),
    )


@pytest.fixture()
def sample_market_config(
    sample_reserve_configs: tuple[ReserveConfig, ...],
) -> MarketConfig:
    return MarketConfig(
        name="main",
        address="MARKET_ADDRESS",
        program_id="PROGRAM_ID",
        reserves=sample_reserve_configs,
    )


@pytest.fixture()
def sample_app_config(sample_market_config: MarketConfig) -> AppConfig:
    return AppConfig(
        market=sample_market_config,
        chain=ChainConfig(rpc_endpoint="https://rpc.example.com", rpc_timeout=5),
        liquidator=LiquidatorConfig(
            wallet_address="WALLET", throttle_seconds=0.0, max_rounds=5
        ),
        price_oracle=PriceOracleConfig(
            provider="pyth", pyth=PythConfig(hermes_url="https://hermes.example.com")
        ),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_reserves() -> list[Reserve]:
    return [
        Reserve(
            pubkey="RESERVE_SOL",
            symbol="SOL",
            liquidity_mint="MINT_SOL",
            collateral_mint="CMINT_SOL",
            decimals=9,
            cumulative_borrow_rate_wads=WAD,
            loan_to_value_ratio=75,
            liquidation_threshold=80,
            liquidation_bonus=5,
        ),
        Reserve(
            pubkey="RESERVE_USDC",
            symbol="USDC",
            liquidity_mint="MINT_USDC",
            collateral_mint="CMINT_USDC",
            decimals=6,
            cumulative_borrow_rate_wads=WAD,
            loan_to_value_ratio=80,
            liquidation_threshold=85,
            liquidation_bonus=5,
        ),
    ]


@pytest.fixture()
def sample_oracles() -> list[OraclePrice]:
    return [
        OraclePrice(symbol="SOL", mint="MINT_SOL", price=Decimal("20")),
        OraclePrice(symbol="USDC", mint="MINT_USDC", price=Decimal("1")),
    ]


@pytest.fixture()
def healthy_obligation() -> Obligation:
    # 10 SOL ($200) deposited, 100 USDC borrowed
    return Obligation(
        pubkey="OBLIGATION_1",
        owner="OWNER_1",
        lending_market="MARKET_ADDRESS",
        deposits=(ObligationCollateral("RESERVE_SOL", 10 * 10**9),),
        borrows=(ObligationLiquidity("RESERVE_USDC", WAD, 100 * 10**6 * WAD),),
    )


@pytest.fixture()
def underwater_obligation() -> Obligation:
    # 10 SOL ($200, threshold $160) deposited, 170 USDC borrowed
    return Obligation(
        pubkey="OBLIGATION_2",
        owner="OWNER_2",
        lending_market="MARKET_ADDRESS",
        deposits=(ObligationCollateral("RESERVE_SOL", 10 * 10**9),),
        borrows=(ObligationLiquidity("RESERVE_USDC", WAD, 170 * 10**6 * WAD),),
    )


# ---------------------------------------------------------------------------
# Account data builders
# ---------------------------------------------------------------------------


def _u128(value: int) -> bytes:
    return value.to_bytes(16, "little")


@pytest.fixture()
def build_obligation_data() -> Callable[..., bytes]:
    """Return a builder for raw obligation account bytes."""

    def build(
        market: Pubkey,
        owner: Pubkey,
        deposits: list[tuple[Pubkey, int]] = (),
        borrows: list[tuple[Pubkey, int, int]] = (),
    ) -> bytes:
        data = bytearray(1300)
        data[0] = 1
        data[10:42] = bytes(market)
        data[42:74] = bytes(owner)
        data[202] = len(deposits)
        data[203] = len(borrows)
        offset = 204
        for reserve, amount in deposits:
            data[offset:offset + 32] = bytes(reserve)
            struct.pack_into("<Q", data, offset + 32, amount)
            offset += 88
        for reserve, rate, amount_wads in borrows:
            data[offset:offset + 32] = bytes(reserve)
            data[offset + 32:offset + 48] = _u128(rate)
            data[offset + 48:offset + 64] = _u128(amount_wads)
            offset += 112
        return bytes(data)

    return build


@pytest.fixture()
def build_reserve_data() -> Callable[..., bytes]:
    """Return a builder for raw reserve account bytes."""

    def build(
        market: Pubkey,
        liquidity_mint: Pubkey,
        collateral_mint: Pubkey,
        decimals: int = 9,
        available: int = 0,
        borrowed_wads: int = 0,
        cumulative_rate: int = WAD,
        collateral_supply: int = 0,
        ltv: int = 75,
        bonus: int = 5,
        threshold: int = 80,
    ) -> bytes:
        data = bytearray(619)
        data[0] = 1
        data[10:42] = bytes(market)
        data[42:74] = bytes(liquidity_mint)
        data[74] = decimals
        struct.pack_into("<Q", data, 171, available)
        data[179:195] = _u128(borrowed_wads)
        data[195:211] = _u128(cumulative_rate)
        data[227:259] = bytes(collateral_mint)
        struct.pack_into("<Q", data, 259, collateral_supply)
        data[300] = ltv
        data[301] = bonus
        data[302] = threshold
        return bytes(data)

    return build


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    market:
      name: main
      address: "MARKET_FROM_YAML"
      program_id: "PROGRAM_ID"
      reserves:
        - symbol: SOL
          address: RESERVE_SOL
          mint: MINT_SOL
          collateral_mint: CMINT_SOL
          pyth_feed_id: aaa111
        - symbol: USDC
          address: RESERVE_USDC
          mint: MINT_USDC
          collateral_mint: CMINT_USDC
          pyth_feed_id: bbb222
    chain:
      rpc_endpoint: "https://rpc.example.com"
      rpc_timeout: 10
    liquidator:
      wallet_address: "WALLET"
      throttle_seconds: 2.5
      max_rounds: 4
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
