"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

SOLEND_PROGRAM_ID = "So1endDq2YkqhipRh3WViPa8hdiSpxWy6z3Z6tMCpAo"

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReserveConfig:
    symbol: str = ""
    address: str = ""
    mint: str = ""
    collateral_mint: str = ""
    pyth_feed_id: str = ""


@dataclass(frozen=True)
class MarketConfig:
    name: str = ""
    address: str = ""
    program_id: str = SOLEND_PROGRAM_ID
    reserves: tuple[ReserveConfig, ...] = ()

    def reserve_by_address(self, address: str) -> ReserveConfig | None:
        for reserve in self.reserves:
            if reserve.address == address:
                return reserve
        return None


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoint: str = "https://api.mainnet-beta.solana.com"
    rpc_timeout: int = 30
    commitment: str = "confirmed"


@dataclass(frozen=True)
class LiquidatorConfig:
    wallet_address: str = ""
    throttle_seconds: float = 0.0
    max_rounds: int = 10


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    market: MarketConfig = field(default_factory=MarketConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    liquidator: LiquidatorConfig = field(default_factory=LiquidatorConfig)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def _number(raw: Any, default: float) -> float:
    """Coerce a YAML scalar to float; empty strings (unset env vars) use default."""
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Expected a number, got {raw!r}") from e


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_reserves(raw: list[dict[str, Any]]) -> tuple[ReserveConfig, ...]:
    reserves: list[ReserveConfig] = []
    for r in raw:
        reserves.append(
            ReserveConfig(
                symbol=r.get("symbol", ""),
                address=r.get("address", ""),
                mint=r.get("mint", ""),
                collateral_mint=r.get("collateral_mint", ""),
                pyth_feed_id=r.get("pyth_feed_id", ""),
            )
        )
    return tuple(reserves)


def _build_market(raw: dict[str, Any]) -> MarketConfig:
    # MARKET in the environment selects the target market without editing YAML.
    address = os.environ.get("MARKET") or raw.get("address", "")
    return MarketConfig(
        name=raw.get("name", ""),
        address=address,
        program_id=raw.get("program_id") or SOLEND_PROGRAM_ID,
        reserves=_build_reserves(raw.get("reserves", [])),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        rpc_endpoint=raw.get("rpc_endpoint") or ChainConfig.rpc_endpoint,
        rpc_timeout=int(_number(raw.get("rpc_timeout"), 30)),
        commitment=raw.get("commitment") or "confirmed",
    )


def _build_liquidator(raw: dict[str, Any]) -> LiquidatorConfig:
    return LiquidatorConfig(
        wallet_address=raw.get("wallet_address", ""),
        throttle_seconds=_number(raw.get("throttle_seconds"), 0.0),
        max_rounds=int(_number(raw.get("max_rounds"), 10)),
    )


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).

    Raises:
        ConfigurationError: when the file is missing or fails validation.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        market=_build_market(raw.get("market", {})),
        chain=_build_chain(raw.get("chain", {})),
        liquidator=_build_liquidator(raw.get("liquidator", {})),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.market.address:
        raise ConfigurationError("No target market configured (set MARKET or market.address)")

    if not cfg.liquidator.wallet_address:
        raise ConfigurationError("Liquidator wallet_address is not configured")

    if cfg.liquidator.max_rounds < 1:
        raise ConfigurationError("liquidator.max_rounds must be at least 1")

    if cfg.liquidator.throttle_seconds < 0:
        raise ConfigurationError("liquidator.throttle_seconds must not be negative")

    seen: set[str] = set()
    for reserve in cfg.market.reserves:
        if not reserve.address:
            raise ConfigurationError(f"Reserve '{reserve.symbol}' has no address")
        if not reserve.symbol:
            raise ConfigurationError(f"Reserve '{reserve.address}' has no symbol")
        if reserve.address in seen:
            raise ConfigurationError(f"Reserve '{reserve.address}' is configured twice")
        seen.add(reserve.address)
