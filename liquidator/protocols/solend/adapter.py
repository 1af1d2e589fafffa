"""Solend market adapter — fetches obligations, reserves, prices and balances."""
from __future__ import annotations

import logging

from ...config import MarketConfig
from ...errors import NetworkError
from ...interfaces.chain import ChainClient
from ...interfaces.price_oracle import PriceOracle
from ...models import Obligation, OraclePrice, Reserve
from . import layout

logger = logging.getLogger(__name__)

# Returned by fetch_wallet_token_balance when the balance cannot be read.
BALANCE_LOOKUP_FAILED = -1


def _market_filter(market_address: str, data_size: int) -> list[dict]:
    return [
        {"dataSize": data_size},
        {
            "memcmp": {
                "offset": layout.LENDING_MARKET_OFFSET,
                "bytes": market_address,
            }
        },
    ]


class SolendMarket:
    """Reads Solend lending-market state through a chain client and oracle."""

    def __init__(self, chain_client: ChainClient, oracle: PriceOracle) -> None:
        self._client = chain_client
        self._oracle = oracle

    async def fetch_oracle(self, market: MarketConfig) -> list[OraclePrice]:
        return await self._oracle.fetch_prices(market.reserves)

    async def fetch_obligations(self, market: MarketConfig) -> list[Obligation]:
        accounts = await self._client.get_program_accounts(
            market.program_id, _market_filter(market.address, layout.OBLIGATION_LEN)
        )

        obligations: list[Obligation] = []
        for pubkey, data in accounts:
            try:
                obligations.append(layout.parse_obligation(pubkey, data))
            except layout.LayoutError as e:
                logger.warning("Skipping undecodable obligation: %s", e)
        return obligations

    async def fetch_reserves(self, market: MarketConfig) -> list[Reserve]:
        accounts = await self._client.get_program_accounts(
            market.program_id, _market_filter(market.address, layout.RESERVE_LEN)
        )

        reserves: list[Reserve] = []
        for pubkey, data in accounts:
            reserve_cfg = market.reserve_by_address(pubkey)
            if reserve_cfg is None:
                logger.debug("Reserve %s is not configured, skipping", pubkey)
                continue
            try:
                reserves.append(layout.parse_reserve(pubkey, data, reserve_cfg.symbol))
            except layout.LayoutError as e:
                logger.warning("Skipping undecodable reserve: %s", e)
        return reserves

    async def fetch_wallet_token_balance(self, wallet: str, mint: str) -> int:
        """Return the wallet's base-unit balance of ``mint``.

        A missing token account or failed lookup yields
        ``BALANCE_LOOKUP_FAILED`` rather than an exception.
        """
        try:
            accounts = await self._client.get_token_accounts_by_owner(wallet, mint)
        except NetworkError as e:
            logger.error("Balance lookup for mint %s failed: %s", mint, e)
            return BALANCE_LOOKUP_FAILED

        if not accounts:
            logger.debug("Wallet %s has no token account for mint %s", wallet, mint)
            return BALANCE_LOOKUP_FAILED

        info = (
            accounts[0]
            .get("account", {})
            .get("data", {})
            .get("parsed", {})
            .get("info", {})
        )
        amount = info.get("tokenAmount", {}).get("amount")
        if amount is None:
            return BALANCE_LOOKUP_FAILED
        return int(amount)

    async def fetch_account_state(self, address: str) -> bytes:
        data = await self._client.get_account_info(address)
        if data is None:
            raise NetworkError(f"Account {address} not found")
        return data

