"""Solana JSON-RPC client."""
import base64
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import NetworkError

logger = logging.getLogger(__name__)


class SolanaClient:
    """Solana RPC client over a single HTTP endpoint."""

    def __init__(self, config: ChainConfig) -> None:
        self.endpoint = config.rpc_endpoint
        self.timeout = config.rpc_timeout
        self.commitment = config.commitment

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make an RPC call and return its ``result`` member.

        Raises:
            NetworkError: on transport failure or an RPC error response.
        """
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.endpoint,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    result = await response.json()
        except Exception as e:
            raise NetworkError(f"{method} failed against {self.endpoint}: {e}") from e

        if "error" in result:
            raise NetworkError(f"RPC Error from {method}: {result['error']}")
        return result.get("result")

    async def get_program_accounts(
        self, program_id: str, filters: list[dict[str, Any]]
    ) -> list[tuple[str, bytes]]:
        """Return ``(pubkey, data)`` for every program account matching filters."""
        result = await self.rpc_call(
            "getProgramAccounts",
            [
                program_id,
                {
                    "commitment": self.commitment,
                    "encoding": "base64",
                    "filters": filters,
                },
            ],
        )

        accounts: list[tuple[str, bytes]] = []
        for item in result or []:
            data = item.get("account", {}).get("data", ["", "base64"])
            accounts.append((item.get("pubkey", ""), base64.b64decode(data[0])))
        logger.debug("getProgramAccounts %s returned %d accounts", program_id, len(accounts))
        return accounts

    async def get_account_info(self, address: str) -> bytes | None:
        """Return raw account data, or None when the account does not exist."""
        result = await self.rpc_call(
            "getAccountInfo",
            [address, {"commitment": self.commitment, "encoding": "base64"}],
        )
        value = (result or {}).get("value")
        if not value:
            return None
        return base64.b64decode(value["data"][0])

    async def get_token_accounts_by_owner(
        self, owner: str, mint: str
    ) -> list[dict[str, Any]]:
        """Return jsonParsed SPL token accounts of ``owner`` for ``mint``."""
        result = await self.rpc_call(
            "getTokenAccountsByOwner",
            [
                owner,
                {"mint": mint},
                {"commitment": self.commitment, "encoding": "jsonParsed"},
            ],
        )
        return (result or {}).get("value", [])
