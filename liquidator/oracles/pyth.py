"""Pyth Network price oracle service."""
import logging
import ssl
from decimal import Decimal

import aiohttp
import certifi

from ..config import PythConfig, ReserveConfig
from ..errors import NetworkError
from ..models import OraclePrice

logger = logging.getLogger(__name__)


def _normalize_feed_id(feed_id: str) -> str:
    return feed_id.lower().removeprefix("0x")


class PythOracle:
    """Fetch prices from Pyth Network oracle."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url

    async def fetch_prices(
        self, reserves: tuple[ReserveConfig, ...]
    ) -> list[OraclePrice]:
        """Fetch current prices for every reserve with a configured feed.

        Reserves sharing a feed each get their own ``OraclePrice``. Feeds
        absent from the response are left out.

        Raises:
            NetworkError: on HTTP failure or a non-200 response.
        """
        id_to_reserves: dict[str, list[ReserveConfig]] = {}
        for reserve in reserves:
            if not reserve.pyth_feed_id:
                logger.debug("Reserve %s has no Pyth feed configured", reserve.symbol)
                continue
            feed_id = _normalize_feed_id(reserve.pyth_feed_id)
            id_to_reserves.setdefault(feed_id, []).append(reserve)

        if not id_to_reserves:
            return []

        query_params = "&".join(f"ids[]={fid}" for fid in id_to_reserves)
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise NetworkError(
                            f"Error fetching prices from Pyth: HTTP {response.status}"
                        )
                    data = await response.json()
        except NetworkError:
            raise
        except Exception as e:
            raise NetworkError(f"Error fetching prices from Pyth: {e}") from e

        prices: list[OraclePrice] = []
        for item in data.get("parsed", []):
            feed_id = _normalize_feed_id(item.get("id", ""))
            price_data = item.get("price", {})
            price_raw = int(price_data.get("price", 0))
            expo = int(price_data.get("expo", 0))

            price = Decimal(price_raw).scaleb(expo)

            for reserve in id_to_reserves.get(feed_id, []):
                prices.append(
                    OraclePrice(symbol=reserve.symbol, mint=reserve.mint, price=price)
                )

        logger.info("Fetched %d prices from Pyth Network", len(prices))
        for p in prices:
            logger.debug("  %s: $%s", p.symbol, p.price)
        return prices
