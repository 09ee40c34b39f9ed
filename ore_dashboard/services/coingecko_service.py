"""
CoinGecko service for fetching the token price.
"""
import asyncio
import time
from typing import Dict, Optional, Tuple

import aiohttp
import structlog

from ore_dashboard.core.config import settings

logger = structlog.get_logger(__name__)


class CoinGeckoService:
    """Service for fetching token prices from the CoinGecko simple price API"""

    def __init__(self, base_url: Optional[str] = None, cache_duration: Optional[int] = None):
        self.base_url = base_url or settings.coingecko_base_url
        self.cache_duration = settings.price_cache_seconds if cache_duration is None else cache_duration
        self.timeout = aiohttp.ClientTimeout(total=10)
        self._cache: Dict[Tuple[str, str], Tuple[float, float]] = {}

    async def fetch_price(self, token_id: str, currency: str) -> Optional[float]:
        """Get the current price of `token_id` in `currency`, or None if unavailable."""
        key = (token_id, currency)
        current_time = time.time()
        cached = self._cache.get(key)
        if cached is not None and current_time - cached[1] < self.cache_duration:
            return cached[0]

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                url = f"{self.base_url}/simple/price"
                params = {
                    'ids': token_id,
                    'vs_currencies': currency
                }

                async with session.get(url, params=params) as response:
                    if response.status == 200:
                        data = await response.json()
                        price = data.get(token_id, {}).get(currency)

                        if price is not None:
                            self._cache[key] = (float(price), current_time)
                            logger.debug("Price updated", token=token_id, currency=currency, price=price)
                            return float(price)
                    else:
                        logger.warning("Price request rejected", status=response.status)

        except asyncio.TimeoutError:
            logger.warning("CoinGecko API timeout")
        except Exception as e:
            logger.error("Error fetching price", token=token_id, error=str(e))

        return None
