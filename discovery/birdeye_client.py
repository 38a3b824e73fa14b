"""
Birdeye Client
==============
Client for the Birdeye API — where every piece of token market data comes from.

We use three endpoints:
- /defi/txs/token: the swap feed for a token, newest first, 50 per page
- /defi/history_price: price samples, used to locate milestones and the ATH
- /defi/v3/token/list: liquid Solana tokens, the candidate list for runners

The swap feed is the input to early-buyer extraction, so it has to be
complete or not used at all. Any page that comes back malformed raises
FeedError and the token is retried on the next cycle.

API docs: https://docs.birdeye.so/
"""

import asyncio
from typing import Any

import aiohttp

from analyzer.entities import PricePoint, Side, SwapEvent, Transaction
from analyzer.errors import FeedError
from utils.logger import get_logger

logger = get_logger(__name__)


class BirdeyeClient:
    """
    Async Birdeye API client.

    The session is owned by the caller so several clients can share it.

    Usage:
        async with aiohttp.ClientSession() as session:
            birdeye = BirdeyeClient(settings.birdeye_api_key, session)
            events = await birdeye.get_token_transactions("mint_address_here")
    """

    BASE_URL = "https://public-api.birdeye.so"
    MAX_RETRIES = 3

    def __init__(
        self,
        api_key: str,
        session: aiohttp.ClientSession,
        base_url: str | None = None,
        page_size: int = 50,
        max_offset: int = 50_000,
    ):
        self.api_key = api_key
        self.session = session
        self.base_url = base_url or self.BASE_URL
        self.page_size = page_size
        self.max_offset = max_offset
        self.headers = {
            "X-API-KEY": api_key,
            "x-chain": "solana",
            "accept": "application/json",
        }

    async def _get(self, endpoint: str, params: dict | None = None, attempt: int = 0) -> dict:
        """
        Make a GET request to the Birdeye API.

        Rate limits (429) are retried after a short pause, a few times at
        most. Anything else that isn't a 200 raises FeedError.
        """
        url = f"{self.base_url}{endpoint}"
        async with self.session.get(url, headers=self.headers, params=params) as response:
            if response.status == 200:
                return await response.json()
            elif response.status == 429 and attempt < self.MAX_RETRIES:
                # Rate limited, wait and retry
                logger.warning("birdeye_rate_limited", endpoint=endpoint, attempt=attempt + 1)
                await asyncio.sleep(2)
                return await self._get(endpoint, params, attempt + 1)
            else:
                error_text = await response.text()
                logger.error("birdeye_error", status=response.status, endpoint=endpoint, error=error_text)
                raise FeedError(f"{endpoint} returned HTTP {response.status}")

    # =========================================================================
    # Swap feed
    # =========================================================================

    async def get_token_transactions(self, token_address: str) -> list[SwapEvent]:
        """
        Get every swap Birdeye has for a token.

        Pages through the feed until a short page comes back or the offset
        cap is passed. Raises FeedError if a page or a transaction in it
        doesn't have the expected shape.
        """
        events: list[SwapEvent] = []
        offset = 0

        while offset <= self.max_offset:
            params = {
                "address": token_address,
                "offset": offset,
                "limit": self.page_size,
                "tx_type": "swap",
                "sort_type": "desc",
            }
            data = await self._get("/defi/txs/token", params)
            items = (data.get("data") or {}).get("items") if isinstance(data, dict) else None
            if not isinstance(items, list):
                raise FeedError(f"malformed swap feed page for {token_address} at offset {offset}")

            events.extend(self._normalize_swap(token_address, item) for item in items)

            if len(items) < self.page_size:
                break
            offset += self.page_size

        logger.info("swap_feed_fetched", token=token_address, transactions=len(events))
        return events

    @staticmethod
    def _normalize_swap(token_address: str, item: dict[str, Any]) -> SwapEvent:
        """
        Turn one feed item into a SwapEvent.

        On a buy the token is what the wallet received ("to"), on a sell it
        is what the wallet gave up ("from").
        """
        try:
            side = Side(item["side"])
            leg = item["to"] if side is Side.BUY else item["from"]
            transaction = Transaction(
                side=side,
                amount=float(leg.get("uiAmount") or 0),
                price=float(leg.get("nearestPrice") or 0),
                timestamp=int(item["blockUnixTime"]),
            )
            return SwapEvent(owner=item.get("owner") or "", transaction=transaction)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FeedError(f"malformed swap for {token_address}: {e}") from e

    # =========================================================================
    # Prices & token lists
    # =========================================================================

    async def get_token_price_history(
        self, token_address: str, time_from: int, time_to: int, interval: str = "1m"
    ) -> list[PricePoint]:
        """
        Get historical price samples for a token, oldest first.

        Args:
            token_address: The token's mint address
            time_from: Start time as Unix timestamp
            time_to: End time as Unix timestamp
            interval: Sample interval ("1m", "5m", "15m", "1H", "4H", "1D")
        """
        params = {
            "address": token_address,
            "address_type": "token",
            "type": interval,
            "time_from": time_from,
            "time_to": time_to,
        }
        data = await self._get("/defi/history_price", params)
        items = (data.get("data") or {}).get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise FeedError(f"malformed price history for {token_address}")

        try:
            points = [PricePoint(unix_time=int(i["unixTime"]), value=float(i["value"])) for i in items]
        except (KeyError, TypeError, ValueError) as e:
            raise FeedError(f"malformed price sample for {token_address}: {e}") from e

        points.sort(key=lambda p: p.unix_time)
        return points

    async def get_token_list(
        self, min_liquidity: float = 20_000, offset: int = 0, limit: int = 100
    ) -> list[dict]:
        """
        Get liquid Solana tokens, most liquid first.

        Each item carries at least address, name, symbol and logo_uri.
        """
        params = {
            "sort_by": "liquidity",
            "sort_type": "desc",
            "min_liquidity": min_liquidity,
            "offset": offset,
            "limit": limit,
        }
        data = await self._get("/defi/v3/token/list", params)
        items = (data.get("data") or {}).get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise FeedError("malformed token list page")
        return items
