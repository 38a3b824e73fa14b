"""
Runner Scanner
==============
Finds runner tokens and registers them for scoring.

A runner is a token whose all-time-high market cap (over the last 30 days)
reached at least $1M. For each one we also locate its milestones so the
scoring pipeline knows where "early" ends.

Strategy:
1. Page through Birdeye's token list, most liquid first ($20k+ liquidity)
2. Skip tokens we already track
3. Pull 30 days of 1-minute prices and the token supply
4. ATH market cap = highest price x supply
5. If it cleared the runner bar, store it with its milestones

This module runs on-demand (--discover). Runners are never updated once
stored, so re-running discovery only ever adds new tokens.
"""

from datetime import datetime, timezone

import aiohttp

from analyzer.entities import RunnerToken
from analyzer.errors import FeedError
from analyzer.milestones import all_time_high, find_milestones
from config.settings import DAY_SECONDS, Settings
from database.db import Database
from discovery.birdeye_client import BirdeyeClient
from utils.logger import get_logger
from utils.solana_client import RpcError, SolanaClient

logger = get_logger(__name__)


class RunnerScanner:
    """
    Discovers runners from Birdeye and saves them to the database.

    Usage:
        scanner = RunnerScanner(settings, db, birdeye, solana)
        new_runners = await scanner.scan(limit=300)
    """

    PAGE_SIZE = 100

    def __init__(self, settings: Settings, db: Database, birdeye: BirdeyeClient, solana: SolanaClient):
        self.settings = settings
        self.db = db
        self.birdeye = birdeye
        self.solana = solana

    async def scan(self, limit: int = 300, now: int | None = None) -> list[RunnerToken]:
        """
        Check up to `limit` candidate tokens and register the runners among them.

        Returns the runners that were newly added.
        """
        now = now if now is not None else int(datetime.now(timezone.utc).timestamp())
        logger.info(
            "runner_scan_starting",
            limit=limit,
            min_ath_mcap=f"${self.settings.runner_min_ath_mcap_usd/1e6:.1f}M",
        )

        candidates = await self._fetch_candidates(limit)
        known = {t.address for t in await self.db.get_all_runner_tokens()}

        added = []
        for candidate in candidates:
            address = candidate.get("address")
            if not address or address in known:
                continue
            known.add(address)

            try:
                runner = await self.evaluate(candidate, now)
            except (FeedError, RpcError, aiohttp.ClientError, ValueError) as e:
                logger.warning("runner_candidate_failed", address=address, error=str(e), type=type(e).__name__)
                continue

            if runner is None:
                continue
            if await self.db.insert_runner_token(runner):
                added.append(runner)
                logger.info(
                    "runner_registered",
                    symbol=runner.symbol,
                    address=runner.address,
                    ath_mcap=f"${runner.ath_market_cap:,.0f}",
                )

        logger.info("runner_scan_complete", candidates=len(candidates), added=len(added))
        return added

    async def _fetch_candidates(self, limit: int) -> list[dict]:
        """Page through the token list until `limit` tokens or the end of the list."""
        candidates: list[dict] = []
        offset = 0
        while len(candidates) < limit:
            batch = await self.birdeye.get_token_list(
                min_liquidity=self.settings.discovery_min_liquidity_usd,
                offset=offset,
                limit=self.PAGE_SIZE,
            )
            candidates.extend(batch)
            if len(batch) < self.PAGE_SIZE:
                break
            offset += self.PAGE_SIZE
        return candidates[:limit]

    async def evaluate(self, candidate: dict, now: int) -> RunnerToken | None:
        """Build a RunnerToken for a candidate, or None if it never ran."""
        address = candidate["address"]
        prices = await self.birdeye.get_token_price_history(
            address,
            time_from=now - self.settings.price_history_days * DAY_SECONDS,
            time_to=now,
        )
        if not prices:
            return None

        raw_supply, decimals = await self.solana.get_token_supply(address)
        supply = raw_supply / 10 ** decimals

        ath_price = all_time_high(prices)
        ath_market_cap = round(ath_price * supply)
        if ath_market_cap < self.settings.runner_min_ath_mcap_usd:
            return None

        milestones = find_milestones(
            prices,
            supply,
            low_threshold=self.settings.early_mcap_threshold_usd,
            high_threshold=self.settings.late_mcap_threshold_usd,
            two_million=self.settings.two_million_mcap_usd,
            five_million=self.settings.five_million_mcap_usd,
        )

        return RunnerToken(
            address=address,
            name=candidate.get("name") or "",
            symbol=candidate.get("symbol") or "",
            logo_uri=candidate.get("logo_uri"),
            ath_price=ath_price,
            ath_market_cap=ath_market_cap,
            total_supply=supply,
            milestones=milestones,
        )
