"""
Scoring Pipeline
================
Runs one scoring cycle over every runner we haven't processed yet.

For each unchecked runner, one at a time:
1. Pull its full swap feed from Birdeye
2. Extract the early-buyer cohort
3. Merge the cohort into known wallets
4. Score the wallets and save each one
5. Mark the runner as checked

A feed problem leaves the runner unchecked so the next cycle retries it.
Once wallets start being written the runner is always marked checked,
even if some of those writes failed; the wallets that failed are listed
in the result.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

import aiohttp

from analyzer.early_buyers import extract_early_buyers
from analyzer.entities import RunnerToken
from analyzer.errors import FeedError
from analyzer.wallet_merger import WalletMerger
from analyzer.wallet_scorer import WalletScorer
from config.settings import Settings
from database.db import Database
from utils.logger import get_logger

logger = get_logger(__name__)

STATUS_SUCCESS = "success"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass
class TokenRunResult:
    token_address: str
    status: str
    wallets_scored: int = 0
    failed_wallets: list[str] = field(default_factory=list)
    error: str | None = None


class ScoringPipeline:
    """
    Ties the feed, extractor, merger and scorer together.

    Usage:
        pipeline = ScoringPipeline(settings, db, birdeye, merger, scorer)
        results = await pipeline.run_scoring_cycle()
    """

    def __init__(
        self,
        settings: Settings,
        db: Database,
        feed,
        merger: WalletMerger,
        scorer: WalletScorer,
    ):
        self.settings = settings
        self.db = db
        self.feed = feed
        self.merger = merger
        self.scorer = scorer

    async def run_scoring_cycle(self, now: int | None = None) -> list[TokenRunResult]:
        """Process every unchecked runner. Returns one result per runner."""
        now = now if now is not None else int(datetime.now(timezone.utc).timestamp())

        global_runner_count = len(await self.db.get_all_runner_tokens())
        pending = await self.db.get_unchecked_runner_tokens()
        logger.info("scoring_cycle_starting", pending=len(pending), global_runners=global_runner_count)

        results = []
        for token in pending:
            try:
                result = await self.process_token(token, global_runner_count, now)
            except (FeedError, aiohttp.ClientError) as e:
                logger.error("token_feed_failed", symbol=token.symbol, address=token.address, error=str(e))
                result = TokenRunResult(token.address, STATUS_FAILED, error=str(e))
            except Exception as e:
                logger.exception("token_processing_failed", symbol=token.symbol, address=token.address)
                result = TokenRunResult(token.address, STATUS_FAILED, error=f"{type(e).__name__}: {e}")
            results.append(result)

        logger.info(
            "scoring_cycle_complete",
            processed=len(results),
            succeeded=sum(1 for r in results if r.status == STATUS_SUCCESS),
            skipped=sum(1 for r in results if r.status == STATUS_SKIPPED),
            failed=sum(1 for r in results if r.status == STATUS_FAILED),
        )
        return results

    async def process_token(self, token: RunnerToken, global_runner_count: int, now: int) -> TokenRunResult:
        """Run one runner through the whole pipeline."""
        if token.milestones.early is None:
            logger.info("token_skipped", symbol=token.symbol, reason="no early milestone")
            await self.db.mark_runner_checked(token.address)
            return TokenRunResult(token.address, STATUS_SKIPPED)

        events = await self.feed.get_token_transactions(token.address)
        cohort = extract_early_buyers(token, events, self.settings.min_early_buy_usd)

        if not cohort.wallets:
            logger.info("token_skipped", symbol=token.symbol, reason="empty cohort")
            await self.db.mark_runner_checked(token.address)
            return TokenRunResult(token.address, STATUS_SKIPPED)

        wallets = await self.merger.merge_cohort(cohort)
        report = await self.scorer.score_wallets(wallets, global_runner_count, now)
        await self.db.mark_runner_checked(token.address)

        logger.info(
            "token_scored",
            symbol=token.symbol,
            wallets=len(report.saved),
            failed_wallets=len(report.failed_wallets),
        )
        return TokenRunResult(
            token.address,
            STATUS_SUCCESS,
            wallets_scored=len(report.saved),
            failed_wallets=list(report.failed_wallets),
        )
