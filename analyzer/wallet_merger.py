"""
Wallet Merger
=============
Folds one token's early-buyer cohort into the wallets we already know.

For every wallet in the cohort:
- Snapshot the token's details into a new RunnerParticipation
- Look the wallet up in the database
- Known wallet: append the participation to its history, unless it
  already holds a scored participation for this token (a rescan after
  --reset-checks must not count the token twice)
- New wallet: create it with this single participation and no badges

Nothing is written here. The merged wallets go to the scorer, and only a
fully scored wallet is saved.

Lookups for different wallets are independent, so they run concurrently
(bounded by a semaphore so a 2,000-wallet cohort doesn't flood the DB).
"""

import asyncio

from analyzer.early_buyers import Cohort
from analyzer.entities import RunnerParticipation, TradeHistory, Wallet
from database.db import Database
from utils.logger import get_logger

logger = get_logger(__name__)


class WalletMerger:
    """
    Merges cohorts into Wallet objects.

    Usage:
        merger = WalletMerger(db, concurrency=16)
        wallets = await merger.merge_cohort(cohort)
    """

    def __init__(self, db: Database, concurrency: int = 16):
        self.db = db
        self.concurrency = concurrency

    async def merge_cohort(self, cohort: Cohort) -> list[Wallet]:
        """Return one Wallet per cohort member, each carrying the new participation."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def merge_one(address: str, trades: TradeHistory) -> Wallet:
            async with semaphore:
                existing = await self.db.get_wallet_by_address(address)
            return self.merge_wallet(existing, address, cohort, trades)

        wallets = await asyncio.gather(
            *(merge_one(address, trades) for address, trades in cohort.wallets.items())
        )

        new_count = sum(1 for w in wallets if len(w.participations) == 1)
        logger.info(
            "cohort_merged",
            symbol=cohort.token.symbol,
            wallets=len(wallets),
            new_wallets=new_count,
        )
        return list(wallets)

    @staticmethod
    def merge_wallet(
        existing: Wallet | None, address: str, cohort: Cohort, trades: TradeHistory
    ) -> Wallet:
        participation = RunnerParticipation.from_token(
            cohort.token, trades, cohort.million_timestamp
        )
        if existing is None:
            return Wallet(address=address, participations=[participation], badges=[])

        # A scored runner is final; a rescan of the same token adds nothing
        if any(p.address == cohort.token.address and p.scored for p in existing.participations):
            logger.debug(
                "participation_already_scored",
                wallet=address[:8] + "...",
                symbol=cohort.token.symbol,
            )
            return existing

        existing.participations.append(participation)
        if len(existing.participations) == 2:
            logger.debug(
                "wallet_second_runner",
                wallet=address[:8] + "...",
                symbols=[p.symbol for p in existing.participations],
            )
        return existing
