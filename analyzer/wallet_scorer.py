"""
Wallet Scorer
=============
Turns a wallet's runner participations into one confidence score and a set
of badges, then saves it.

    confidence = sum of token scores x wallet multiplier - inactivity decay

1. Sum of Token Scores
   - Every participation is scored once (see participation_scorer)
   - Participations that couldn't be scored count as 0

2. Wallet Multiplier (0.5-1.5), from the success rate
   - A participation is a success if the wallet sold after the late
     milestone, or never sold and the milestone has already passed
   - 50%+ success = 1.5, 20%+ = 1.2, 10%+ = 1.0, below that = 0.5

3. Inactivity Decay
   - Nothing happens for the first 30 days after the wallet's last trade
   - After that, every full inactive week takes 2% of the summed token score

The confidence score is recomputed from scratch every run. Token scores
are not: a scored participation keeps its score forever.

Why this scoring system?
- Early entry alone isn't enough (could be a sniper that dumps instantly)
- Holding alone isn't enough (could be a bag holder who bought late)
- The success rate ties it together — we want wallets that REPEATEDLY ride runners
- Decay keeps abandoned wallets from squatting at the top of the leaderboard
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone

from analyzer.badges import BadgeContext, assign_badges
from analyzer.entities import Wallet
from analyzer.errors import PersistenceError, ScoringError
from analyzer.participation_scorer import score_participation
from analyzer.wallet_activity import WalletActivityChecker, WalletState
from config.settings import DAY_SECONDS, WEEK_SECONDS, Settings
from database.db import Database
from utils.logger import get_logger

logger = get_logger(__name__)


def sum_token_scores(wallet: Wallet) -> float:
    total = 0.0
    for p in wallet.participations:
        if isinstance(p.score, (int, float)) and not math.isnan(p.score):
            total += p.score
    return total


def success_rate(wallet: Wallet, now: int) -> float:
    """Percentage of participations held through their late milestone."""
    if not wallet.participations:
        return 0.0
    successes = sum(1 for p in wallet.participations if p.held_past_milestone(now))
    return successes / len(wallet.participations) * 100


def wallet_multiplier(rate: float) -> float:
    if rate >= 50:
        return 1.5
    elif rate >= 20:
        return 1.2
    elif rate >= 10:
        return 1.0
    return 0.5


def last_activity(wallet: Wallet) -> int | None:
    """Timestamp of the wallet's most recent buy or sell across all runners."""
    timestamps = [ts for p in wallet.participations for ts in p.event_timestamps()]
    return max(timestamps, default=None)


def decay_amount(
    token_score_sum: float,
    last_active: int | None,
    now: int,
    grace_days: int = 30,
    per_week: float = 0.02,
) -> float:
    """How much score an idle wallet loses."""
    if last_active is None:
        return 0.0
    inactive = now - last_active - grace_days * DAY_SECONDS
    if inactive <= 0:
        return 0.0
    weeks_inactive = inactive // WEEK_SECONDS
    return token_score_sum * weeks_inactive * per_week


def confidence_score(token_score_sum: float, multiplier: float, decay: float) -> float:
    return max(0.0, token_score_sum * multiplier - decay)


def wallet_pnl(wallet: Wallet) -> float:
    return sum(p.realized_pnl() for p in wallet.participations)


@dataclass
class ScoringReport:
    """What happened to one batch of wallets."""
    saved: list[Wallet] = field(default_factory=list)
    failed_wallets: list[str] = field(default_factory=list)
    skipped_participations: int = 0


class WalletScorer:
    """
    Scores wallets and saves them.

    Usage:
        scorer = WalletScorer(settings, db, activity_checker)
        report = await scorer.score_wallets(wallets, global_runner_count=120)
    """

    def __init__(self, settings: Settings, db: Database, activity: WalletActivityChecker):
        self.settings = settings
        self.db = db
        self.activity = activity

    async def score_wallets(
        self, wallets: list[Wallet], global_runner_count: int, now: int | None = None
    ) -> ScoringReport:
        """
        Score every wallet, assign badges, and save each one independently.

        Args:
            wallets: Merged wallets from WalletMerger
            global_runner_count: How many runners we track in total
            now: Unix time to score against (defaults to the current time)

        Returns:
            ScoringReport — a wallet that fails to save is listed in
            failed_wallets and doesn't stop the rest
        """
        now = now if now is not None else int(datetime.now(timezone.utc).timestamp())
        report = ScoringReport()
        logger.info("scoring_wallets", count=len(wallets), global_runners=global_runner_count)

        for wallet in wallets:
            report.skipped_participations += self._score_participations(wallet, now)

        states = await self.activity.check_wallets([w.address for w in wallets], now)

        for wallet in wallets:
            self.score_wallet(wallet, global_runner_count, now, states.get(wallet.address, WalletState()))
            try:
                await self.db.upsert_wallet(wallet)
                report.saved.append(wallet)
            except PersistenceError as e:
                logger.error("wallet_save_failed", wallet=wallet.address, error=str(e))
                report.failed_wallets.append(wallet.address)

        self._print_leaderboard(sorted(report.saved, key=lambda w: w.confidence_score, reverse=True)[:20])

        logger.info(
            "scoring_complete",
            saved=len(report.saved),
            failed=len(report.failed_wallets),
            skipped_participations=report.skipped_participations,
        )
        return report

    def _score_participations(self, wallet: Wallet, now: int) -> int:
        """Score any unscored participations. Returns how many had to be skipped."""
        skipped = 0
        for participation in wallet.participations:
            if participation.scored:
                continue
            try:
                score_participation(participation, now, self.settings.conviction_window_days)
            except ScoringError as e:
                skipped += 1
                logger.warning(
                    "participation_skipped",
                    wallet=wallet.address[:8] + "...",
                    token=participation.symbol or participation.address,
                    reason=str(e),
                )
        return skipped

    def score_wallet(self, wallet: Wallet, global_runner_count: int, now: int, state: WalletState) -> Wallet:
        """Recompute confidence score, PnL and badges in place."""
        total = sum_token_scores(wallet)
        multiplier = wallet_multiplier(success_rate(wallet, now))
        decay = decay_amount(
            total,
            last_activity(wallet),
            now,
            self.settings.inactivity_grace_days,
            self.settings.decay_per_week,
        )

        wallet.confidence_score = confidence_score(total, multiplier, decay)
        wallet.pnl = wallet_pnl(wallet)

        ctx = BadgeContext(
            wallet=wallet,
            global_runner_count=global_runner_count,
            now=now,
            whale_buy_usd=self.settings.whale_buy_usd,
        )
        wallet.badges = assign_badges(ctx, is_dead=state.is_dead, is_comeback=state.is_comeback)
        return wallet

    def _print_leaderboard(self, wallets: list[Wallet]) -> None:
        """Print the top-scored wallets in a readable format."""
        if not wallets:
            return

        logger.info("=" * 80)
        logger.info("CONFIDENCE LEADERBOARD (this batch)")
        logger.info("=" * 80)

        for i, wallet in enumerate(wallets, 1):
            logger.info(
                f"#{i}",
                address=wallet.address[:8] + "..." + wallet.address[-4:],
                confidence=f"{wallet.confidence_score:.2f}",
                pnl=f"${wallet.pnl:,.0f}",
                runners=len(wallet.participations),
                badges=",".join(wallet.badges) or "-",
            )

        logger.info("=" * 80)
