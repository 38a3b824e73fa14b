"""
Bot Detector
============
Flags wallets that trade like bots rather than people.

Two heuristics:

1. Probable bot (acts on badges)
   - A runner counts as "spammed" if the wallet bought it more than 15 times
   - 70%+ of its runners spammed = probable bot, gets the "bot" badge

2. Sandwich pattern (diagnostic only)
   - Buy/sell pairs back to back, within 60 seconds, with USD values within
     30% of each other
   - Two such pairs in one runner is a potential sandwich bot
   - Counted and logged by find_bots, never changes a badge or a score
"""

from dataclasses import dataclass, field

from analyzer.badges import dedupe
from analyzer.entities import Badge, RunnerParticipation, Wallet
from analyzer.errors import PersistenceError
from database.db import Database
from utils.logger import get_logger

logger = get_logger(__name__)


def is_probable_bot(wallet: Wallet, buy_count: int = 15, participation_pct: float = 70.0) -> bool:
    if not wallet.participations:
        return False
    spammed = sum(1 for p in wallet.participations if len(p.buys) > buy_count)
    return spammed / len(wallet.participations) * 100 >= participation_pct


@dataclass(frozen=True)
class SandwichConfig:
    min_total_transactions: int = 4
    time_threshold_seconds: int = 60
    amount_threshold_percent: float = 0.30
    min_sandwich_pairs: int = 2


def is_potential_sandwich_bot(participation: RunnerParticipation, config: SandwichConfig = SandwichConfig()) -> bool:
    """Look for quick, similar-sized buy/sell flips inside one runner."""
    txs = participation.buys + participation.sells
    if len(txs) < config.min_total_transactions:
        return False

    txs.sort(key=lambda tx: tx.timestamp)

    pairs = 0
    for current, following in zip(txs, txs[1:]):
        if current.side is following.side:
            continue
        if following.timestamp - current.timestamp > config.time_threshold_seconds:
            continue
        # Both legs need a value to compare
        if current.notional <= 0 or following.notional <= 0:
            continue
        if abs(following.notional - current.notional) / current.notional > config.amount_threshold_percent:
            continue

        pairs += 1
        if pairs >= config.min_sandwich_pairs:
            return True
    return False


@dataclass
class BotReport:
    checked: int = 0
    flagged: list[str] = field(default_factory=list)
    sandwich_suspects: list[str] = field(default_factory=list)
    failed_wallets: list[str] = field(default_factory=list)


async def find_bots(
    db: Database,
    buy_count: int = 15,
    participation_pct: float = 70.0,
    sandwich_config: SandwichConfig = SandwichConfig(),
) -> BotReport:
    """
    Scan every stored wallet and badge the probable bots.

    Wallets that already carry the badge are left alone.
    """
    report = BotReport()
    wallets = await db.get_all_wallets()
    logger.info("bot_scan_starting", wallets=len(wallets))

    for wallet in wallets:
        report.checked += 1

        if any(is_potential_sandwich_bot(p, sandwich_config) for p in wallet.participations):
            report.sandwich_suspects.append(wallet.address)

        if not is_probable_bot(wallet, buy_count, participation_pct):
            continue
        if Badge.BOT.value in wallet.badges:
            continue

        wallet.badges = dedupe(wallet.badges + [Badge.BOT.value])
        try:
            await db.upsert_wallet(wallet)
        except PersistenceError as e:
            logger.error("bot_badge_save_failed", wallet=wallet.address, error=str(e))
            report.failed_wallets.append(wallet.address)
            continue

        report.flagged.append(wallet.address)
        logger.info("bot_found", wallet=wallet.address[:8] + "...", runners=len(wallet.participations))

    logger.info(
        "bot_scan_complete",
        checked=report.checked,
        bots=len(report.flagged),
        sandwich_suspects=len(report.sandwich_suspects),
    )
    return report
