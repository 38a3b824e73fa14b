"""
Early-Buyer Extractor
=====================
For each runner token, this module finds WHO was early.

The process:
1. Take every swap the feed has for the token
2. Keep the ones that happened before the "early" milestone and group them
   by wallet — that's the raw cohort
3. Throw out noise: wallets that put in less than $50 and never sold
4. For every wallet that survives, add back everything it did AFTER the
   milestone, so scoring sees the whole trade (entry, holding, exit)

The result is a Cohort: the token, its holding milestone, and a mapping of
wallet address -> buys/sells. Each step returns a fresh mapping, so running
the cleanup twice gives the same survivors.
"""

from dataclasses import dataclass, field

from analyzer.entities import RunnerToken, SwapEvent, TradeHistory
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Cohort:
    """A token's early buyers, ready to be merged into wallets."""
    token: RunnerToken
    million_timestamp: int | None
    wallets: dict[str, TradeHistory] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.wallets)


def group_by_owner(events: list[SwapEvent], before: int) -> dict[str, TradeHistory]:
    """Partition swaps strictly before `before` into per-wallet buy/sell lists."""
    grouped: dict[str, TradeHistory] = {}
    for event in sorted(events, key=lambda e: e.timestamp):
        if not event.owner or event.timestamp >= before:
            continue
        grouped.setdefault(event.owner, TradeHistory()).add(event.transaction)
    return grouped


def clean_up_cohort(cohort: dict[str, TradeHistory], min_buy_usd: float = 50) -> dict[str, TradeHistory]:
    """
    Drop wallets that bought less than `min_buy_usd` in total and never sold.

    A single $49 buy followed by any sell stays: the sell makes it a real
    round trip, not dust.
    """
    return {
        address: trades
        for address, trades in cohort.items()
        if trades.sell or trades.buy_notional >= min_buy_usd
    }


def backfill_later_activity(
    cohort: dict[str, TradeHistory], events: list[SwapEvent], since: int
) -> dict[str, TradeHistory]:
    """Append each cohort wallet's swaps at or after `since` to its history."""
    filled = {address: trades.copy() for address, trades in cohort.items()}
    for event in sorted(events, key=lambda e: e.timestamp):
        if event.timestamp < since:
            continue
        trades = filled.get(event.owner)
        if trades is not None:
            trades.add(event.transaction)
    return filled


def extract_early_buyers(
    token: RunnerToken, events: list[SwapEvent], min_buy_usd: float = 50
) -> Cohort:
    """
    Build the early-buyer cohort for one token.

    Args:
        token: The runner, with its milestones already located
        events: Every swap the feed returned for this token
        min_buy_usd: Noise floor for wallets that never sold

    Returns:
        Cohort tagged with the token and its "late" milestone.
        Empty when the token has no "early" milestone.
    """
    early = token.milestones.early
    late = token.milestones.late

    if early is None:
        logger.info("no_early_milestone", symbol=token.symbol, address=token.address)
        return Cohort(token=token, million_timestamp=late)

    raw = group_by_owner(events, before=early)
    survivors = clean_up_cohort(raw, min_buy_usd)
    wallets = backfill_later_activity(survivors, events, since=early)

    logger.info(
        "early_buyers_found",
        symbol=token.symbol,
        transactions_scanned=len(events),
        raw_cohort=len(raw),
        after_cleanup=len(wallets),
    )

    return Cohort(token=token, million_timestamp=late, wallets=wallets)
