"""
Badge Engine
============
Labels each wallet with its trading style.

Primary badges come from an ordered cascade. Rules are checked top to
bottom and the first match wins, so a wallet picks up at most one primary
badge per run:

    a. legendary buyer   10+ runners
    b. potential alpha   runners are 20%+ of all runners we track
    c. high conviction   sold at least one runner after its late milestone
    d. mid trader        runners are 10-20% of all runners
    e. degen sprayer     runners are 10% or less of all runners
    f. one-hit wonder    exactly one runner
    g. diamond hands     held 2+ runners past their milestone
    h. whale buyer       a single buy of $5,000+

Rules d and e between them cover every ratio under 20%, so with the
current ordering f, g and h never fire. The ordering is kept as is until
product decides otherwise.

Wallet-state badges (dead wallet / comeback trader) are not part of the
cascade. They come from on-chain activity checks and are applied after it.
A dead wallet stays dead; only a wallet with recent activity can be a
comeback trader, and becoming one drops an old "dead wallet" badge.
"""

from dataclasses import dataclass
from typing import Callable

from analyzer.entities import Badge, Wallet


@dataclass(frozen=True)
class BadgeContext:
    """Everything the badge rules look at for one wallet."""
    wallet: Wallet
    global_runner_count: int
    now: int
    whale_buy_usd: float = 5_000

    @property
    def runner_count(self) -> int:
        return len(self.wallet.participations)

    @property
    def participation_ratio(self) -> float:
        """Share of all tracked runners this wallet was early on, in percent."""
        return self.runner_count / max(self.global_runner_count, 1) * 100


@dataclass(frozen=True)
class BadgeRule:
    badge: Badge
    predicate: Callable[[BadgeContext], bool]
    # Earning this badge proves the wallet is more than a one-hit wonder
    clears_one_hit_wonder: bool = False


def _any_sell_after_milestone(ctx: BadgeContext) -> bool:
    return any(p.sold_after_milestone() for p in ctx.wallet.participations)


def _held_past_milestone_count(ctx: BadgeContext) -> int:
    return sum(1 for p in ctx.wallet.participations if p.held_past_milestone(ctx.now))


def _has_whale_buy(ctx: BadgeContext) -> bool:
    return any(
        buy.notional >= ctx.whale_buy_usd
        for p in ctx.wallet.participations
        for buy in p.buys
    )


PRIMARY_BADGE_RULES: tuple[BadgeRule, ...] = (
    BadgeRule(Badge.LEGENDARY_BUYER, lambda ctx: ctx.runner_count >= 10, clears_one_hit_wonder=True),
    BadgeRule(Badge.POTENTIAL_ALPHA, lambda ctx: ctx.participation_ratio >= 20, clears_one_hit_wonder=True),
    BadgeRule(Badge.HIGH_CONVICTION, _any_sell_after_milestone, clears_one_hit_wonder=True),
    BadgeRule(Badge.MID_TRADER, lambda ctx: 10 <= ctx.participation_ratio <= 20, clears_one_hit_wonder=True),
    BadgeRule(Badge.DEGEN_SPRAYER, lambda ctx: ctx.participation_ratio <= 10, clears_one_hit_wonder=True),
    BadgeRule(Badge.ONE_HIT_WONDER, lambda ctx: ctx.runner_count == 1),
    BadgeRule(Badge.DIAMOND_HANDS, lambda ctx: _held_past_milestone_count(ctx) >= 2, clears_one_hit_wonder=True),
    BadgeRule(Badge.WHALE_BUYER, _has_whale_buy),
)


def primary_badge(ctx: BadgeContext, rules: tuple[BadgeRule, ...] = PRIMARY_BADGE_RULES) -> BadgeRule | None:
    """First rule whose predicate holds, or None."""
    for rule in rules:
        if rule.predicate(ctx):
            return rule
    return None


def dedupe(badges: list[str]) -> list[str]:
    """Drop repeats, keeping first-seen order."""
    return list(dict.fromkeys(badges))


def assign_badges(
    ctx: BadgeContext,
    is_dead: bool = False,
    is_comeback: bool = False,
    rules: tuple[BadgeRule, ...] = PRIMARY_BADGE_RULES,
) -> list[str]:
    """
    Work out the wallet's badge list for this run.

    Starts from the badges it already holds, adds at most one primary badge,
    then applies the wallet-state badges. Does not mutate the wallet.
    """
    badges = list(ctx.wallet.badges)

    rule = primary_badge(ctx, rules)
    if rule is not None:
        if rule.clears_one_hit_wonder:
            badges = [b for b in badges if b != Badge.ONE_HIT_WONDER.value]
        badges.append(rule.badge.value)

    if is_dead:
        badges.append(Badge.DEAD_WALLET.value)
    elif is_comeback:
        badges = [b for b in badges if b != Badge.DEAD_WALLET.value]
        badges.append(Badge.COMEBACK_TRADER.value)

    return dedupe(badges)
