"""
Token Participation Scorer
==========================
Scores one wallet's trade in one runner token.

    token score = early buy points x holding multiplier x conviction bonus x (1 - early exit penalty)

1. Early Buy Points (2-5)
   - How far below the all-time high did they buy?
   - Best buy at a 75%+ discount = 5, 50%+ = 4, 25%+ = 3, anything else = 2

2. Holding Multiplier (0.7-1.5) and Conviction Bonus (0.8-1.5)
   - "Threshold duration" = time from their first buy to the late milestone
   - For every sell: how many threshold durations after the first buy did it land?
     The best sell decides both numbers.
   - Never sold: holding stays 1.0, conviction is 1.5 if they bought within
     the last 90 days, 1.2 otherwise

3. Early Exit Penalty (0-40%)
   - Sold less than 25% of what they bought: 40% off
   - Less than 50%: 30% off

A participation is scored exactly once. Once `scored` is set, the score is
frozen — re-running the pipeline must never recompute or double count it.
"""

from dataclasses import dataclass

from analyzer.entities import RunnerParticipation
from analyzer.errors import ScoringError
from config.settings import DAY_SECONDS


@dataclass(frozen=True)
class TokenScore:
    early_buy_points: int
    holding_multiplier: float
    conviction_bonus: float
    early_exit_penalty: float

    @property
    def total(self) -> float:
        return (
            self.early_buy_points
            * self.holding_multiplier
            * self.conviction_bonus
            * (1 - self.early_exit_penalty)
        )


def early_buy_points(participation: RunnerParticipation) -> int:
    """Points for the deepest discount to ATH among all buys."""
    if participation.ath_price <= 0:
        raise ScoringError(f"{participation.symbol}: missing all-time-high price")

    ath = participation.ath_price
    best_discount = max((ath - buy.price) / ath * 100 for buy in participation.buys)

    if best_discount >= 75:
        return 5
    elif best_discount >= 50:
        return 4
    elif best_discount >= 25:
        return 3
    return 2


def best_sell_ratio(participation: RunnerParticipation) -> float:
    """
    Latest sell, measured in threshold durations after the first buy.

    A ratio of 1.0 means they sold right at the late milestone, 2.0 means
    they held twice as long as it took the token to get there.
    """
    if participation.million_timestamp is None:
        raise ScoringError(f"{participation.symbol}: no late milestone to measure holding against")

    earliest_buy = min(buy.timestamp for buy in participation.buys)
    threshold_duration = participation.million_timestamp - earliest_buy
    if threshold_duration <= 0:
        raise ScoringError(
            f"{participation.symbol}: first buy at {earliest_buy} is not before the milestone"
        )

    return max((sell.timestamp - earliest_buy) / threshold_duration for sell in participation.sells)


def holding_multiplier(ratio: float) -> float:
    if ratio >= 5:
        return 1.5
    elif ratio >= 2:
        return 1.2
    elif ratio >= 1:
        return 1.0
    return 0.7


def conviction_bonus(ratio: float) -> float:
    if ratio >= 2:
        return 1.2
    elif ratio >= 1:
        return 1.0
    return 0.8


def holder_conviction_bonus(participation: RunnerParticipation, now: int, window_days: int = 90) -> float:
    """Conviction for a wallet that never sold: recent buyers get the bigger bonus."""
    latest_buy = max(buy.timestamp for buy in participation.buys)
    return 1.5 if now - latest_buy <= window_days * DAY_SECONDS else 1.2


def early_exit_penalty(participation: RunnerParticipation) -> float:
    """Penalty for selling only a small slice of the position."""
    if not participation.sells:
        return 0.0

    total_bought = sum(buy.amount for buy in participation.buys)
    if total_bought <= 0:
        raise ScoringError(f"{participation.symbol}: bought amount is zero")

    sold_pct = sum(sell.amount for sell in participation.sells) / total_bought * 100
    if sold_pct < 25:
        return 0.40
    elif sold_pct < 50:
        return 0.30
    return 0.0


def compute_token_score(
    participation: RunnerParticipation, now: int, conviction_window_days: int = 90
) -> TokenScore:
    """Break a participation's score into its four parts. Raises ScoringError on missing data."""
    if not participation.buys:
        raise ScoringError(f"{participation.symbol}: participation has no buys")

    points = early_buy_points(participation)

    if participation.sells:
        ratio = best_sell_ratio(participation)
        holding = holding_multiplier(ratio)
        conviction = conviction_bonus(ratio)
    else:
        holding = 1.0
        conviction = holder_conviction_bonus(participation, now, conviction_window_days)

    return TokenScore(
        early_buy_points=points,
        holding_multiplier=holding,
        conviction_bonus=conviction,
        early_exit_penalty=early_exit_penalty(participation),
    )


def score_participation(
    participation: RunnerParticipation, now: int, conviction_window_days: int = 90
) -> float | None:
    """
    Score a participation in place, once.

    Already scored participations are returned untouched. On ScoringError
    the participation is left unscored and the error propagates.
    """
    if participation.scored:
        return participation.score

    breakdown = compute_token_score(participation, now, conviction_window_days)
    participation.score = breakdown.total
    participation.scored = True
    return participation.score
