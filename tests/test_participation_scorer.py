import pytest

from analyzer.errors import ScoringError
from analyzer.participation_scorer import (
    compute_token_score,
    conviction_bonus,
    early_buy_points,
    early_exit_penalty,
    holding_multiplier,
    score_participation,
)
from factories import DAY, NOW, buy, make_participation, sell


def test_exactly_75_percent_discount_is_five_points():
    p = make_participation([buy(10, 0.25, 1_000)], ath_price=1.0)
    assert early_buy_points(p) == 5


def test_just_under_75_percent_discount_is_four_points():
    p = make_participation([buy(10, 0.25001, 1_000)], ath_price=1.0)
    assert early_buy_points(p) == 4


def test_best_buy_decides_points():
    p = make_participation([buy(10, 0.9, 1_000), buy(10, 0.6, 1_100)], ath_price=1.0)
    assert early_buy_points(p) == 3


def test_missing_ath_raises():
    p = make_participation([buy(10, 0.5, 1_000)], ath_price=0)
    with pytest.raises(ScoringError):
        early_buy_points(p)


def test_holding_and_conviction_tiers():
    assert holding_multiplier(5) == 1.5
    assert holding_multiplier(2) == 1.2
    assert holding_multiplier(1) == 1.0
    assert holding_multiplier(0.5) == 0.7
    assert conviction_bonus(2) == 1.2
    assert conviction_bonus(1) == 1.0
    assert conviction_bonus(0.99) == 0.8


def test_early_exit_penalty():
    assert early_exit_penalty(make_participation([buy(100, 0.1, 1_000)], [sell(20, 1, 3_000)])) == 0.40
    assert early_exit_penalty(make_participation([buy(100, 0.1, 1_000)], [sell(40, 1, 3_000)])) == 0.30
    assert early_exit_penalty(make_participation([buy(100, 0.1, 1_000)], [sell(60, 1, 3_000)])) == 0.0
    assert early_exit_penalty(make_participation([buy(100, 0.1, 1_000)])) == 0.0


def test_seller_score():
    # first buy at 1_000, late milestone at 2_000: sold 5 durations later
    p = make_participation(
        [buy(100, 0.2, 1_000)],
        [sell(100, 0.9, 6_000)],
        ath_price=1.0,
        million_timestamp=2_000,
    )
    breakdown = compute_token_score(p, NOW)
    assert breakdown.early_buy_points == 5
    assert breakdown.holding_multiplier == 1.5
    assert breakdown.conviction_bonus == 1.2
    assert breakdown.early_exit_penalty == 0.0
    assert breakdown.total == pytest.approx(9.0)


def test_holder_conviction_depends_on_recency():
    recent = make_participation([buy(100, 0.2, NOW - 10 * DAY)], million_timestamp=NOW - 5 * DAY)
    stale = make_participation([buy(100, 0.2, NOW - 100 * DAY)], million_timestamp=NOW - 90 * DAY)
    assert compute_token_score(recent, NOW).conviction_bonus == 1.5
    assert compute_token_score(stale, NOW).conviction_bonus == 1.2
    assert compute_token_score(recent, NOW).holding_multiplier == 1.0


def test_no_buys_raises():
    p = make_participation([], [sell(10, 1, 3_000)])
    with pytest.raises(ScoringError):
        compute_token_score(p, NOW)


def test_sell_without_milestone_raises():
    p = make_participation([buy(10, 0.2, 1_000)], [sell(10, 1, 3_000)], million_timestamp=None)
    with pytest.raises(ScoringError):
        compute_token_score(p, NOW)


def test_score_is_frozen_once_scored():
    p = make_participation([buy(100, 0.2, 1_000)], [sell(100, 0.9, 6_000)])
    first = score_participation(p, NOW)
    assert p.scored

    # new trades would change the score if it were recomputed
    p.sells.append(sell(1, 0.1, 1_100))
    second = score_participation(p, NOW)
    assert second == first
    assert p.score == first


def test_failed_scoring_leaves_participation_unscored():
    p = make_participation([buy(10, 0.5, 1_000)], ath_price=0)
    with pytest.raises(ScoringError):
        score_participation(p, NOW)
    assert p.score is None
    assert not p.scored
