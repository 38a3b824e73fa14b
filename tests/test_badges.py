from analyzer.badges import BadgeContext, assign_badges, dedupe, primary_badge
from analyzer.entities import Badge
from factories import NOW, buy, make_participation, make_wallet, sell


def participations(n, **kwargs):
    return [make_participation([buy(10, 0.1, 1_000)], **kwargs) for _ in range(n)]


def badges_for(wallet, global_runners, **kwargs):
    return assign_badges(BadgeContext(wallet=wallet, global_runner_count=global_runners, now=NOW), **kwargs)


def test_legendary_buyer_wins_first():
    wallet = make_wallet(participations=participations(10))
    assert badges_for(wallet, 20) == [Badge.LEGENDARY_BUYER.value]


def test_potential_alpha():
    wallet = make_wallet(participations=participations(3))
    assert badges_for(wallet, 10) == [Badge.POTENTIAL_ALPHA.value]


def test_high_conviction_before_ratio_rules():
    wallet = make_wallet(participations=[
        make_participation([buy(10, 0.1, 1_000)], [sell(10, 1, 3_000)]),
    ])
    assert badges_for(wallet, 100) == [Badge.HIGH_CONVICTION.value]


def test_mid_trader_and_degen_sprayer():
    assert badges_for(make_wallet(participations=participations(3)), 20) == [Badge.MID_TRADER.value]
    assert badges_for(make_wallet(participations=participations(1)), 50) == [Badge.DEGEN_SPRAYER.value]


def test_later_rules_are_shadowed_by_ratio_rules():
    # a whale single-runner wallet still lands on degen sprayer
    wallet = make_wallet(participations=[make_participation([buy(10_000, 1.0, 1_000)])])
    assert primary_badge(BadgeContext(wallet=wallet, global_runner_count=50, now=NOW)).badge is Badge.DEGEN_SPRAYER


def test_one_hit_wonder_is_cleared():
    wallet = make_wallet(participations=participations(10), badges=[Badge.ONE_HIT_WONDER.value])
    assert badges_for(wallet, 20) == [Badge.LEGENDARY_BUYER.value]


def test_existing_badges_are_kept_and_not_repeated():
    wallet = make_wallet(participations=participations(1), badges=[Badge.BOT.value, Badge.DEGEN_SPRAYER.value])
    assert badges_for(wallet, 50) == [Badge.BOT.value, Badge.DEGEN_SPRAYER.value]


def test_dead_wins_over_comeback():
    wallet = make_wallet(participations=participations(1))
    result = badges_for(wallet, 50, is_dead=True, is_comeback=True)
    assert result == [Badge.DEGEN_SPRAYER.value, Badge.DEAD_WALLET.value]


def test_comeback_clears_old_dead_badge():
    wallet = make_wallet(participations=participations(1), badges=[Badge.DEAD_WALLET.value])
    result = badges_for(wallet, 50, is_comeback=True)
    assert Badge.DEAD_WALLET.value not in result
    assert Badge.COMEBACK_TRADER.value in result


def test_dead_wallet_added():
    wallet = make_wallet(participations=participations(1))
    assert Badge.DEAD_WALLET.value in badges_for(wallet, 50, is_dead=True)


def test_assignment_is_deterministic_and_pure():
    wallet = make_wallet(participations=participations(4), badges=[Badge.WHALE_BUYER.value])
    runs = [badges_for(wallet, 30, is_dead=True) for _ in range(5)]
    assert all(r == runs[0] for r in runs)
    assert wallet.badges == [Badge.WHALE_BUYER.value]


def test_zero_global_runners_does_not_divide_by_zero():
    wallet = make_wallet(participations=participations(1))
    assert badges_for(wallet, 0) == [Badge.POTENTIAL_ALPHA.value]


def test_dedupe_keeps_order():
    assert dedupe(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
