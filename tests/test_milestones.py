from analyzer.entities import PricePoint
from analyzer.milestones import all_time_high, find_crossing, find_milestones

SUPPLY = 1_000_000


def series(*values, start=100, step=100):
    return [PricePoint(unix_time=start + i * step, value=v) for i, v in enumerate(values)]


def test_milestones_take_first_crossing():
    # market caps: 100k, 250k, 600k, 300k, 700k
    prices = series(0.1, 0.25, 0.6, 0.3, 0.7)
    milestones = find_milestones(prices, SUPPLY)
    assert milestones.early == 200
    assert milestones.late == 300
    assert milestones.two_million is None
    assert milestones.five_million is None


def test_threshold_never_crossed_is_none():
    prices = series(0.01, 0.05, 0.1)
    milestones = find_milestones(prices, SUPPLY)
    assert milestones.early is None
    assert milestones.late is None


def test_exact_threshold_counts_as_crossed():
    assert find_crossing(series(0.1, 0.2), SUPPLY, 200_000) == 200


def test_unsorted_series_is_sorted_first():
    prices = series(0.1, 0.25, 0.6, 0.3, 0.7)
    shuffled = [prices[3], prices[0], prices[4], prices[2], prices[1]]
    assert find_milestones(shuffled, SUPPLY) == find_milestones(prices, SUPPLY)


def test_early_never_after_late():
    serieses = [
        series(0.1, 0.6, 0.1, 0.3, 0.1),
        series(0.6, 0.2, 0.1, 0.25),
        series(0.3, 0.3, 0.55, 0.1, 0.9, 0.21),
        series(2.5, 0.01, 6.0),
    ]
    for prices in serieses:
        m = find_milestones(prices, SUPPLY)
        if m.early is not None and m.late is not None:
            assert m.early <= m.late


def test_big_milestones():
    prices = series(0.1, 2.1, 5.5)
    m = find_milestones(prices, SUPPLY)
    assert m.two_million == 200
    assert m.five_million == 300


def test_custom_thresholds():
    prices = series(0.1, 0.25, 0.6)
    m = find_milestones(prices, SUPPLY, low_threshold=50_000, high_threshold=250_000)
    assert m.early == 100
    assert m.late == 200


def test_all_time_high():
    assert all_time_high(series(0.1, 0.9, 0.3)) == 0.9
    assert all_time_high([]) == 0.0
