import pytest

from analyzer.entities import Milestones, RunnerParticipation, Side, Transaction, TradeHistory
from factories import NOW, buy, make_participation, sell


def test_negative_trade_is_rejected():
    with pytest.raises(ValueError):
        Transaction(Side.BUY, -1, 1.0, 100)


def test_trade_history_splits_by_side():
    history = TradeHistory()
    history.add(buy(10, 2.0, 1))
    history.add(sell(5, 3.0, 2))
    assert len(history.buy) == 1
    assert len(history.sell) == 1
    assert history.buy_notional == 20.0


def test_participation_json_shape():
    p = make_participation([buy(10, 0.5, 100)], [sell(4, 2.0, 3_000)])
    data = p.to_dict()
    assert data["transactions"]["buy"] == [{"amount": 10, "price": 0.5, "timestamp": 100}]
    assert data["milestones"] == {"early": 1_000, "late": 2_000, "two_million": None, "five_million": None}
    assert RunnerParticipation.from_dict(data) == p


def test_milestones_from_empty():
    assert Milestones.from_dict(None) == Milestones()


def test_held_past_milestone():
    assert make_participation([buy(1, 1, 100)], [sell(1, 1, 2_500)]).held_past_milestone(NOW)
    assert not make_participation([buy(1, 1, 100)], [sell(1, 1, 1_500)]).held_past_milestone(NOW)
    assert make_participation([buy(1, 1, 100)]).held_past_milestone(NOW)
    assert not make_participation([buy(1, 1, 100)]).held_past_milestone(1_999)
