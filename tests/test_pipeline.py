import asyncio

import aiohttp

from analyzer.errors import FeedError, PersistenceError
from analyzer.pipeline import ScoringPipeline
from analyzer.wallet_activity import WalletActivityChecker
from analyzer.wallet_merger import WalletMerger
from analyzer.wallet_scorer import WalletScorer
from config.settings import Settings
from database.db import Database
from factories import (
    DAY,
    NOW,
    WALLET_A,
    WALLET_B,
    FakeActivityProvider,
    FakeFeed,
    buy,
    make_token,
    sell,
    swap,
)

TOKEN_ONE = "1" * 44
TOKEN_TWO = "2" * 44
EARLY = NOW - 10 * DAY
LATE = NOW - 8 * DAY


def runner(address):
    return make_token(address, early=EARLY, late=LATE)


def swaps():
    return [
        swap(WALLET_A, buy(1_000, 0.2, EARLY - 2 * DAY)),
        swap(WALLET_B, buy(500, 0.3, EARLY - DAY)),
        swap(WALLET_A, sell(1_000, 0.9, NOW - DAY)),
    ]


def build(db, feed):
    settings = Settings()
    activity = WalletActivityChecker(FakeActivityProvider(), concurrency=2)
    return ScoringPipeline(
        settings,
        db,
        feed,
        WalletMerger(db, concurrency=2),
        WalletScorer(settings, db, activity),
    )


def run_cycle(tmp_path, tokens, feed, cycles=1):
    async def run():
        db = Database(str(tmp_path / "pipeline.db"))
        await db.initialize()
        try:
            for token in tokens:
                await db.insert_runner_token(token)
            pipeline = build(db, feed)
            results = [await pipeline.run_scoring_cycle(now=NOW) for _ in range(cycles)]
            return results, await db.get_all_runner_tokens(), await db.get_all_wallets()
        finally:
            await db.close()
    return asyncio.run(run())


def test_full_cycle_scores_and_marks_checked(tmp_path):
    feed = FakeFeed({TOKEN_ONE: swaps()})
    results, runners, wallets = run_cycle(tmp_path, [runner(TOKEN_ONE)], feed)

    [result] = results[0]
    assert result.status == "success"
    assert result.wallets_scored == 2
    assert result.failed_wallets == []
    assert runners[0].checked

    by_address = {w.address: w for w in wallets}
    assert set(by_address) == {WALLET_A, WALLET_B}
    assert by_address[WALLET_A].participations[0].scored
    assert by_address[WALLET_A].confidence_score > 0
    assert by_address[WALLET_A].pnl == 1_000 * 0.9 - 1_000 * 0.2


def test_second_cycle_does_not_double_count(tmp_path):
    feed = FakeFeed({TOKEN_ONE: swaps()})
    results, _, wallets = run_cycle(tmp_path, [runner(TOKEN_ONE)], feed, cycles=2)

    assert results[1] == []
    assert all(len(w.participations) == 1 for w in wallets)


def test_feed_error_leaves_token_unchecked(tmp_path):
    feed = FakeFeed(error=FeedError("page 3 malformed"))
    results, runners, wallets = run_cycle(tmp_path, [runner(TOKEN_ONE)], feed)

    [result] = results[0]
    assert result.status == "failed"
    assert "malformed" in result.error
    assert not runners[0].checked
    assert wallets == []


def test_network_error_leaves_token_unchecked(tmp_path):
    feed = FakeFeed(error=aiohttp.ClientConnectionError("reset"))
    results, runners, _ = run_cycle(tmp_path, [runner(TOKEN_ONE)], feed)
    assert results[0][0].status == "failed"
    assert not runners[0].checked


def test_tokens_without_early_milestone_or_cohort_are_skipped(tmp_path):
    feed = FakeFeed({TOKEN_TWO: [swap(WALLET_A, buy(1, 0.1, NOW))]})
    tokens = [make_token(TOKEN_ONE, early=None, late=None), runner(TOKEN_TWO)]
    results, runners, wallets = run_cycle(tmp_path, tokens, feed)

    assert [r.status for r in results[0]] == ["skipped", "skipped"]
    assert all(r.checked for r in runners)
    assert wallets == []


def test_one_bad_token_does_not_stop_the_cycle(tmp_path):
    class PartlyBrokenFeed(FakeFeed):
        async def get_token_transactions(self, address):
            if address == TOKEN_ONE:
                raise FeedError("down")
            return await super().get_token_transactions(address)

    feed = PartlyBrokenFeed({TOKEN_TWO: swaps()})
    results, runners, wallets = run_cycle(tmp_path, [runner(TOKEN_ONE), runner(TOKEN_TWO)], feed)

    assert [r.status for r in results[0]] == ["failed", "success"]
    assert [r.checked for r in runners] == [False, True]
    assert len(wallets) == 2


def test_failed_wallet_write_still_marks_token_checked(tmp_path):
    async def run():
        db = Database(str(tmp_path / "pipeline.db"))
        await db.initialize()
        try:
            await db.insert_runner_token(runner(TOKEN_ONE))
            real_upsert = db.upsert_wallet

            async def flaky_upsert(wallet):
                if wallet.address == WALLET_B:
                    raise PersistenceError("locked")
                return await real_upsert(wallet)

            db.upsert_wallet = flaky_upsert
            results = await build(db, FakeFeed({TOKEN_ONE: swaps()})).run_scoring_cycle(now=NOW)
            return results, await db.get_all_runner_tokens(), await db.get_all_wallets()
        finally:
            await db.close()

    results, runners, wallets = asyncio.run(run())
    assert results[0].status == "success"
    assert results[0].failed_wallets == [WALLET_B]
    assert runners[0].checked
    assert [w.address for w in wallets] == [WALLET_A]


def test_rescan_after_reset_does_not_double_count(tmp_path):
    async def run():
        db = Database(str(tmp_path / "pipeline.db"))
        await db.initialize()
        try:
            await db.insert_runner_token(runner(TOKEN_ONE))
            pipeline = build(db, FakeFeed({TOKEN_ONE: swaps()}))

            await pipeline.run_scoring_cycle(now=NOW)
            before = {w.address: w for w in await db.get_all_wallets()}
            await db.reset_runner_checks()
            results = await pipeline.run_scoring_cycle(now=NOW)
            after = {w.address: w for w in await db.get_all_wallets()}
            return results, before, after, await db.get_all_runner_tokens()
        finally:
            await db.close()

    results, before, after, runners = asyncio.run(run())
    assert [r.status for r in results] == ["success"]
    assert runners[0].checked
    assert set(after) == {WALLET_A, WALLET_B}
    for address, wallet in after.items():
        assert len(wallet.participations) == 1
        assert wallet.confidence_score == before[address].confidence_score
        assert wallet.pnl == before[address].pnl
