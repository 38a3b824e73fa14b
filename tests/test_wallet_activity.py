import asyncio

from analyzer.wallet_activity import WalletActivityChecker, WalletState
from factories import DAY, NOW, WALLET_A, WALLET_B, WALLET_C, FakeActivityProvider


def old(n):
    return [{"timestamp": NOW - 40 * DAY - i} for i in range(n)]


def recent(n):
    return [{"timestamp": NOW - DAY - i} for i in range(n)]


def test_dead_wallet():
    provider = FakeActivityProvider({
        WALLET_A: old(1),
        WALLET_B: recent(1),
    })
    checker = WalletActivityChecker(provider)
    assert asyncio.run(checker.is_dead_wallet(WALLET_A, NOW)) is True
    assert asyncio.run(checker.is_dead_wallet(WALLET_B, NOW)) is False
    assert asyncio.run(checker.is_dead_wallet(WALLET_C, NOW)) is False


def test_comeback_trader_needs_fifty_old_signatures():
    provider = FakeActivityProvider({
        WALLET_A: recent(50) + old(50),
        WALLET_B: recent(51) + old(49),
    })
    checker = WalletActivityChecker(provider)
    assert asyncio.run(checker.is_comeback_trader(WALLET_A, NOW)) is True
    assert asyncio.run(checker.is_comeback_trader(WALLET_B, NOW)) is False


def test_rpc_errors_count_as_no():
    provider = FakeActivityProvider({WALLET_A: old(100)}, fail_for=[WALLET_A])
    checker = WalletActivityChecker(provider)
    assert asyncio.run(checker.check_wallet(WALLET_A, NOW)) == WalletState(False, False)


def test_check_wallets_covers_every_address():
    provider = FakeActivityProvider({WALLET_A: recent(1) + old(60)}, fail_for=[WALLET_C])
    checker = WalletActivityChecker(provider, concurrency=2)

    states = asyncio.run(checker.check_wallets([WALLET_A, WALLET_B, WALLET_C], NOW))

    assert set(states) == {WALLET_A, WALLET_B, WALLET_C}
    assert states[WALLET_A] == WalletState(is_dead=False, is_comeback=True)
    assert states[WALLET_B] == WalletState()
    assert states[WALLET_C] == WalletState()


def test_check_wallets_respects_concurrency():
    active = 0
    peak = 0

    class SlowProvider:
        async def get_wallet_activity(self, address, limit=100):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return []

    checker = WalletActivityChecker(SlowProvider(), concurrency=3)
    addresses = [chr(ord("a") + i) * 44 for i in range(10)]
    asyncio.run(checker.check_wallets(addresses, NOW))
    assert peak <= 3


def test_dead_wallet_with_long_history_is_not_a_comeback():
    provider = FakeActivityProvider({WALLET_A: old(100)})
    checker = WalletActivityChecker(provider)

    state = asyncio.run(checker.check_wallet(WALLET_A, NOW))

    assert state == WalletState(is_dead=True, is_comeback=False)
    # the comeback lookup is never made for a dead wallet
    assert provider.calls == [(WALLET_A, 1)]
