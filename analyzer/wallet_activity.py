"""
Wallet-State Checks
===================
Two badges depend on what a wallet has been doing on-chain, not on its
runner trades:

- Dead wallet: its most recent transaction is more than 30 days old
- Comeback trader: not dead, and of its last 100 transactions at least 50
  are more than 30 days old: lots of history, a quiet patch, then back

Both checks are best-effort. No activity, a malformed address, or an RPC
failure all count as "no" — a flaky node should cost a wallet a badge,
never the whole scoring run.

Each check is one RPC call per wallet, so a batch goes through a fixed-size
worker pool instead of one wallet at a time.
"""

import asyncio
from dataclasses import dataclass

from config.settings import DAY_SECONDS
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class WalletState:
    is_dead: bool = False
    is_comeback: bool = False


class WalletActivityChecker:
    """
    Runs dead-wallet / comeback-trader checks against a wallet activity provider.

    The provider only needs `get_wallet_activity(address, limit)` returning
    [{"timestamp": ...}] newest first (SolanaClient does this).

    Usage:
        checker = WalletActivityChecker(solana, concurrency=8)
        states = await checker.check_wallets(addresses, now)
    """

    def __init__(
        self,
        provider,
        concurrency: int = 8,
        inactive_days: int = 30,
        comeback_lookback: int = 100,
        comeback_min_old: int = 50,
    ):
        self.provider = provider
        self.concurrency = concurrency
        self.inactive_seconds = inactive_days * DAY_SECONDS
        self.comeback_lookback = comeback_lookback
        self.comeback_min_old = comeback_min_old

    async def _fetch(self, address: str, limit: int) -> list[dict]:
        try:
            return await self.provider.get_wallet_activity(address, limit)
        except Exception as e:
            logger.warning(
                "wallet_activity_unavailable",
                wallet=address[:8] + "...",
                error=str(e),
                type=type(e).__name__,
            )
            return []

    async def is_dead_wallet(self, address: str, now: int) -> bool:
        activity = await self._fetch(address, 1)
        if not activity or activity[0].get("timestamp") is None:
            return False
        return activity[0]["timestamp"] < now - self.inactive_seconds

    async def is_comeback_trader(self, address: str, now: int) -> bool:
        activity = await self._fetch(address, self.comeback_lookback)
        cutoff = now - self.inactive_seconds
        old = sum(1 for a in activity if a.get("timestamp") is not None and a["timestamp"] < cutoff)
        return old >= self.comeback_min_old

    async def check_wallet(self, address: str, now: int) -> WalletState:
        is_dead = await self.is_dead_wallet(address, now)
        # A comeback needs recent activity, which a dead wallet by definition lacks
        is_comeback = False if is_dead else await self.is_comeback_trader(address, now)
        return WalletState(is_dead=is_dead, is_comeback=is_comeback)

    async def check_wallets(self, addresses: list[str], now: int) -> dict[str, WalletState]:
        """Check every wallet, at most `concurrency` at a time."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def worker(address: str) -> tuple[str, WalletState]:
            async with semaphore:
                return address, await self.check_wallet(address, now)

        results = await asyncio.gather(*(worker(a) for a in addresses))
        states = dict(results)

        logger.info(
            "wallet_states_checked",
            wallets=len(states),
            dead=sum(1 for s in states.values() if s.is_dead),
            comeback=sum(1 for s in states.values() if s.is_comeback),
        )
        return states
