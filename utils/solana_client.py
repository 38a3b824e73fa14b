"""
Solana Client Helper
====================
A thin wrapper around Solana RPC calls via Helius.

This module handles:
- Connecting to Solana via Helius RPC
- Token supply lookups (to turn a price into a market cap)
- Wallet activity lookups (signatures, newest first) for the
  dead-wallet and comeback-trader checks

Why Helius instead of public RPC?
- Public Solana RPC nodes are rate-limited and unreliable
- A scoring cycle can ask for signatures of hundreds of wallets
"""

import aiohttp
from solders.pubkey import Pubkey

from utils.logger import get_logger

logger = get_logger(__name__)


class RpcError(Exception):
    """The RPC node answered with an error object."""


class SolanaClient:
    """
    Async Solana client powered by Helius RPC.

    Usage:
        client = SolanaClient(rpc_url="https://mainnet.helius-rpc.com/?api-key=...")
        await client.initialize()
        supply, decimals = await client.get_token_supply("mint_address_here")
        await client.close()
    """

    def __init__(self, rpc_url: str):
        self.rpc_url = rpc_url
        self.session: aiohttp.ClientSession | None = None

    async def initialize(self) -> None:
        """Create the HTTP session for making API calls."""
        self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=30))
        logger.info("solana_client_initialized", rpc="helius")

    async def close(self) -> None:
        """Clean up the HTTP session."""
        if self.session:
            await self.session.close()

    # =========================================================================
    # Core RPC Calls
    # =========================================================================

    async def _rpc_call(self, method: str, params: list | None = None) -> dict:
        """
        Make a JSON-RPC call to the Solana node.

        This is the low-level method that all other RPC calls use.
        Raises RpcError when the node returns an error object.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params or [],
        }
        async with self.session.post(self.rpc_url, json=payload) as response:
            response.raise_for_status()
            data = await response.json()
            if "error" in data:
                logger.error("rpc_error", method=method, error=data["error"])
                raise RpcError(f"{method}: {data['error']}")
            return data

    async def get_token_supply(self, mint_address: str) -> tuple[float, int]:
        """
        Get a token's raw supply and decimals.

        Divide supply by 10**decimals to get the circulating amount used for
        market cap math.
        """
        result = await self._rpc_call("getTokenSupply", [str(Pubkey.from_string(mint_address))])
        value = result.get("result", {}).get("value", {})
        return float(value.get("amount", 0)), int(value.get("decimals", 0))

    async def get_signatures_for_address(
        self, address: str, limit: int = 100, before: str | None = None
    ) -> list[dict]:
        """
        Get recent transaction signatures for a wallet address, newest first.

        Args:
            address: The wallet to look up
            limit: Maximum number of signatures to return (max 1000)
            before: Only return signatures before this one (for pagination)

        Raises ValueError for a malformed address.
        """
        pubkey = Pubkey.from_string(address)
        options = {"limit": limit}
        if before:
            options["before"] = before
        result = await self._rpc_call("getSignaturesForAddress", [str(pubkey), options])
        return result.get("result") or []

    async def get_wallet_activity(self, address: str, limit: int = 100) -> list[dict]:
        """
        A wallet's most recent activity as [{"timestamp": unix_seconds}], newest first.
        Signatures without a block time are left out.
        """
        signatures = await self.get_signatures_for_address(address, limit=limit)
        return [
            {"timestamp": sig["blockTime"]}
            for sig in signatures
            if sig.get("blockTime") is not None
        ]
