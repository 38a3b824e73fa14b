"""
Configuration Manager
=====================
This is the single source of truth for ALL scoring engine settings.
It loads secrets (API keys) from a .env file, and defines default values
for every tunable threshold.

How it works:
- On startup, it reads your .env file
- Each setting has a sensible default so the engine works out of the box
- You can override anything by changing the .env file or setting environment variables
- The Settings object is created once and passed to every module that needs it
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv


# Load environment variables from .env file in the project root
load_dotenv(Path(__file__).parent.parent / ".env")

DAY_SECONDS = 24 * 60 * 60
WEEK_SECONDS = 7 * DAY_SECONDS


def _get_env(key: str, default: str = "") -> str:
    """Get an environment variable, returning default if not set."""
    return os.getenv(key, default)


def _get_env_float(key: str, default: float) -> float:
    """Get an environment variable as a float number."""
    val = os.getenv(key)
    return float(val) if val else default


def _get_env_int(key: str, default: int) -> int:
    """Get an environment variable as a whole number."""
    val = os.getenv(key)
    return int(val) if val else default


@dataclass
class Settings:
    """
    All engine configuration in one place.

    Sections:
    - API Keys: Your credentials for Birdeye and Helius
    - Milestones: Market cap thresholds that define "early" and "late"
    - Cohort: Who counts as an early buyer
    - Scoring: Constants behind token scores, decay and badges
    - System: Database path, logging level, concurrency
    """

    # =========================================================================
    # API Keys & Endpoints
    # =========================================================================

    # Birdeye: swap feed, price history, token lists
    birdeye_api_key: str = field(default_factory=lambda: _get_env("BIRDEYE_API_KEY"))
    birdeye_base_url: str = "https://public-api.birdeye.so"

    # Helius: Solana RPC (token supply, wallet signatures)
    helius_api_key: str = field(default_factory=lambda: _get_env("HELIUS_API_KEY"))
    helius_rpc_url: str = field(default_factory=lambda: _get_env(
        "HELIUS_RPC_URL", "https://mainnet.helius-rpc.com/?api-key="
    ))

    # =========================================================================
    # Milestones (market cap in USD)
    # =========================================================================

    # "early" is when the token's market cap first cleared this value.
    # Buys before this point make a wallet part of the early cohort.
    early_mcap_threshold_usd: float = field(
        default_factory=lambda: _get_env_float("EARLY_MCAP_THRESHOLD_USD", 200_000)
    )

    # "late" is when the market cap first cleared this value.
    # Holding past it is what separates conviction from flipping.
    late_mcap_threshold_usd: float = field(
        default_factory=lambda: _get_env_float("LATE_MCAP_THRESHOLD_USD", 500_000)
    )

    two_million_mcap_usd: float = 2_000_000
    five_million_mcap_usd: float = 5_000_000

    # A token only becomes a runner once its ATH market cap reaches this
    runner_min_ath_mcap_usd: float = field(
        default_factory=lambda: _get_env_float("RUNNER_MIN_ATH_MCAP_USD", 1_000_000)
    )

    # How much price history to pull when looking for milestones
    price_history_days: int = 30

    # =========================================================================
    # Early-Buyer Cohort
    # =========================================================================

    # Wallets that bought less than this (in USD) and never sold are noise
    min_early_buy_usd: float = field(
        default_factory=lambda: _get_env_float("MIN_EARLY_BUY_USD", 50)
    )

    # Birdeye swap feed paging (offset is capped by the API)
    feed_page_size: int = 50
    feed_max_offset: int = 50_000

    # Runner discovery: minimum liquidity for a token to be considered
    discovery_min_liquidity_usd: float = 20_000

    # =========================================================================
    # Scoring Constants
    # =========================================================================

    # Holders who bought within this window get the bigger conviction bonus
    conviction_window_days: int = 90

    # Grace period before inactivity decay kicks in
    inactivity_grace_days: int = 30

    # Fraction of the summed token score lost per inactive week
    decay_per_week: float = 0.02

    # A single buy at or above this notional earns "whale buyer"
    whale_buy_usd: float = field(
        default_factory=lambda: _get_env_float("WHALE_BUY_USD", 5_000)
    )

    # Wallet-state checks (dead wallet / comeback trader)
    dead_wallet_days: int = 30
    comeback_lookback_signatures: int = 100
    comeback_min_old_signatures: int = 50

    # Bot heuristic used by --find-bots
    bot_buy_count: int = 15
    bot_participation_pct: float = 70.0

    # =========================================================================
    # System
    # =========================================================================

    # Path to the SQLite database file
    db_path: str = field(
        default_factory=lambda: _get_env(
            "DB_PATH", str(Path(__file__).parent.parent / "data" / "runners.db")
        )
    )

    # Logging level: DEBUG, INFO, WARNING, ERROR
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))

    # How many wallet-state RPC checks run at the same time
    wallet_check_concurrency: int = field(
        default_factory=lambda: _get_env_int("WALLET_CHECK_CONCURRENCY", 8)
    )

    # How many wallet lookups the merger runs at the same time
    merge_concurrency: int = field(
        default_factory=lambda: _get_env_int("MERGE_CONCURRENCY", 16)
    )

    @property
    def helius_rpc_full_url(self) -> str:
        """Build the full Helius RPC URL with the API key."""
        if self.helius_api_key and self.helius_rpc_url.endswith("api-key="):
            return f"{self.helius_rpc_url}{self.helius_api_key}"
        return self.helius_rpc_url

    def validate(self) -> list[str]:
        """
        Check that all required settings are present and consistent.
        Returns a list of problems found (empty list = all good).
        """
        problems = []

        if not self.birdeye_api_key:
            problems.append("BIRDEYE_API_KEY is not set — needed for the swap feed and price history")
        if not self.helius_api_key:
            problems.append("HELIUS_API_KEY is not set — needed for supply and wallet activity")

        if self.early_mcap_threshold_usd >= self.late_mcap_threshold_usd:
            problems.append("EARLY_MCAP_THRESHOLD_USD must be lower than LATE_MCAP_THRESHOLD_USD")
        if self.min_early_buy_usd < 0:
            problems.append("MIN_EARLY_BUY_USD cannot be negative")
        if self.wallet_check_concurrency < 1:
            problems.append("WALLET_CHECK_CONCURRENCY must be at least 1")
        if self.merge_concurrency < 1:
            problems.append("MERGE_CONCURRENCY must be at least 1")

        return problems


# Create a global settings instance that other modules can import
# Usage: from config.settings import settings
settings = Settings()
