"""
Runner Confidence — Main Entry Point
====================================
This is where everything starts. Running this file:
1. Loads your configuration from .env
2. Validates that the API keys are present
3. Connects to the database
4. Opens the Helius RPC and Birdeye HTTP sessions
5. Runs whichever mode you asked for

Usage:
    python main.py                      # Score every unchecked runner
    python main.py --discover           # Find new runners and register them
    python main.py --discover --limit 500
    python main.py --reset-checks       # Mark every runner unchecked again
    python main.py --find-bots          # Badge wallets that trade like bots
    python main.py --leaderboard        # Print the top wallets
    python main.py --leaderboard --top 100
"""

import asyncio
import argparse
import sys

import aiohttp

from config.settings import settings
from database.db import Database
from utils.logger import setup_logging, get_logger
from utils.solana_client import SolanaClient

logger = get_logger(__name__)


def startup_checks() -> bool:
    """
    Check configuration before talking to any API.
    Returns True if everything looks good, False if there's a problem.
    """
    logger.info("running_startup_checks")
    problems = settings.validate()
    for problem in problems:
        logger.warning("config_issue", issue=problem)
    return not problems


async def print_leaderboard(db: Database, top: int) -> None:
    """Print the best wallets by confidence score."""
    wallets = await db.get_top_wallets(limit=top)
    if not wallets:
        logger.info("leaderboard_empty", note="Run a scoring cycle first")
        return

    logger.info("=" * 80)
    logger.info(f"TOP {len(wallets)} WALLETS BY CONFIDENCE")
    logger.info("=" * 80)
    for i, wallet in enumerate(wallets, 1):
        logger.info(
            f"#{i}",
            address=wallet.address,
            confidence=f"{wallet.confidence_score:.2f}",
            pnl=f"${wallet.pnl:,.0f}",
            runners=len(wallet.participations),
            badges=",".join(wallet.badges) or "-",
        )
    logger.info("=" * 80)


async def main() -> None:
    """Main async entry point."""

    # Parse command-line arguments
    parser = argparse.ArgumentParser(description="Runner Confidence scoring engine")
    parser.add_argument("--discover", action="store_true", help="Find new runner tokens")
    parser.add_argument("--limit", type=int, default=300, help="Candidate tokens to check with --discover")
    parser.add_argument("--reset-checks", action="store_true", help="Mark every runner unchecked")
    parser.add_argument("--find-bots", action="store_true", help="Badge wallets that trade like bots")
    parser.add_argument("--leaderboard", action="store_true", help="Print the top wallets")
    parser.add_argument("--top", type=int, default=50, help="How many wallets --leaderboard prints")
    args = parser.parse_args()

    # Set up logging
    setup_logging(log_level=settings.log_level, log_dir="logs")

    needs_apis = not (args.reset_checks or args.find_bots or args.leaderboard)
    if needs_apis and not startup_checks():
        logger.error("startup_checks_failed", note="Fix the issues above and restart")
        sys.exit(1)

    # Initialize core components
    db = Database(settings.db_path)
    await db.initialize()

    solana = SolanaClient(settings.helius_rpc_full_url)
    await solana.initialize()

    session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=30))

    try:
        if args.reset_checks:
            reset = await db.reset_runner_checks()
            logger.info("runner_checks_reset", runners=reset)

        elif args.find_bots:
            from analyzer.bot_detector import find_bots

            await find_bots(
                db,
                buy_count=settings.bot_buy_count,
                participation_pct=settings.bot_participation_pct,
            )

        elif args.leaderboard:
            await print_leaderboard(db, args.top)

        elif args.discover:
            logger.info("mode_discovery")
            from discovery.birdeye_client import BirdeyeClient
            from discovery.runner_scanner import RunnerScanner

            birdeye = BirdeyeClient(
                settings.birdeye_api_key,
                session,
                base_url=settings.birdeye_base_url,
                page_size=settings.feed_page_size,
                max_offset=settings.feed_max_offset,
            )
            scanner = RunnerScanner(settings, db, birdeye, solana)
            added = await scanner.scan(limit=args.limit)
            logger.info("discovery_finished", new_runners=len(added))

        else:
            logger.info("mode_scoring")
            from discovery.birdeye_client import BirdeyeClient
            from analyzer.pipeline import ScoringPipeline
            from analyzer.wallet_activity import WalletActivityChecker
            from analyzer.wallet_merger import WalletMerger
            from analyzer.wallet_scorer import WalletScorer

            birdeye = BirdeyeClient(
                settings.birdeye_api_key,
                session,
                base_url=settings.birdeye_base_url,
                page_size=settings.feed_page_size,
                max_offset=settings.feed_max_offset,
            )
            activity = WalletActivityChecker(
                solana,
                concurrency=settings.wallet_check_concurrency,
                inactive_days=settings.dead_wallet_days,
                comeback_lookback=settings.comeback_lookback_signatures,
                comeback_min_old=settings.comeback_min_old_signatures,
            )
            pipeline = ScoringPipeline(
                settings,
                db,
                birdeye,
                WalletMerger(db, concurrency=settings.merge_concurrency),
                WalletScorer(settings, db, activity),
            )
            results = await pipeline.run_scoring_cycle()
            failed = [r for r in results if r.status == "failed"]
            if failed:
                logger.warning("tokens_left_for_retry", count=len(failed))

    except KeyboardInterrupt:
        logger.info("engine_stopping", reason="keyboard_interrupt")
    except Exception as e:
        logger.error("engine_error", error=str(e), type=type(e).__name__)
        raise
    finally:
        # Clean shutdown: always close connections
        logger.info("shutting_down")
        await session.close()
        await solana.close()
        await db.close()
        logger.info("engine_stopped")


def cli() -> None:
    # asyncio.run() starts the async event loop and runs our main function
    asyncio.run(main())


if __name__ == "__main__":
    cli()
