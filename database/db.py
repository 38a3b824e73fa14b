"""
Database Manager
================
Handles all database operations: creating tables, inserting data, querying.

Uses SQLite because:
- No server to manage (it's just a file)
- Fast enough for our use case (one token at a time, a few hundred wallets each)
- Easy to backup (just copy the .db file)
- We use async (aiosqlite) so database operations don't block the pipeline

Every function here is a clean interface to the database.
Other modules never write raw SQL — they call these functions instead,
and get RunnerToken / Wallet objects back instead of rows.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from analyzer.entities import Milestones, RunnerParticipation, RunnerToken, Wallet
from analyzer.errors import PersistenceError
from database.models import CREATE_TABLES_SQL
from utils.logger import get_logger

logger = get_logger(__name__)


class Database:
    """
    Async database manager for the scoring engine.

    Usage:
        db = Database("path/to/database.db")
        await db.initialize()  # Creates tables if they don't exist
        wallet = await db.get_wallet_by_address("...")
        await db.close()
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """
        Connect to the database and create tables if they don't exist.
        Called once when the process starts.
        """
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.connection = await aiosqlite.connect(self.db_path)
        await self.connection.execute("PRAGMA journal_mode=WAL")
        self.connection.row_factory = aiosqlite.Row

        await self.connection.executescript(CREATE_TABLES_SQL)
        await self.connection.commit()

        logger.info("database_initialized", path=self.db_path)

    async def close(self) -> None:
        """Close the database connection cleanly."""
        if self.connection:
            await self.connection.close()
            self.connection = None
            logger.info("database_closed")

    # =========================================================================
    # Runner Operations
    # =========================================================================

    async def insert_runner_token(self, token: RunnerToken) -> bool:
        """
        Register a runner. Runners are created once: if the address is
        already known, nothing changes and False is returned.
        """
        sql = """
            INSERT INTO runners (
                address, name, symbol, logo_uri, ath_price, ath_market_cap,
                total_supply, milestones, checked
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(address) DO NOTHING
        """
        cursor = await self.connection.execute(sql, (
            token.address,
            token.name,
            token.symbol,
            token.logo_uri,
            token.ath_price,
            token.ath_market_cap,
            token.total_supply,
            json.dumps(token.milestones.to_dict()),
            token.checked,
        ))
        await self.connection.commit()
        return cursor.rowcount > 0

    async def get_runner_by_address(self, address: str) -> RunnerToken | None:
        sql = "SELECT * FROM runners WHERE address = ?"
        cursor = await self.connection.execute(sql, (address,))
        row = await cursor.fetchone()
        return self._row_to_runner(row) if row else None

    async def get_all_runner_tokens(self) -> list[RunnerToken]:
        """Every registered runner, oldest first."""
        cursor = await self.connection.execute("SELECT * FROM runners ORDER BY id")
        rows = await cursor.fetchall()
        return [self._row_to_runner(row) for row in rows]

    async def get_unchecked_runner_tokens(self) -> list[RunnerToken]:
        """Runners the scoring pipeline hasn't finished yet."""
        cursor = await self.connection.execute(
            "SELECT * FROM runners WHERE checked = FALSE ORDER BY id"
        )
        rows = await cursor.fetchall()
        return [self._row_to_runner(row) for row in rows]

    async def mark_runner_checked(self, address: str) -> None:
        sql = "UPDATE runners SET checked = TRUE WHERE address = ?"
        await self.connection.execute(sql, (address,))
        await self.connection.commit()

    async def reset_runner_checks(self) -> int:
        """Mark every runner unchecked so the next cycle re-scans it. Returns how many rows changed."""
        cursor = await self.connection.execute(
            "UPDATE runners SET checked = FALSE WHERE checked = TRUE"
        )
        await self.connection.commit()
        return cursor.rowcount

    # =========================================================================
    # Wallet Operations
    # =========================================================================

    async def get_wallet_by_address(self, address: str) -> Wallet | None:
        sql = "SELECT * FROM wallets WHERE address = ?"
        cursor = await self.connection.execute(sql, (address,))
        row = await cursor.fetchone()
        return self._row_to_wallet(row) if row else None

    async def upsert_wallet(self, wallet: Wallet) -> Wallet:
        """
        Insert or update a wallet record.
        'Upsert' means: insert if new, update if it already exists.

        Participations, score, PnL and badges go out in a single statement.
        Raises PersistenceError if SQLite rejects the write.
        """
        sql = """
            INSERT INTO wallets (
                address, participations, confidence_score, pnl, badges, score_updated_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(address) DO UPDATE SET
                participations = excluded.participations,
                confidence_score = excluded.confidence_score,
                pnl = excluded.pnl,
                badges = excluded.badges,
                score_updated_at = excluded.score_updated_at
        """
        now = datetime.now(timezone.utc).isoformat()
        try:
            await self.connection.execute(sql, (
                wallet.address,
                json.dumps([p.to_dict() for p in wallet.participations]),
                wallet.confidence_score,
                wallet.pnl,
                json.dumps(list(wallet.badges)),
                now,
            ))
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"could not save wallet {wallet.address}: {e}") from e
        return wallet

    async def get_all_wallets(self) -> list[Wallet]:
        cursor = await self.connection.execute("SELECT * FROM wallets ORDER BY id")
        rows = await cursor.fetchall()
        return [self._row_to_wallet(row) for row in rows]

    async def get_top_wallets(self, limit: int = 50, offset: int = 0) -> list[Wallet]:
        """Leaderboard: wallets sorted by confidence score (best first)."""
        sql = """
            SELECT * FROM wallets
            ORDER BY confidence_score DESC, address
            LIMIT ? OFFSET ?
        """
        cursor = await self.connection.execute(sql, (limit, offset))
        rows = await cursor.fetchall()
        return [self._row_to_wallet(row) for row in rows]

    # =========================================================================
    # Row conversion
    # =========================================================================

    @staticmethod
    def _row_to_runner(row: aiosqlite.Row) -> RunnerToken:
        return RunnerToken(
            address=row["address"],
            name=row["name"],
            symbol=row["symbol"],
            logo_uri=row["logo_uri"],
            ath_price=row["ath_price"],
            ath_market_cap=row["ath_market_cap"],
            total_supply=row["total_supply"],
            created_at=row["created_at"],
            milestones=Milestones.from_dict(json.loads(row["milestones"] or "{}")),
            checked=bool(row["checked"]),
        )

    @staticmethod
    def _row_to_wallet(row: aiosqlite.Row) -> Wallet:
        return Wallet(
            address=row["address"],
            participations=[
                RunnerParticipation.from_dict(p) for p in json.loads(row["participations"] or "[]")
            ],
            confidence_score=row["confidence_score"] or 0.0,
            pnl=row["pnl"] or 0.0,
            badges=json.loads(row["badges"] or "[]"),
        )
