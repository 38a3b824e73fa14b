"""
Domain Entities
===============
The records the scoring engine passes around and stores.

- RunnerToken: a token that crossed the runner market cap threshold
- Transaction / SwapEvent: one buy or sell, with or without its owner
- RunnerParticipation: one wallet's trades in one runner, plus its score
- Wallet: a wallet's participations, confidence score, PnL and badges

Participations are stored as JSON inside the wallet row, so every entity
here knows how to turn itself into a plain dict and back.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class Badge(str, Enum):
    """Every badge a wallet can carry."""
    LEGENDARY_BUYER = "legendary buyer"
    POTENTIAL_ALPHA = "potential alpha"
    HIGH_CONVICTION = "high conviction"
    MID_TRADER = "mid trader"
    DEGEN_SPRAYER = "degen sprayer"
    ONE_HIT_WONDER = "one-hit wonder"
    DIAMOND_HANDS = "diamond hands"
    WHALE_BUYER = "whale buyer"
    DEAD_WALLET = "dead wallet"
    COMEBACK_TRADER = "comeback trader"
    BOT = "bot"


@dataclass(frozen=True)
class Transaction:
    side: Side
    amount: float
    price: float
    timestamp: int

    def __post_init__(self):
        if self.amount < 0 or self.price < 0:
            raise ValueError(f"negative amount/price in {self.side.value} at {self.timestamp}")

    @property
    def notional(self) -> float:
        """USD value of the trade."""
        return self.amount * self.price

    def to_dict(self) -> dict[str, Any]:
        return {"amount": self.amount, "price": self.price, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, side: Side, data: dict[str, Any]) -> "Transaction":
        return cls(
            side=side,
            amount=float(data.get("amount") or 0),
            price=float(data.get("price") or 0),
            timestamp=int(data["timestamp"]),
        )


@dataclass(frozen=True)
class SwapEvent:
    """A transaction as it comes off the feed, tagged with the wallet that made it."""
    owner: str
    transaction: Transaction

    @property
    def timestamp(self) -> int:
        return self.transaction.timestamp

    @property
    def side(self) -> Side:
        return self.transaction.side


@dataclass(frozen=True)
class PricePoint:
    unix_time: int
    value: float


@dataclass
class Milestones:
    early: int | None = None
    late: int | None = None
    two_million: int | None = None
    five_million: int | None = None

    def to_dict(self) -> dict[str, int | None]:
        return {
            "early": self.early,
            "late": self.late,
            "two_million": self.two_million,
            "five_million": self.five_million,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Milestones":
        data = data or {}
        return cls(
            early=data.get("early"),
            late=data.get("late"),
            two_million=data.get("two_million"),
            five_million=data.get("five_million"),
        )


@dataclass
class TradeHistory:
    """A wallet's buys and sells for a single token."""
    buy: list[Transaction] = field(default_factory=list)
    sell: list[Transaction] = field(default_factory=list)

    def add(self, tx: Transaction) -> None:
        if tx.side is Side.BUY:
            self.buy.append(tx)
        else:
            self.sell.append(tx)

    @property
    def buy_notional(self) -> float:
        return sum(tx.notional for tx in self.buy)

    def copy(self) -> "TradeHistory":
        return TradeHistory(buy=list(self.buy), sell=list(self.sell))


@dataclass
class RunnerToken:
    address: str
    name: str = ""
    symbol: str = ""
    logo_uri: str | None = None
    ath_price: float = 0.0
    ath_market_cap: float = 0.0
    total_supply: float = 0.0
    created_at: str | None = None
    milestones: Milestones = field(default_factory=Milestones)
    checked: bool = False


@dataclass
class RunnerParticipation:
    """
    One wallet's relationship to one runner token.

    The token fields are a snapshot taken at merge time, so later edits to
    the runner row never change participations that already exist.
    """
    address: str
    name: str
    symbol: str
    logo_uri: str | None
    ath_price: float
    ath_market_cap: float
    total_supply: float
    milestones: Milestones
    million_timestamp: int | None
    buys: list[Transaction] = field(default_factory=list)
    sells: list[Transaction] = field(default_factory=list)
    score: float | None = None
    scored: bool = False

    @classmethod
    def from_token(
        cls, token: RunnerToken, trades: TradeHistory, million_timestamp: int | None
    ) -> "RunnerParticipation":
        return cls(
            address=token.address,
            name=token.name,
            symbol=token.symbol,
            logo_uri=token.logo_uri,
            ath_price=token.ath_price,
            ath_market_cap=token.ath_market_cap,
            total_supply=token.total_supply,
            milestones=replace(token.milestones),
            million_timestamp=million_timestamp,
            buys=list(trades.buy),
            sells=list(trades.sell),
        )

    def event_timestamps(self) -> list[int]:
        return [tx.timestamp for tx in self.buys] + [tx.timestamp for tx in self.sells]

    def sold_after_milestone(self) -> bool:
        """True if any sell happened after the holding milestone."""
        if self.million_timestamp is None:
            return False
        return any(tx.timestamp > self.million_timestamp for tx in self.sells)

    def held_past_milestone(self, now: int) -> bool:
        """Sold after the milestone, or never sold and the milestone is already behind us."""
        if self.million_timestamp is None:
            return False
        if self.sells:
            return self.sold_after_milestone()
        return now > self.million_timestamp

    def realized_pnl(self) -> float:
        # Sells with no recorded buys (tokens received by transfer) don't count as profit
        if not self.buys:
            return 0.0
        return sum(tx.notional for tx in self.sells) - sum(tx.notional for tx in self.buys)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "logo_uri": self.logo_uri,
            "ath_price": self.ath_price,
            "ath_market_cap": self.ath_market_cap,
            "total_supply": self.total_supply,
            "milestones": self.milestones.to_dict(),
            "million_timestamp": self.million_timestamp,
            "transactions": {
                "buy": [tx.to_dict() for tx in self.buys],
                "sell": [tx.to_dict() for tx in self.sells],
            },
            "score": self.score,
            "scored": self.scored,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunnerParticipation":
        transactions = data.get("transactions") or {}
        return cls(
            address=data["address"],
            name=data.get("name") or "",
            symbol=data.get("symbol") or "",
            logo_uri=data.get("logo_uri"),
            ath_price=float(data.get("ath_price") or 0),
            ath_market_cap=float(data.get("ath_market_cap") or 0),
            total_supply=float(data.get("total_supply") or 0),
            milestones=Milestones.from_dict(data.get("milestones")),
            million_timestamp=data.get("million_timestamp"),
            buys=[Transaction.from_dict(Side.BUY, tx) for tx in transactions.get("buy", [])],
            sells=[Transaction.from_dict(Side.SELL, tx) for tx in transactions.get("sell", [])],
            score=data.get("score"),
            scored=bool(data.get("scored", False)),
        )


@dataclass
class Wallet:
    address: str
    participations: list[RunnerParticipation] = field(default_factory=list)
    confidence_score: float = 0.0
    pnl: float = 0.0
    badges: list[str] = field(default_factory=list)
