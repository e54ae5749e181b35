from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple


OPINION = "opinion"
POLYMARKET = "polymarket"

YES = "YES"
NO = "NO"


class Signal(str, Enum):
    HOT = "HOT"
    GO = "GO"
    NONE = "NONE"


class QuoteSource(str, Enum):
    PRESENT = "PRESENT"
    DERIVED = "DERIVED"
    MISSING = "MISSING"


@dataclass(frozen=True)
class PriceLevel:
    price: float
    size: float


OrderBookSide = Tuple[PriceLevel, ...]


@dataclass(frozen=True)
class BookQuote:
    bids: OrderBookSide = ()
    asks: OrderBookSide = ()
    price: Optional[float] = None
    # Available depth in USD as reported by the venue.
    depth: Optional[float] = None

    @property
    def best_bid(self) -> Optional[float]:
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        return self.asks[0].price if self.asks else None

    @property
    def exit_price(self) -> float:
        # Best bid, then the venue's scalar price.
        if self.best_bid:
            return self.best_bid
        return self.price or 0.0


@dataclass(frozen=True)
class OutcomeQuote:
    venue_a_yes: Optional[BookQuote] = None
    venue_a_no: Optional[BookQuote] = None
    venue_b_yes: Optional[BookQuote] = None
    venue_b_no: Optional[BookQuote] = None


@dataclass(frozen=True)
class ResolvedSide:
    source: QuoteSource
    asks: OrderBookSide = ()
    bid: Optional[float] = None


@dataclass(frozen=True)
class LevelAggregate:
    avg_price: float
    total_size: float
    level_details: OrderBookSide


@dataclass(frozen=True)
class StrategyResult:
    leg_a_depth: int
    leg_b_depth: int
    leg_a_avg_price: float
    leg_b_avg_price: float
    shares: float
    cost_per_share: float
    total_cost: float
    fee: float
    profit: float
    profit_pct: float


@dataclass(frozen=True)
class Opportunity:
    event_id: str
    event_name: str
    event_type: str
    outcome: str
    strategy: StrategyResult
    buy_venue_a_yes: bool
    signal: Signal
    settlement_date: Optional[date]
    days_to_settlement: Optional[int]
    apy: Optional[float]
    leg_a_source: QuoteSource = QuoteSource.PRESENT
    leg_b_source: QuoteSource = QuoteSource.PRESENT
    # Smaller of the two YES books' reported USD depth, 0 when unknown.
    min_depth: float = 0.0

    @property
    def profit_pct(self) -> float:
        return self.strategy.profit_pct

    @property
    def spread_pct(self) -> float:
        return 1.0 - self.strategy.cost_per_share

    @property
    def fee_rate(self) -> float:
        if self.strategy.total_cost <= 0:
            return 0.0
        return self.strategy.fee / self.strategy.total_cost

    @property
    def is_derived(self) -> bool:
        return QuoteSource.DERIVED in (self.leg_a_source, self.leg_b_source)


@dataclass(frozen=True)
class Position:
    venue: str
    side: str
    shares: float
    avg_price: float
    token_id: Optional[str] = None
    market_id: Optional[str] = None
    title: str = ""
    market_slug: str = ""
    event_slug: str = ""


@dataclass(frozen=True)
class HedgePosition:
    event_id: str
    outcome: str
    venue_a_leg: Position
    venue_b_leg: Position

    def __post_init__(self) -> None:
        sides = {self.venue_a_leg.side, self.venue_b_leg.side}
        if sides != {YES, NO}:
            raise ValueError(
                f"Hedge legs must be opposite sides for {self.event_id}/{self.outcome}: "
                f"{self.venue_a_leg.side}+{self.venue_b_leg.side}"
            )

    @property
    def buy_venue_a_yes(self) -> bool:
        return self.venue_a_leg.side == YES

    @property
    def shares(self) -> float:
        return min(self.venue_a_leg.shares, self.venue_b_leg.shares)


@dataclass(frozen=True)
class ExitRecord:
    shares: float
    entry_cost: float
    entry_fee: float
    exit_value: float
    exit_fee: float
    net_profit: float
    profit_pct: float
    entry_price_sum: float
    exit_price_sum: float
    can_exit: bool
    buy_venue_a_yes: bool = True

    @property
    def total_entry_cost(self) -> float:
        return self.entry_cost + self.entry_fee

    @property
    def net_exit_value(self) -> float:
        return self.exit_value - self.exit_fee


@dataclass(frozen=True)
class AggregateStats:
    total_markets: int
    opportunities: int = 0
    go_count: int = 0
    hot_count: int = 0
    avg_spread: float = 0.0
    max_spread: float = 0.0
