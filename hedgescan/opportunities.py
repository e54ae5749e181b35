import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from hedgescan.config import EngineConfig
from hedgescan.markets import MarketConfig
from hedgescan.models import (
    NO,
    OPINION,
    POLYMARKET,
    Opportunity,
    OutcomeQuote,
    QuoteSource,
    ResolvedSide,
    Signal,
    StrategyResult,
    YES,
)
from hedgescan.pricing.book import resolve_side
from hedgescan.pricing.fees import VenueFees
from hedgescan.pricing.strategy import find_best_strategy


logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365


def classify_signal(profit_pct: float, config: EngineConfig) -> Signal:
    if profit_pct > config.hot_threshold:
        return Signal.HOT
    if profit_pct > config.go_threshold:
        return Signal.GO
    return Signal.NONE


def days_to_settlement(settlement_date: Optional[date], today: date) -> Optional[int]:
    if settlement_date is None:
        return None
    days = (settlement_date - today).days
    return days if days > 0 else None


def annualized_return(profit_pct: float, days: Optional[int]) -> Optional[float]:
    if days is None or days <= 0:
        return None
    if profit_pct <= 0:
        return 0.0
    return profit_pct * (DAYS_PER_YEAR / days)


def resolve_outcome_legs(
    quote: OutcomeQuote,
    derive_missing_no: bool = True,
) -> Tuple[Tuple[ResolvedSide, ResolvedSide], Tuple[ResolvedSide, ResolvedSide]]:
    """Leg A / leg B ask sides for (A YES + B NO) and (A NO + B YES)."""
    a_yes = resolve_side(quote.venue_a_yes)
    b_yes = resolve_side(quote.venue_b_yes)
    a_no = resolve_side(quote.venue_a_no, quote.venue_a_yes, derive=derive_missing_no)
    b_no = resolve_side(quote.venue_b_no, quote.venue_b_yes, derive=derive_missing_no)
    return (a_yes, b_no), (a_no, b_yes)


def _search(legs: Tuple[ResolvedSide, ResolvedSide], fees: VenueFees, max_levels: int) -> Optional[StrategyResult]:
    leg_a, leg_b = legs
    if QuoteSource.MISSING in (leg_a.source, leg_b.source):
        return None
    return find_best_strategy(leg_a.asks, leg_b.asks, fees, max_levels)


def build_opportunity(
    market: MarketConfig,
    outcome: str,
    quote: Optional[OutcomeQuote],
    config: EngineConfig,
    today: date,
    fees: Optional[VenueFees] = None,
) -> Optional[Opportunity]:
    if quote is None or quote.venue_a_yes is None or quote.venue_b_yes is None:
        logger.debug("skip %s/%s: missing YES book", market.market_id, outcome)
        return None

    fees = fees or config.venue_fees()
    yes_legs, no_legs = resolve_outcome_legs(quote, config.derive_missing_no)
    buy_yes = _search(yes_legs, fees, config.max_levels)
    buy_no = _search(no_legs, fees, config.max_levels)

    buy_venue_a_yes = True
    strategy, legs = buy_yes, yes_legs
    if buy_no is not None and (buy_yes is None or buy_no.profit_pct > buy_yes.profit_pct):
        buy_venue_a_yes = False
        strategy, legs = buy_no, no_legs
    if strategy is None:
        logger.debug("skip %s/%s: no admissible strategy", market.market_id, outcome)
        return None

    leg_a, leg_b = legs
    signal = classify_signal(strategy.profit_pct, config)
    derived = QuoteSource.DERIVED in (leg_a.source, leg_b.source)
    if derived and not config.signal_on_derived:
        signal = Signal.NONE

    settlement = market.settlement_for(outcome)
    days = days_to_settlement(settlement, today)
    return Opportunity(
        event_id=market.market_id,
        event_name=market.name,
        event_type=market.event_type,
        outcome=outcome,
        strategy=strategy,
        buy_venue_a_yes=buy_venue_a_yes,
        signal=signal,
        settlement_date=settlement,
        days_to_settlement=days,
        apy=annualized_return(strategy.profit_pct, days),
        leg_a_source=leg_a.source,
        leg_b_source=leg_b.source,
        min_depth=min(quote.venue_a_yes.depth or 0.0, quote.venue_b_yes.depth or 0.0),
    )


def build_opportunities(
    markets: Iterable[MarketConfig],
    quotes: Dict[Tuple[str, str], OutcomeQuote],
    config: EngineConfig,
    today: Optional[date] = None,
) -> List[Opportunity]:
    today = today or date.today()
    fees = config.venue_fees()
    opportunities: List[Opportunity] = []
    for market in markets:
        for outcome in market.outcomes:
            opportunity = build_opportunity(
                market,
                outcome,
                quotes.get((market.market_id, outcome)),
                config,
                today,
                fees,
            )
            if opportunity is not None:
                opportunities.append(opportunity)
    logger.debug("built %d opportunities", len(opportunities))
    return opportunities


def sort_opportunities(opportunities: Iterable[Opportunity], sort_by: str = "net_profit") -> List[Opportunity]:
    if sort_by == "apy":
        # Unknown APY sorts after every known value.
        def key(item: Opportunity):
            return (item.apy is None, -(item.apy or 0.0), item.outcome)
    else:
        def key(item: Opportunity):
            return (-item.profit_pct, item.outcome)
    return sorted(opportunities, key=key)


def filter_opportunities(opportunities: Iterable[Opportunity], event_type: str = "ALL") -> List[Opportunity]:
    if event_type == "ALL":
        return list(opportunities)
    return [item for item in opportunities if item.event_type == event_type]


def _format_levels(depth: int) -> str:
    return "L1" if depth == 1 else f"L1-{depth}"


def _leg_label(venue: str, side: str, depth: int, avg_price: float) -> str:
    return f"Buy {venue} {side} ({_format_levels(depth)}) @ {avg_price * 100:.1f}c"


def direction_label(opportunity: Opportunity, venue_a: str = OPINION, venue_b: str = POLYMARKET) -> str:
    strategy = opportunity.strategy
    if opportunity.buy_venue_a_yes:
        leg_a = _leg_label(venue_a, YES, strategy.leg_a_depth, strategy.leg_a_avg_price)
        leg_b = _leg_label(venue_b, NO, strategy.leg_b_depth, strategy.leg_b_avg_price)
        return f"{leg_a} + {leg_b}"
    leg_a = _leg_label(venue_a, NO, strategy.leg_a_depth, strategy.leg_a_avg_price)
    leg_b = _leg_label(venue_b, YES, strategy.leg_b_depth, strategy.leg_b_avg_price)
    return f"{leg_b} + {leg_a}"
