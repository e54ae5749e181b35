import logging
from typing import Dict, Optional, Tuple

from hedgescan.config import EngineConfig
from hedgescan.models import ExitRecord, HedgePosition, OutcomeQuote, QuoteSource, ResolvedSide
from hedgescan.positions import Holding
from hedgescan.pricing.book import resolve_side
from hedgescan.pricing.fees import VenueFees


logger = logging.getLogger(__name__)

EXIT_THRESHOLD = 0.98


def compute_exit_record(
    hedge: HedgePosition,
    venue_a_bid: float,
    venue_b_bid: float,
    fees: VenueFees,
    exit_threshold: float = EXIT_THRESHOLD,
) -> ExitRecord:
    """Mark an open hedge to the current bids.

    Entry and exit fees are single fills at one price each: the entry fee uses the
    leg's average entry price, since the position's history is an average rather
    than a book walk.
    """
    shares = hedge.shares
    entry_a = hedge.venue_a_leg.avg_price or 0.0
    entry_b = hedge.venue_b_leg.avg_price or 0.0
    venue_a_bid = venue_a_bid or 0.0
    venue_b_bid = venue_b_bid or 0.0

    entry_cost = (entry_a + entry_b) * shares
    entry_fee = fees.venue_a(entry_a, shares) + fees.venue_b(entry_b, shares)
    exit_value = (venue_a_bid + venue_b_bid) * shares
    exit_fee = fees.venue_a(venue_a_bid, shares) + fees.venue_b(venue_b_bid, shares)

    net_profit = (exit_value - exit_fee) - (entry_cost + entry_fee)
    basis = entry_cost + entry_fee
    profit_pct = net_profit / basis if basis > 0 else 0.0

    exit_price_sum = venue_a_bid + venue_b_bid
    return ExitRecord(
        shares=shares,
        entry_cost=entry_cost,
        entry_fee=entry_fee,
        exit_value=exit_value,
        exit_fee=exit_fee,
        net_profit=net_profit,
        profit_pct=profit_pct,
        entry_price_sum=entry_a + entry_b,
        exit_price_sum=exit_price_sum,
        can_exit=net_profit > 0 and exit_price_sum >= exit_threshold,
        buy_venue_a_yes=hedge.buy_venue_a_yes,
    )


def _bid(side: ResolvedSide) -> Optional[float]:
    if side.source == QuoteSource.MISSING:
        return None
    return side.bid or 0.0


def _exit_bids(
    quote: OutcomeQuote,
    buy_venue_a_yes: bool,
    derive_missing_no: bool,
) -> Optional[Tuple[float, float]]:
    if buy_venue_a_yes:
        venue_a = resolve_side(quote.venue_a_yes)
        venue_b = resolve_side(quote.venue_b_no, quote.venue_b_yes, derive=derive_missing_no)
    else:
        venue_a = resolve_side(quote.venue_a_no, quote.venue_a_yes, derive=derive_missing_no)
        venue_b = resolve_side(quote.venue_b_yes)
    bid_a, bid_b = _bid(venue_a), _bid(venue_b)
    if bid_a is None or bid_b is None:
        return None
    return bid_a, bid_b


def evaluate_holding(
    holding: Holding,
    quote: Optional[OutcomeQuote],
    config: EngineConfig,
    fees: Optional[VenueFees] = None,
) -> Optional[ExitRecord]:
    if quote is None:
        return None
    fees = fees or config.venue_fees()
    best: Optional[ExitRecord] = None
    for hedge in holding.hedges():
        bids = _exit_bids(quote, hedge.buy_venue_a_yes, config.derive_missing_no)
        if bids is None:
            logger.debug("no exit quotes for %s/%s", hedge.event_id, hedge.outcome)
            continue
        record = compute_exit_record(hedge, bids[0], bids[1], fees, config.exit_threshold)
        if best is None or record.net_profit > best.net_profit:
            best = record
    return best


def evaluate_exits(
    holdings: Dict[Tuple[str, str], Holding],
    quotes: Dict[Tuple[str, str], OutcomeQuote],
    config: EngineConfig,
) -> Dict[Tuple[str, str], ExitRecord]:
    fees = config.venue_fees()
    records: Dict[Tuple[str, str], ExitRecord] = {}
    for key, holding in holdings.items():
        record = evaluate_holding(holding, quotes.get(key), config, fees)
        if record is not None:
            records[key] = record
    return records
