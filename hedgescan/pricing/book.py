import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from hedgescan.models import (
    BookQuote,
    LevelAggregate,
    OrderBookSide,
    PriceLevel,
    QuoteSource,
    ResolvedSide,
)


logger = logging.getLogger(__name__)

EMPTY_AGGREGATE = LevelAggregate(avg_price=0.0, total_size=0.0, level_details=())


def _level_ok(price: float, size: float) -> bool:
    if not math.isfinite(price) or not math.isfinite(size):
        return False
    return 0 < price < 1 and size > 0


def normalize_side(levels: Iterable[PriceLevel], descending: bool = False) -> OrderBookSide:
    """Drop unusable rows, merge rows at the same price and sort top-of-book first."""
    merged: Dict[float, float] = {}
    dropped = 0
    for level in levels:
        if not _level_ok(level.price, level.size):
            dropped += 1
            continue
        merged[level.price] = merged.get(level.price, 0.0) + level.size
    if dropped:
        logger.debug("dropped %d ineligible book levels", dropped)
    ordered = sorted(merged.items(), key=lambda item: item[0], reverse=descending)
    return tuple(PriceLevel(price=price, size=size) for price, size in ordered)


def normalize_quote(
    bids: Iterable[PriceLevel],
    asks: Iterable[PriceLevel],
    price: Optional[float] = None,
    depth: Optional[float] = None,
) -> BookQuote:
    clean_bids = normalize_side(bids, descending=True)
    clean_asks = normalize_side(asks)
    if price is None or not math.isfinite(price):
        best_bid = clean_bids[0].price if clean_bids else 0.0
        best_ask = clean_asks[0].price if clean_asks else 0.0
        if best_bid and best_ask:
            price = (best_bid + best_ask) / 2
        else:
            price = best_bid or best_ask or 0.0
    return BookQuote(bids=clean_bids, asks=clean_asks, price=price, depth=depth)


def aggregate_levels(side: Sequence[PriceLevel], depth: int) -> LevelAggregate:
    if not side or depth <= 0:
        return EMPTY_AGGREGATE
    total_size = 0.0
    total_value = 0.0
    details: List[PriceLevel] = []
    for level in side[:depth]:
        if not _level_ok(level.price, level.size):
            continue
        total_size += level.size
        total_value += level.price * level.size
        details.append(level)
    if total_size <= 0:
        return EMPTY_AGGREGATE
    return LevelAggregate(
        avg_price=total_value / total_size,
        total_size=total_size,
        level_details=tuple(details),
    )


def derive_no_quote(yes: BookQuote) -> BookQuote:
    # Buying NO at 1 - p is selling YES at p, and vice versa.
    asks = tuple(PriceLevel(price=1.0 - level.price, size=level.size) for level in yes.bids)
    bids = tuple(PriceLevel(price=1.0 - level.price, size=level.size) for level in yes.asks)
    price = 1.0 - yes.price if yes.price else None
    return normalize_quote(bids, asks, price)


def clean_quote(quote: BookQuote) -> BookQuote:
    """Re-normalize a quote built outside the snapshot loader."""
    price = quote.price
    if price is not None and not (math.isfinite(price) and 0 <= price <= 1):
        price = None
    return BookQuote(
        bids=normalize_side(quote.bids, descending=True),
        asks=normalize_side(quote.asks),
        price=price,
        depth=quote.depth,
    )


def resolve_side(
    quote: Optional[BookQuote],
    complement: Optional[BookQuote] = None,
    derive: bool = False,
) -> ResolvedSide:
    """Tag a leg's book as present, derived from the complementary token, or missing."""
    if quote is not None:
        quote = clean_quote(quote)
        return ResolvedSide(source=QuoteSource.PRESENT, asks=quote.asks, bid=quote.exit_price)
    if derive and complement is not None:
        derived = derive_no_quote(clean_quote(complement))
        return ResolvedSide(source=QuoteSource.DERIVED, asks=derived.asks, bid=derived.exit_price)
    return ResolvedSide(source=QuoteSource.MISSING)


def parse_levels(raw_levels: Optional[Iterable[object]]) -> Tuple[PriceLevel, ...]:
    """Accept ``[price, size]`` pairs or ``{"price", "size"}`` objects, numbers or strings."""
    levels: List[PriceLevel] = []
    for raw in raw_levels or []:
        if isinstance(raw, dict):
            price, size = raw.get("price"), raw.get("size")
        elif isinstance(raw, (list, tuple)) and len(raw) >= 2:
            price, size = raw[0], raw[1]
        else:
            continue
        levels.append(PriceLevel(price=_to_float(price), size=_to_float(size)))
    return tuple(levels)


def _to_float(value: object) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
