import logging
import math
from typing import Optional, Sequence

from hedgescan.models import PriceLevel, StrategyResult
from hedgescan.pricing.book import aggregate_levels, normalize_side
from hedgescan.pricing.fees import VenueFees, per_level_fee


logger = logging.getLogger(__name__)

MAX_LEVELS = 3


def evaluate_depths(
    leg_a_asks: Sequence[PriceLevel],
    leg_b_asks: Sequence[PriceLevel],
    leg_a_depth: int,
    leg_b_depth: int,
    fees: VenueFees,
) -> Optional[StrategyResult]:
    """Cost one (leg A depth, leg B depth) combination. ``None`` if inadmissible."""
    leg_a = aggregate_levels(leg_a_asks, leg_a_depth)
    leg_b = aggregate_levels(leg_b_asks, leg_b_depth)
    if leg_a.total_size <= 0 or leg_b.total_size <= 0:
        return None

    shares = min(leg_a.total_size, leg_b.total_size)
    cost_per_share = leg_a.avg_price + leg_b.avg_price
    total_cost = cost_per_share * shares
    if total_cost <= 0:
        return None

    # Billed at each level's own price, never at the blended average.
    fee = per_level_fee(leg_a.level_details, shares, fees.venue_a)
    fee += per_level_fee(leg_b.level_details, shares, fees.venue_b)

    profit = shares - total_cost - fee
    return StrategyResult(
        leg_a_depth=leg_a_depth,
        leg_b_depth=leg_b_depth,
        leg_a_avg_price=leg_a.avg_price,
        leg_b_avg_price=leg_b.avg_price,
        shares=shares,
        cost_per_share=cost_per_share,
        total_cost=total_cost,
        fee=fee,
        profit=profit,
        profit_pct=profit / total_cost,
    )


def find_best_strategy(
    leg_a_asks: Sequence[PriceLevel],
    leg_b_asks: Sequence[PriceLevel],
    fees: VenueFees,
    max_levels: int = MAX_LEVELS,
) -> Optional[StrategyResult]:
    """Exhaustive search over leg depths 1..max_levels for the best profit percentage.

    Leg A depth is the outer loop and leg B depth the inner one. Only a strictly
    greater profit percentage replaces the current best, so ties keep the first
    combination in that order. Ineligible rows are dropped and rows at the same
    price merged before levels are counted.
    """
    leg_a_asks = normalize_side(leg_a_asks)
    leg_b_asks = normalize_side(leg_b_asks)
    best: Optional[StrategyResult] = None
    for leg_a_depth in range(1, max_levels + 1):
        for leg_b_depth in range(1, max_levels + 1):
            candidate = evaluate_depths(leg_a_asks, leg_b_asks, leg_a_depth, leg_b_depth, fees)
            if candidate is None or not math.isfinite(candidate.profit_pct):
                continue
            if best is None or candidate.profit_pct > best.profit_pct:
                best = candidate
    if best is not None:
        logger.debug(
            "best depths a=%d b=%d profit_pct=%.4f shares=%.2f",
            best.leg_a_depth,
            best.leg_b_depth,
            best.profit_pct,
            best.shares,
        )
    return best
