from hedgescan.pricing.book import aggregate_levels, normalize_quote, normalize_side, resolve_side
from hedgescan.pricing.fees import ConvexFee, ProportionalFee, VenueFees, per_level_fee
from hedgescan.pricing.strategy import find_best_strategy

__all__ = [
    "ConvexFee",
    "ProportionalFee",
    "VenueFees",
    "aggregate_levels",
    "find_best_strategy",
    "normalize_quote",
    "normalize_side",
    "per_level_fee",
    "resolve_side",
]
