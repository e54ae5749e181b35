"""Venue fee functions.

Venue A charges ``k * p * (1 - p)`` of notional with a floor applied once per
fill. A fill is one price level: consuming three levels at three prices is
billed three floors, consuming two makers at the same price is billed one.
Venue B is fee-free by default, or a flat proportional rate with no floor.
"""

import math
from dataclasses import dataclass
from typing import Callable, Iterable

from hedgescan.models import PriceLevel


FeeFunction = Callable[[float, float], float]

FEE_K = 0.08
MIN_FEE_USD = 0.5


@dataclass(frozen=True)
class FeeBreakdown:
    fee_rate: float
    calculated_fee: float
    actual_fee: float
    is_min_fee: bool


NO_FEE = FeeBreakdown(fee_rate=0.0, calculated_fee=0.0, actual_fee=0.0, is_min_fee=False)


def is_billable(price: float, shares: float) -> bool:
    if price is None or shares is None:
        return False
    if not math.isfinite(price) or not math.isfinite(shares):
        return False
    return 0 < price < 1 and shares > 0


def nominal_fee_rate(price: float, k: float = FEE_K) -> float:
    if not math.isfinite(price) or price <= 0 or price >= 1:
        return 0.0
    return k * price * (1 - price)


@dataclass(frozen=True)
class ConvexFee:
    k: float = FEE_K
    min_fee: float = MIN_FEE_USD

    def breakdown(self, price: float, shares: float) -> FeeBreakdown:
        if not is_billable(price, shares):
            return NO_FEE
        fee_rate = nominal_fee_rate(price, self.k)
        calculated = price * shares * fee_rate
        return FeeBreakdown(
            fee_rate=fee_rate,
            calculated_fee=calculated,
            actual_fee=max(calculated, self.min_fee),
            is_min_fee=calculated < self.min_fee,
        )

    def __call__(self, price: float, shares: float) -> float:
        return self.breakdown(price, shares).actual_fee


@dataclass(frozen=True)
class ProportionalFee:
    rate: float = 0.0

    def __call__(self, price: float, shares: float) -> float:
        if self.rate <= 0 or not is_billable(price, shares):
            return 0.0
        return self.rate * price * shares


@dataclass(frozen=True)
class VenueFees:
    venue_a: FeeFunction = ConvexFee()
    venue_b: FeeFunction = ProportionalFee()


def per_level_fee(levels: Iterable[PriceLevel], shares: float, fee: FeeFunction) -> float:
    """Bill ``shares`` against ``levels`` in book order, one fee per level."""
    if shares <= 0:
        return 0.0
    total = 0.0
    remaining = shares
    for level in levels:
        if remaining <= 0:
            break
        take = min(level.size, remaining)
        if take <= 0:
            continue
        total += fee(level.price, take)
        remaining -= take
    return total
