import math
import unittest

from hedgescan.models import PriceLevel
from hedgescan.pricing.fees import (
    MIN_FEE_USD,
    ConvexFee,
    ProportionalFee,
    VenueFees,
    nominal_fee_rate,
    per_level_fee,
)


class FeeModelTests(unittest.TestCase):
    def test_nominal_rate_is_convex_in_price(self) -> None:
        self.assertAlmostEqual(nominal_fee_rate(0.5), 0.02, places=9)
        self.assertAlmostEqual(nominal_fee_rate(0.45), 0.08 * 0.45 * 0.55, places=9)
        self.assertEqual(nominal_fee_rate(0.0), 0.0)
        self.assertEqual(nominal_fee_rate(1.0), 0.0)
        self.assertEqual(nominal_fee_rate(float("nan")), 0.0)

    def test_fee_on_large_fill_exceeds_floor(self) -> None:
        fee = ConvexFee()
        # 0.0198 rate on $45 notional
        self.assertAlmostEqual(fee(0.45, 100), 0.891, places=9)
        self.assertFalse(fee.breakdown(0.45, 100).is_min_fee)

    def test_floor_binds_on_small_fill(self) -> None:
        fee = ConvexFee()
        breakdown = fee.breakdown(0.45, 20)
        self.assertTrue(breakdown.is_min_fee)
        self.assertAlmostEqual(breakdown.calculated_fee, 0.0198 * 0.45 * 20, places=9)
        self.assertEqual(breakdown.actual_fee, MIN_FEE_USD)

    def test_ineligible_fills_are_free(self) -> None:
        fee = ConvexFee()
        for price, shares in [(0.0, 10), (1.0, 10), (-0.2, 10), (1.3, 10), (0.5, 0), (0.5, -5), (math.inf, 10)]:
            with self.subTest(price=price, shares=shares):
                self.assertEqual(fee(price, shares), 0.0)

    def test_fee_non_decreasing_in_shares(self) -> None:
        fee = ConvexFee()
        for price in (0.05, 0.3, 0.5, 0.77, 0.95):
            previous = 0.0
            for shares in (1, 5, 25, 100, 500, 2500):
                current = fee(price, shares)
                self.assertGreaterEqual(current, previous)
                self.assertGreaterEqual(current, MIN_FEE_USD)
                previous = current

    def test_per_level_floor_is_billed_per_price_level(self) -> None:
        fee = ConvexFee()
        levels = [PriceLevel(0.40, 10), PriceLevel(0.41, 10)]
        multi = per_level_fee(levels, 20, fee)
        blended = fee((0.40 * 10 + 0.41 * 10) / 20, 20)
        self.assertAlmostEqual(multi, 2 * MIN_FEE_USD, places=9)
        self.assertGreater(multi, blended)

    def test_per_level_fee_stops_at_requested_shares(self) -> None:
        fee = ConvexFee(min_fee=0.0)
        levels = [PriceLevel(0.40, 100), PriceLevel(0.50, 100), PriceLevel(0.60, 100)]
        charged = per_level_fee(levels, 150, fee)
        expected = fee(0.40, 100) + fee(0.50, 50)
        self.assertAlmostEqual(charged, expected, places=9)
        self.assertEqual(per_level_fee(levels, 0, fee), 0.0)
        self.assertEqual(per_level_fee([], 10, fee), 0.0)

    def test_proportional_fee_has_no_floor(self) -> None:
        self.assertAlmostEqual(ProportionalFee(rate=0.01)(0.5, 10), 0.05, places=9)
        self.assertEqual(ProportionalFee()(0.5, 10), 0.0)
        self.assertEqual(ProportionalFee(rate=0.01)(1.0, 10), 0.0)

    def test_default_venue_fees(self) -> None:
        fees = VenueFees()
        self.assertAlmostEqual(fees.venue_a(0.45, 100), 0.891, places=9)
        self.assertEqual(fees.venue_b(0.45, 100), 0.0)


if __name__ == "__main__":
    unittest.main()
