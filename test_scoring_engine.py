import math
import unittest

from token_radar.models import MarketSnapshot
from token_radar.processors.scoring_engine import ScoringEngine


def make_snapshot(price_change: float, volume: float = 500_000, buys: int = 1200, sells: int = 800) -> MarketSnapshot:
    return MarketSnapshot(
        price=0.05,
        volume_24h=volume,
        price_change_24h=price_change,
        market_cap=5_000_000,
        fdv=6_000_000,
        buys=buys,
        sells=sells,
    )


class TestSubScores(unittest.TestCase):

    def test_liquidity_score_saturates_at_one_million(self):
        self.assertAlmostEqual(ScoringEngine.liquidity_score(1_000_000), 1.0)
        self.assertAlmostEqual(ScoringEngine.liquidity_score(5_000_000), 1.0)
        self.assertAlmostEqual(ScoringEngine.liquidity_score(1_000), 0.5)
        self.assertEqual(ScoringEngine.liquidity_score(0), 0.0)
        self.assertEqual(ScoringEngine.liquidity_score(-10), 0.0)

    def test_liquidity_below_one_dollar_is_clamped_to_zero(self):
        self.assertEqual(ScoringEngine.liquidity_score(0.5), 0.0)

    def test_holder_and_tx_scores(self):
        self.assertAlmostEqual(ScoringEngine.holder_score(1000), 1.0)
        self.assertAlmostEqual(ScoringEngine.holder_score(100), 2 / 3)
        self.assertEqual(ScoringEngine.holder_score(0), 0.0)
        self.assertAlmostEqual(ScoringEngine.tx_score(2000), 1.0)
        self.assertEqual(ScoringEngine.tx_score(0), 0.0)

    def test_volume_score(self):
        self.assertAlmostEqual(ScoringEngine.volume_score(500_000, 1_000_000), 0.5 / 3)
        self.assertAlmostEqual(ScoringEngine.volume_score(10_000_000, 1_000_000), 1.0)
        self.assertEqual(ScoringEngine.volume_score(500_000, 0), 0.0)

    def test_price_action_gain_branch(self):
        self.assertAlmostEqual(ScoringEngine.price_action_score(20), 0.4)
        self.assertAlmostEqual(ScoringEngine.price_action_score(50), 1.0)
        self.assertAlmostEqual(ScoringEngine.price_action_score(125), 0.5)
        # Large pumps never drop below the 0.5 floor
        self.assertAlmostEqual(ScoringEngine.price_action_score(1000), 0.5)

    def test_price_action_loss_branch(self):
        self.assertAlmostEqual(ScoringEngine.price_action_score(0), 1.0)
        self.assertAlmostEqual(ScoringEngine.price_action_score(-5), 0.5)
        self.assertAlmostEqual(ScoringEngine.price_action_score(-10), 0.0)
        self.assertAlmostEqual(ScoringEngine.price_action_score(-25), math.exp(-0.15 * 15) * 0.5)

    def test_penalty_multiplier_is_cumulative(self):
        self.assertEqual(ScoringEngine.penalty_multiplier(15), 1.0)
        self.assertAlmostEqual(ScoringEngine.penalty_multiplier(-5), math.exp(-0.1))
        self.assertAlmostEqual(ScoringEngine.penalty_multiplier(-25), math.exp(-0.5) * 0.7 * 0.5)
        self.assertAlmostEqual(
            ScoringEngine.penalty_multiplier(-80),
            math.exp(-1.6) * 0.7 * 0.5 * 0.3 * 0.1 * 0.01
        )


class TestCompositeScore(unittest.TestCase):

    def test_rising_liquid_token(self):
        """$1M liquidity, 1000 holders, 0.5x volume ratio, 2000 txns, +20%"""
        snapshot = make_snapshot(price_change=20)
        result = ScoringEngine.breakdown(snapshot, liquidity=1_000_000, holder_count=1000)

        self.assertAlmostEqual(result.liquidity_score, 1.0)
        self.assertAlmostEqual(result.holder_score, 1.0)
        self.assertAlmostEqual(result.volume_score, 0.1667, places=4)
        self.assertAlmostEqual(result.tx_score, 1.0)
        self.assertAlmostEqual(result.price_action_score, 0.4)
        self.assertEqual(result.penalty_multiplier, 1.0)
        self.assertAlmostEqual(result.total_score, 70.33, delta=0.01)

    def test_crashing_token_collapses(self):
        rising = ScoringEngine.calculate_score(make_snapshot(price_change=20), 1_000_000, 1000)
        crashing = ScoringEngine.calculate_score(make_snapshot(price_change=-25), 1_000_000, 1000)

        self.assertAlmostEqual(crashing, 14.56, delta=0.01)
        self.assertGreater(crashing / rising, 0.19)
        self.assertLess(crashing / rising, 0.22)

    def test_deterministic(self):
        snapshot = make_snapshot(price_change=-12.5)
        scores = {ScoringEngine.calculate_score(snapshot, 250_000, 420) for _ in range(5)}
        self.assertEqual(len(scores), 1)

    def test_strictly_decreasing_beyond_ten_percent_drop(self):
        previous = None
        change = -10.5
        while change >= -99:
            score = ScoringEngine.calculate_score(make_snapshot(price_change=change), 1_000_000, 1000)
            self.assertGreaterEqual(score, 0.0)
            if previous is not None:
                self.assertLess(score, previous, f'score did not drop at {change}%')
            previous = score
            change -= 0.5

    def test_zero_inputs_score_only_price_action(self):
        snapshot = MarketSnapshot(price=0, volume_24h=0, price_change_24h=0, market_cap=0, fdv=0)
        score = ScoringEngine.calculate_score(snapshot, 0, 0)
        # Flat price keeps the full price-action weight
        self.assertAlmostEqual(score, 5.0)

    def test_bounded(self):
        snapshot = make_snapshot(price_change=50, volume=100_000_000, buys=10**6, sells=10**6)
        score = ScoringEngine.calculate_score(snapshot, 10**6, 10**6)
        # Weights sum to 0.90, so a perfect token tops out at 90
        self.assertAlmostEqual(score, 90.0)


if __name__ == '__main__':
    unittest.main()
