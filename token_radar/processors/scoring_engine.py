import logging
import math
from dataclasses import dataclass

from ..models import MarketSnapshot

logger = logging.getLogger(__name__)

VOLUME_WEIGHT = 0.20
LIQUIDITY_WEIGHT = 0.35
HOLDER_WEIGHT = 0.15
TX_COUNT_WEIGHT = 0.15
PRICE_ACTION_WEIGHT = 0.05

# $1M liquidity, 1000 holders and 1000 daily transactions each saturate their sub-score
LIQUIDITY_TARGET_USD = 1_000_000
HOLDER_TARGET = 1_000
TX_COUNT_TARGET = 1_000

# (threshold %, multiplier); every threshold the 24h change falls below applies its multiplier
DROP_PENALTIES = (
    (-10, 0.7),
    (-20, 0.5),
    (-30, 0.3),
    (-50, 0.1),
    (-70, 0.01),
)


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(max(value, low), high)


def _log_ratio(value: float, target: float) -> float:
    if value <= 0:
        return 0.0
    return _clamp(math.log10(value) / math.log10(target))


@dataclass(frozen=True)
class ScoreBreakdown:
    volume_score: float
    liquidity_score: float
    holder_score: float
    tx_score: float
    price_action_score: float
    weighted_sum: float
    penalty_multiplier: float
    total_score: float


class ScoringEngine:
    """
    Composite token score in [0, 90]; the weights sum to 0.90.

    Five sub-scores, each normalized to [0, 1], are weighted and summed. A negative
    24h price change then shrinks the sum through an exponential penalty followed by
    cumulative step multipliers, so crashing tokens sink regardless of liquidity.
    """

    @staticmethod
    def volume_score(volume_24h: float, liquidity: float) -> float:
        # Healthy volume/liquidity ratio is roughly 0.1-3x
        if liquidity <= 0:
            return 0.0
        return _clamp(volume_24h / liquidity / 3)

    @staticmethod
    def liquidity_score(liquidity: float) -> float:
        return _log_ratio(liquidity, LIQUIDITY_TARGET_USD)

    @staticmethod
    def holder_score(holder_count: int) -> float:
        return _log_ratio(holder_count, HOLDER_TARGET)

    @staticmethod
    def tx_score(tx_count: int) -> float:
        return _log_ratio(tx_count, TX_COUNT_TARGET)

    @staticmethod
    def price_action_score(price_change_24h: float) -> float:
        if price_change_24h > 0:
            if price_change_24h <= 50:
                return min(price_change_24h / 50, 1.0)
            return max(0.5, 1 - (price_change_24h - 50) / 150)

        drop = abs(price_change_24h)
        if drop <= 10:
            return max(0.0, 1 - drop / 10)
        return max(0.0, math.exp(-0.15 * (drop - 10)) * 0.5)

    @staticmethod
    def penalty_multiplier(price_change_24h: float) -> float:
        if price_change_24h >= 0:
            return 1.0
        multiplier = math.exp(-2 * abs(price_change_24h) / 100)
        for threshold, factor in DROP_PENALTIES:
            if price_change_24h < threshold:
                multiplier *= factor
        return multiplier

    @classmethod
    def breakdown(cls, snapshot: MarketSnapshot, liquidity: float, holder_count: int) -> ScoreBreakdown:
        volume = cls.volume_score(snapshot.volume_24h, liquidity)
        liquidity_part = cls.liquidity_score(liquidity)
        holders = cls.holder_score(holder_count)
        txs = cls.tx_score(snapshot.tx_count)
        price_action = cls.price_action_score(snapshot.price_change_24h)

        weighted = (
            volume * VOLUME_WEIGHT
            + liquidity_part * LIQUIDITY_WEIGHT
            + holders * HOLDER_WEIGHT
            + txs * TX_COUNT_WEIGHT
            + price_action * PRICE_ACTION_WEIGHT
        )
        penalty = cls.penalty_multiplier(snapshot.price_change_24h)
        return ScoreBreakdown(
            volume_score=volume,
            liquidity_score=liquidity_part,
            holder_score=holders,
            tx_score=txs,
            price_action_score=price_action,
            weighted_sum=weighted,
            penalty_multiplier=penalty,
            total_score=weighted * penalty * 100,
        )

    @classmethod
    def calculate_score(cls, snapshot: MarketSnapshot, liquidity: float, holder_count: int) -> float:
        result = cls.breakdown(snapshot, liquidity, holder_count)
        logger.debug(
            f'Score {result.total_score:.2f}: volume={result.volume_score:.4f} liquidity={result.liquidity_score:.4f} '
            f'holders={result.holder_score:.4f} tx={result.tx_score:.4f} price_action={result.price_action_score:.4f} '
            f'penalty={result.penalty_multiplier:.4f} ({snapshot.price_change_24h}% change)'
        )
        return result.total_score
