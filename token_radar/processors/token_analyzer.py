import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from ..config import Config
from ..models import TokenAnalysis
from ..providers import QuoteClient, LiquidityClient, HolderClient
from .scoring_engine import ScoringEngine

logger = logging.getLogger(__name__)


class TokenAnalyzer:
    """
    Fetches a token's market data and scores it.

    Quote data is fetched first; tokens below the market-cap / volume gate are
    returned unscored so the liquidity and holder providers are not spent on them.
    """

    def __init__(
        self,
        quote_client: Optional[QuoteClient] = None,
        liquidity_client: Optional[LiquidityClient] = None,
        holder_client: Optional[HolderClient] = None,
        min_market_cap: Optional[float] = None,
        min_volume_24h: Optional[float] = None,
    ):
        self.quote_client = quote_client or QuoteClient()
        self.liquidity_client = liquidity_client or LiquidityClient()
        self.holder_client = holder_client or HolderClient()
        self.min_market_cap = Config.MIN_MARKET_CAP_USD if min_market_cap is None else min_market_cap
        self.min_volume_24h = Config.MIN_VOLUME_24H_USD if min_volume_24h is None else min_volume_24h
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix='token-enrich')

    def analyze_token(self, address: str, name: Optional[str] = None) -> TokenAnalysis:
        label = name or address
        logger.info(f'Getting token data for {label}...')

        snapshot = self.quote_client.get_best_pair(address)
        if snapshot is None:
            logger.info(f'No pair data found for {label}')
            return TokenAnalysis.zero()

        if snapshot.market_cap < self.min_market_cap or snapshot.volume_24h < self.min_volume_24h:
            logger.info(
                f"Token {label} doesn't meet minimum thresholds: "
                f'market cap ${snapshot.market_cap:,.0f}, 24h volume ${snapshot.volume_24h:,.0f}'
            )
            return TokenAnalysis.below_threshold(snapshot)

        logger.info(f'Token {label} meets thresholds, fetching liquidity and holders...')
        liquidity_future = self._executor.submit(self.liquidity_client.get_total_liquidity, address)
        holders_future = self._executor.submit(self.holder_client.get_holder_count, address)
        liquidity = self._result_or_zero(liquidity_future, 'liquidity', label)
        holder_count = int(self._result_or_zero(holders_future, 'holder count', label))

        total_score = ScoringEngine.calculate_score(snapshot, liquidity, holder_count)
        logger.info(f'Score for {label}: {total_score:.2f}')

        return TokenAnalysis(
            price=snapshot.price,
            price_change_24h=snapshot.price_change_24h,
            volume_24h=snapshot.volume_24h,
            market_cap=snapshot.market_cap,
            fdv=snapshot.fdv,
            liquidity=liquidity,
            holder_count=holder_count,
            total_score=total_score,
        )

    @staticmethod
    def _result_or_zero(future, metric: str, label: str) -> float:
        try:
            return future.result() or 0
        except Exception as e:
            logger.warning(f'Failed to fetch {metric} for {label}, using 0: {e}')
            return 0

    def close(self):
        self._executor.shutdown(wait=True)
