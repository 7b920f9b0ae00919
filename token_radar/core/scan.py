import logging
import time
from typing import Any, Dict, List, Optional

import polars as pl

from ..config import Config
from ..database import PostgresClient, SCAN_TYPES
from ..models import TokenAnalysis
from ..processors import TokenAnalyzer
from ..providers import ListingFeedClient

logger = logging.getLogger(__name__)

SCAN_SCHEMA = {
    'rank': pl.Int64,
    'address': pl.Utf8,
    'name': pl.Utf8,
    'symbol': pl.Utf8,
    'price': pl.Float64,
    'price_change_24h': pl.Float64,
    'volume_24h': pl.Float64,
    'market_cap': pl.Float64,
    'fdv': pl.Float64,
    'liquidity': pl.Float64,
    'holder_count': pl.Int64,
    'total_score': pl.Float64,
}


class TokenScanService:
    """
    One-shot synchronous scan for administrative use.
    Runs independently of the perpetual workers and never writes to the tokens table.
    """

    def __init__(
        self,
        store: PostgresClient,
        feed: Optional[ListingFeedClient] = None,
        analyzer: Optional[TokenAnalyzer] = None,
    ):
        self.store = store
        self.feed = feed or ListingFeedClient()
        self.analyzer = analyzer or TokenAnalyzer()

    def run_scan(self, scan_type: str = 'test', limit: Optional[int] = None, save: bool = True) -> pl.DataFrame:
        """
        Fetch the listing, analyze up to `limit` tokens and rank them by score.

        Args:
            scan_type: 'daily' or 'test'
            limit: Maximum tokens to analyze (feed order)
            save: Persist the scan and its results

        Returns:
            DataFrame of results ordered by rank
        """
        if scan_type not in SCAN_TYPES:
            raise ValueError(f'Unknown scan type: {scan_type}')
        limit = Config.SCAN_TOKEN_LIMIT if limit is None else limit

        total_start = time.time()
        logger.info('=' * 80)
        logger.info(f'STARTING {scan_type.upper()} SCAN (limit {limit})')
        logger.info('=' * 80)

        tokens = self.feed.get_new_tokens()[:limit]
        rows: List[Dict[str, Any]] = []
        for token in tokens:
            try:
                analysis = self.analyzer.analyze_token(token.mint, token.name)
            except Exception as e:
                logger.warning(f'Analysis failed for {token.mint}, recording zero score: {e}')
                analysis = TokenAnalysis.zero()
            row = analysis.to_dict()
            row.update({
                'address': token.mint,
                'name': token.name,
                'symbol': (token.symbol or '')[:Config.MAX_SYMBOL_LENGTH],
            })
            rows.append(row)

        df = self._rank(rows)
        logger.info(f'Scanned {len(df)} tokens in {time.time() - total_start:.2f}s')

        if save:
            scan_id = self.store.save_scan(scan_type, df.iter_rows(named=True))
            logger.info(f'Scan saved with id {scan_id}')
        return df

    @staticmethod
    def _rank(rows: List[Dict[str, Any]]) -> pl.DataFrame:
        columns = [c for c in SCAN_SCHEMA if c != 'rank']
        if not rows:
            return pl.DataFrame(schema=SCAN_SCHEMA)
        df = pl.DataFrame(
            {c: [row.get(c) for row in rows] for c in columns},
            schema={c: SCAN_SCHEMA[c] for c in columns},
        )
        return (
            df.sort(['total_score', 'address'], descending=[True, False])
            .with_row_index('rank', offset=1)
            .with_columns(pl.col('rank').cast(pl.Int64))
            .select(list(SCAN_SCHEMA))
        )

    def get_scans(self) -> List[Dict[str, Any]]:
        return self.store.get_scans()

    def get_scan_tokens(self, scan_id: int) -> List[Dict[str, Any]]:
        return self.store.get_scan_tokens(scan_id)

    def clear_test_scans(self) -> int:
        return self.store.clear_test_scans()
