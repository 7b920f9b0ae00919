import logging
import threading
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from ..config import Config
from ..database import PostgresClient
from ..models import ListedToken
from ..processors import AnalysisQueue, TokenAnalyzer, compute_top_ranks
from ..providers import ListingFeedClient

logger = logging.getLogger(__name__)


class PipelineWorker:
    """
    One perpetual, strictly sequential loop.

    `run_cycle()` does one unit of work and returns how long to sleep before the next
    one. Any exception is caught at the cycle boundary and followed by `error_backoff`
    seconds of sleep; the loop only exits when the stop event is set.
    """

    name = 'worker'
    error_backoff = 5.0

    def run_cycle(self) -> float:
        raise NotImplementedError

    def run(self, stop_event: threading.Event):
        logger.info(f'[{self.name}] started')
        while not stop_event.is_set():
            try:
                delay = self.run_cycle()
            except Exception as e:
                logger.error(f'[{self.name}] cycle failed: {e}', exc_info=True)
                delay = self.error_backoff
            stop_event.wait(delay)
        logger.info(f'[{self.name}] stopped')


class IngestionWorker(PipelineWorker):
    """Pulls the new-token feed and inserts unseen addresses as pending analysis."""

    name = 'ingestion'

    def __init__(self, store: PostgresClient, feed: Optional[ListingFeedClient] = None, interval: Optional[float] = None):
        self.store = store
        self.feed = feed or ListingFeedClient()
        self.interval = Config.INGESTION_INTERVAL_SECONDS if interval is None else interval
        # A failed sync waits for the next regular sync
        self.error_backoff = self.interval
        self.max_symbol_length = Config.MAX_SYMBOL_LENGTH

    def prepare_rows(self, tokens: List[ListedToken]) -> List[Tuple[str, Optional[str], str]]:
        """Dedupe by address (first sighting wins) and truncate symbols to the column limit."""
        rows = {}
        for token in tokens:
            if token.mint in rows:
                continue
            symbol = (token.symbol or '')[:self.max_symbol_length]
            rows[token.mint] = (token.mint, token.name, symbol)
        return list(rows.values())

    def run_cycle(self) -> float:
        logger.info('Starting bulk token sync...')
        tokens = self.feed.get_new_tokens()
        rows = self.prepare_rows(tokens)
        logger.info(f'Processing {len(rows):,} unique tokens out of {len(tokens):,} from listing feed')

        inserted = self.store.insert_new_tokens(rows)
        logger.info(f'Completed token sync: {inserted:,} new tokens, {len(rows) - inserted:,} already known')
        return self.interval


class AnalysisWorker(PipelineWorker):
    """Analyzes one pending token per cycle, highest priority first."""

    name = 'analysis'

    def __init__(
        self,
        store: PostgresClient,
        analyzer: Optional[TokenAnalyzer] = None,
        queue: Optional[AnalysisQueue] = None,
        throttle: Optional[float] = None,
        idle_delay: Optional[float] = None,
        error_backoff: Optional[float] = None,
    ):
        self.store = store
        self.analyzer = analyzer or TokenAnalyzer()
        self.queue = queue or AnalysisQueue(
            store.get_analysis_candidates,
            batch_size=Config.ANALYSIS_CANDIDATE_BATCH,
            refresh_seconds=Config.ANALYSIS_QUEUE_REFRESH_SECONDS,
        )
        self.throttle = Config.ANALYSIS_THROTTLE_SECONDS if throttle is None else throttle
        self.idle_delay = Config.ANALYSIS_IDLE_SECONDS if idle_delay is None else idle_delay
        self.error_backoff = Config.ANALYSIS_ERROR_BACKOFF_SECONDS if error_backoff is None else error_backoff

    def run_cycle(self) -> float:
        token = self.queue.pop()
        if token is None:
            return self.idle_delay

        address = token['address']
        name = token.get('name') or address
        logger.info(f'Analyzing token: {name} ({address})')
        analysis = self.analyzer.analyze_token(address, name)

        logger.info(f'Completed analysis for {name}, updating metrics...')
        self.store.save_token_analysis(address, analysis, datetime.now(timezone.utc))
        return self.throttle


class RankingWorker(PipelineWorker):
    """Recomputes the top-K ranking from scratch every period."""

    name = 'ranking'

    def __init__(
        self,
        store: PostgresClient,
        top_k: Optional[int] = None,
        interval: Optional[float] = None,
        error_backoff: Optional[float] = None,
    ):
        self.store = store
        self.top_k = Config.TOP_K if top_k is None else top_k
        self.interval = Config.RANKING_INTERVAL_SECONDS if interval is None else interval
        self.error_backoff = Config.RANKING_ERROR_BACKOFF_SECONDS if error_backoff is None else error_backoff

    def run_cycle(self) -> float:
        scored = self.store.get_scored_tokens()
        ranks = compute_top_ranks(scored, self.top_k)
        self.store.update_ranks(ranks)
        logger.info(f'Updated ranks: {len(ranks)} ranked out of {len(scored):,} scored tokens')
        return self.interval
