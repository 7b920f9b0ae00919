import logging
import time
from typing import Any, Dict, List, Optional

import requests

from ..config import Config
from ..models import MarketSnapshot
from .circuit_breaker import CircuitBreaker429
from .errors import RateLimitError, RateLimitExceeded

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class QuoteClient:
    """
    Price / volume quote provider keyed by token address.

    Only pairs quoted in native SOL or a major stablecoin qualify; of those the
    pair with the highest 24h volume is used as the token's market snapshot.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        rate_limit_wait: Optional[float] = None,
        max_rate_limit_retries: Optional[int] = None,
        circuit_breaker: Optional[CircuitBreaker429] = None,
    ):
        self.base_url = (base_url or Config.QUOTE_API_URL).rstrip('/')
        self.timeout = Config.HTTP_TIMEOUT_SECONDS
        self.rate_limit_wait = Config.QUOTE_RATE_LIMIT_WAIT_SECONDS if rate_limit_wait is None else rate_limit_wait
        self.max_rate_limit_retries = (
            Config.QUOTE_RATE_LIMIT_MAX_RETRIES if max_rate_limit_retries is None else max_rate_limit_retries
        )
        self.circuit_breaker = circuit_breaker or CircuitBreaker429(
            threshold=Config.QUOTE_CIRCUIT_BREAKER_THRESHOLD,
            cooldown_seconds=Config.QUOTE_CIRCUIT_BREAKER_COOLDOWN_SECONDS,
        )
        self._session = session or requests.Session()
        self.quote_addresses = {Config.SOL_ADDRESS}
        self.quote_symbols = set(Config.STABLECOINS.keys())

    def _fetch_pairs(self, address: str) -> List[Dict[str, Any]]:
        resp = self._session.get(
            f'{self.base_url}/{address}',
            timeout=self.timeout,
            headers={'Accept': 'application/json'},
        )
        if resp.status_code == 429:
            raise RateLimitError(f'Quote provider rate limited request for {address}')
        resp.raise_for_status()
        data = resp.json()
        if isinstance(data, dict):
            data = data.get('pairs') or []
        return data if isinstance(data, list) else []

    def _fetch_pairs_with_retry(self, address: str) -> List[Dict[str, Any]]:
        """Retry the same request after a fixed wait on every 429."""
        attempt = 0
        while True:
            if self.circuit_breaker.is_open():
                raise RateLimitExceeded(
                    f'Quote provider circuit open for another {self.circuit_breaker.remaining_cooldown():.0f}s'
                )
            try:
                pairs = self._fetch_pairs(address)
                self.circuit_breaker.record(is_429=False)
                return pairs
            except RateLimitError:
                self.circuit_breaker.record(is_429=True)
                attempt += 1
                if self.max_rate_limit_retries and attempt > self.max_rate_limit_retries:
                    raise RateLimitExceeded(
                        f'Quote provider still rate limiting {address} after {self.max_rate_limit_retries} retries'
                    )
                logger.warning(f'Rate limit hit for {address}, waiting {self.rate_limit_wait:.0f}s (attempt {attempt})')
                time.sleep(self.rate_limit_wait)

    def get_best_pair(self, address: str) -> Optional[MarketSnapshot]:
        """
        Fetch the market snapshot for a token.

        Args:
            address: Token mint address

        Returns:
            MarketSnapshot of the qualifying pair with the highest 24h volume,
            or None if no such pair exists or the provider failed

        Raises:
            RateLimitExceeded: If rate limiting could not be cleared
        """
        try:
            pairs = self._fetch_pairs_with_retry(address)
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f'Quote provider error for {address}: status={status}')
            return None
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f'Failed to fetch quote data for {address}: {e}')
            return None

        if not pairs:
            logger.info(f'No pairs found for {address}')
            return None

        qualifying = [p for p in pairs if isinstance(p, dict) and self._is_qualifying_quote(p)]
        if not qualifying:
            logger.info(f'No SOL/stablecoin pairs found for {address}')
            return None

        best = max(qualifying, key=lambda p: _to_float((p.get('volume') or {}).get('h24')))
        return self._to_snapshot(best)

    def _is_qualifying_quote(self, pair: Dict[str, Any]) -> bool:
        quote = pair.get('quoteToken') or {}
        return quote.get('address') in self.quote_addresses or quote.get('symbol') in self.quote_symbols

    @staticmethod
    def _to_snapshot(pair: Dict[str, Any]) -> MarketSnapshot:
        txns = (pair.get('txns') or {}).get('h24') or {}
        return MarketSnapshot(
            price=_to_float(pair.get('priceUsd')),
            volume_24h=_to_float((pair.get('volume') or {}).get('h24')),
            price_change_24h=_to_float((pair.get('priceChange') or {}).get('h24')),
            market_cap=_to_float(pair.get('marketCap')),
            fdv=_to_float(pair.get('fdv')),
            buys=_to_int(txns.get('buys')),
            sells=_to_int(txns.get('sells')),
        )
