import logging
from typing import Optional

import requests

from ..config import Config

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ('moralis', 'shyft')


class LiquidityClient:
    """Total USD liquidity for a token, summed over every pair the provider knows."""

    def __init__(
        self,
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.provider = (provider or Config.LIQUIDITY_PROVIDER).lower()
        if self.provider not in SUPPORTED_PROVIDERS:
            logger.warning(f'Unknown liquidity provider {self.provider}, defaulting to moralis')
            self.provider = 'moralis'
        self.api_key = api_key if api_key is not None else Config.MORALIS_API_KEY
        if self.provider == 'moralis' and not self.api_key:
            raise ValueError('MORALIS_API_KEY is not set in the environment.')
        self.base_url = (base_url or Config.LIQUIDITY_API_URL).rstrip('/')
        self.timeout = Config.HTTP_TIMEOUT_SECONDS
        self._session = session or requests.Session()

    def get_total_liquidity(self, address: str) -> float:
        """Returns 0 on any failure."""
        if self.provider == 'shyft':
            # No Shyft integration yet; liquidity degrades to 0
            return 0.0
        return self._get_moralis_liquidity(address)

    def _get_moralis_liquidity(self, address: str) -> float:
        try:
            resp = self._session.get(
                f'{self.base_url}/{address}/pairs',
                timeout=self.timeout,
                headers={'accept': 'application/json', 'X-API-Key': self.api_key},
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f'Failed to fetch liquidity data for {address}: {e}')
            return 0.0

        pairs = data.get('pairs') if isinstance(data, dict) else None
        if not pairs:
            logger.warning(f'No liquidity data received for {address}')
            return 0.0

        total = 0.0
        for pair in pairs:
            try:
                total += float(pair.get('liquidityUsd') or 0)
            except (AttributeError, TypeError, ValueError):
                continue
        logger.info(f'Liquidity for {address}: ${total:,.2f}')
        return total
