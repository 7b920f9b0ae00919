import logging
import time
from typing import Optional

import requests

from ..config import Config

logger = logging.getLogger(__name__)


class HolderClient:
    """
    Holder-count provider.
    Every successful call is followed by a fixed delay to stay within the provider's rate limit.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        post_call_delay: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else Config.HOLDERS_API_KEY
        if not self.api_key:
            raise ValueError('HOLDERS_API_KEY is not set in the environment.')
        self.base_url = (base_url or Config.HOLDERS_API_URL).rstrip('/')
        self.post_call_delay = Config.HOLDERS_POST_CALL_DELAY_SECONDS if post_call_delay is None else post_call_delay
        self.timeout = Config.HTTP_TIMEOUT_SECONDS
        self._session = session or requests.Session()

    def get_holder_count(self, address: str) -> int:
        """Returns the provider's `total` holder count, or 0 on any failure."""
        try:
            resp = self._session.get(
                f'{self.base_url}/tokens/{address}/holders',
                timeout=self.timeout,
                headers={'x-api-key': self.api_key},
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f'Failed to fetch holder data for {address}: status={status}')
            return 0
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f'Failed to fetch holder data for {address}: {e}')
            return 0

        if not isinstance(data, dict):
            logger.warning(f'No holder data received for {address}')
            return 0

        try:
            total = int(data.get('total') or 0)
        except (TypeError, ValueError):
            total = 0
        logger.info(f'Holders for {address}: {total:,}')

        time.sleep(self.post_call_delay)
        return total
