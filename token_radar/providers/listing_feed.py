import logging
from typing import Any, List, Optional

import requests

from ..config import Config
from ..models import ListedToken
from .errors import ProviderError

logger = logging.getLogger(__name__)


class ListingFeedClient:
    """
    New-token listing feed.
    Every call returns the full current listing; no cursor is kept between calls.
    """

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = base_url or Config.LISTING_FEED_URL
        self.timeout = Config.HTTP_TIMEOUT_SECONDS
        self._session = session or requests.Session()

    def get_new_tokens(self) -> List[ListedToken]:
        """
        Fetch the current new-token listing.

        Returns:
            List of ListedToken in feed order

        Raises:
            ProviderError: If the feed is unreachable or answers non-2xx
        """
        try:
            resp = self._session.get(
                self.base_url,
                timeout=self.timeout,
                headers={'Accept': 'application/json'},
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise ProviderError(f'Listing feed request failed: {e}') from e

        if isinstance(payload, dict):
            payload = payload.get('tokens') or payload.get('data') or []
        if not isinstance(payload, list):
            raise ProviderError(f'Unexpected listing feed payload: {type(payload).__name__}')

        tokens = []
        for item in payload:
            token = self._parse_token(item)
            if token is not None:
                tokens.append(token)

        logger.info(f'Listing feed returned {len(tokens):,} tokens')
        return tokens

    @staticmethod
    def _parse_token(item: Any) -> Optional[ListedToken]:
        if not isinstance(item, dict):
            return None
        mint = str(item.get('mint') or item.get('address') or '').strip()
        if not mint:
            logger.debug(f'Skipping listing entry without mint: {item}')
            return None

        decimals = item.get('decimals')
        try:
            decimals = int(decimals) if decimals is not None else None
        except (TypeError, ValueError):
            decimals = None

        return ListedToken(
            mint=mint,
            name=item.get('name'),
            symbol=item.get('symbol'),
            created_at=item.get('createdAt', item.get('created_at')),
            decimals=decimals,
        )
