from .errors import ProviderError, RateLimitError, RateLimitExceeded
from .circuit_breaker import CircuitBreaker429
from .listing_feed import ListingFeedClient
from .quote_client import QuoteClient
from .liquidity_client import LiquidityClient
from .holder_client import HolderClient

__all__ = [
    'ProviderError',
    'RateLimitError',
    'RateLimitExceeded',
    'CircuitBreaker429',
    'ListingFeedClient',
    'QuoteClient',
    'LiquidityClient',
    'HolderClient',
]
