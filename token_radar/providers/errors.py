class ProviderError(Exception):
    """Provider unreachable or answered with a non-2xx status."""
    pass


class RateLimitError(ProviderError):
    """Provider answered HTTP 429."""
    pass


class RateLimitExceeded(ProviderError):
    """Rate limiting could not be cleared (retry ceiling hit or circuit breaker open)."""
    pass
