import os
import logging
from dotenv import load_dotenv
load_dotenv()


class Config:
    # PostgreSQL Configuration (Token Store)
    # Use connection string if provided, otherwise fall back to individual parameters
    POSTGRES_CONNECTION_STRING = os.getenv('POSTGRES_CONNECTION_STRING', None)
    POSTGRES_HOST = os.getenv('POSTGRES_HOST', 'localhost')
    POSTGRES_PORT = int(os.getenv('POSTGRES_PORT', '5432'))
    POSTGRES_USER = os.getenv('POSTGRES_USER', 'postgres')
    POSTGRES_PASSWORD = os.getenv('POSTGRES_PASSWORD', 'postgres')
    POSTGRES_DATABASE = os.getenv('POSTGRES_DATABASE', 'token_radar')
    POSTGRES_MIN_CONNECTIONS = int(os.getenv('POSTGRES_MIN_CONNECTIONS', '1'))
    POSTGRES_MAX_CONNECTIONS = int(os.getenv('POSTGRES_MAX_CONNECTIONS', '8'))

    # Provider endpoints
    LISTING_FEED_URL = os.getenv('LISTING_FEED_URL', 'https://api.jup.ag/tokens/v1/new')
    QUOTE_API_URL = os.getenv('QUOTE_API_URL', 'https://api.dexscreener.com/token-pairs/v1/solana')
    LIQUIDITY_API_URL = os.getenv('LIQUIDITY_API_URL', 'https://solana-gateway.moralis.io/token/mainnet')
    HOLDERS_API_URL = os.getenv('HOLDERS_API_URL', 'https://data.solanatracker.io')
    HTTP_TIMEOUT_SECONDS = float(os.getenv('HTTP_TIMEOUT_SECONDS', '30'))

    # Provider credentials
    MORALIS_API_KEY = os.getenv('MORALIS_API_KEY', '')
    HOLDERS_API_KEY = os.getenv('HOLDERS_API_KEY', '')
    LIQUIDITY_PROVIDER = os.getenv('LIQUIDITY_PROVIDER', 'moralis').lower()

    # Rate limiting
    QUOTE_RATE_LIMIT_WAIT_SECONDS = float(os.getenv('QUOTE_RATE_LIMIT_WAIT_SECONDS', '60'))
    # 0 disables the ceiling (retry until the provider answers)
    QUOTE_RATE_LIMIT_MAX_RETRIES = int(os.getenv('QUOTE_RATE_LIMIT_MAX_RETRIES', '5'))
    QUOTE_CIRCUIT_BREAKER_THRESHOLD = int(os.getenv('QUOTE_CIRCUIT_BREAKER_THRESHOLD', '10'))
    QUOTE_CIRCUIT_BREAKER_COOLDOWN_SECONDS = float(os.getenv('QUOTE_CIRCUIT_BREAKER_COOLDOWN_SECONDS', '300'))
    HOLDERS_POST_CALL_DELAY_SECONDS = float(os.getenv('HOLDERS_POST_CALL_DELAY_SECONDS', '1'))

    # Worker scheduling
    INGESTION_INTERVAL_SECONDS = float(os.getenv('INGESTION_INTERVAL_SECONDS', str(12 * 60 * 60)))
    ANALYSIS_THROTTLE_SECONDS = float(os.getenv('ANALYSIS_THROTTLE_SECONDS', '2'))
    ANALYSIS_IDLE_SECONDS = float(os.getenv('ANALYSIS_IDLE_SECONDS', '1'))
    ANALYSIS_ERROR_BACKOFF_SECONDS = float(os.getenv('ANALYSIS_ERROR_BACKOFF_SECONDS', '5'))
    RANKING_INTERVAL_SECONDS = float(os.getenv('RANKING_INTERVAL_SECONDS', '60'))
    RANKING_ERROR_BACKOFF_SECONDS = float(os.getenv('RANKING_ERROR_BACKOFF_SECONDS', '5'))
    ANALYSIS_CANDIDATE_BATCH = int(os.getenv('ANALYSIS_CANDIDATE_BATCH', '20'))
    ANALYSIS_QUEUE_REFRESH_SECONDS = float(os.getenv('ANALYSIS_QUEUE_REFRESH_SECONDS', '30'))

    # Analysis thresholds
    MIN_MARKET_CAP_USD = float(os.getenv('MIN_MARKET_CAP_USD', '10000'))
    MIN_VOLUME_24H_USD = float(os.getenv('MIN_VOLUME_24H_USD', '2000'))

    # Ranking / storage
    TOP_K = int(os.getenv('TOP_K', '20'))
    MAX_SYMBOL_LENGTH = int(os.getenv('MAX_SYMBOL_LENGTH', '50'))
    INSERT_BATCH_SIZE = int(os.getenv('INSERT_BATCH_SIZE', '1000'))
    SCAN_TOKEN_LIMIT = int(os.getenv('SCAN_TOKEN_LIMIT', '50'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Constants
    STABLECOINS = {'USDC': 'EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v', 'USDT': 'Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB'}
    SOL_ADDRESS = 'So11111111111111111111111111111111111111112'

    @classmethod
    def validate(cls):
        required_fields = ['POSTGRES_DATABASE', 'LISTING_FEED_URL', 'QUOTE_API_URL', 'LIQUIDITY_API_URL', 'HOLDERS_API_URL']
        missing = []
        for field in required_fields:
            if not getattr(cls, field):
                missing.append(field)
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")
        if cls.TOP_K < 1:
            raise ValueError(f'TOP_K must be positive, got {cls.TOP_K}')
        return True


def setup_logging(level: str = None):
    """Configure root logging once for scripts and workers."""
    level_name = (level or Config.LOG_LEVEL or 'INFO').upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


Config.validate()
