from .postgres import PostgresClient, get_postgres_client, SCAN_TYPES

__all__ = [
    'PostgresClient',
    'get_postgres_client',
    'SCAN_TYPES',
]
