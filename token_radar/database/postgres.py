import logging
from contextlib import contextmanager
from datetime import datetime
from typing import List, Dict, Any, Iterable, Optional, Sequence, Tuple

import psycopg2
import psycopg2.pool
from psycopg2.extras import execute_values

from ..config import Config
from ..models import TokenAnalysis

logger = logging.getLogger(__name__)

SCAN_TYPES = ('daily', 'test')

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS tokens (
    address TEXT PRIMARY KEY,
    name TEXT,
    symbol VARCHAR(50),
    current_price DOUBLE PRECISION DEFAULT 0,
    price_change_24h DOUBLE PRECISION DEFAULT 0,
    volume_24h DOUBLE PRECISION DEFAULT 0,
    market_cap DOUBLE PRECISION DEFAULT 0,
    fdv DOUBLE PRECISION DEFAULT 0,
    liquidity DOUBLE PRECISION DEFAULT 0,
    holder_count BIGINT DEFAULT 0,
    total_score DOUBLE PRECISION,
    needs_analysis BOOLEAN NOT NULL DEFAULT TRUE,
    is_new BOOLEAN NOT NULL DEFAULT TRUE,
    rank INTEGER CHECK (rank IS NULL OR rank >= 1),
    last_analysis_timestamp TIMESTAMPTZ,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_tokens_needs_analysis ON tokens(last_analysis_timestamp, is_new) WHERE needs_analysis;
CREATE INDEX IF NOT EXISTS idx_tokens_rank ON tokens(rank) WHERE rank IS NOT NULL;
CREATE INDEX IF NOT EXISTS idx_tokens_total_score ON tokens(total_score DESC NULLS LAST);

CREATE TABLE IF NOT EXISTS token_metrics_history (
    id BIGSERIAL PRIMARY KEY,
    token_address TEXT NOT NULL REFERENCES tokens(address) ON DELETE CASCADE,
    price DOUBLE PRECISION,
    price_change_24h DOUBLE PRECISION,
    volume_24h DOUBLE PRECISION,
    market_cap DOUBLE PRECISION,
    fdv DOUBLE PRECISION,
    liquidity DOUBLE PRECISION,
    holder_count BIGINT,
    total_score DOUBLE PRECISION,
    captured_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_history_token_captured ON token_metrics_history(token_address, captured_at DESC);

CREATE TABLE IF NOT EXISTS scans (
    id BIGSERIAL PRIMARY KEY,
    scan_date TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    scan_type VARCHAR(10) NOT NULL CHECK (scan_type IN ('daily', 'test')),
    status VARCHAR(20) NOT NULL DEFAULT 'completed',
    token_count INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS scan_tokens (
    id BIGSERIAL PRIMARY KEY,
    scan_id BIGINT NOT NULL REFERENCES scans(id) ON DELETE CASCADE,
    address TEXT NOT NULL,
    name TEXT,
    symbol VARCHAR(50),
    current_price DOUBLE PRECISION,
    price_change_24h DOUBLE PRECISION,
    volume_24h DOUBLE PRECISION,
    market_cap DOUBLE PRECISION,
    fdv DOUBLE PRECISION,
    liquidity DOUBLE PRECISION,
    holder_count BIGINT,
    total_score DOUBLE PRECISION,
    rank INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_scan_tokens_scan_rank ON scan_tokens(scan_id, rank);
"""

# Never-analyzed first, then newly discovered, then higher score (nulls last),
# then least recently analyzed (nulls first)
ANALYSIS_PRIORITY_ORDER = """
    (last_analysis_timestamp IS NULL) DESC,
    is_new DESC,
    total_score DESC NULLS LAST,
    last_analysis_timestamp ASC NULLS FIRST,
    address ASC
"""


class PostgresClient:
    """
    PostgreSQL token store shared by the pipeline workers.
    Each operation borrows its own pooled connection and runs in a single transaction,
    so worker threads never share an open transaction.
    """

    def __init__(self):
        self.pool = None
        self._connect()

    def _connect(self):
        """Create the connection pool and make sure the schema exists."""
        try:
            # Use connection string if provided, otherwise use individual parameters
            if Config.POSTGRES_CONNECTION_STRING:
                logger.info('Connecting to PostgreSQL using connection string')
                self.pool = psycopg2.pool.ThreadedConnectionPool(
                    Config.POSTGRES_MIN_CONNECTIONS,
                    Config.POSTGRES_MAX_CONNECTIONS,
                    Config.POSTGRES_CONNECTION_STRING,
                    connect_timeout=10
                )
            else:
                logger.info('Connecting to PostgreSQL using individual parameters')
                self.pool = psycopg2.pool.ThreadedConnectionPool(
                    Config.POSTGRES_MIN_CONNECTIONS,
                    Config.POSTGRES_MAX_CONNECTIONS,
                    host=Config.POSTGRES_HOST,
                    port=Config.POSTGRES_PORT,
                    database=Config.POSTGRES_DATABASE,
                    user=Config.POSTGRES_USER,
                    password=Config.POSTGRES_PASSWORD,
                    connect_timeout=10
                )
            logger.info(f'Connected to PostgreSQL at {Config.POSTGRES_HOST}:{Config.POSTGRES_PORT}/{Config.POSTGRES_DATABASE}')
            self._ensure_tables_exist()
        except Exception as e:
            logger.error(f'Failed to connect to PostgreSQL: {e}')
            raise

    @contextmanager
    def _transaction(self):
        """Yield a cursor inside one transaction; commit on success, roll back on error."""
        connection = self.pool.getconn()
        try:
            with connection.cursor() as cursor:
                yield cursor
            connection.commit()
        except Exception:
            connection.rollback()
            raise
        finally:
            self.pool.putconn(connection)

    def _ensure_tables_exist(self):
        try:
            with self._transaction() as cur:
                cur.execute(SCHEMA_SQL)
            logger.info('Ensured tokens, token_metrics_history, scans and scan_tokens tables exist')
        except Exception as e:
            logger.error(f'Failed to create token tables: {e}')
            raise

    @staticmethod
    def _rows_as_dicts(cursor) -> List[Dict[str, Any]]:
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_query(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """
        Execute a SELECT query and return results as list of dicts.

        Args:
            query: SQL query
            params: Query parameters

        Returns:
            List of result rows as dictionaries
        """
        try:
            with self._transaction() as cur:
                cur.execute(query, params)
                return self._rows_as_dicts(cur)
        except Exception as e:
            logger.error(f'Query execution failed: {e}')
            raise

    def insert_new_tokens(self, rows: Sequence[Tuple[str, Optional[str], Optional[str]]], batch_size: Optional[int] = None) -> int:
        """
        Insert tokens that are not in the store yet.

        Existing addresses are left untouched and concurrent duplicate inserts are absorbed
        by ON CONFLICT, so calling this repeatedly with the same feed is harmless.

        Args:
            rows: (address, name, symbol) tuples
            batch_size: Number of rows per INSERT statement

        Returns:
            Number of rows actually inserted
        """
        batch_size = batch_size or Config.INSERT_BATCH_SIZE
        insert_query = """
        INSERT INTO tokens (address, name, symbol, is_new, needs_analysis)
        VALUES %s
        ON CONFLICT (address) DO NOTHING
        RETURNING address
        """

        total_inserted = 0
        try:
            for i in range(0, len(rows), batch_size):
                batch = rows[i:i + batch_size]
                with self._transaction() as cur:
                    inserted = execute_values(
                        cur,
                        insert_query,
                        batch,
                        template='(%s, %s, %s, TRUE, TRUE)',
                        page_size=batch_size,
                        fetch=True
                    )
                total_inserted += len(inserted or [])
                logger.info(f'  Inserted batch {i // batch_size + 1}: {len(batch)} rows checked (new so far: {total_inserted:,})')
            return total_inserted
        except Exception as e:
            logger.error(f'Failed to insert new tokens: {e}', exc_info=True)
            raise

    def get_analysis_candidates(self, limit: int = 1) -> List[Dict[str, Any]]:
        """Tokens flagged needs_analysis, highest priority first."""
        query = f"""
        SELECT address, name, symbol, total_score, is_new, last_analysis_timestamp
        FROM tokens
        WHERE needs_analysis = TRUE
        ORDER BY {ANALYSIS_PRIORITY_ORDER}
        LIMIT %s
        """
        return self.execute_query(query, (limit,))

    def get_next_token_for_analysis(self) -> Optional[Dict[str, Any]]:
        rows = self.get_analysis_candidates(limit=1)
        return rows[0] if rows else None

    def save_token_analysis(self, address: str, analysis: TokenAnalysis, analyzed_at: datetime) -> None:
        """
        Append a history snapshot and update the token row in one transaction.

        Args:
            address: Token address
            analysis: Snapshot and score to persist
            analyzed_at: Capture / last-analysis timestamp

        Raises:
            LookupError: If the token row was deleted while it was being analyzed;
                the history insert is rolled back with it
        """
        history_query = """
        INSERT INTO token_metrics_history (
            token_address, price, price_change_24h, volume_24h, market_cap,
            fdv, liquidity, holder_count, total_score, captured_at
        ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        update_query = """
        UPDATE tokens
        SET current_price = %s,
            price_change_24h = %s,
            volume_24h = %s,
            market_cap = %s,
            fdv = %s,
            liquidity = %s,
            holder_count = %s,
            total_score = %s,
            needs_analysis = FALSE,
            is_new = FALSE,
            last_analysis_timestamp = %s,
            updated_at = %s
        WHERE address = %s
        """
        values = (
            analysis.price,
            analysis.price_change_24h,
            analysis.volume_24h,
            analysis.market_cap,
            analysis.fdv,
            analysis.liquidity,
            analysis.holder_count,
            analysis.total_score,
        )
        try:
            with self._transaction() as cur:
                cur.execute(history_query, (address,) + values + (analyzed_at,))
                cur.execute(update_query, values + (analyzed_at, analyzed_at, address))
                if cur.rowcount == 0:
                    raise LookupError(f'Token {address} no longer exists')
        except Exception as e:
            logger.error(f'Failed to save analysis for {address}: {e}')
            raise

    def get_scored_tokens(self) -> List[Dict[str, Any]]:
        query = """
        SELECT address, total_score
        FROM tokens
        WHERE total_score IS NOT NULL
        """
        return self.execute_query(query)

    def update_ranks(self, ranks: Dict[str, int]) -> None:
        """
        Replace the whole ranking atomically: clear every rank, then assign the new ones.

        Args:
            ranks: Mapping of address -> rank
        """
        clear_query = "UPDATE tokens SET rank = NULL WHERE rank IS NOT NULL"
        assign_query = """
        UPDATE tokens AS t
        SET rank = v.rank
        FROM (VALUES %s) AS v(address, rank)
        WHERE t.address = v.address
        """
        try:
            with self._transaction() as cur:
                cur.execute(clear_query)
                if ranks:
                    execute_values(
                        cur,
                        assign_query,
                        list(ranks.items()),
                        template='(%s, %s::integer)'
                    )
        except Exception as e:
            logger.error(f'Failed to update ranks: {e}')
            raise

    def get_ranked_tokens(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query = """
        SELECT address, name, symbol, current_price, price_change_24h, volume_24h,
               market_cap, fdv, liquidity, holder_count, total_score, rank,
               last_analysis_timestamp, updated_at
        FROM tokens
        WHERE rank IS NOT NULL
        ORDER BY rank ASC
        LIMIT %s
        """
        return self.execute_query(query, (limit or Config.TOP_K,))

    def get_token_history(self, address: str, limit: int = 100) -> List[Dict[str, Any]]:
        query = """
        SELECT token_address, price, price_change_24h, volume_24h, market_cap, fdv,
               liquidity, holder_count, total_score, captured_at
        FROM token_metrics_history
        WHERE token_address = %s
        ORDER BY captured_at DESC
        LIMIT %s
        """
        return self.execute_query(query, (address, limit))

    def get_token_count(self) -> int:
        """Get total number of tracked tokens."""
        query = "SELECT COUNT(*) AS count FROM tokens"
        try:
            result = self.execute_query(query)
            return result[0]['count'] if result else 0
        except Exception as e:
            logger.error(f'Failed to get token count: {e}')
            return 0

    def get_pending_count(self) -> int:
        query = "SELECT COUNT(*) AS count FROM tokens WHERE needs_analysis = TRUE"
        try:
            result = self.execute_query(query)
            return result[0]['count'] if result else 0
        except Exception as e:
            logger.error(f'Failed to get pending token count: {e}')
            return 0

    def save_scan(self, scan_type: str, tokens: Iterable[Dict[str, Any]]) -> int:
        """
        Store a one-shot scan and its ranked results in one transaction.

        Args:
            scan_type: 'daily' or 'test'
            tokens: Result rows, already in rank order, each with a 'rank' key

        Returns:
            The new scan id
        """
        if scan_type not in SCAN_TYPES:
            raise ValueError(f'Unknown scan type: {scan_type}')

        rows = list(tokens)
        scan_query = "INSERT INTO scans (scan_type, status, token_count) VALUES (%s, %s, %s) RETURNING id"
        tokens_query = """
        INSERT INTO scan_tokens (
            scan_id, address, name, symbol, current_price, price_change_24h, volume_24h,
            market_cap, fdv, liquidity, holder_count, total_score, rank
        ) VALUES %s
        """
        try:
            with self._transaction() as cur:
                cur.execute(scan_query, (scan_type, 'completed', len(rows)))
                scan_id = cur.fetchone()[0]
                if rows:
                    execute_values(cur, tokens_query, [
                        (
                            scan_id,
                            row['address'],
                            row.get('name'),
                            row.get('symbol'),
                            row.get('price', 0),
                            row.get('price_change_24h', 0),
                            row.get('volume_24h', 0),
                            row.get('market_cap', 0),
                            row.get('fdv', 0),
                            row.get('liquidity', 0),
                            row.get('holder_count', 0),
                            row.get('total_score', 0),
                            row['rank'],
                        )
                        for row in rows
                    ])
            logger.info(f'Saved {scan_type} scan {scan_id} with {len(rows)} tokens')
            return scan_id
        except Exception as e:
            logger.error(f'Failed to save {scan_type} scan: {e}', exc_info=True)
            raise

    def get_scans(self) -> List[Dict[str, Any]]:
        query = "SELECT id, scan_date, scan_type, status, token_count FROM scans ORDER BY scan_date DESC"
        return self.execute_query(query)

    def get_scan_tokens(self, scan_id: int) -> List[Dict[str, Any]]:
        query = """
        SELECT address, name, symbol, current_price, price_change_24h, volume_24h,
               market_cap, fdv, liquidity, holder_count, total_score, rank
        FROM scan_tokens
        WHERE scan_id = %s
        ORDER BY rank
        """
        return self.execute_query(query, (scan_id,))

    def clear_test_scans(self) -> int:
        try:
            with self._transaction() as cur:
                cur.execute("DELETE FROM scans WHERE scan_type = 'test'")
                deleted = cur.rowcount
            logger.info(f'Cleared {deleted} test scans')
            return deleted
        except Exception as e:
            logger.error(f'Failed to clear test scans: {e}')
            raise

    def close(self):
        """Close all pooled connections."""
        if self.pool:
            self.pool.closeall()
            self.pool = None
            logger.info('PostgreSQL connection pool closed')


# Singleton instance
_postgres_client = None


def get_postgres_client() -> PostgresClient:
    """Get or create PostgreSQL client singleton."""
    global _postgres_client
    if _postgres_client is None:
        _postgres_client = PostgresClient()
    return _postgres_client
