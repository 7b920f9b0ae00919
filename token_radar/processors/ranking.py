import logging
from typing import Dict, Iterable, Mapping

import polars as pl

logger = logging.getLogger(__name__)


def scored_tokens_frame(scored: Iterable[Mapping]) -> pl.DataFrame:
    rows = list(scored)
    return pl.DataFrame(
        {
            'address': [r['address'] for r in rows],
            'total_score': [r['total_score'] for r in rows],
        },
        schema={'address': pl.Utf8, 'total_score': pl.Float64},
    )


def compute_top_ranks(scored: Iterable[Mapping], top_k: int) -> Dict[str, int]:
    """
    Full recomputation of the top-K ranking.

    Args:
        scored: Rows with 'address' and 'total_score'
        top_k: Number of ranks to hand out

    Returns:
        Dict mapping address -> rank for ranks 1..min(top_k, scored count).
        Equal scores are ordered by address so the result is deterministic.
    """
    df = scored_tokens_frame(scored)
    if df.is_empty() or top_k <= 0:
        return {}

    ranked = (
        df.filter(pl.col('total_score').is_not_null() & pl.col('total_score').is_not_nan())
        .unique(subset=['address'], keep='first', maintain_order=True)
        .sort(['total_score', 'address'], descending=[True, False])
        .head(top_k)
        .with_row_index('rank', offset=1)
    )
    ranks = {row['address']: int(row['rank']) for row in ranked.iter_rows(named=True)}
    logger.debug(f'Computed {len(ranks)} ranks from {len(df):,} scored tokens')
    return ranks
