import heapq
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def analysis_priority(row: Dict[str, Any]) -> Tuple:
    """
    Sort key for tokens awaiting analysis, smallest first:
    never analyzed, newly discovered, higher score (unscored last),
    least recently analyzed, then address.
    """
    last = row.get('last_analysis_timestamp')
    score = row.get('total_score')
    return (
        0 if last is None else 1,
        0 if row.get('is_new') else 1,
        0 if score is not None else 1,
        -float(score) if score is not None else 0.0,
        last.timestamp() if last is not None else float('-inf'),
        row['address'],
    )


class AnalysisQueue:
    """
    In-memory priority heap over the store's pending tokens.

    The store is asked for its top `batch_size` candidates; the heap serves them one at a
    time and reloads when it runs dry or the batch is older than `refresh_seconds`,
    so newly ingested tokens are picked up within one refresh window.
    """

    def __init__(self, loader: Callable[[int], List[Dict[str, Any]]], batch_size: int = 20, refresh_seconds: float = 30):
        self._loader = loader
        self.batch_size = max(1, int(batch_size))
        self.refresh_seconds = refresh_seconds
        self._heap: List[Tuple[Tuple, Dict[str, Any]]] = []
        self._loaded_at: Optional[float] = None

    def __len__(self) -> int:
        return len(self._heap)

    def _is_stale(self) -> bool:
        return self._loaded_at is None or (time.monotonic() - self._loaded_at) >= self.refresh_seconds

    def refresh(self) -> None:
        rows = self._loader(self.batch_size)
        self._heap = [(analysis_priority(row), row) for row in rows]
        heapq.heapify(self._heap)
        self._loaded_at = time.monotonic()
        logger.debug(f'Loaded {len(self._heap)} analysis candidates')

    def invalidate(self) -> None:
        self._heap = []
        self._loaded_at = None

    def pop(self) -> Optional[Dict[str, Any]]:
        """Highest-priority pending token, or None when nothing needs analysis."""
        if not self._heap or self._is_stale():
            self.refresh()
        if not self._heap:
            return None
        return heapq.heappop(self._heap)[1]
