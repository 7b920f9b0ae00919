import logging
from typing import List, Optional

from ..database import PostgresClient, get_postgres_client
from .supervisor import PipelineSupervisor
from .workers import PipelineWorker, IngestionWorker, AnalysisWorker, RankingWorker

logger = logging.getLogger(__name__)


def build_workers(store: PostgresClient) -> List[PipelineWorker]:
    """Fresh ingestion, analysis and ranking workers sharing one token store."""
    return [
        IngestionWorker(store),
        AnalysisWorker(store),
        RankingWorker(store),
    ]


def create_supervisor(store: Optional[PostgresClient] = None) -> PipelineSupervisor:
    store = store or get_postgres_client()
    return PipelineSupervisor(lambda: build_workers(store))
