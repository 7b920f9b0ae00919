from .workers import PipelineWorker, IngestionWorker, AnalysisWorker, RankingWorker
from .supervisor import PipelineSupervisor, PipelineState
from .scan import TokenScanService
from .pipeline import build_workers, create_supervisor

__all__ = [
    'PipelineWorker',
    'IngestionWorker',
    'AnalysisWorker',
    'RankingWorker',
    'PipelineSupervisor',
    'PipelineState',
    'TokenScanService',
    'build_workers',
    'create_supervisor',
]
