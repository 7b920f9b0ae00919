from .scoring_engine import ScoringEngine, ScoreBreakdown
from .token_analyzer import TokenAnalyzer
from .ranking import compute_top_ranks
from .analysis_queue import AnalysisQueue, analysis_priority

__all__ = ['ScoringEngine', 'ScoreBreakdown', 'TokenAnalyzer', 'compute_top_ranks', 'AnalysisQueue', 'analysis_priority']
