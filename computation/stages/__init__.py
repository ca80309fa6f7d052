"""Computation steps: scoring, top-N selection, the recommend worker pool, model I/O."""

from .factor_loader import load_factors_from_store
from .recommend import RecommendationWorkerPool, RecommendSummary
from .scoring import Scorer, cosine_scorer, dot_scorer
from .shard_writer import ShardWriter, format_score, read_delimited
from .top_n import select_top_n
from .user_filter import load_user_filter

__all__ = [
    "load_factors_from_store",
    "RecommendationWorkerPool",
    "RecommendSummary",
    "Scorer",
    "cosine_scorer",
    "dot_scorer",
    "ShardWriter",
    "format_score",
    "read_delimited",
    "select_top_n",
    "load_user_filter",
]
