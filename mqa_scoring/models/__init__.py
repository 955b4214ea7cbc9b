"""Pydantic models for mqa-scoring."""

from mqa_scoring.models.model_aggregate import (
    DimensionAggregate,
    DimensionRow,
)
from mqa_scoring.models.model_score import (
    DatasetScoreTree,
    DimensionScore,
    MetricScore,
    ScoreNode,
)
from mqa_scoring.models.model_storage import AssessmentRecord

__all__ = [
    # Score tree models
    "DatasetScoreTree",
    "DimensionScore",
    "MetricScore",
    "ScoreNode",
    # Aggregation models
    "DimensionAggregate",
    "DimensionRow",
    # Storage models
    "AssessmentRecord",
]
