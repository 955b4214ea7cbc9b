"""Aggregation of per-dataset dimension scores across datasets."""

from mqa_scoring.aggregation.dimension_aggregator import (
    DimensionRowSource,
    aggregate_dimension_rows,
    aggregate_dimensions,
)

__all__ = [
    "DimensionRowSource",
    "aggregate_dimension_rows",
    "aggregate_dimensions",
]
