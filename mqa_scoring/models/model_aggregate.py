"""Per-dimension rows and cross-dataset aggregates."""

from pydantic import BaseModel, ConfigDict, Field


class DimensionRow(BaseModel):
    """Persisted score of one dimension for one dataset.

    Keyed by (dataset_id, dimension_id); a dataset has at most one row per dimension.
    """

    model_config = ConfigDict(frozen=True)

    dataset_id: str = Field(min_length=1, description="Dataset URI")
    dimension_id: str = Field(min_length=1, description="Dimension IRI")
    score: int = Field(ge=0)
    max_score: int = Field(ge=0)


class DimensionAggregate(BaseModel):
    """Mean score and mean max score of a dimension across a set of datasets.

    Query result only, never persisted.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Dimension IRI")
    score: float = Field(ge=0.0, description="Arithmetic mean of dimension scores")
    max_score: float = Field(ge=0.0, description="Arithmetic mean of dimension max scores")
