"""Score tree models: Dataset -> Distributions -> Dimensions -> Metrics.

Totals are computed fields derived bottom-up from metric scores. They cannot
be assigned; when a serialized tree is loaded, any totals it carries must match
the derived ones. Upstream score documents name dimension ids `name` and
metric ids `metric`; both are accepted on input.
"""

from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidatorFunctionWrapHandler,
    computed_field,
    model_validator,
)

from mqa_scoring.models.model_aggregate import DimensionRow


class MetricScore(BaseModel):
    """Score of a single metric within a dimension."""

    model_config = ConfigDict(frozen=True)

    metric_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("metric_id", "metric"),
        description="Metric IRI",
    )
    is_scored: bool = Field(description="False when no measurement value was present")
    score: int = Field(default=0, ge=0, description="Awarded points, 0 when not scored")
    max_score: int = Field(ge=0, description="Metric ceiling, present even when not scored")

    @model_validator(mode="after")
    def _check_score(self) -> "MetricScore":
        if not self.is_scored and self.score != 0:
            raise ValueError(f"unscored metric '{self.metric_id}' has score {self.score}")
        if self.score > self.max_score:
            raise ValueError(
                f"metric '{self.metric_id}' score {self.score} exceeds max score {self.max_score}"
            )
        return self


class _TotalledModel(BaseModel):
    """Base for nodes whose score and max_score are derived from children."""

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="wrap")
    @classmethod
    def _check_declared_totals(cls, data: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        declared = {}
        if isinstance(data, dict):
            declared = {k: data[k] for k in ("score", "max_score") if data.get(k) is not None}

        node = handler(data)

        for key, value in declared.items():
            derived = getattr(node, key)
            if value != derived:
                raise ValueError(f"declared {key} {value} does not match derived {key} {derived}")
        return node


class DimensionScore(_TotalledModel):
    """Scores of all metrics measured for one quality dimension."""

    id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("id", "name"),
        description="Dimension IRI",
    )
    metrics: tuple[MetricScore, ...] = Field(default=())

    @computed_field
    @property
    def score(self) -> int:
        """Sum of metric scores (unscored metrics contribute 0)."""
        return sum(metric.score for metric in self.metrics)

    @computed_field
    @property
    def max_score(self) -> int:
        """Sum of metric ceilings, scored or not."""
        return sum(metric.max_score for metric in self.metrics)


class ScoreNode(_TotalledModel):
    """Dimension scores attached to a dataset or a distribution."""

    name: str = Field(description="IRI of the dataset or distribution")
    dimensions: tuple[DimensionScore, ...] = Field(default=())

    @model_validator(mode="after")
    def _check_unique_dimensions(self) -> "ScoreNode":
        seen: set[str] = set()
        for dimension in self.dimensions:
            if dimension.id in seen:
                raise ValueError(f"duplicate dimension '{dimension.id}' under '{self.name}'")
            seen.add(dimension.id)
        return self

    @property
    def dimension_scores(self) -> dict[str, DimensionScore]:
        """Dimensions keyed by id, in traversal order."""
        return {dimension.id: dimension for dimension in self.dimensions}

    @computed_field
    @property
    def score(self) -> int:
        return sum(dimension.score for dimension in self.dimensions)

    @computed_field
    @property
    def max_score(self) -> int:
        return sum(dimension.max_score for dimension in self.dimensions)


class DatasetScoreTree(_TotalledModel):
    """Root of an extracted score tree.

    Built once per extraction from an immutable graph snapshot, serialized to
    storage and discarded.
    """

    dataset_id: str = Field(min_length=1, description="Dataset URI")
    dataset: ScoreNode = Field(description="Dimensions attached to the dataset itself")
    distributions: tuple[ScoreNode, ...] = Field(
        default=(), description="One node per distribution, in traversal order"
    )

    @property
    def dataset_score(self) -> ScoreNode:
        return self.dataset

    @property
    def distribution_scores(self) -> tuple[ScoreNode, ...]:
        return self.distributions

    @computed_field
    @property
    def score(self) -> int:
        """Dataset node score plus every distribution node score."""
        return self.dataset.score + sum(node.score for node in self.distributions)

    @computed_field
    @property
    def max_score(self) -> int:
        return self.dataset.max_score + sum(node.max_score for node in self.distributions)

    def dimension_rows(self) -> list[DimensionRow]:
        """Flatten dataset-level dimensions into rows for the assessment store.

        Returns:
            One DimensionRow per dimension of the dataset node, in traversal order.
        """
        return [
            DimensionRow(
                dataset_id=self.dataset_id,
                dimension_id=dimension.id,
                score=dimension.score,
                max_score=dimension.max_score,
            )
            for dimension in self.dataset.dimensions
        ]
