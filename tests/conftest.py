"""Pytest configuration and fixtures."""

import pytest
from rdflib import Graph, Namespace

from mqa_scoring.models.model_aggregate import DimensionRow
from mqa_scoring.models.model_score import (
    DatasetScoreTree,
    DimensionScore,
    MetricScore,
    ScoreNode,
)

EX = Namespace("https://example.org/")

PREFIXES = """
@prefix dcat: <http://www.w3.org/ns/dcat#> .
@prefix dqv: <http://www.w3.org/ns/dqv#> .
@prefix mqa: <https://data.norge.no/vocabulary/dcatno-mqa#> .
@prefix ex: <https://example.org/> .
"""

# One dataset, one distribution, one "accessibility" dimension attached to both.
# Metric A scored 3/5, metric B declared with max 5 but not scored.
SCENARIO_TURTLE = PREFIXES + """
ex:dataset a dcat:Dataset ;
    dcat:distribution ex:distribution ;
    dqv:inDimension ex:accessibility .

ex:distribution a dcat:Distribution ;
    dqv:inDimension ex:accessibility .

ex:accessibility dqv:hasQualityMeasurement ex:measurementA, ex:measurementB .

ex:measurementA dqv:isMeasurementOf ex:metricA ;
    mqa:score 3 .

ex:measurementB dqv:isMeasurementOf ex:metricB .

ex:metricA mqa:trueScore 5 .
ex:metricB mqa:trueScore 5 .
"""


@pytest.fixture
def dataset_uri() -> str:
    """IRI of the dataset in the scenario graph."""
    return str(EX.dataset)


@pytest.fixture
def scenario_turtle() -> str:
    """Turtle text of the scenario assessment graph."""
    return SCENARIO_TURTLE


@pytest.fixture
def scenario_graph() -> Graph:
    """Parsed scenario assessment graph."""
    graph = Graph()
    graph.parse(data=SCENARIO_TURTLE, format="turtle")
    return graph


@pytest.fixture
def turtle_with_prefixes():
    """Build a Turtle document from a body using the standard prefixes."""

    def _build(body: str) -> str:
        return PREFIXES + body

    return _build


@pytest.fixture
def sample_tree() -> DatasetScoreTree:
    """Create a small score tree with a dataset node and two distributions."""
    findability = DimensionScore(
        id="https://example.org/findability",
        metrics=(
            MetricScore(metric_id="https://example.org/keywords", is_scored=True, score=30, max_score=30),
            MetricScore(metric_id="https://example.org/theme", is_scored=False, score=0, max_score=30),
        ),
    )
    accessibility = DimensionScore(
        id="https://example.org/accessibility",
        metrics=(
            MetricScore(metric_id="https://example.org/access-url", is_scored=True, score=50, max_score=50),
        ),
    )
    return DatasetScoreTree(
        dataset_id="https://example.org/dataset",
        dataset=ScoreNode(name="https://example.org/dataset", dimensions=(findability, accessibility)),
        distributions=(
            ScoreNode(name="https://example.org/distribution/1", dimensions=(accessibility,)),
            ScoreNode(name="https://example.org/distribution/2", dimensions=()),
        ),
    )


@pytest.fixture
def sample_rows() -> list[DimensionRow]:
    """Dimension rows for three datasets with partly overlapping dimensions."""
    return [
        DimensionRow(dataset_id="https://example.org/a", dimension_id="accessibility", score=3, max_score=10),
        DimensionRow(dataset_id="https://example.org/a", dimension_id="findability", score=20, max_score=60),
        DimensionRow(dataset_id="https://example.org/b", dimension_id="findability", score=0, max_score=60),
        DimensionRow(dataset_id="https://example.org/c", dimension_id="accessibility", score=9, max_score=10),
    ]
