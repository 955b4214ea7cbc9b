"""Score tree extraction from DCAT/DQV quality-assessment graphs.

Walks the fixed shape

    dataset --dcat:distribution--> distribution
    dataset | distribution --dqv:inDimension--> dimension
    dimension --dqv:hasQualityMeasurement--> measurement
    measurement --dqv:isMeasurementOf--> metric

and reads measurement values and metric ceilings from the dcatno-mqa score
predicates. Extraction is all-or-nothing: any structural violation raises
MalformedGraph and no tree is returned.
"""

import logging
import math
from collections.abc import Mapping
from decimal import Decimal

from pydantic import ValidationError
from rdflib import Literal, URIRef
from rdflib.term import Node

from mqa_scoring.errors import MalformedGraph
from mqa_scoring.extraction.triples import TripleSource
from mqa_scoring.models.model_score import (
    DatasetScoreTree,
    DimensionScore,
    MetricScore,
    ScoreNode,
)
from mqa_scoring.vocab import (
    DATASET_TYPE,
    DISTRIBUTION,
    HAS_QUALITY_MEASUREMENT,
    IN_DIMENSION,
    IS_MEASUREMENT_OF,
    SCORE,
    TRUE_SCORE,
    TYPE,
)

logger = logging.getLogger(__name__)


class GraphExtractor:
    """Builds a DatasetScoreTree from a quality-assessment graph.

    Stateless apart from the ceiling table given at construction, so one
    instance can serve concurrent extractions.
    """

    def __init__(self, metric_ceilings: Mapping[str, int] | None = None):
        """Initialize the extractor.

        Args:
            metric_ceilings: Fallback max score per metric IRI, used when the
                graph does not attach dcatno-mqa:trueScore to the metric node.

        Raises:
            ValueError: If a ceiling is not a non-negative integer.
        """
        ceilings = dict(metric_ceilings or {})
        for metric_id, ceiling in ceilings.items():
            if isinstance(ceiling, bool) or not isinstance(ceiling, int) or ceiling < 0:
                raise ValueError(f"Ceiling for metric '{metric_id}' must be a non-negative integer")
        self.metric_ceilings = ceilings

    def extract(self, graph: TripleSource, dataset_id: str | Node) -> DatasetScoreTree:
        """Extract the score tree of one dataset.

        Args:
            graph: Assessment graph (rdflib Graph or any TripleSource).
            dataset_id: IRI of the dataset node.

        Returns:
            The dataset's score tree with derived totals.

        Raises:
            MalformedGraph: If the graph does not have the expected shape.
        """
        dataset = dataset_id if isinstance(dataset_id, Node) else URIRef(dataset_id)

        if DATASET_TYPE not in self._objects(graph, dataset, TYPE):
            raise MalformedGraph(f"'{dataset}' is not declared as a dcat:Dataset")

        try:
            dataset_node = self._score_node(graph, dataset)
            distribution_nodes = tuple(
                self._score_node(graph, distribution)
                for distribution in self._linked_nodes(graph, dataset, DISTRIBUTION, "distribution")
            )
            tree = DatasetScoreTree(
                dataset_id=str(dataset),
                dataset=dataset_node,
                distributions=distribution_nodes,
            )
        except ValidationError as e:
            raise MalformedGraph(f"invalid score tree for '{dataset}': {e}") from e

        logger.info(
            f"Extracted scores for {dataset}: {tree.score}/{tree.max_score} "
            f"({len(tree.dataset.dimensions)} dataset dimensions, "
            f"{len(tree.distributions)} distributions)"
        )
        return tree

    # === GRAPH WALK ===

    def _score_node(self, graph: TripleSource, node: Node) -> ScoreNode:
        """Build the ScoreNode of a dataset or distribution."""
        dimensions = tuple(
            self._dimension_score(graph, dimension)
            for dimension in self._linked_nodes(graph, node, IN_DIMENSION, "dimension")
        )
        logger.debug(f"Walked {node}: {len(dimensions)} dimensions")
        return ScoreNode(name=str(node), dimensions=dimensions)

    def _dimension_score(self, graph: TripleSource, dimension: Node) -> DimensionScore:
        """Build a DimensionScore from the dimension's measurements."""
        metrics = tuple(
            self._metric_score(graph, measurement)
            for measurement in self._linked_nodes(
                graph, dimension, HAS_QUALITY_MEASUREMENT, "measurement"
            )
        )
        return DimensionScore(id=str(dimension), metrics=metrics)

    def _metric_score(self, graph: TripleSource, measurement: Node) -> MetricScore:
        """Build a MetricScore from one quality measurement."""
        metrics = self._distinct(graph, measurement, IS_MEASUREMENT_OF)
        if len(metrics) != 1:
            raise MalformedGraph(
                f"measurement '{measurement}' must be the measurement of exactly one metric, "
                f"found {len(metrics)}"
            )
        metric = metrics[0]
        if isinstance(metric, Literal):
            raise MalformedGraph(f"measurement '{measurement}' refers to literal metric '{metric}'")
        metric_id = str(metric)

        max_score = self._metric_ceiling(graph, metric, metric_id)

        what = f"score of metric '{metric_id}'"
        score = self._single_score(graph, measurement, SCORE, what)
        if score is None:
            score = self._single_score(graph, measurement, TRUE_SCORE, what)

        if score is None:
            return MetricScore(metric_id=metric_id, is_scored=False, score=0, max_score=max_score)

        if score > max_score:
            raise MalformedGraph(
                f"score {score} of metric '{metric_id}' exceeds its max score {max_score}"
            )
        return MetricScore(metric_id=metric_id, is_scored=True, score=score, max_score=max_score)

    def _metric_ceiling(self, graph: TripleSource, metric: Node, metric_id: str) -> int:
        """Resolve a metric's max score from the graph, then from the ceiling table."""
        ceiling = self._single_score(graph, metric, TRUE_SCORE, f"max score of metric '{metric_id}'")
        if ceiling is not None:
            return ceiling
        if metric_id in self.metric_ceilings:
            return self.metric_ceilings[metric_id]
        raise MalformedGraph(f"metric '{metric_id}' has no resolvable max score")

    # === TRIPLE HELPERS ===

    @staticmethod
    def _objects(graph: TripleSource, subject: Node, predicate: Node) -> list[Node]:
        return list(graph.objects(subject, predicate))

    def _distinct(self, graph: TripleSource, subject: Node, predicate: Node) -> list[Node]:
        return list(dict.fromkeys(self._objects(graph, subject, predicate)))

    def _linked_nodes(
        self, graph: TripleSource, subject: Node, predicate: Node, kind: str
    ) -> list[Node]:
        """Objects of a structural edge, which must be resource nodes and unique."""
        nodes = self._objects(graph, subject, predicate)
        seen: set[Node] = set()
        for node in nodes:
            if isinstance(node, Literal):
                raise MalformedGraph(f"{kind} of '{subject}' is a literal: '{node}'")
            if node in seen:
                raise MalformedGraph(f"duplicate {kind} '{node}' under '{subject}'")
            seen.add(node)
        return nodes

    def _single_score(
        self, graph: TripleSource, subject: Node, predicate: Node, what: str
    ) -> int | None:
        """Read a score predicate that may be stated several times with the same number.

        Literals are compared by the integer they denote, so 3 and 3.0 agree.
        """
        scores = {_to_score(value, what) for value in self._objects(graph, subject, predicate)}
        if not scores:
            return None
        if len(scores) > 1:
            raise MalformedGraph(
                f"'{subject}' has {len(scores)} conflicting values for <{predicate}>: "
                f"{sorted(scores)}"
            )
        return scores.pop()


def _to_score(node: Node, what: str) -> int:
    """Convert a score literal to a non-negative integer.

    Accepts integer literals, integral decimals/doubles and plain ASCII digit strings.

    Raises:
        MalformedGraph: If the literal does not denote a non-negative integer.
    """
    if not isinstance(node, Literal):
        raise MalformedGraph(f"{what} is not a literal: '{node}'")

    value = node.toPython()
    if isinstance(value, bool):
        raise MalformedGraph(f"{what} is a boolean, expected an integer")

    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and math.isfinite(value) and value.is_integer():
        number = int(value)
    elif isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        number = int(value)
    elif isinstance(value, str):
        # Plain or ill-typed literals come back as str
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            raise MalformedGraph(f"{what} is not an integer: '{node}'")
        number = int(text)
    else:
        raise MalformedGraph(f"{what} is not an integer: '{node}'")

    if number < 0:
        raise MalformedGraph(f"{what} is negative: {number}")
    return number


def extract_scores(
    graph: TripleSource,
    dataset_id: str | Node,
    metric_ceilings: Mapping[str, int] | None = None,
) -> DatasetScoreTree:
    """Extract a dataset's score tree.

    Convenience wrapper around GraphExtractor.

    Args:
        graph: Assessment graph.
        dataset_id: IRI of the dataset node.
        metric_ceilings: Fallback max score per metric IRI.

    Returns:
        The dataset's score tree.

    Raises:
        MalformedGraph: If the graph does not have the expected shape.
    """
    return GraphExtractor(metric_ceilings).extract(graph, dataset_id)
