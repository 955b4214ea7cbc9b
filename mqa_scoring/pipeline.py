"""Assessment workflow tying extraction, storage and aggregation together.

Saving an assessment:
1. Validate the assessment id
2. Parse the Turtle assessment graph
3. Extract the score tree
4. Render the JSON-LD form (unless supplied)
5. Store the record and replace the dataset's dimension rows
"""

import logging
import uuid
from collections.abc import Iterable, Mapping
from pathlib import Path

from sqlalchemy import URL

from mqa_scoring.aggregation.dimension_aggregator import aggregate_dimensions
from mqa_scoring.consts import DEFAULT_DATA_DIR, GRAPH_FORMAT_JSONLD, GRAPH_FORMAT_TURTLE, GRAPH_FORMATS
from mqa_scoring.errors import InvalidIdentifier, NotFound
from mqa_scoring.extraction.graph_extractor import GraphExtractor
from mqa_scoring.extraction.triples import parse_graph, serialize_graph
from mqa_scoring.models.model_aggregate import DimensionAggregate
from mqa_scoring.models.model_score import DatasetScoreTree
from mqa_scoring.models.model_storage import AssessmentRecord
from mqa_scoring.storage.permanent_storage.base import AssessmentStore
from mqa_scoring.storage.permanent_storage.file_manager import FileAssessmentStore
from mqa_scoring.storage.permanent_storage.sql_store import SqlAssessmentStore

logger = logging.getLogger(__name__)


def open_store(
    database_url: str | URL | None = None,
    data_dir: Path | str | None = None,
) -> AssessmentStore:
    """Open the SQL store when a database URL is given, else the file store.

    Args:
        database_url: SQLAlchemy database URL.
        data_dir: Data directory for the file store. Uses default if None.

    Returns:
        An assessment store.
    """
    if database_url:
        return SqlAssessmentStore(database_url)
    return FileAssessmentStore(Path(data_dir) if data_dir else DEFAULT_DATA_DIR)


def parse_assessment_id(value: str) -> str:
    """Normalize an assessment id to its canonical UUID form.

    Raises:
        InvalidIdentifier: If value is not a UUID.
    """
    try:
        return str(uuid.UUID(value.strip()))
    except (ValueError, AttributeError):
        raise InvalidIdentifier(str(value)) from None


def save_assessment(
    store: AssessmentStore,
    assessment_id: str,
    dataset_uri: str,
    turtle: str,
    jsonld: str | None = None,
    metric_ceilings: Mapping[str, int] | None = None,
) -> DatasetScoreTree:
    """Extract scores from an assessment graph and store everything.

    Args:
        store: Assessment store.
        assessment_id: Assessment UUID.
        dataset_uri: IRI of the assessed dataset.
        turtle: Assessment graph as Turtle.
        jsonld: Same graph as JSON-LD. Rendered from the Turtle graph if None.
        metric_ceilings: Fallback max score per metric IRI.

    Returns:
        The extracted score tree.

    Raises:
        InvalidIdentifier: If assessment_id is not a UUID.
        MalformedGraph: If the graph cannot be parsed or has the wrong shape.
        StorageError: If the store fails.
    """
    assessment_id = parse_assessment_id(assessment_id)

    graph = parse_graph(turtle, GRAPH_FORMAT_TURTLE)
    tree = GraphExtractor(metric_ceilings).extract(graph, dataset_uri)

    if jsonld is None:
        jsonld = serialize_graph(graph, GRAPH_FORMAT_JSONLD)

    record = AssessmentRecord(
        id=assessment_id,
        dataset_uri=tree.dataset_id,
        turtle_assessment=turtle,
        jsonld_assessment=jsonld,
        json_score=tree.model_dump_json(),
    )
    store.save_assessment(record, tree.dimension_rows())
    return tree


def _load_record(store: AssessmentStore, assessment_id: str) -> AssessmentRecord:
    assessment_id = parse_assessment_id(assessment_id)
    record = store.load_assessment(assessment_id)
    if record is None:
        raise NotFound(assessment_id)
    return record


def load_score_json(store: AssessmentStore, assessment_id: str) -> str:
    """Return the stored score tree JSON of an assessment.

    Raises:
        InvalidIdentifier: If assessment_id is not a UUID.
        NotFound: If there is no such assessment.
        StorageError: If the store fails.
    """
    return _load_record(store, assessment_id).json_score


def load_score_tree(store: AssessmentStore, assessment_id: str) -> DatasetScoreTree:
    """Return the stored score tree of an assessment, re-validated."""
    return DatasetScoreTree.model_validate_json(load_score_json(store, assessment_id))


def load_graph(
    store: AssessmentStore,
    assessment_id: str,
    format: str = GRAPH_FORMAT_TURTLE,
) -> str:
    """Return the stored assessment graph in the requested serialization.

    Raises:
        ValueError: If format is not supported.
        InvalidIdentifier: If assessment_id is not a UUID.
        NotFound: If there is no such assessment.
        StorageError: If the store fails.
    """
    if format not in GRAPH_FORMATS:
        raise ValueError(f"Unsupported graph format '{format}'. Use one of: {', '.join(GRAPH_FORMATS)}")

    record = _load_record(store, assessment_id)
    if format == GRAPH_FORMAT_JSONLD:
        return record.jsonld_assessment
    return record.turtle_assessment


def aggregate_scores(
    store: AssessmentStore,
    dataset_ids: Iterable[str],
) -> dict[str, DimensionAggregate]:
    """Average dimension scores across datasets.

    Raises:
        StorageError: If the store fails.
    """
    return aggregate_dimensions(dataset_ids, store)
