"""Cross-dataset aggregation of dimension scores.

Computes, per dimension, the mean score and mean max score over a set of
datasets. Only datasets that actually recorded a dimension take part in its
mean; a dataset without a row for a dimension does not pull it toward zero.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import Protocol

from mqa_scoring.models.model_aggregate import DimensionAggregate, DimensionRow

logger = logging.getLogger(__name__)


class DimensionRowSource(Protocol):
    """Anything that can return persisted dimension rows for a set of datasets."""

    def dimension_rows(self, dataset_ids: Iterable[str]) -> Iterable[DimensionRow]:
        """Return every dimension row belonging to one of the given datasets.

        Args:
            dataset_ids: Non-empty collection of dataset URIs. Implementations
                must bind them as query parameters, never splice them into
                query text.

        Raises:
            StorageError: If the rows cannot be read.
        """
        ...


def aggregate_dimension_rows(
    rows: Iterable[DimensionRow],
    dataset_ids: Iterable[str],
) -> dict[str, DimensionAggregate]:
    """Average score and max score per dimension over the selected datasets.

    Args:
        rows: Candidate dimension rows.
        dataset_ids: Datasets to include; rows of other datasets are ignored.

    Returns:
        Dictionary mapping dimension id to DimensionAggregate, in order of first
        appearance. Dimensions without any selected row are absent.
    """
    selected = set(dataset_ids)

    # Group rows by dimension
    groups: dict[str, list[DimensionRow]] = defaultdict(list)
    for row in rows:
        if row.dataset_id not in selected:
            continue
        groups[row.dimension_id].append(row)

    aggregates = {}
    for dimension_id, dimension_rows in groups.items():
        count = len(dimension_rows)
        aggregates[dimension_id] = DimensionAggregate(
            id=dimension_id,
            score=sum(row.score for row in dimension_rows) / count,
            max_score=sum(row.max_score for row in dimension_rows) / count,
        )

    return aggregates


def aggregate_dimensions(
    dataset_ids: Iterable[str],
    source: DimensionRowSource,
) -> dict[str, DimensionAggregate]:
    """Fetch dimension rows for a set of datasets and aggregate them.

    An empty dataset set returns an empty result without touching the source.

    Args:
        dataset_ids: Dataset URIs to aggregate over. Treated as untrusted input.
        source: Store providing persisted dimension rows.

    Returns:
        Dictionary mapping dimension id to DimensionAggregate.

    Raises:
        StorageError: Propagated from the source.
    """
    # Deduplicate, keeping request order
    ids = list(dict.fromkeys(dataset_ids))
    if not ids:
        logger.debug("No dataset ids given, skipping dimension aggregation")
        return {}

    rows = list(source.dimension_rows(ids))
    aggregates = aggregate_dimension_rows(rows, ids)

    logger.info(
        f"Aggregated {len(rows)} dimension rows from {len(ids)} datasets "
        f"into {len(aggregates)} dimensions"
    )
    return aggregates
