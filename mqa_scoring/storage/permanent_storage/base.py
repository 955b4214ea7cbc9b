"""Abstract base class for assessment storage backends.

An assessment store keeps, per dataset, the serialized assessment graph, the
serialized score tree, and one row per dimension with that dimension's
dataset-level score. The rows feed cross-dataset aggregation.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from mqa_scoring.models.model_aggregate import DimensionRow
from mqa_scoring.models.model_storage import AssessmentRecord


class AssessmentStore(ABC):
    """Abstract base class for assessment store implementations.

    Every failure of the underlying backend is raised as StorageError.
    """

    @abstractmethod
    def save_assessment(self, record: AssessmentRecord, rows: Iterable[DimensionRow]) -> None:
        """Store an assessment and replace its dataset's dimension rows.

        The record is upserted by id and the dataset's full row set is
        replaced by `rows` as one atomic unit: readers see either the old
        rows or the new ones, never a mix and never none. Rows for
        dimensions missing from `rows` are removed.

        Args:
            record: Assessment to store.
            rows: Dimension rows of record.dataset_uri.

        Raises:
            ValueError: If a row belongs to another dataset.
            StorageError: If the backend fails; nothing is changed.
        """
        ...

    @abstractmethod
    def load_assessment(self, assessment_id: str) -> AssessmentRecord | None:
        """Load an assessment by id.

        Args:
            assessment_id: Assessment UUID.

        Returns:
            The stored record, or None if there is none.
        """
        ...

    @abstractmethod
    def dimension_rows(self, dataset_ids: Iterable[str]) -> list[DimensionRow]:
        """Return all dimension rows of the given datasets.

        Args:
            dataset_ids: Dataset URIs. An empty collection returns no rows
                without querying the backend.

        Returns:
            Rows whose dataset_id is one of dataset_ids.
        """
        ...

    @abstractmethod
    def ping(self) -> None:
        """Check that the backend is reachable.

        Raises:
            StorageError: If it is not.
        """
        ...


def check_rows_belong_to(record: AssessmentRecord, rows: Iterable[DimensionRow]) -> list[DimensionRow]:
    """Materialize rows and verify they all belong to the record's dataset.

    Raises:
        ValueError: If a row has another dataset_id or a dimension appears twice.
    """
    checked = list(rows)
    seen: set[str] = set()
    for row in checked:
        if row.dataset_id != record.dataset_uri:
            raise ValueError(
                f"Dimension row for '{row.dataset_id}' cannot be stored with "
                f"assessment of '{record.dataset_uri}'"
            )
        if row.dimension_id in seen:
            raise ValueError(f"Duplicate dimension row '{row.dimension_id}'")
        seen.add(row.dimension_id)
    return checked
