"""File-based assessment store.

Keeps each assessment and each dataset's dimension rows in their own JSON
file. Files are replaced with os.replace, so a dataset's row set is swapped
in a single step. The row file is written before the record file and is
restored if the record write fails.
"""

import hashlib
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mqa_scoring.consts import ASSESSMENTS_CATEGORY, DEFAULT_DATA_DIR, DIMENSIONS_CATEGORY
from mqa_scoring.errors import StorageError
from mqa_scoring.models.model_aggregate import DimensionRow
from mqa_scoring.models.model_storage import AssessmentRecord
from mqa_scoring.storage.permanent_storage.base import AssessmentStore, check_rows_belong_to

logger = logging.getLogger(__name__)


class FileAssessmentStore(AssessmentStore):
    """File-based assessment store.

    Directory structure:
        data/
        ├── assessments/{sha256(assessment id)}.json   # AssessmentRecord
        └── dimensions/{sha256(dataset uri)}.json      # Dimension rows + owning assessment id
    """

    def __init__(self, data_dir: Path | str = DEFAULT_DATA_DIR):
        """Initialize the store.

        Args:
            data_dir: Root directory for all data files.
        """
        self.data_dir = Path(data_dir)
        self._assessments_dir = self.data_dir / ASSESSMENTS_CATEGORY
        self._dimensions_dir = self.data_dir / DIMENSIONS_CATEGORY

    def _hash_key(self, key: str) -> str:
        """Generate a safe filename from a key using SHA-256 hash."""
        return hashlib.sha256(key.encode()).hexdigest()

    def _assessment_path(self, assessment_id: str) -> Path:
        return self._assessments_dir / f"{self._hash_key(assessment_id)}.json"

    def _dimensions_path(self, dataset_uri: str) -> Path:
        return self._dimensions_dir / f"{self._hash_key(dataset_uri)}.json"

    def _write_atomic(self, path: Path, key: str, data: Any) -> None:
        """Write an entry to a temporary sibling and move it into place."""
        path.parent.mkdir(parents=True, exist_ok=True)
        content = {
            "key": key,
            "saved_at": datetime.now(UTC).isoformat(),
            "data": data,
        }
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(json.dumps(content, indent=2))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _read(self, path: Path, key: str) -> Any | None:
        """Read an entry's data, or None if the file does not exist."""
        if not path.exists():
            return None
        content = json.loads(path.read_text(encoding="utf-8"))
        if content.get("key") != key:
            raise StorageError(f"Entry {path} holds key '{content.get('key')}', expected '{key}'")
        return content["data"]

    # === ASSESSMENT STORE OPERATIONS ===

    def save_assessment(self, record: AssessmentRecord, rows: Iterable[DimensionRow]) -> None:
        checked_rows = check_rows_belong_to(record, rows)

        try:
            previous = self._read_assessment(record.id)
            dimensions_path = self._dimensions_path(record.dataset_uri)
            previous_rows = self._read(dimensions_path, record.dataset_uri)

            # Rows first, record last: a failed record write rolls the rows back
            self._write_atomic(
                dimensions_path,
                record.dataset_uri,
                {
                    "assessment_id": record.id,
                    "rows": [row.model_dump(mode="json") for row in checked_rows],
                },
            )
            try:
                self._write_atomic(
                    self._assessment_path(record.id), record.id, record.model_dump(mode="json")
                )
            except OSError:
                self._restore_rows(dimensions_path, record.dataset_uri, previous_rows)
                raise

            # Same id re-used for another dataset: drop the old dataset's rows
            if previous is not None and previous.dataset_uri != record.dataset_uri:
                self._dimensions_path(previous.dataset_uri).unlink(missing_ok=True)
                logger.debug(f"Dropped rows of {previous.dataset_uri} (moved to {record.dataset_uri})")

            # Same dataset assessed under a new id: drop the old assessment
            if previous_rows is not None and previous_rows["assessment_id"] != record.id:
                self._assessment_path(previous_rows["assessment_id"]).unlink(missing_ok=True)
                logger.debug(f"Replaced assessment {previous_rows['assessment_id']} of {record.dataset_uri}")
        except (OSError, json.JSONDecodeError, KeyError, ValidationError) as e:
            logger.error(f"Failed to save assessment {record.id}: {e}")
            raise StorageError(f"Failed to save assessment {record.id}") from e

        logger.info(f"Saved assessment {record.id} for {record.dataset_uri} ({len(checked_rows)} dimensions)")

    def _restore_rows(self, path: Path, dataset_uri: str, previous_rows: Any | None) -> None:
        """Put a dataset's previous row file back after a failed save."""
        try:
            if previous_rows is None:
                path.unlink(missing_ok=True)
            else:
                self._write_atomic(path, dataset_uri, previous_rows)
        except OSError as e:
            logger.error(f"Could not restore dimension rows of {dataset_uri}: {e}")

    def _read_assessment(self, assessment_id: str) -> AssessmentRecord | None:
        data = self._read(self._assessment_path(assessment_id), assessment_id)
        if data is None:
            return None
        return AssessmentRecord.model_validate(data)

    def load_assessment(self, assessment_id: str) -> AssessmentRecord | None:
        try:
            record = self._read_assessment(assessment_id)
        except (OSError, json.JSONDecodeError, KeyError, ValidationError) as e:
            logger.error(f"Failed to load assessment {assessment_id}: {e}")
            raise StorageError(f"Failed to load assessment {assessment_id}") from e

        if record is None:
            logger.warning(f"Assessment not found: {assessment_id}")
        return record

    def dimension_rows(self, dataset_ids: Iterable[str]) -> list[DimensionRow]:
        rows: list[DimensionRow] = []
        for dataset_id in dict.fromkeys(dataset_ids):
            try:
                data = self._read(self._dimensions_path(dataset_id), dataset_id)
                if data is None:
                    continue
                rows.extend(DimensionRow.model_validate(row) for row in data["rows"])
            except (OSError, json.JSONDecodeError, KeyError, ValidationError) as e:
                logger.error(f"Failed to read dimension rows of {dataset_id}: {e}")
                raise StorageError(f"Failed to read dimension rows of {dataset_id}") from e
        return rows

    def ping(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Data directory {self.data_dir} is not usable") from e
        if not os.access(self.data_dir, os.W_OK):
            raise StorageError(f"Data directory {self.data_dir} is not writable")

    # === UTILITY METHODS ===

    def get_data_summary(self) -> dict[str, Any]:
        """Get summary of stored data.

        Returns:
            Dict with assessment and dataset counts.
        """
        summary: dict[str, Any] = {
            "data_dir": str(self.data_dir),
            "assessments": 0,
            "datasets_with_dimensions": 0,
        }
        if self._assessments_dir.exists():
            summary["assessments"] = len(list(self._assessments_dir.glob("*.json")))
        if self._dimensions_dir.exists():
            summary["datasets_with_dimensions"] = len(list(self._dimensions_dir.glob("*.json")))
        return summary
