"""Tests for file-based assessment store."""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from mqa_scoring.errors import StorageError
from mqa_scoring.models.model_aggregate import DimensionRow
from mqa_scoring.models.model_storage import AssessmentRecord
from mqa_scoring.storage import FileAssessmentStore

ASSESSMENT_ID = "0f3c2f4e-54ad-4a4c-9a0a-8a9d1b2c3d4e"
OTHER_ID = "5b6e7c8d-1234-4abc-8def-0123456789ab"
DATASET = "https://example.org/dataset"
OTHER_DATASET = "https://example.org/other"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store(temp_dir) -> FileAssessmentStore:
    return FileAssessmentStore(temp_dir)


def _record(assessment_id: str = ASSESSMENT_ID, dataset_uri: str = DATASET) -> AssessmentRecord:
    return AssessmentRecord(
        id=assessment_id,
        dataset_uri=dataset_uri,
        turtle_assessment="<a> <b> <c> .",
        jsonld_assessment="[]",
        json_score="{}",
    )


def _rows(dataset_uri: str = DATASET, **scores: int) -> list[DimensionRow]:
    return [
        DimensionRow(dataset_id=dataset_uri, dimension_id=dimension, score=score, max_score=10)
        for dimension, score in scores.items()
    ]


class TestFileAssessmentStore:
    """Tests for FileAssessmentStore."""

    def test_save_and_load(self, store) -> None:
        """Test storing and loading an assessment."""
        record = _record()
        store.save_assessment(record, _rows(accessibility=3))

        assert store.load_assessment(ASSESSMENT_ID) == record

    def test_load_missing(self, store) -> None:
        """Test loading an unknown assessment."""
        assert store.load_assessment(ASSESSMENT_ID) is None

    def test_dimension_rows(self, store) -> None:
        """Test reading dimension rows back."""
        store.save_assessment(_record(), _rows(accessibility=3, findability=7))

        rows = store.dimension_rows([DATASET])
        assert {row.dimension_id: row.score for row in rows} == {"accessibility": 3, "findability": 7}

    def test_dimension_rows_unknown_dataset(self, store) -> None:
        """Test that unknown datasets contribute no rows."""
        assert store.dimension_rows(["https://example.org/unknown"]) == []
        assert store.dimension_rows([]) == []

    def test_resave_replaces_rows(self, store) -> None:
        """Test that a new assessment replaces the full row set."""
        store.save_assessment(_record(), _rows(accessibility=3, findability=7))
        store.save_assessment(_record(), _rows(accessibility=5))

        rows = store.dimension_rows([DATASET])
        assert [(row.dimension_id, row.score) for row in rows] == [("accessibility", 5)]

    def test_resave_with_no_rows(self, store) -> None:
        """Test that an assessment without dimensions clears old rows."""
        store.save_assessment(_record(), _rows(accessibility=3))
        store.save_assessment(_record(), [])

        assert store.dimension_rows([DATASET]) == []

    def test_dataset_reassessed_under_new_id(self, store) -> None:
        """Test that a dataset keeps a single assessment."""
        store.save_assessment(_record(ASSESSMENT_ID), _rows(accessibility=3))
        store.save_assessment(_record(OTHER_ID), _rows(accessibility=4))

        assert store.load_assessment(ASSESSMENT_ID) is None
        assert store.load_assessment(OTHER_ID).dataset_uri == DATASET
        assert [row.score for row in store.dimension_rows([DATASET])] == [4]

    def test_id_reused_for_other_dataset(self, store) -> None:
        """Test that moving an id to another dataset drops the old dataset's rows."""
        store.save_assessment(_record(dataset_uri=DATASET), _rows(DATASET, accessibility=3))
        store.save_assessment(_record(dataset_uri=OTHER_DATASET), _rows(OTHER_DATASET, accessibility=8))

        assert store.dimension_rows([DATASET]) == []
        assert [row.score for row in store.dimension_rows([OTHER_DATASET])] == [8]
        assert store.load_assessment(ASSESSMENT_ID).dataset_uri == OTHER_DATASET

    def test_rows_of_other_dataset_rejected(self, store) -> None:
        """Test that rows must belong to the record's dataset."""
        with pytest.raises(ValueError, match="cannot be stored"):
            store.save_assessment(_record(), _rows(OTHER_DATASET, accessibility=3))
        assert store.load_assessment(ASSESSMENT_ID) is None

    def test_duplicate_rows_rejected(self, store) -> None:
        """Test that a dimension may only have one row per dataset."""
        rows = _rows(accessibility=3) + _rows(accessibility=4)
        with pytest.raises(ValueError, match="Duplicate dimension row"):
            store.save_assessment(_record(), rows)

    def test_no_temp_files_left(self, store, temp_dir) -> None:
        """Test that atomic writes clean up after themselves."""
        store.save_assessment(_record(), _rows(accessibility=3))
        assert list(temp_dir.rglob("*.tmp")) == []

    def test_file_layout(self, store, temp_dir) -> None:
        """Test that entries are stored under hashed names with their key."""
        store.save_assessment(_record(), _rows(accessibility=3))

        files = list((temp_dir / "assessments").glob("*.json"))
        assert len(files) == 1
        assert len(files[0].stem) == 64
        content = json.loads(files[0].read_text())
        assert content["key"] == ASSESSMENT_ID
        assert "saved_at" in content
        assert content["data"]["dataset_uri"] == DATASET

    def test_corrupt_file_raises_storage_error(self, store, temp_dir) -> None:
        """Test that unreadable entries surface as StorageError."""
        store.save_assessment(_record(), _rows(accessibility=3))
        for path in (temp_dir / "dimensions").glob("*.json"):
            path.write_text("{not json")

        with pytest.raises(StorageError):
            store.dimension_rows([DATASET])

    def test_key_mismatch_raises_storage_error(self, store, temp_dir) -> None:
        """Test that a file holding another key is not returned."""
        store.save_assessment(_record(), _rows(accessibility=3))
        path = next((temp_dir / "assessments").glob("*.json"))
        content = json.loads(path.read_text())
        content["key"] = OTHER_ID
        path.write_text(json.dumps(content))

        with pytest.raises(StorageError, match="holds key"):
            store.load_assessment(ASSESSMENT_ID)

    def test_ping(self, store, temp_dir) -> None:
        """Test pinging a usable data directory."""
        store.ping()
        assert temp_dir.exists()

    def test_ping_unusable_directory(self, temp_dir) -> None:
        """Test pinging a data directory that is a file."""
        blocker = temp_dir / "blocker"
        blocker.write_text("")
        with pytest.raises(StorageError):
            FileAssessmentStore(blocker / "data").ping()

    def test_get_data_summary(self, store, temp_dir) -> None:
        """Test data summary counts."""
        summary = store.get_data_summary()
        assert summary["assessments"] == 0
        assert summary["datasets_with_dimensions"] == 0

        store.save_assessment(_record(ASSESSMENT_ID, DATASET), _rows(DATASET, accessibility=3))
        store.save_assessment(_record(OTHER_ID, OTHER_DATASET), _rows(OTHER_DATASET, accessibility=3))

        summary = store.get_data_summary()
        assert summary["data_dir"] == str(temp_dir)
        assert summary["assessments"] == 2
        assert summary["datasets_with_dimensions"] == 2


def _failing_replace(fail_on: int):
    """os.replace stand-in that raises on the given call number (1-based)."""
    real_replace = os.replace
    calls = []

    def _replace(src, dst):
        calls.append(dst)
        if len(calls) == fail_on:
            raise OSError("disk full")
        return real_replace(src, dst)

    return _replace


class TestFailedSave:
    """Tests that a save interrupted by a filesystem error changes nothing."""

    def _record(self, assessment_id: str, json_score: str) -> AssessmentRecord:
        return _record(assessment_id).model_copy(update={"json_score": json_score})

    def test_record_write_failure_restores_rows(self, store) -> None:
        """Test that rows are rolled back when the record cannot be written."""
        store.save_assessment(self._record(ASSESSMENT_ID, "old"), _rows(accessibility=3))

        with patch("os.replace", side_effect=_failing_replace(2)):
            with pytest.raises(StorageError, match="Failed to save assessment"):
                store.save_assessment(self._record(ASSESSMENT_ID, "new"), _rows(findability=9))

        assert store.load_assessment(ASSESSMENT_ID).json_score == "old"
        assert [(row.dimension_id, row.score) for row in store.dimension_rows([DATASET])] == [
            ("accessibility", 3)
        ]

    def test_first_save_failure_leaves_no_rows(self, store) -> None:
        """Test that a failed first save of a dataset leaves neither record nor rows."""
        with patch("os.replace", side_effect=_failing_replace(2)):
            with pytest.raises(StorageError):
                store.save_assessment(self._record(ASSESSMENT_ID, "new"), _rows(accessibility=3))

        assert store.load_assessment(ASSESSMENT_ID) is None
        assert store.dimension_rows([DATASET]) == []

    def test_rows_write_failure_changes_nothing(self, store) -> None:
        """Test that a failure writing rows leaves the previous assessment in place."""
        store.save_assessment(self._record(ASSESSMENT_ID, "old"), _rows(accessibility=3))

        with patch("os.replace", side_effect=_failing_replace(1)):
            with pytest.raises(StorageError):
                store.save_assessment(self._record(ASSESSMENT_ID, "new"), _rows(findability=9))

        assert store.load_assessment(ASSESSMENT_ID).json_score == "old"
        assert [row.score for row in store.dimension_rows([DATASET])] == [3]

    def test_reassessment_failure_keeps_single_record(self, store) -> None:
        """Test that a failed re-assessment under a new id keeps the old assessment only."""
        store.save_assessment(self._record(ASSESSMENT_ID, "old"), _rows(accessibility=3))

        with patch("os.replace", side_effect=_failing_replace(2)):
            with pytest.raises(StorageError):
                store.save_assessment(self._record(OTHER_ID, "new"), _rows(accessibility=4))

        assert store.load_assessment(OTHER_ID) is None
        assert store.load_assessment(ASSESSMENT_ID).json_score == "old"
        assert [row.score for row in store.dimension_rows([DATASET])] == [3]
        assert store.get_data_summary()["assessments"] == 1

    def test_no_temp_files_after_failure(self, store, temp_dir) -> None:
        """Test that failed writes remove their temporary files."""
        with patch("os.replace", side_effect=_failing_replace(2)):
            with pytest.raises(StorageError):
                store.save_assessment(self._record(ASSESSMENT_ID, "new"), _rows(accessibility=3))

        assert list(temp_dir.rglob("*.tmp")) == []
