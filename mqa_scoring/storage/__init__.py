"""Storage backends for persisting assessments.

This module provides:
- AssessmentStore: Abstract base class for assessment stores
- FileAssessmentStore: File-based implementation
- SqlAssessmentStore: SQLAlchemy implementation (PostgreSQL, SQLite)
"""

from mqa_scoring.storage.permanent_storage.base import AssessmentStore
from mqa_scoring.storage.permanent_storage.file_manager import FileAssessmentStore
from mqa_scoring.storage.permanent_storage.sql_store import (
    SqlAssessmentStore,
    database_url_from_env,
)

__all__ = [
    "AssessmentStore",
    "FileAssessmentStore",
    "SqlAssessmentStore",
    "database_url_from_env",
]
