"""Relational assessment store backed by SQLAlchemy.

Tables:
    dataset_assessments(id PK, dataset_uri UNIQUE, turtle_assessment,
                        jsonld_assessment, json_score)
    dimensions(dataset_uri, id) PK -> dataset_assessments.dataset_uri

Saving an assessment replaces the dataset's dimension rows inside the same
transaction as the assessment upsert. Dataset identifiers only ever reach
the database as bound parameters.
"""

import logging
import os
from collections.abc import Iterable

from sqlalchemy import URL, Engine, create_engine, delete, func, make_url, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from mqa_scoring.consts import (
    DATABASE_URL_ENV,
    DB_POOL_PRE_PING,
    DB_POOL_SIZE,
    POSTGRES_DB_NAME_ENV,
    POSTGRES_DRIVER,
    POSTGRES_HOST_ENV,
    POSTGRES_PASSWORD_ENV,
    POSTGRES_PORT_ENV,
    POSTGRES_USERNAME_ENV,
)
from mqa_scoring.errors import ConfigError, StorageError
from mqa_scoring.models.model_aggregate import DimensionRow
from mqa_scoring.models.model_storage import AssessmentRecord
from mqa_scoring.storage.permanent_storage.base import AssessmentStore, check_rows_belong_to
from mqa_scoring.storage.permanent_storage.db_models import (
    Base,
    DatasetAssessmentModel,
    DimensionModel,
)

logger = logging.getLogger(__name__)


def _env(key: str) -> str:
    value = os.getenv(key, "").strip()
    if not value:
        raise ConfigError(key, "environment variable not set")
    return value


def database_url_from_env() -> str | URL:
    """Resolve the database URL from the environment.

    MQA_DATABASE_URL is used as-is when set. Otherwise a PostgreSQL URL is
    assembled from POSTGRES_HOST, POSTGRES_PORT, POSTGRES_USERNAME,
    POSTGRES_PASSWORD and POSTGRES_DB_NAME.

    Returns:
        SQLAlchemy URL string or URL object.

    Raises:
        ConfigError: If a variable is missing or POSTGRES_PORT is not a port number.
    """
    url = os.getenv(DATABASE_URL_ENV, "").strip()
    if url:
        return url

    port_value = _env(POSTGRES_PORT_ENV)
    try:
        port = int(port_value)
    except ValueError:
        raise ConfigError(POSTGRES_PORT_ENV, f"not a port number: '{port_value}'") from None
    if not 0 < port < 65536:
        raise ConfigError(POSTGRES_PORT_ENV, f"not a port number: '{port_value}'")

    return URL.create(
        POSTGRES_DRIVER,
        username=_env(POSTGRES_USERNAME_ENV),
        password=_env(POSTGRES_PASSWORD_ENV),
        host=_env(POSTGRES_HOST_ENV),
        port=port,
        database=_env(POSTGRES_DB_NAME_ENV),
    )


def create_store_engine(url: str | URL) -> Engine:
    """Create an engine with the store's pool settings.

    SQLite keeps SQLAlchemy's default pool; other backends get a bounded pool.
    """
    if make_url(url).get_backend_name() == "sqlite":
        return create_engine(url)
    return create_engine(url, pool_size=DB_POOL_SIZE, pool_pre_ping=DB_POOL_PRE_PING)


class SqlAssessmentStore(AssessmentStore):
    """SQLAlchemy-backed assessment store."""

    def __init__(self, engine: Engine | str | URL):
        """Initialize the store.

        Args:
            engine: Engine to use, or a database URL to create one from.
        """
        if isinstance(engine, Engine):
            self._engine = engine
        else:
            try:
                self._engine = create_store_engine(engine)
            except (SQLAlchemyError, ImportError) as e:
                # ImportError: DBAPI driver not installed
                raise StorageError(f"Cannot create database engine: {e}") from e
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_schema(self) -> None:
        """Create the assessment tables if they do not exist."""
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create schema: {e}")
            raise StorageError("Failed to create assessment schema") from e
        logger.info("Assessment schema ready")

    def save_assessment(self, record: AssessmentRecord, rows: Iterable[DimensionRow]) -> None:
        checked_rows = check_rows_belong_to(record, rows)

        try:
            with self._session_factory.begin() as session:
                existing = session.get(DatasetAssessmentModel, record.id)

                session.execute(
                    delete(DimensionModel).where(DimensionModel.dataset_uri == record.dataset_uri)
                )
                # Same id re-used for another dataset
                if existing is not None and existing.dataset_uri != record.dataset_uri:
                    session.execute(
                        delete(DimensionModel).where(
                            DimensionModel.dataset_uri == existing.dataset_uri
                        )
                    )
                # Same dataset previously assessed under another id
                session.execute(
                    delete(DatasetAssessmentModel).where(
                        DatasetAssessmentModel.dataset_uri == record.dataset_uri,
                        DatasetAssessmentModel.id != record.id,
                    )
                )

                if existing is None:
                    session.add(DatasetAssessmentModel(**record.model_dump()))
                else:
                    existing.dataset_uri = record.dataset_uri
                    existing.turtle_assessment = record.turtle_assessment
                    existing.jsonld_assessment = record.jsonld_assessment
                    existing.json_score = record.json_score
                session.flush()

                session.add_all(
                    DimensionModel(
                        dataset_uri=row.dataset_id,
                        id=row.dimension_id,
                        score=row.score,
                        max_score=row.max_score,
                    )
                    for row in checked_rows
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to save assessment {record.id}: {e}")
            raise StorageError(f"Failed to save assessment {record.id}") from e

        logger.info(f"Saved assessment {record.id} for {record.dataset_uri} ({len(checked_rows)} dimensions)")

    def load_assessment(self, assessment_id: str) -> AssessmentRecord | None:
        try:
            with self._session_factory() as session:
                model = session.get(DatasetAssessmentModel, assessment_id)
                if model is None:
                    logger.warning(f"Assessment not found: {assessment_id}")
                    return None
                return AssessmentRecord(
                    id=model.id,
                    dataset_uri=model.dataset_uri,
                    turtle_assessment=model.turtle_assessment,
                    jsonld_assessment=model.jsonld_assessment,
                    json_score=model.json_score,
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load assessment {assessment_id}: {e}")
            raise StorageError(f"Failed to load assessment {assessment_id}") from e

    def dimension_rows(self, dataset_ids: Iterable[str]) -> list[DimensionRow]:
        ids = list(dict.fromkeys(dataset_ids))
        if not ids:
            return []

        stmt = select(DimensionModel).where(DimensionModel.dataset_uri.in_(ids))
        try:
            with self._session_factory() as session:
                models = session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read dimension rows: {e}")
            raise StorageError("Failed to read dimension rows") from e

        return [
            DimensionRow(
                dataset_id=model.dataset_uri,
                dimension_id=model.id,
                score=model.score,
                max_score=model.max_score,
            )
            for model in models
        ]

    def ping(self) -> None:
        try:
            with self._engine.connect() as connection:
                connection.execute(select(func.count()).select_from(DatasetAssessmentModel))
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {e}")
            raise StorageError("Database is not reachable") from e
