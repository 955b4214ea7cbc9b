"""SQLAlchemy models for the relational assessment store."""

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all assessment store models."""

    pass


class DatasetAssessmentModel(Base):
    """Persisted assessment.

    Maps to the AssessmentRecord Pydantic model.
    """

    __tablename__ = "dataset_assessments"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    dataset_uri: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    turtle_assessment: Mapped[str] = mapped_column(Text, nullable=False)
    jsonld_assessment: Mapped[str] = mapped_column(Text, nullable=False)
    json_score: Mapped[str] = mapped_column(Text, nullable=False)


class DimensionModel(Base):
    """Dataset-level score of one dimension.

    Maps to the DimensionRow Pydantic model.
    """

    __tablename__ = "dimensions"

    dataset_uri: Mapped[str] = mapped_column(
        String,
        ForeignKey("dataset_assessments.dataset_uri", ondelete="CASCADE"),
        primary_key=True,
    )
    id: Mapped[str] = mapped_column(String, primary_key=True)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    max_score: Mapped[int] = mapped_column(Integer, nullable=False)
