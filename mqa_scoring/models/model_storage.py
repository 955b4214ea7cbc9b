"""Storage models for persisted assessments."""

from pydantic import BaseModel, Field


class AssessmentRecord(BaseModel):
    """A dataset's quality assessment as stored.

    Holds the assessment graph in two serializations plus the extracted score
    tree as JSON. Keyed by assessment id; dataset_uri is unique across records.
    """

    id: str = Field(description="Assessment UUID")
    dataset_uri: str = Field(min_length=1, description="URI of the assessed dataset")
    turtle_assessment: str = Field(description="Assessment graph as Turtle")
    jsonld_assessment: str = Field(description="Assessment graph as JSON-LD")
    json_score: str = Field(description="Serialized DatasetScoreTree")
