"""IRIs recognized in quality-assessment graphs.

Covers the DCAT dataset/distribution structure, the DQV dimension and
measurement links, and the dcatno-mqa score predicates.
"""

from rdflib import RDF, Namespace

DCAT = Namespace("http://www.w3.org/ns/dcat#")
DQV = Namespace("http://www.w3.org/ns/dqv#")
DCATNO_MQA = Namespace("https://data.norge.no/vocabulary/dcatno-mqa#")

# Node typing
TYPE = RDF.type
DATASET_TYPE = DCAT.Dataset

# Structure
DISTRIBUTION = DCAT.distribution
IN_DIMENSION = DQV.inDimension
HAS_QUALITY_MEASUREMENT = DQV.hasQualityMeasurement
IS_MEASUREMENT_OF = DQV.isMeasurementOf

# Scores
SCORE = DCATNO_MQA.score
TRUE_SCORE = DCATNO_MQA.trueScore  # Also the ceiling when attached to a metric

__all__ = [
    "DATASET_TYPE",
    "DCAT",
    "DCATNO_MQA",
    "DISTRIBUTION",
    "DQV",
    "HAS_QUALITY_MEASUREMENT",
    "IN_DIMENSION",
    "IS_MEASUREMENT_OF",
    "SCORE",
    "TRUE_SCORE",
    "TYPE",
]
