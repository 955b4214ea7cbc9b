from pathlib import Path

DEFAULT_DATA_DIR = (Path(__file__).parent.parent.resolve() / "data").absolute().resolve()

# Store selection
DATABASE_URL_ENV = "MQA_DATABASE_URL"  # Full SQLAlchemy URL, wins over POSTGRES_*

# PostgreSQL connection settings (same variables as the scoring service deployment)
POSTGRES_HOST_ENV = "POSTGRES_HOST"
POSTGRES_PORT_ENV = "POSTGRES_PORT"
POSTGRES_USERNAME_ENV = "POSTGRES_USERNAME"
POSTGRES_PASSWORD_ENV = "POSTGRES_PASSWORD"
POSTGRES_DB_NAME_ENV = "POSTGRES_DB_NAME"
POSTGRES_DRIVER = "postgresql+psycopg2"

DB_POOL_SIZE = 16  # Max pooled connections
DB_POOL_PRE_PING = True  # Recycle dead connections transparently

# Serialized graph formats accepted and produced (rdflib plugin names)
GRAPH_FORMAT_TURTLE = "turtle"
GRAPH_FORMAT_JSONLD = "json-ld"
GRAPH_FORMATS = [GRAPH_FORMAT_TURTLE, GRAPH_FORMAT_JSONLD]

# File store layout
ASSESSMENTS_CATEGORY = "assessments"
DIMENSIONS_CATEGORY = "dimensions"
