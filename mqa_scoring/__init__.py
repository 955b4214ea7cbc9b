"""mqa-scoring: extract and aggregate DCAT/DQV dataset quality scores."""

__version__ = "0.1.0"
