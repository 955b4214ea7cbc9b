"""Score tree extraction from quality-assessment graphs.

This module provides:
- TripleSource: Protocol for (subject, predicate) -> objects lookups
- TripleIndex: In-memory TripleSource built from raw triples
- GraphExtractor / extract_scores: Graph walk producing a DatasetScoreTree
- parse_graph / serialize_graph: Turtle and JSON-LD I/O via rdflib
"""

from mqa_scoring.extraction.graph_extractor import GraphExtractor, extract_scores
from mqa_scoring.extraction.triples import (
    TripleIndex,
    TripleSource,
    parse_graph,
    serialize_graph,
)

__all__ = [
    "GraphExtractor",
    "TripleIndex",
    "TripleSource",
    "extract_scores",
    "parse_graph",
    "serialize_graph",
]
