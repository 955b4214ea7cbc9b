"""Triple access for the graph extractor.

The extractor only ever asks one question of a graph: given a subject and a
predicate, which objects are there? Anything answering that question is a
TripleSource. An rdflib.Graph qualifies as-is; TripleIndex is a plain
in-memory index for triples that come from elsewhere.
"""

import logging
from collections import defaultdict
from collections.abc import Hashable, Iterable
from typing import Protocol

from rdflib import Graph
from rdflib.term import Node

from mqa_scoring.consts import GRAPH_FORMAT_TURTLE, GRAPH_FORMATS
from mqa_scoring.errors import MalformedGraph

logger = logging.getLogger(__name__)


class TripleSource(Protocol):
    """Read-only access to the objects of (subject, predicate) pairs."""

    def objects(self, subject: Node, predicate: Node) -> Iterable[Node]:
        """Return the objects of all triples matching subject and predicate.

        Args:
            subject: Subject node.
            predicate: Predicate IRI.

        Returns:
            Matching objects in encounter order; empty if none.
        """
        ...


class TripleIndex:
    """In-memory (subject, predicate) -> objects index.

    Keeps objects in the order triples were added, including repeats, so a
    graph that states the same edge twice stays visible to the extractor.
    """

    def __init__(self) -> None:
        self._index: dict[tuple[Hashable, Hashable], list[Node]] = defaultdict(list)
        self._size = 0

    @classmethod
    def from_triples(cls, triples: Iterable[tuple[Node, Node, Node]]) -> "TripleIndex":
        """Build an index from (subject, predicate, object) triples."""
        index = cls()
        for subject, predicate, obj in triples:
            index.add(subject, predicate, obj)
        return index

    @classmethod
    def from_graph(cls, graph: Graph) -> "TripleIndex":
        """Snapshot an rdflib graph into an index."""
        return cls.from_triples(graph)

    def add(self, subject: Node, predicate: Node, obj: Node) -> None:
        self._index[(subject, predicate)].append(obj)
        self._size += 1

    def objects(self, subject: Node, predicate: Node) -> list[Node]:
        return list(self._index.get((subject, predicate), ()))

    def __len__(self) -> int:
        return self._size


def parse_graph(text: str, format: str = GRAPH_FORMAT_TURTLE) -> Graph:
    """Parse serialized RDF into a graph.

    Args:
        text: Turtle or JSON-LD document.
        format: One of GRAPH_FORMATS.

    Returns:
        Parsed rdflib Graph.

    Raises:
        ValueError: If format is not supported.
        MalformedGraph: If the document cannot be parsed.
    """
    if format not in GRAPH_FORMATS:
        raise ValueError(f"Unsupported graph format '{format}'. Use one of: {', '.join(GRAPH_FORMATS)}")

    graph = Graph()
    try:
        graph.parse(data=text, format=format)
    except Exception as e:
        # rdflib parsers raise parser-specific exception types
        raise MalformedGraph(f"could not parse {format} document: {e}") from e

    logger.debug(f"Parsed {format} graph with {len(graph)} triples")
    return graph


def serialize_graph(graph: Graph, format: str = GRAPH_FORMAT_TURTLE) -> str:
    """Serialize a graph to Turtle or JSON-LD text.

    Raises:
        ValueError: If format is not supported.
    """
    if format not in GRAPH_FORMATS:
        raise ValueError(f"Unsupported graph format '{format}'. Use one of: {', '.join(GRAPH_FORMATS)}")
    return graph.serialize(format=format)
