"""
Keyword co-occurrence aggregation.

A catalog is a list of records, each optionally tagged with keywords. Two
keywords are connected when they appear together in at least one record; a
keyword's ``dataset_count`` is the number of records that carry it. The graph
keeps its nodes ordered by descending count so the host can show the most
popular keywords first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Set

import networkx as nx

from .config import AggregationPolicy, DuplicatePolicy

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


# --------------------------- Data structures ---------------------------

@dataclass(eq=False)
class KeywordNode:
    """One keyword of the aggregated catalog.

    Attributes
    ----------
    id : str
        Keyword text, taken verbatim from the catalog.
    dataset_count : int
        Number of records containing this keyword.
    connections : List[str]
        Co-occurring keywords in first-recorded order (no duplicates, no self).
    show : bool
        Whether the keyword is part of the displayed subset.
    x, y, vx, vy : Optional[float]
        Simulation position and velocity, owned by the layout engine.
    fx, fy : Optional[float]
        Pinned position while the node is being dragged.
    """
    id: str
    dataset_count: int = 1
    connections: List[str] = field(default_factory=list)
    show: bool = False
    x: Optional[float] = None
    y: Optional[float] = None
    vx: float = 0.0
    vy: float = 0.0
    fx: Optional[float] = None
    fy: Optional[float] = None
    _linked: Set[str] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        self._linked.update(self.connections)

    def link(self, other: str) -> None:
        """Record a co-occurrence with ``other`` unless already known."""
        if other == self.id or other in self._linked:
            return
        self._linked.add(other)
        self.connections.append(other)

    def is_connected(self, other: str) -> bool:
        return other in self._linked


class KeywordGraph:
    """Ordered collection of keyword nodes (descending ``dataset_count``)."""

    def __init__(self, nodes: Optional[Sequence[KeywordNode]] = None, records: int = 0):
        self.nodes: List[KeywordNode] = list(nodes or [])
        self.records = records
        self._by_id: Dict[str, KeywordNode] = {n.id: n for n in self.nodes}

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[KeywordNode]:
        return iter(self.nodes)

    def __contains__(self, keyword: object) -> bool:
        return keyword in self._by_id

    def get(self, keyword: str) -> Optional[KeywordNode]:
        return self._by_id.get(keyword)

    def ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def shown(self) -> List[KeywordNode]:
        return [n for n in self.nodes if n.show]

    def link_count(self) -> int:
        """Number of distinct undirected co-occurrence pairs."""
        pairs = set()
        for n in self.nodes:
            for other in n.connections:
                pairs.add(frozenset((n.id, other)))
        return len(pairs)

    def to_networkx(self) -> nx.Graph:
        """Undirected graph view with ``dataset_count`` and ``show`` node attributes."""
        G = nx.Graph()
        for n in self.nodes:
            G.add_node(n.id, dataset_count=n.dataset_count, show=n.show)
        for n in self.nodes:
            for other in n.connections:
                G.add_edge(n.id, other)
        return G


# --------------------------- Aggregation ---------------------------

def _record_keywords(record: Any, keywords_field: str) -> Optional[List[str]]:
    if not isinstance(record, Mapping):
        return None
    keywords = record.get(keywords_field)
    if not isinstance(keywords, list):
        return None
    return [k for k in keywords if isinstance(k, str)]


def _add_record(nodes: Dict[str, KeywordNode], keywords: List[str],
                policy: AggregationPolicy) -> None:
    """Count one record's keywords and link every pair of them."""
    if policy.duplicates is DuplicatePolicy.COUNT_ONCE:
        keywords = sorted(set(keywords))
    else:
        keywords = sorted(keywords)

    record_nodes: List[KeywordNode] = []
    for kw in keywords:
        node = nodes.get(kw)
        if node is None:
            node = KeywordNode(id=kw)
            nodes[kw] = node
        else:
            node.dataset_count += 1
        record_nodes.append(node)

    for j, node in enumerate(record_nodes):
        for other in record_nodes[j + 1:]:
            node.link(other.id)
            if policy.symmetric_links:
                other.link(node.id)


def build_keyword_graph(
    records: Sequence[Any],
    policy: Optional[AggregationPolicy] = None,
    progress: Optional[ProgressCallback] = None,
) -> KeywordGraph:
    """Aggregate keyword counts and co-occurrences over catalog records.

    Each record's keywords are sorted ascending before they are walked, so a
    connection is always recorded from the lexicographically earlier keyword
    to the later one (and, with ``symmetric_links``, back again). Records
    without a keyword list are skipped.

    Parameters
    ----------
    records : Sequence[Any]
        Catalog records (mappings).
    policy : Optional[AggregationPolicy]
        Link symmetry, duplicate counting and initial visibility options.
    progress : Optional[Callable[[int, int], None]]
        Called with ``(processed, total)`` as records are consumed.

    Returns
    -------
    KeywordGraph
        Nodes sorted by descending count (stable, so ties keep discovery
        order), with the top ``policy.initial_keywords`` marked shown.
    """
    policy = policy or AggregationPolicy()
    total = len(records)
    nodes: Dict[str, KeywordNode] = {}

    if progress:
        progress(0, total)

    for i, record in enumerate(records):
        keywords = _record_keywords(record, policy.keywords_field)
        if keywords is not None:
            _add_record(nodes, keywords, policy)
        if progress:
            progress(i + 1, total)

    ordered = sorted(nodes.values(), key=lambda n: n.dataset_count, reverse=True)
    for node in ordered[:max(0, policy.initial_keywords)]:
        node.show = True

    graph = KeywordGraph(ordered, records=total)
    logger.info("Aggregated %d keywords from %d datasets (%d pairs)",
                len(graph), total, graph.link_count())
    return graph
