"""Derive the displayed subgraph from the visibility flags of a keyword graph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from .graph import KeywordGraph, KeywordNode


@dataclass(frozen=True)
class DisplayEdge:
    """A line between two displayed keywords."""
    source: str
    target: str


def select_display(
    graph: KeywordGraph,
    visible: Optional[Iterable[str]] = None,
) -> Tuple[List[KeywordNode], List[DisplayEdge]]:
    """Return the displayed nodes (graph order) and the edges among them.

    ``visible`` overrides the ``show`` flags without modifying them. Each
    undirected pair is emitted once, oriented from the endpoint that comes
    first in display order.
    """
    if visible is None:
        nodes = [n for n in graph if n.show]
    else:
        wanted = set(visible)
        nodes = [n for n in graph if n.id in wanted]

    displayed: Set[str] = {n.id for n in nodes}
    seen: Set[frozenset] = set()
    edges: List[DisplayEdge] = []
    for node in nodes:
        for other in node.connections:
            if other not in displayed:
                continue
            pair = frozenset((node.id, other))
            if pair in seen:
                continue
            seen.add(pair)
            edges.append(DisplayEdge(node.id, other))
    return nodes, edges


def apply_visibility(graph: KeywordGraph, selected: Iterable[str]) -> int:
    """Set ``show`` from a selection; returns how many keywords are shown."""
    chosen = set(selected)
    count = 0
    for node in graph:
        node.show = node.id in chosen
        count += node.show
    return count
