"""Pytest fixtures for the KeywordAtlas tests."""

import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

# Make the package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

from keyword_atlas.graph import KeywordNode
from keyword_atlas.render import DragHandlers, SceneBackend


class RecordingBackend(SceneBackend):
    """Scene backend that records what the renderer asked for."""

    def __init__(self):
        self.calls: List[Tuple] = []
        self.radii: Dict[str, float] = {}
        self.positions: Dict[str, Tuple[float, float]] = {}
        self.edges: Dict[int, Optional[Tuple[float, float, float, float]]] = {}
        self.handlers: Dict[str, DragHandlers] = {}
        self.flushes = 0

    def add_node(self, node: KeywordNode, radius: float) -> None:
        self.calls.append(("add_node", node.id))
        self.radii[node.id] = radius

    def resize_node(self, node: KeywordNode, radius: float) -> None:
        self.calls.append(("resize_node", node.id))
        self.radii[node.id] = radius

    def remove_node(self, node_id: str) -> None:
        self.calls.append(("remove_node", node_id))
        del self.radii[node_id]
        self.positions.pop(node_id, None)
        self.handlers.pop(node_id, None)

    def move_node(self, node_id: str, x: float, y: float) -> None:
        self.positions[node_id] = (x, y)

    def add_edge(self, index: int) -> None:
        self.calls.append(("add_edge", index))
        self.edges[index] = None

    def remove_edge(self, index: int) -> None:
        self.calls.append(("remove_edge", index))
        del self.edges[index]

    def move_edge(self, index: int, x1: float, y1: float, x2: float, y2: float) -> None:
        self.edges[index] = (x1, y1, x2, y2)

    def attach_drag_handlers(self, node_id: str, handlers: DragHandlers) -> None:
        self.calls.append(("attach", node_id))
        self.handlers[node_id] = handlers

    def flush(self) -> None:
        self.flushes += 1


@pytest.fixture
def backend():
    """Return a fresh recording scene backend."""
    return RecordingBackend()


@pytest.fixture
def scenario_records():
    """Two datasets sharing the keyword 'a'."""
    return [{"keyword": ["b", "a"]}, {"keyword": ["a", "c"]}]


@pytest.fixture
def scenario_catalog(scenario_records):
    """Catalog document wrapping the scenario records."""
    return {"conformsTo": "https://project-open-data.cio.gov/v1.1/schema",
            "dataset": scenario_records}


@pytest.fixture
def mixed_records():
    """A larger catalog with overlapping, repeated and missing keywords."""
    return [
        {"title": "Crime 2019", "keyword": ["crime", "police", "city"]},
        {"title": "Crime 2020", "keyword": ["police", "crime", "arrests"]},
        {"title": "Budget", "keyword": ["finance", "city", "budget"]},
        {"title": "Untagged"},
        {"title": "Parks", "keyword": ["parks", "city", "recreation", "city"]},
        {"title": "Bad tags", "keyword": "city"},
        {"title": "Transit", "keyword": ["transit", "city", "budget", "Budget"]},
        {"title": "Single", "keyword": ["police"]},
        {"title": "Empty", "keyword": []},
    ]


@pytest.fixture
def catalog_file(tmp_path, scenario_catalog):
    """Write the scenario catalog to a data.json file."""
    path = tmp_path / "data.json"
    path.write_text(json.dumps(scenario_catalog), encoding="utf-8")
    return path
