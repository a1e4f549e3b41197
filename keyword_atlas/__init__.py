"""Keyword co-occurrence graphs for data catalogs, laid out with a force simulation."""

from .catalog import extract_records, fetch_catalog
from .config import AggregationPolicy, DuplicatePolicy, LayoutConfig
from .errors import (
    EmptyInputWarning,
    FetchError,
    KeywordAtlasError,
    LoadInProgressError,
    SchemaError,
)
from .graph import KeywordGraph, KeywordNode, build_keyword_graph
from .layout import DragEvent, ForceLayoutEngine, LayoutState
from .render import MplSceneBackend, ReconciliationRenderer, SceneBackend, reconcile_keys
from .scale import AreaScale
from .selection import DisplayEdge, apply_visibility, select_display
from .session import KeywordSession, LoadReport

__all__ = [
    "AggregationPolicy",
    "AreaScale",
    "DisplayEdge",
    "DragEvent",
    "DuplicatePolicy",
    "EmptyInputWarning",
    "FetchError",
    "ForceLayoutEngine",
    "KeywordAtlasError",
    "KeywordGraph",
    "KeywordNode",
    "KeywordSession",
    "LayoutConfig",
    "LayoutState",
    "LoadInProgressError",
    "LoadReport",
    "MplSceneBackend",
    "ReconciliationRenderer",
    "SceneBackend",
    "SchemaError",
    "apply_visibility",
    "build_keyword_graph",
    "extract_records",
    "fetch_catalog",
    "reconcile_keys",
    "select_display",
]
