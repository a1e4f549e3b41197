"""
Session object owning one loaded keyword graph and its display.

All state that used to live at script scope (the aggregated keywords, the
displayed subset, the simulation) belongs to a :class:`KeywordSession`. The
host UI feeds it documents and user events; the session keeps the scene, the
simulation and the graph consistent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

from .catalog import extract_records, fetch_catalog
from .config import RECORDS_FIELD, AggregationPolicy, LayoutConfig
from .errors import EmptyInputWarning, LoadInProgressError
from .graph import KeywordGraph, KeywordNode, ProgressCallback, build_keyword_graph
from .layout import DragEvent, ForceLayoutEngine, LayoutState
from .render import DragHandlers, ReconciliationRenderer, SceneBackend
from .scale import AreaScale
from .selection import DisplayEdge, apply_visibility, select_display

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Any]


@dataclass
class LoadReport:
    """Outcome of a successful load."""
    records: int
    keywords: int
    shown: int
    warnings: List[EmptyInputWarning] = field(default_factory=list)


class KeywordSession:
    """Load → aggregate → select → render → simulate, for one canvas."""

    def __init__(
        self,
        backend: Optional[SceneBackend] = None,
        policy: Optional[AggregationPolicy] = None,
        layout: Optional[LayoutConfig] = None,
        records_field: str = RECORDS_FIELD,
    ):
        self.policy = policy or AggregationPolicy()
        self.records_field = records_field
        self.graph = KeywordGraph()
        self.display_nodes: List[KeywordNode] = []
        self.display_edges: List[DisplayEdge] = []
        self.scale = AreaScale()
        self.engine = ForceLayoutEngine(layout)
        self.renderer: Optional[ReconciliationRenderer] = None
        self._loading = False
        if backend is not None:
            self.attach(backend)

    def attach(self, backend: SceneBackend) -> None:
        """Draw on ``backend``; drag gestures on it drive the simulation."""
        handlers = DragHandlers(start=self.drag_start, drag=self.drag, end=self.drag_end)
        self.renderer = ReconciliationRenderer(backend, handlers)
        self.engine.on_tick(self._sync)

    def _sync(self) -> None:
        if self.renderer is not None:
            self.renderer.sync_positions()

    # -------- Loading --------

    @property
    def loading(self) -> bool:
        return self._loading

    def begin_load(self) -> None:
        """Claim the single load slot; raises if another load is running."""
        if self._loading:
            raise LoadInProgressError("A catalog is already being loaded.")
        self._loading = True

    def end_load(self) -> None:
        self._loading = False

    def aggregate(self, document: Any, progress: Optional[ProgressCallback] = None) -> KeywordGraph:
        """Validate a document and build its graph without touching the session."""
        records = extract_records(document, self.records_field)
        return build_keyword_graph(records, self.policy, progress)

    def load(self, document: Any, progress: Optional[ProgressCallback] = None) -> LoadReport:
        """Aggregate ``document`` and display it, replacing the current graph.

        ``SchemaError`` leaves the current graph and display untouched.
        """
        self.begin_load()
        try:
            graph = self.aggregate(document, progress)
        finally:
            self.end_load()
        return self.apply_graph(graph)

    def load_location(self, location: str, fetcher: Fetcher = fetch_catalog,
                      progress: Optional[ProgressCallback] = None) -> LoadReport:
        """Fetch and load a catalog; ``FetchError`` propagates, nothing is replaced."""
        self.begin_load()
        try:
            document = fetcher(location)
            graph = self.aggregate(document, progress)
        finally:
            self.end_load()
        return self.apply_graph(graph)

    def apply_graph(self, graph: KeywordGraph) -> LoadReport:
        """Replace the current graph wholesale and redraw."""
        self.graph = graph
        report = LoadReport(records=graph.records, keywords=len(graph),
                            shown=len(graph.shown()))
        if graph.records == 0:
            report.warnings.append(EmptyInputWarning("The catalog contains no datasets."))
        elif len(graph) == 0:
            report.warnings.append(EmptyInputWarning("The catalog datasets carry no keywords."))
        for warning in report.warnings:
            logger.warning("%s", warning)
        self.redraw()
        return report

    # -------- Selection & display --------

    def set_visible(self, keywords: Iterable[str]) -> None:
        """Show exactly ``keywords`` and redraw."""
        shown = apply_visibility(self.graph, keywords)
        logger.info("Showing %d of %d keywords", shown, len(self.graph))
        self.redraw()

    def toggle(self, keyword: str, show: bool) -> None:
        node = self.graph.get(keyword)
        if node is None:
            raise KeyError(keyword)
        node.show = show
        self.redraw()

    def set_layout(self, config: LayoutConfig) -> None:
        self.engine.set_config(config)
        self.redraw()

    def redraw(self) -> None:
        """Recompute the displayed subset and push it to the scene and simulation."""
        self.display_nodes, self.display_edges = select_display(self.graph)
        cfg = self.engine.config
        self.scale = AreaScale.for_nodes(self.display_nodes, cfg.width, cfg.height)
        # The scene must match the new arrays before the engine indexes them
        if self.renderer is not None:
            self.renderer.render(self.display_nodes, self.display_edges, self.scale)
        self.engine.set_display(self.display_nodes, self.display_edges, self.scale)
        self._sync()

    # -------- Simulation & drag --------

    @property
    def state(self) -> LayoutState:
        return self.engine.state

    def step(self) -> bool:
        return self.engine.step()

    def drag_start(self, keyword: str, event: DragEvent) -> None:
        self.engine.drag_start(keyword, event)

    def drag(self, keyword: str, event: DragEvent) -> None:
        self.engine.drag(keyword, event)

    def drag_end(self, keyword: str, event: DragEvent) -> None:
        self.engine.drag_end(keyword, event)
