"""
Keyed enter/update/exit reconciliation of the displayed keyword graph.

The renderer keeps track of what is currently drawn and, given the next
display set, works out which elements must be created, which only resized,
and which removed. Drawing itself goes through a :class:`SceneBackend`, so any
toolkit able to draw circles and lines and report drag gestures can host the
graph. :class:`MplSceneBackend` draws onto a matplotlib Axes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from matplotlib.axes import Axes
from matplotlib.lines import Line2D
from matplotlib.patches import Circle
from matplotlib.text import Text

from .graph import KeywordNode
from .layout import DragEvent
from .scale import AreaScale
from .selection import DisplayEdge

logger = logging.getLogger(__name__)

DragCallback = Callable[[str, DragEvent], None]


@dataclass
class Delta:
    """Three-way difference between the drawn keys and the next keys."""
    enter: List[Hashable] = field(default_factory=list)
    update: List[Hashable] = field(default_factory=list)
    exit: List[Hashable] = field(default_factory=list)


@dataclass(frozen=True)
class DragHandlers:
    start: DragCallback
    drag: DragCallback
    end: DragCallback


def reconcile_keys(previous: Sequence[Hashable], current: Sequence[Hashable]) -> Delta:
    """Split keys into enter (new), update (kept) and exit (gone).

    ``enter`` and ``update`` follow the order of ``current``; ``exit`` follows
    ``previous``.
    """
    before = set(previous)
    after = set(current)
    return Delta(
        enter=[k for k in current if k not in before],
        update=[k for k in current if k in before],
        exit=[k for k in previous if k not in after],
    )


# --------------------------- Backend interface ---------------------------

class SceneBackend(ABC):
    """Drawing capabilities the renderer needs from a graphics toolkit."""

    @abstractmethod
    def add_node(self, node: KeywordNode, radius: float) -> None: ...

    @abstractmethod
    def resize_node(self, node: KeywordNode, radius: float) -> None: ...

    @abstractmethod
    def remove_node(self, node_id: str) -> None: ...

    @abstractmethod
    def move_node(self, node_id: str, x: float, y: float) -> None: ...

    @abstractmethod
    def add_edge(self, index: int) -> None: ...

    @abstractmethod
    def remove_edge(self, index: int) -> None: ...

    @abstractmethod
    def move_edge(self, index: int, x1: float, y1: float, x2: float, y2: float) -> None: ...

    @abstractmethod
    def attach_drag_handlers(self, node_id: str, handlers: DragHandlers) -> None: ...

    def flush(self) -> None:
        """Present pending changes (no-op by default)."""


# --------------------------- Renderer ---------------------------

class ReconciliationRenderer:
    """Apply display-set changes to a scene with minimal element churn."""

    def __init__(self, backend: SceneBackend, handlers: Optional[DragHandlers] = None):
        self.backend = backend
        self.handlers = handlers
        self.nodes: Dict[str, KeywordNode] = {}
        self.node_ids: List[str] = []
        self.edges: List[DisplayEdge] = []

    def render(self, nodes: Sequence[KeywordNode], edges: Sequence[DisplayEdge],
               scale: AreaScale) -> Tuple[Delta, Delta]:
        """Reconcile the scene with the next display set.

        Nodes are matched by id; edges by position, so an existing line is
        reused for whichever edge now sits at its index.
        """
        by_id = {n.id: n for n in nodes}
        node_delta = reconcile_keys(self.node_ids, [n.id for n in nodes])

        for node_id in node_delta.exit:
            self.backend.remove_node(node_id)
        for node_id in node_delta.enter:
            node = by_id[node_id]
            self.backend.add_node(node, scale(node.dataset_count))
            if self.handlers is not None:
                self.backend.attach_drag_handlers(node_id, self.handlers)
        for node_id in node_delta.update:
            node = by_id[node_id]
            self.backend.resize_node(node, scale(node.dataset_count))

        edge_delta = reconcile_keys(range(len(self.edges)), range(len(edges)))
        for index in reversed(edge_delta.exit):
            self.backend.remove_edge(index)
        for index in edge_delta.enter:
            self.backend.add_edge(index)

        self.nodes = by_id
        self.node_ids = [n.id for n in nodes]
        self.edges = list(edges)
        logger.debug("render: nodes +%d ~%d -%d, edges +%d ~%d -%d",
                     len(node_delta.enter), len(node_delta.update), len(node_delta.exit),
                     len(edge_delta.enter), len(edge_delta.update), len(edge_delta.exit))
        return node_delta, edge_delta

    def sync_positions(self) -> None:
        """Tick callback: move every drawn element to its node's position."""
        for node_id in self.node_ids:
            node = self.nodes[node_id]
            if node.x is not None and node.y is not None:
                self.backend.move_node(node_id, node.x, node.y)
        for index, edge in enumerate(self.edges):
            s, t = self.nodes[edge.source], self.nodes[edge.target]
            if s.x is None or t.x is None:
                continue
            self.backend.move_edge(index, s.x, s.y, t.x, t.y)
        self.backend.flush()


# --------------------------- Matplotlib backend ---------------------------

class MplSceneBackend(SceneBackend):
    """Circles and lines on a matplotlib Axes, with mouse dragging.

    The axes are set up like a screen: origin top-left, ``y`` growing
    downward, one data unit per canvas unit.
    """

    node_color = "#9ecae1"
    node_edge_color = "#2f2f2f"
    edge_color = "#999999"

    def __init__(self, ax: Axes, width: float, height: float, show_labels: bool = True,
                 font_size: int = 8):
        self.ax = ax
        self.show_labels = show_labels
        self.font_size = font_size
        self.circles: Dict[str, Circle] = {}
        self.labels: Dict[str, Text] = {}
        self.lines: Dict[int, Line2D] = {}
        self.counts: Dict[str, int] = {}
        self._handlers: Dict[str, DragHandlers] = {}
        self._dragging: Optional[str] = None
        self.set_extent(width, height)

        self._hover = ax.annotate(
            "", xy=(0, 0), xytext=(8, 8), textcoords="offset points",
            bbox=dict(boxstyle="round", fc="#ffffe0", ec="#999999"), zorder=5,
        )
        self._hover.set_visible(False)

        canvas = ax.figure.canvas
        self._cids = [
            canvas.mpl_connect("button_press_event", self._on_press),
            canvas.mpl_connect("motion_notify_event", self._on_motion),
            canvas.mpl_connect("button_release_event", self._on_release),
        ]

    def set_extent(self, width: float, height: float) -> None:
        self.ax.set_xlim(0, width)
        self.ax.set_ylim(height, 0)
        self.ax.set_aspect("equal", adjustable="box")
        self.ax.set_axis_off()

    # -------- SceneBackend --------
    def add_node(self, node: KeywordNode, radius: float) -> None:
        center = (node.x or 0.0, node.y or 0.0)
        circle = Circle(center, radius, facecolor=self.node_color,
                        edgecolor=self.node_edge_color, linewidth=1.0, zorder=2)
        circle.set_gid(node.id)
        self.ax.add_patch(circle)
        self.circles[node.id] = circle
        self.counts[node.id] = node.dataset_count
        if self.show_labels:
            self.labels[node.id] = self.ax.text(
                center[0], center[1], node.id, fontsize=self.font_size,
                ha="center", va="center", zorder=3, clip_on=True,
            )

    def resize_node(self, node: KeywordNode, radius: float) -> None:
        self.circles[node.id].set_radius(radius)
        self.counts[node.id] = node.dataset_count

    def remove_node(self, node_id: str) -> None:
        self.circles.pop(node_id).remove()
        self.counts.pop(node_id, None)
        self._handlers.pop(node_id, None)
        label = self.labels.pop(node_id, None)
        if label is not None:
            label.remove()
        if self._dragging == node_id:
            self._dragging = None

    def move_node(self, node_id: str, x: float, y: float) -> None:
        self.circles[node_id].center = (x, y)
        label = self.labels.get(node_id)
        if label is not None:
            label.set_position((x, y))

    def add_edge(self, index: int) -> None:
        line = Line2D([], [], color=self.edge_color, linewidth=1.0, zorder=1)
        self.ax.add_line(line)
        self.lines[index] = line

    def remove_edge(self, index: int) -> None:
        self.lines.pop(index).remove()

    def move_edge(self, index: int, x1: float, y1: float, x2: float, y2: float) -> None:
        self.lines[index].set_data([x1, x2], [y1, y2])

    def attach_drag_handlers(self, node_id: str, handlers: DragHandlers) -> None:
        self._handlers[node_id] = handlers

    def flush(self) -> None:
        self.ax.figure.canvas.draw_idle()

    # -------- Hit testing & mouse events --------
    def node_at(self, x: float, y: float) -> Optional[str]:
        """Topmost circle containing the data point ``(x, y)``."""
        for node_id in reversed(list(self.circles)):
            circle = self.circles[node_id]
            cx, cy = circle.center
            r = circle.get_radius()
            if (x - cx) ** 2 + (y - cy) ** 2 <= r * r:
                return node_id
        return None

    def _on_press(self, event) -> None:
        if event.inaxes is not self.ax or event.button != 1 or event.xdata is None:
            return
        node_id = self.node_at(event.xdata, event.ydata)
        if node_id is None or node_id not in self._handlers:
            return
        self._dragging = node_id
        self._hover.set_visible(False)
        self._handlers[node_id].start(node_id, DragEvent(event.xdata, event.ydata))

    def _on_motion(self, event) -> None:
        if event.inaxes is not self.ax or event.xdata is None:
            return
        if self._dragging is not None:
            node_id = self._dragging
            self._handlers[node_id].drag(node_id, DragEvent(event.xdata, event.ydata))
            return
        node_id = self.node_at(event.xdata, event.ydata)
        if node_id is None:
            if self._hover.get_visible():
                self._hover.set_visible(False)
                self.flush()
            return
        self._hover.xy = self.circles[node_id].center
        self._hover.set_text(f"{node_id} ({self.counts.get(node_id, 0)})")
        self._hover.set_visible(True)
        self.flush()

    def _on_release(self, event) -> None:
        if self._dragging is None:
            return
        node_id = self._dragging
        self._dragging = None
        x = event.xdata if event.xdata is not None else self.circles[node_id].center[0]
        y = event.ydata if event.ydata is not None else self.circles[node_id].center[1]
        self._handlers[node_id].end(node_id, DragEvent(x, y))
