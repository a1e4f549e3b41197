"""
Incremental force-directed layout for the displayed keyword subgraph.

The engine is a cooperative stepper: the host calls :meth:`ForceLayoutEngine.step`
once per animation frame, each step runs one physical timestep and then calls
the registered tick callbacks so the scene can be moved to the new positions.

Forces (applied in this order every tick):

* collision: circles of radius ``AreaScale(dataset_count)`` must not overlap;
  relaxed over several passes per tick.
* link: springs between connected keywords pulling toward a target distance
  derived from the canvas size and the number of displayed nodes.
* many-body: pairwise repulsion (negative strength).
* centering: keeps the centroid at the canvas centre, optionally helped by a
  per-axis positional pull.

The energy parameter ``alpha`` decays toward ``alpha_target`` each tick; once
it falls below ``alpha_min`` with nothing holding it up the engine goes idle.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import LayoutConfig
from .graph import KeywordNode
from .scale import AreaScale
from .selection import DisplayEdge

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]

_JIGGLE = 1e-6


class LayoutState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    SETTLING = "settling"


@dataclass(frozen=True)
class DragEvent:
    """Pointer position delivered with a drag gesture, in canvas coordinates."""
    x: float
    y: float


class ForceLayoutEngine:
    """Physical simulation positioning the displayed keyword nodes."""

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()
        self.nodes: List[KeywordNode] = []
        self.edges: List[DisplayEdge] = []
        self.scale = AreaScale()
        self.alpha = 1.0
        self.alpha_target = 0.0
        self.link_distance = self._link_distance(0)
        self._running = False
        self._index: Dict[str, int] = {}
        self._link_src = np.zeros(0, dtype=int)
        self._link_dst = np.zeros(0, dtype=int)
        self._active_drags: Dict[str, KeywordNode] = {}
        self._callbacks: List[TickCallback] = []
        self._rng = np.random.default_rng(self.config.seed)
        self.ticks = 0

    # -------- Configuration --------

    @property
    def state(self) -> LayoutState:
        if not self._running:
            return LayoutState.IDLE
        if self.alpha_target > 0.0:
            return LayoutState.SETTLING
        return LayoutState.RUNNING

    @property
    def center(self) -> Tuple[float, float]:
        return self.config.width / 2.0, self.config.height / 2.0

    def set_config(self, config: LayoutConfig) -> None:
        """Swap physical parameters; positions are kept."""
        self.config = config
        self.link_distance = self._link_distance(len(self.nodes))

    def on_tick(self, callback: TickCallback) -> None:
        self._callbacks.append(callback)

    def _link_distance(self, count: int) -> float:
        cfg = self.config
        return min(cfg.width, cfg.height) / max(1, count) + cfg.padding

    # -------- Display set --------

    def set_display(self, nodes: Sequence[KeywordNode], edges: Sequence[DisplayEdge],
                    scale: AreaScale) -> None:
        """Load a new node/link set and restart at full energy.

        Nodes that were displayed before keep their positions; new ones are
        placed near the centre with a random offset so no two start stacked.
        """
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.scale = scale
        self._index = {n.id: i for i, n in enumerate(self.nodes)}

        cx, cy = self.center
        jitter = self.config.jitter
        for node in self.nodes:
            if node.x is None or node.y is None:
                node.x = cx + float(self._rng.uniform(-jitter, jitter))
                node.y = cy + float(self._rng.uniform(-jitter, jitter))
                node.vx = node.vy = 0.0

        try:
            self._link_src = np.array([self._index[e.source] for e in self.edges], dtype=int)
            self._link_dst = np.array([self._index[e.target] for e in self.edges], dtype=int)
        except KeyError as e:
            raise ValueError(f"Edge endpoint {e} is not among the displayed nodes") from e

        # Drags on nodes that just left the display can never end normally
        for node_id, node in list(self._active_drags.items()):
            index = self._index.get(node_id)
            if index is None or self.nodes[index] is not node:
                del self._active_drags[node_id]
                node.fx = node.fy = None
        if not self._active_drags:
            self.alpha_target = 0.0

        self.link_distance = self._link_distance(len(self.nodes))
        self.alpha = 1.0
        self.restart()
        logger.debug("layout: %d nodes, %d links, link distance %.1f",
                     len(self.nodes), len(self.edges), self.link_distance)

    def restart(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    def positions(self) -> Dict[str, Tuple[float, float]]:
        return {n.id: (n.x, n.y) for n in self.nodes}

    # -------- Stepping --------

    def step(self) -> bool:
        """Advance one frame if the simulation is active; returns whether it still is."""
        if not self._running:
            return False
        return self.tick()

    def tick(self) -> bool:
        """Run one timestep, sync node attributes and notify tick callbacks."""
        cfg = self.config
        self.alpha += (self.alpha_target - self.alpha) * cfg.alpha_decay
        self.ticks += 1

        if self.nodes:
            x = np.array([n.x for n in self.nodes], dtype=float)
            y = np.array([n.y for n in self.nodes], dtype=float)
            vx = np.array([n.vx for n in self.nodes], dtype=float)
            vy = np.array([n.vy for n in self.nodes], dtype=float)

            self._force_collide(x, y, vx, vy)
            self._force_link(x, y, vx, vy)
            self._force_many_body(x, y, vx, vy)
            self._force_position(x, y, vx, vy)
            self._force_center(x, y)

            decay = 1.0 - cfg.velocity_decay
            for i, node in enumerate(self.nodes):
                if node.fx is None:
                    vx[i] *= decay
                    x[i] += vx[i]
                else:
                    x[i] = node.fx
                    vx[i] = 0.0
                if node.fy is None:
                    vy[i] *= decay
                    y[i] += vy[i]
                else:
                    y[i] = node.fy
                    vy[i] = 0.0
                node.x, node.y = float(x[i]), float(y[i])
                node.vx, node.vy = float(vx[i]), float(vy[i])

        for callback in self._callbacks:
            callback()

        if self.alpha < cfg.alpha_min:
            self.stop()
            logger.debug("layout cooled after %d ticks", self.ticks)
        return self._running

    def _jiggle(self, shape) -> np.ndarray:
        return (self._rng.random(shape) - 0.5) * _JIGGLE

    # -------- Forces --------

    def _force_collide(self, x: np.ndarray, y: np.ndarray,
                       vx: np.ndarray, vy: np.ndarray) -> None:
        n = len(x)
        if n < 2:
            return
        radii = np.array([self.scale(node.dataset_count) for node in self.nodes], dtype=float)
        r2 = radii * radii
        reach = radii[:, None] + radii[None, :]
        share = r2[None, :] / (r2[:, None] + r2[None, :])  # part of the push taken by i
        upper = np.triu(np.ones((n, n), dtype=bool), k=1)
        strength = self.config.collide_strength

        for _ in range(max(1, self.config.collide_iterations)):
            px = x + vx
            py = y + vy
            dx = px[:, None] - px[None, :]
            dy = py[:, None] - py[None, :]
            d2 = dx * dx + dy * dy
            hit = upper & (d2 < reach * reach)
            if not hit.any():
                break
            dx = np.where(hit & (dx == 0), self._jiggle(dx.shape), dx)
            dy = np.where(hit & (dy == 0), self._jiggle(dy.shape), dy)
            dist = np.sqrt(dx * dx + dy * dy)
            safe = np.where(hit, dist, 1.0)
            push = np.where(hit, (reach - safe) / safe * strength, 0.0)
            ox = dx * push
            oy = dy * push
            vx += (ox * share).sum(axis=1) - (ox * (1.0 - share)).sum(axis=0)
            vy += (oy * share).sum(axis=1) - (oy * (1.0 - share)).sum(axis=0)

    def _force_link(self, x: np.ndarray, y: np.ndarray,
                    vx: np.ndarray, vy: np.ndarray) -> None:
        if not len(self._link_src):
            return
        src, dst = self._link_src, self._link_dst
        count = np.bincount(np.concatenate([src, dst]), minlength=len(x)).astype(float)
        strength = 1.0 / np.minimum(count[src], count[dst])
        bias = count[src] / (count[src] + count[dst])

        dx = x[dst] + vx[dst] - x[src] - vx[src]
        dy = y[dst] + vy[dst] - y[src] - vy[src]
        dx = np.where(dx == 0, self._jiggle(dx.shape), dx)
        dy = np.where(dy == 0, self._jiggle(dy.shape), dy)
        dist = np.sqrt(dx * dx + dy * dy)
        pull = (dist - self.link_distance) / dist * self.alpha * strength
        dx *= pull
        dy *= pull
        np.add.at(vx, dst, -dx * bias)
        np.add.at(vy, dst, -dy * bias)
        np.add.at(vx, src, dx * (1.0 - bias))
        np.add.at(vy, src, dy * (1.0 - bias))

    def _force_many_body(self, x: np.ndarray, y: np.ndarray,
                         vx: np.ndarray, vy: np.ndarray) -> None:
        n = len(x)
        if n < 2:
            return
        off_diag = ~np.eye(n, dtype=bool)
        dx = x[None, :] - x[:, None]
        dy = y[None, :] - y[:, None]
        dx = np.where(off_diag & (dx == 0), self._jiggle(dx.shape), dx)
        dy = np.where(off_diag & (dy == 0), self._jiggle(dy.shape), dy)
        d2 = dx * dx + dy * dy
        dmin2 = self.config.distance_min ** 2
        d2 = np.where(d2 < dmin2, np.sqrt(dmin2 * d2), d2)
        weight = np.where(off_diag, self.config.charge_strength * self.alpha / np.where(off_diag, d2, 1.0), 0.0)
        vx += (dx * weight).sum(axis=1)
        vy += (dy * weight).sum(axis=1)

    def _force_position(self, x: np.ndarray, y: np.ndarray,
                        vx: np.ndarray, vy: np.ndarray) -> None:
        k = self.config.position_strength
        if k <= 0.0:
            return
        cx, cy = self.center
        vx += (cx - x) * k * self.alpha
        vy += (cy - y) * k * self.alpha

    def _force_center(self, x: np.ndarray, y: np.ndarray) -> None:
        cx, cy = self.center
        x -= x.mean() - cx
        y -= y.mean() - cy

    # -------- Drag interaction --------

    def _node(self, node_id: str) -> KeywordNode:
        try:
            return self.nodes[self._index[node_id]]
        except KeyError:
            raise KeyError(f"{node_id!r} is not displayed") from None

    def drag_start(self, node_id: str, event: Optional[DragEvent] = None) -> None:
        """Pin the node where it is and keep the simulation warm while dragging."""
        node = self._node(node_id)
        if not self._active_drags:
            self.alpha_target = self.config.drag_alpha_target
            self.restart()
        self._active_drags[node_id] = node
        node.fx, node.fy = node.x, node.y

    def drag(self, node_id: str, event: DragEvent) -> None:
        node = self._node(node_id)
        node.fx, node.fy = event.x, event.y

    def drag_end(self, node_id: str, event: Optional[DragEvent] = None) -> None:
        node = self._node(node_id)
        self._active_drags.pop(node_id, None)
        if not self._active_drags:
            self.alpha_target = 0.0
        node.fx = node.fy = None
