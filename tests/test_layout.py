"""Tests for the force layout engine."""

import math

import pytest

from keyword_atlas.config import LayoutConfig
from keyword_atlas.graph import KeywordNode
from keyword_atlas.layout import DragEvent, ForceLayoutEngine, LayoutState
from keyword_atlas.scale import AreaScale
from keyword_atlas.selection import DisplayEdge


def _engine(nodes, edges=(), **overrides):
    config = LayoutConfig(width=400, height=400, seed=7, **overrides)
    engine = ForceLayoutEngine(config)
    engine.set_display(nodes, list(edges), AreaScale.for_nodes(nodes, config.width, config.height))
    return engine


def _run_to_idle(engine, limit=1000):
    ticks = 0
    while engine.step():
        ticks += 1
        assert ticks < limit, "simulation did not cool down"
    return ticks


class TestStateMachine:
    """Idle → running → idle, with full energy on every new display set."""

    def test_new_engine_is_idle(self):
        engine = ForceLayoutEngine()
        assert engine.state is LayoutState.IDLE
        assert engine.step() is False

    def test_set_display_starts_at_full_energy(self):
        engine = _engine([KeywordNode("a"), KeywordNode("b")])
        assert engine.state is LayoutState.RUNNING
        assert engine.alpha == 1.0

    def test_cools_to_idle(self):
        engine = _engine([KeywordNode("a"), KeywordNode("b")])
        ticks = _run_to_idle(engine)

        assert engine.state is LayoutState.IDLE
        assert engine.alpha < engine.config.alpha_min
        assert 290 <= ticks <= 310

    def test_reloading_resets_alpha(self):
        nodes = [KeywordNode("a"), KeywordNode("b")]
        engine = _engine(nodes)
        _run_to_idle(engine)

        engine.set_display(nodes, [], engine.scale)
        assert engine.alpha == 1.0
        assert engine.state is LayoutState.RUNNING


class TestPlacement:

    def test_new_nodes_start_near_center(self):
        nodes = [KeywordNode(k) for k in "abcd"]
        engine = _engine(nodes)
        for node in nodes:
            assert abs(node.x - 200) <= engine.config.jitter
            assert abs(node.y - 200) <= engine.config.jitter
        assert len({(n.x, n.y) for n in nodes}) == 4

    def test_kept_nodes_keep_positions(self):
        a, b = KeywordNode("a"), KeywordNode("b")
        engine = _engine([a, b])
        for _ in range(20):
            engine.step()
        before = (a.x, a.y)

        d = KeywordNode("d")
        engine.set_display([a, d], [], engine.scale)

        assert (a.x, a.y) == before
        assert d.x is not None

    def test_link_distance_follows_display_size(self):
        engine = _engine([KeywordNode(k) for k in "abcd"], padding=5)
        assert engine.link_distance == pytest.approx(400 / 4 + 5)

    def test_unknown_edge_endpoint(self):
        engine = ForceLayoutEngine()
        with pytest.raises(ValueError):
            engine.set_display([KeywordNode("a")], [DisplayEdge("a", "zz")], AreaScale())


class TestForces:

    def test_circles_do_not_overlap_after_cooling(self):
        nodes = [KeywordNode(f"k{i}", dataset_count=i + 1) for i in range(6)]
        engine = _engine(nodes)
        _run_to_idle(engine)

        for i, a in enumerate(nodes):
            for b in nodes[i + 1:]:
                dist = math.hypot(a.x - b.x, a.y - b.y)
                reach = engine.scale(a.dataset_count) + engine.scale(b.dataset_count)
                assert dist >= 0.98 * reach

    def test_centroid_stays_at_center(self):
        nodes = [KeywordNode(k, dataset_count=2) for k in "abcde"]
        edges = [DisplayEdge("a", "b"), DisplayEdge("b", "c")]
        engine = _engine(nodes, edges)
        _run_to_idle(engine)

        cx = sum(n.x for n in nodes) / len(nodes)
        cy = sum(n.y for n in nodes) / len(nodes)
        assert cx == pytest.approx(200, abs=0.05)
        assert cy == pytest.approx(200, abs=0.05)

    def test_linked_pair_settles_at_link_distance(self):
        a, b = KeywordNode("a"), KeywordNode("b")
        engine = _engine([a, b], [DisplayEdge("a", "b")])
        _run_to_idle(engine)

        dist = math.hypot(a.x - b.x, a.y - b.y)
        assert dist == pytest.approx(engine.link_distance, rel=0.05)
        assert all(math.isfinite(v) for n in (a, b) for v in (n.x, n.y, n.vx, n.vy))

    def test_positional_bias_pulls_toward_center(self):
        node = KeywordNode("a")
        engine = _engine([node], position_strength=0.5)
        node.x, node.y = 300.0, 100.0
        engine.tick()
        assert node.vx < 0
        assert node.vy > 0


class TestTickCallbacks:

    def test_called_once_per_tick(self):
        engine = _engine([KeywordNode("a"), KeywordNode("b")])
        seen = []
        engine.on_tick(lambda: seen.append(engine.positions()))

        engine.step()
        engine.step()

        assert len(seen) == 2
        assert set(seen[-1]) == {"a", "b"}

    def test_not_called_when_idle(self):
        engine = _engine([KeywordNode("a")])
        _run_to_idle(engine)
        seen = []
        engine.on_tick(lambda: seen.append(1))

        engine.step()
        assert seen == []


class TestDrag:
    """Dragging pins a node and keeps the simulation warm."""

    def test_drag_cycle(self):
        a, b = KeywordNode("a"), KeywordNode("b")
        engine = _engine([a, b])

        engine.drag_start("a", DragEvent(a.x, a.y))
        assert engine.state is LayoutState.SETTLING
        assert engine.alpha_target == pytest.approx(0.3)
        assert (a.fx, a.fy) == (a.x, a.y)

        engine.drag("a", DragEvent(50.0, 60.0))
        engine.tick()
        assert (a.x, a.y) == (50.0, 60.0)
        assert (a.vx, a.vy) == (0.0, 0.0)

        engine.drag_end("a", DragEvent(50.0, 60.0))
        assert a.fx is None and a.fy is None
        assert engine.alpha_target == 0.0
        assert engine.state is LayoutState.RUNNING

    def test_drag_wakes_idle_engine(self):
        a, b = KeywordNode("a"), KeywordNode("b")
        engine = _engine([a, b])
        _run_to_idle(engine)
        low = engine.alpha

        engine.drag_start("b", DragEvent(b.x, b.y))
        assert engine.step() is True
        assert engine.alpha > low

    def test_concurrent_drags(self):
        a, b = KeywordNode("a"), KeywordNode("b")
        engine = _engine([a, b])

        engine.drag_start("a", DragEvent(0, 0))
        engine.drag_start("b", DragEvent(0, 0))
        engine.drag_end("a", DragEvent(0, 0))

        assert engine.alpha_target == pytest.approx(0.3)
        assert b.fx is not None

        engine.drag_end("b", DragEvent(0, 0))
        assert engine.alpha_target == 0.0

    def test_node_leaving_display_is_unpinned(self):
        a, b = KeywordNode("a"), KeywordNode("b")
        engine = _engine([a, b])
        engine.drag_start("a", DragEvent(a.x, a.y))

        engine.set_display([b], [], engine.scale)

        assert (a.fx, a.fy) == (None, None)
        assert engine.alpha_target == 0.0

    def test_reloaded_keyword_drops_stale_drag(self):
        """A new node with the same keyword does not inherit the old drag."""
        a, b = KeywordNode("a"), KeywordNode("b")
        engine = _engine([a, b])
        engine.drag_start("a", DragEvent(a.x, a.y))

        fresh = KeywordNode("a")
        engine.set_display([fresh, b], [], engine.scale)

        assert a.fx is None
        assert fresh.fx is None
        assert engine.state is LayoutState.RUNNING

    def test_drag_unknown_node(self):
        engine = _engine([KeywordNode("a")])
        with pytest.raises(KeyError):
            engine.drag_start("zz", DragEvent(0, 0))
