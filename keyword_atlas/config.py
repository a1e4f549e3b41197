"""
Defaults and tunables for keyword aggregation and the force layout.

The module-level constants mirror the values the visualizer has always shipped
with; the dataclasses bundle them so the host UI can rebuild a configuration
from its spin boxes and hand it to a session.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

# Project Open Data 1.1 field names
RECORDS_FIELD = "dataset"
KEYWORDS_FIELD = "keyword"

NUMBER_INITIAL_KEYWORDS = 20
PADDING = 5
ITERATIONS = 16
CHARGE_STRENGTH = -30.0

CANVAS_WIDTH = 960
CANVAS_HEIGHT = 600

DEFAULT_LOCATION = "https://www.data.gov/data.json"
FETCH_TIMEOUT = 30.0
FRAME_INTERVAL_MS = 16


class DuplicatePolicy(enum.Enum):
    """How a keyword repeated inside a single record is counted."""

    COUNT_ONCE = "count-once"
    COUNT_EACH = "count-each"  # legacy: every occurrence increments


@dataclass(frozen=True)
class AggregationPolicy:
    """Options for building the keyword graph.

    Attributes
    ----------
    keywords_field : str
        Record field holding the keyword list.
    initial_keywords : int
        Number of most frequent keywords shown after a load.
    symmetric_links : bool
        Record each co-occurrence on both endpoints. ``False`` keeps only the
        earlier-to-later link of each sorted record.
    duplicates : DuplicatePolicy
        Counting rule for repeated keywords within one record.
    """
    keywords_field: str = KEYWORDS_FIELD
    initial_keywords: int = NUMBER_INITIAL_KEYWORDS
    symmetric_links: bool = True
    duplicates: DuplicatePolicy = DuplicatePolicy.COUNT_ONCE


@dataclass(frozen=True)
class LayoutConfig:
    """Physical parameters of the force simulation.

    ``alpha_decay`` defaults to the rate that cools alpha from 1 to
    ``alpha_min`` in about 300 ticks.
    """
    width: float = CANVAS_WIDTH
    height: float = CANVAS_HEIGHT
    alpha_min: float = 0.001
    alpha_decay: float = 1.0 - 0.001 ** (1.0 / 300.0)
    velocity_decay: float = 0.4
    drag_alpha_target: float = 0.3
    padding: float = PADDING
    collide_iterations: int = ITERATIONS
    collide_strength: float = 1.0
    charge_strength: float = CHARGE_STRENGTH
    distance_min: float = 1.0
    position_strength: float = 0.0
    jitter: float = 10.0
    seed: Optional[int] = None
