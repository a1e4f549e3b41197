"""Square-root scale from keyword counts to circle radii.

Bubble area, not radius, should follow the data value, so the radius grows
with the square root of the count.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

from .graph import KeywordNode


class AreaScale:
    """Map a count domain ``[1, domain_max]`` onto a radius range."""

    def __init__(self, domain: Tuple[float, float] = (1.0, 1.0),
                 range_: Tuple[float, float] = (1.0, 1.0)):
        self.domain = domain
        self.range = range_

    @classmethod
    def configure(cls, domain_max: float, display_count: int,
                  width: float, height: float) -> "AreaScale":
        """Fit the range so ``display_count`` circles fit inside the canvas."""
        count = max(1, display_count)
        r_max = max(1.0, min(width, height) / count)
        return cls((1.0, float(max(1.0, domain_max))), (1.0, r_max))

    @classmethod
    def for_nodes(cls, nodes: Sequence[KeywordNode], width: float, height: float) -> "AreaScale":
        domain_max = max((n.dataset_count for n in nodes), default=1)
        return cls.configure(domain_max, len(nodes), width, height)

    def __call__(self, value: float) -> float:
        d0, d1 = math.sqrt(self.domain[0]), math.sqrt(self.domain[1])
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2.0
        t = (math.sqrt(max(0.0, value)) - d0) / (d1 - d0)
        return r0 + t * (r1 - r0)
