"""Pan/zoom state for the timeline's time axis.

Positions are expressed in the normalized plot range [0, 1]. A transform maps
a base position ``p`` to ``p * k + x``; the visible part of the base axis is
therefore ``[invert(0), invert(1)]``.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import pandas as pd

SCALE_EXTENT: Tuple[float, float] = (1.0, 32.0)


def clamp_scale(k: float, extent: Tuple[float, float] = SCALE_EXTENT) -> float:
    lo, hi = extent
    return max(lo, min(hi, float(k)))


@dataclass(frozen=True)
class ViewTransform:
    k: float = 1.0
    x: float = 0.0

    @property
    def is_identity(self) -> bool:
        return self.k == 1.0 and self.x == 0.0

    def apply(self, position: float) -> float:
        return position * self.k + self.x

    def invert(self, position: float) -> float:
        return (position - self.x) / self.k

    def visible_window(self) -> Tuple[float, float]:
        return self.invert(0.0), self.invert(1.0)

    def constrained(self, extent: Tuple[float, float] = SCALE_EXTENT) -> "ViewTransform":
        """Clamp the scale to ``extent`` and keep the window inside [0, 1]."""
        k = clamp_scale(self.k, extent)
        x = max(1.0 - k, min(0.0, self.x))
        return ViewTransform(k=k, x=x)

    def zoomed(self, factor: float, anchor: float = 0.5, extent: Tuple[float, float] = SCALE_EXTENT) -> "ViewTransform":
        """Scale by ``factor`` keeping the point under ``anchor`` fixed."""
        if factor <= 0:
            raise ValueError("zoom factor must be positive")
        k = clamp_scale(self.k * factor, extent)
        x = anchor - (anchor - self.x) * k / self.k
        return ViewTransform(k=k, x=x).constrained(extent)

    def panned(self, dx: float, extent: Tuple[float, float] = SCALE_EXTENT) -> "ViewTransform":
        return ViewTransform(k=self.k, x=self.x + dx).constrained(extent)

    @classmethod
    def from_window(cls, k: float, start: float, extent: Tuple[float, float] = SCALE_EXTENT) -> "ViewTransform":
        """Build the transform that shows ``[start, start + 1/k]`` of the base axis."""
        k = clamp_scale(k, extent)
        return cls(k=k, x=-start * k).constrained(extent)


IDENTITY = ViewTransform()


def rescale_domain(domain: Tuple[pd.Timestamp, pd.Timestamp], transform: ViewTransform) -> Tuple[pd.Timestamp, pd.Timestamp]:
    start, end = domain
    span = end - start
    lo, hi = transform.visible_window()
    return start + span * lo, start + span * hi


def position_to_date(domain: Tuple[pd.Timestamp, pd.Timestamp], transform: ViewTransform, position: float) -> pd.Timestamp:
    start, end = domain
    return start + (end - start) * transform.invert(position)


def nearest_index(dates: Sequence[pd.Timestamp], when: pd.Timestamp) -> Optional[int]:
    """Index of the date closest to ``when`` in an ascending sequence."""
    if not len(dates):
        return None
    i = bisect_left(dates, when)
    if i >= len(dates):
        return len(dates) - 1
    if i > 0 and (when - dates[i - 1]) <= (dates[i] - when):
        return i - 1
    return i


def date_to_position(domain: Tuple[pd.Timestamp, pd.Timestamp], transform: ViewTransform, when: pd.Timestamp) -> float:
    """Screen position (0..1 when visible) of ``when`` under ``transform``."""
    start, end = domain
    return transform.apply((when - start) / (end - start))
