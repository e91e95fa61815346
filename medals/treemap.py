"""Squarified treemap layout on top of the ``squarify`` package.

Values are placed in the order given (the overview passes them largest
first). Non-positive values get a zero-area rectangle at the origin corner,
since ``squarify`` divides by each rectangle's side.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import squarify

Rect = Tuple[float, float, float, float]


def treemap_rects(values: Sequence[float], x0: float, y0: float, x1: float, y1: float) -> List[Rect]:
    """One ``(x0, y0, x1, y1)`` rectangle per value, areas proportional to value."""
    width, height = x1 - x0, y1 - y0
    rects: List[Rect] = [(x0, y0, x0, y0)] * len(values)
    positive = [i for i, v in enumerate(values) if v > 0]
    if not positive or width <= 0 or height <= 0:
        return rects

    sizes = squarify.normalize_sizes([float(values[i]) for i in positive], width, height)
    for i, box in zip(positive, squarify.squarify(sizes, x0, y0, width, height)):
        rects[i] = (box["x"], box["y"], box["x"] + box["dx"], box["y"] + box["dy"])
    return rects
