from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class DashboardSettings:
    default_country_code: str = "USA"
    default_country_name: str = "United States"
    top_disciplines: int = 12
    label_top_n: int = 12
    scale_extent: Tuple[float, float] = (1.0, 32.0)
    treemap_width: float = 960.0
    treemap_height: float = 540.0
    timeline_height: int = 300


def _as_float(value: object, default: float) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except Exception:
        return default


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except Exception:
        return default


def normalize_settings(raw: Optional[dict] = None) -> DashboardSettings:
    raw = raw or {}
    defaults = DashboardSettings()

    code = str(raw.get("default_country_code") or defaults.default_country_code).strip().upper()
    name = str(raw.get("default_country_name") or "").strip()
    if not name:
        name = defaults.default_country_name if code == defaults.default_country_code else code

    top_disciplines = max(1, min(50, _as_int(raw.get("top_disciplines", defaults.top_disciplines), defaults.top_disciplines)))
    label_top_n = max(0, _as_int(raw.get("label_top_n", defaults.label_top_n), defaults.label_top_n))

    extent = raw.get("scale_extent") or defaults.scale_extent
    try:
        lo, hi = (float(extent[0]), float(extent[1]))
    except Exception:
        lo, hi = defaults.scale_extent
    lo = max(1.0, lo)
    hi = max(lo, hi)

    width = _as_float(raw.get("treemap_width", defaults.treemap_width), defaults.treemap_width)
    height = _as_float(raw.get("treemap_height", defaults.treemap_height), defaults.treemap_height)
    if width <= 0 or height <= 0:
        width, height = defaults.treemap_width, defaults.treemap_height

    return DashboardSettings(
        default_country_code=code,
        default_country_name=name,
        top_disciplines=top_disciplines,
        label_top_n=label_top_n,
        scale_extent=(lo, hi),
        treemap_width=width,
        treemap_height=height,
        timeline_height=max(120, _as_int(raw.get("timeline_height", defaults.timeline_height), defaults.timeline_height)),
    )
