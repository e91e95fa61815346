from __future__ import annotations

from typing import Any, Dict

import altair as alt

alt.data_transformers.disable_max_rows()

MEDAL_COLORS = {"gold": "#d4af37", "silver": "#c0c0c0", "bronze": "#cd7f32"}
MEDAL_LABELS = {"gold": "Gold", "silver": "Silver", "bronze": "Bronze"}
SELECTED_STROKE = "#111111"
DEFAULT_STROKE = "#ffffff"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def medal_color_scale() -> alt.Scale:
    keys = list(MEDAL_COLORS)
    return alt.Scale(domain=[MEDAL_LABELS[k] for k in keys], range=[MEDAL_COLORS[k] for k in keys])
