from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable, Dict, Mapping, Optional

import altair as alt
import pandas as pd

from medals.aggregation import overview_color_domain
from medals.charts import DEFAULT_STROKE, SELECTED_STROKE, to_vega_spec
from medals.selection import SelectionState, resolve_country_name
from medals.settings import DashboardSettings
from medals.treemap import treemap_rects

TITLE = "Overview: Total Medals by Country (Treemap)"
SUBTITLE = "Click a country to update the focus views."
LEAF_COLUMNS = ["country_code", "country", "gold", "silver", "bronze", "total", "x0", "y0", "x1", "y1"]


def layout_leaves(totals: pd.DataFrame, settings: DashboardSettings, selected_code: Optional[str] = None) -> pd.DataFrame:
    if totals.empty:
        return pd.DataFrame(columns=LEAF_COLUMNS + ["selected", "label"])
    ordered = totals.sort_values("total", ascending=False, kind="stable").reset_index(drop=True)
    rects = treemap_rects(ordered["total"].tolist(), 0.0, 0.0, settings.treemap_width, settings.treemap_height)
    geometry = pd.DataFrame(rects, columns=["x0", "y0", "x1", "y1"])
    leaves = pd.concat([ordered, geometry], axis=1)[LEAF_COLUMNS]
    leaves["selected"] = leaves["country_code"] == selected_code
    labeled = leaves.index < settings.label_top_n
    leaves["label"] = ""
    leaves.loc[labeled, "label"] = leaves.loc[labeled, "country_code"] + " (" + leaves.loc[labeled, "total"].astype(str) + ")"
    return leaves


def _treemap_chart(leaves: pd.DataFrame, domain: tuple, settings: DashboardSettings) -> alt.LayerChart:
    pick = alt.selection_point(name="country_pick", fields=["country_code", "country"], on="click")
    base = alt.Chart(leaves)
    rects = (
        base.mark_rect(cursor="pointer")
        .encode(
            x=alt.X("x0:Q", axis=None, scale=alt.Scale(domain=[0, settings.treemap_width], nice=False)),
            x2="x1:Q",
            y=alt.Y("y0:Q", axis=None, scale=alt.Scale(domain=[0, settings.treemap_height], nice=False, reverse=True)),
            y2="y1:Q",
            color=alt.Color(
                "total:Q",
                title="Total medals (color)",
                scale=alt.Scale(scheme="yelloworangebrown", domain=list(domain)),
            ),
            stroke=alt.condition(alt.datum.selected, alt.value(SELECTED_STROKE), alt.value(DEFAULT_STROKE)),
            strokeWidth=alt.condition(alt.datum.selected, alt.value(2), alt.value(1)),
            tooltip=[
                alt.Tooltip("country:N", title="Country"),
                alt.Tooltip("gold:Q", title="Gold"),
                alt.Tooltip("silver:Q", title="Silver"),
                alt.Tooltip("bronze:Q", title="Bronze"),
                alt.Tooltip("total:Q", title="Total"),
            ],
        )
        .add_params(pick)
    )
    labels = (
        base.transform_filter("datum.label != ''")
        .mark_text(align="left", baseline="top", dx=6, dy=6, fontSize=11, color="#1b1b1b")
        .encode(x="x0:Q", y="y0:Q", text="label:N")
    )
    return alt.layer(rects, labels).properties(
        width=settings.treemap_width,
        height=settings.treemap_height,
        title=alt.TitleParams(TITLE, subtitle=[SUBTITLE], anchor="start"),
    )


def compute_overview(
    selection: SelectionState,
    totals: pd.DataFrame,
    *,
    settings: Optional[DashboardSettings] = None,
    error: Optional[str] = None,
) -> Dict[str, Any]:
    settings = settings or DashboardSettings()
    payload: Dict[str, Any] = {
        "view": "overview",
        "selection": asdict(selection),
        "title": TITLE,
        "subtitle": SUBTITLE,
        "status": "ok",
        "message": None,
        "color_domain": list(overview_color_domain(totals)),
        "leaves": [],
        "charts": {},
    }
    if error is not None:
        payload.update(status="no_data", message=f"No data available: {error}")
        return payload
    if totals.empty:
        payload.update(status="empty", message="No country totals loaded.")
        return payload

    leaves = layout_leaves(totals, settings, selection.country_code)
    payload["leaves"] = leaves.to_dict(orient="records")
    payload["charts"] = {"treemap": to_vega_spec(_treemap_chart(leaves, payload["color_domain"], settings))}
    return payload


class OverviewController:
    """Turns leaf activations into ``on_select_country(code, name)`` calls."""

    def __init__(self, on_select_country: Callable[[str, str], None], countries: Callable[[], Mapping[str, str]]):
        self.on_select_country = on_select_country
        self._countries = countries

    def activate(self, country_code: str, country_name: Optional[str] = None) -> None:
        code = str(country_code).strip().upper()
        if not code:
            raise ValueError("country code is required")
        self.on_select_country(code, resolve_country_name(code, country_name, self._countries()))
