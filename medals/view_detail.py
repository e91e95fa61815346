from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

import altair as alt
import pandas as pd

from medals.charts import to_vega_spec
from medals.data import MEDAL_TYPES
from medals.selection import SelectionState
from medals.settings import DashboardSettings

EMPTY_MESSAGE = "No discipline-level medals recorded for this country."


def detail_title(selection: SelectionState, settings: DashboardSettings) -> str:
    return f"Detail: Discipline Mix for {selection.country_name} (Top {settings.top_disciplines})"


def _heatmap_chart(matrix: pd.DataFrame, disciplines: List[str], title: str) -> alt.Chart:
    pick = alt.selection_point(name="discipline_pick", fields=["discipline"], on="click")
    max_count = int(matrix["count"].max()) or 1
    return (
        alt.Chart(matrix)
        .mark_rect(cursor="pointer")
        .encode(
            x=alt.X(
                "medal_type:N",
                sort=MEDAL_TYPES,
                title="Medal type",
                axis=alt.Axis(labelExpr="replace(datum.label, ' Medal', '')", labelAngle=0),
            ),
            y=alt.Y(
                "discipline:N",
                sort=disciplines,
                title="Discipline",
                axis=alt.Axis(labelLimit=130),
            ),
            color=alt.Color("count:Q", title="Medals", scale=alt.Scale(scheme="blues", domain=[0, max_count])),
            tooltip=[
                alt.Tooltip("discipline:N", title="Discipline"),
                alt.Tooltip("medal_type:N", title="Medal"),
                alt.Tooltip("count:Q", title="Count"),
            ],
        )
        .add_params(pick)
        .properties(title=title)
    )


def compute_detail(
    selection: SelectionState,
    disciplines: List[str],
    matrix: pd.DataFrame,
    *,
    settings: Optional[DashboardSettings] = None,
    error: Optional[str] = None,
) -> Dict[str, Any]:
    settings = settings or DashboardSettings()
    title = detail_title(selection, settings)
    payload: Dict[str, Any] = {
        "view": "detail",
        "selection": asdict(selection),
        "title": title,
        "status": "ok",
        "message": None,
        "disciplines": list(disciplines),
        "cells": [],
        "charts": {},
    }
    if error is not None:
        payload.update(status="no_data", message=f"No data available: {error}")
        return payload
    if matrix.empty:
        payload.update(status="empty", message=EMPTY_MESSAGE)
        return payload

    payload["cells"] = matrix.to_dict(orient="records")
    payload["charts"] = {"heatmap": to_vega_spec(_heatmap_chart(matrix, list(disciplines), title))}
    return payload


class DetailController:
    """The only source of discipline selections.

    Activating the discipline that is already selected clears the filter.
    """

    def __init__(self, on_select_discipline: Callable[[Optional[str]], None], current: Callable[[], Optional[str]]):
        self.on_select_discipline = on_select_discipline
        self._current = current

    def activate(self, discipline: Optional[str]) -> None:
        discipline = (discipline or "").strip() or None
        if discipline is not None and discipline == self._current():
            discipline = None
        self.on_select_discipline(discipline)

    def clear(self) -> None:
        self.on_select_discipline(None)
