from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional, Tuple

import altair as alt
import pandas as pd

from medals.charts import MEDAL_LABELS, medal_color_scale, to_vega_spec
from medals.selection import SelectionState
from medals.settings import DashboardSettings
from medals.transform import IDENTITY, ViewTransform, date_to_position, nearest_index, position_to_date, rescale_domain

STACK_ORDER = {"gold": 0, "silver": 1, "bronze": 2}


def timeline_title(selection: SelectionState) -> str:
    if selection.discipline:
        return f"Focus: {selection.country_name} - {selection.discipline}"
    return f"Focus: Medal Timeline for {selection.country_name}"


def empty_message(selection: SelectionState) -> str:
    if selection.discipline:
        return "No medals in this discipline."
    return "No medals recorded for this country."


def _iso(ts: pd.Timestamp) -> str:
    return ts.isoformat() if (ts.hour or ts.minute or ts.second or ts.microsecond) else ts.strftime("%Y-%m-%d")


def _vl_datetime(ts: pd.Timestamp) -> alt.DateTime:
    return alt.DateTime(
        year=ts.year,
        month=ts.month,
        date=ts.day,
        hours=ts.hour,
        minutes=ts.minute,
        seconds=ts.second,
        milliseconds=ts.microsecond // 1000,
    )


def series_domain(series: pd.DataFrame) -> Tuple[pd.Timestamp, pd.Timestamp]:
    start, end = series["date"].iloc[0], series["date"].iloc[-1]
    if start == end:
        # a single day still needs a visible width
        start, end = start - pd.Timedelta(hours=12), end + pd.Timedelta(hours=12)
    return start, end


def series_records(series: pd.DataFrame) -> List[Dict[str, Any]]:
    out = series.copy()
    out["date"] = out["date"].dt.strftime("%Y-%m-%d")
    return out.to_dict(orient="records")


def _timeline_chart(
    series: pd.DataFrame,
    visible: Tuple[pd.Timestamp, pd.Timestamp],
    selection: SelectionState,
    settings: DashboardSettings,
) -> alt.Chart:
    long_df = series.melt(
        id_vars=["date", "total"],
        value_vars=list(STACK_ORDER),
        var_name="medal_key",
        value_name="count",
    )
    long_df["medal"] = long_df["medal_key"].map(MEDAL_LABELS)
    long_df["stack_order"] = long_df["medal_key"].map(STACK_ORDER)
    y_max = int(series["total"].max()) or 1
    return (
        alt.Chart(long_df)
        .mark_area(interpolate="monotone", opacity=0.85, clip=True)
        .encode(
            x=alt.X(
                "date:T",
                title="Medal date (scroll to zoom, drag to pan)",
                scale=alt.Scale(domain=[_vl_datetime(visible[0]), _vl_datetime(visible[1])]),
                axis=alt.Axis(tickCount=5, grid=False),
            ),
            y=alt.Y(
                "count:Q",
                stack="zero",
                title="Medals awarded",
                scale=alt.Scale(domain=[0, y_max], nice=True),
                axis=alt.Axis(tickCount=4, gridDash=[4, 4]),
            ),
            color=alt.Color("medal:N", scale=medal_color_scale(), legend=alt.Legend(title=None, orient="top")),
            order=alt.Order("stack_order:Q"),
            tooltip=[
                alt.Tooltip("date:T", title="Date", format="%b %d, %Y"),
                alt.Tooltip("medal:N", title="Medal"),
                alt.Tooltip("count:Q", title="Count"),
                alt.Tooltip("total:Q", title="Total"),
            ],
        )
        .properties(height=settings.timeline_height, title=timeline_title(selection))
    )


def compute_timeline(
    selection: SelectionState,
    series: pd.DataFrame,
    transform: ViewTransform = IDENTITY,
    *,
    settings: Optional[DashboardSettings] = None,
    error: Optional[str] = None,
) -> Dict[str, Any]:
    settings = settings or DashboardSettings()
    payload: Dict[str, Any] = {
        "view": "timeline",
        "selection": asdict(selection),
        "title": timeline_title(selection),
        "status": "ok",
        "message": None,
        "transform": asdict(transform),
        "series": [],
        "full_domain": None,
        "visible_domain": None,
        "charts": {},
    }
    if error is not None:
        payload.update(status="no_data", message=f"No data available: {error}")
        return payload
    if series.empty:
        payload.update(status="empty", message=empty_message(selection))
        return payload

    full = series_domain(series)
    visible = rescale_domain(full, transform)
    payload["series"] = series_records(series)
    payload["full_domain"] = [_iso(full[0]), _iso(full[1])]
    payload["visible_domain"] = [_iso(visible[0]), _iso(visible[1])]
    payload["charts"] = {"timeline": to_vega_spec(_timeline_chart(series, visible, selection, settings))}
    return payload


def timeline_readout(series: pd.DataFrame, transform: ViewTransform, position: float) -> Optional[Dict[str, Any]]:
    """Counts for the date nearest to a pointer at ``position`` (0..1 of the plot width)."""
    if series.empty:
        return None
    position = max(0.0, min(1.0, float(position)))
    dates = list(series["date"])
    domain = series_domain(series)
    when = position_to_date(domain, transform, position)
    row = series.iloc[nearest_index(dates, when)]
    gold, silver, bronze, total = (int(row[c]) for c in ("gold", "silver", "bronze", "total"))
    return {
        "date": row["date"].strftime("%Y-%m-%d"),
        "gold": gold,
        "silver": silver,
        "bronze": bronze,
        "total": total,
        "position": date_to_position(domain, transform, row["date"]),
        "text": f"{row['date']:%b %d, %Y} - Gold: {gold}, Silver: {silver}, Bronze: {bronze} (Total: {total})",
    }


class TimelineController:
    """Emits transform updates for pan/zoom gestures; never touches the selection."""

    def __init__(
        self,
        on_transform: Callable[[ViewTransform], None],
        current: Callable[[], ViewTransform],
        extent: Tuple[float, float],
        series: Optional[Callable[[], pd.DataFrame]] = None,
    ):
        self.on_transform = on_transform
        self._current = current
        self.extent = extent
        self._series = series

    def readout(self, position: float) -> Optional[Dict[str, Any]]:
        if self._series is None:
            return None
        return timeline_readout(self._series(), self._current(), position)

    def zoom(self, factor: float, anchor: float = 0.5) -> None:
        self.on_transform(self._current().zoomed(factor, anchor, self.extent))

    def pan(self, dx: float) -> None:
        self.on_transform(self._current().panned(dx, self.extent))

    def set_window(self, k: float, start: float) -> None:
        self.on_transform(ViewTransform.from_window(k, start, self.extent))

    def set_transform(self, transform: ViewTransform) -> None:
        self.on_transform(transform.constrained(self.extent))
