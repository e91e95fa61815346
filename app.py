import asyncio
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from medals.coordinator import VIEWS, Coordinator
from medals.selection import SelectionState, normalize_selection
from medals.settings import normalize_settings
from medals.view_debug import compute_debug


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-actions {font-size: 0.9rem;color: #2563eb;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_selection_summary(selection: SelectionState, zoom: float) -> str:
    chips = [
        f"Country: {selection.country_name} ({selection.country_code})",
        f"Discipline: {selection.discipline or 'All'}",
        f"Timeline zoom: {zoom:.1f}x",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


# ---------- coordinator wiring ----------
def _store_payload(view: str):
    def listener(payload: Dict[str, Any]) -> None:
        st.session_state.setdefault("payloads", {})[view] = payload

    return listener


def get_coordinator() -> Coordinator:
    if "coordinator" not in st.session_state:
        # ?country_code=FRA&discipline=Judo&top_disciplines=8 style deep links
        params = st.query_params.to_dict()
        coord = Coordinator(settings=normalize_settings(params))
        for view in VIEWS:
            coord.subscribe(view, _store_payload(view))
        coord.load()
        if params.get("country_code") or params.get("discipline"):
            coord.restore_selection(normalize_selection(params, countries=coord.countries(), settings=coord.settings))
        st.session_state["coordinator"] = coord
    return st.session_state["coordinator"]


def _selection_points(key: str, param: str) -> List[Dict[str, Any]]:
    event = st.session_state.get(key)
    if not event:
        return []
    selection = event.get("selection", {}) or {}
    return list(selection.get(param, []) or [])


def _reset_timeline_widgets():
    st.session_state["timeline_zoom"] = 1.0
    st.session_state["timeline_start"] = 0.0


def on_country_pick():
    points = _selection_points("overview_chart", "country_pick")
    if not points:
        return
    point = points[0]
    get_coordinator().overview.activate(point["country_code"], point.get("country"))
    _reset_timeline_widgets()


def on_discipline_pick():
    coord = get_coordinator()
    points = _selection_points("detail_chart", "discipline_pick")
    if points:
        coord.detail.activate(points[0]["discipline"])
    else:
        coord.detail.clear()


def on_window_change():
    coord = get_coordinator()
    coord.set_window(st.session_state["timeline_zoom"], st.session_state["timeline_start"])


def on_reload():
    asyncio.run(get_coordinator().reload())
    _reset_timeline_widgets()


def render_payload(payload: Dict[str, Any], *, key: Optional[str] = None, on_select=None, selection_mode: Optional[str] = None):
    status = payload.get("status")
    if status == "no_data":
        st.error(payload.get("message") or "No data available.")
        return
    if status != "ok":
        st.info(payload.get("message") or "Nothing to show for this selection.")
        return
    spec = next(iter(payload["charts"].values()))
    if on_select is None:
        st.vega_lite_chart(spec, use_container_width=True)
    else:
        st.vega_lite_chart(spec, use_container_width=True, on_select=on_select, selection_mode=selection_mode, key=key)


# ---------- UI setup ----------
st.set_page_config(page_title="Paris 2024 Medals Dashboard", layout="wide")
inject_base_styles()
st.title("Paris 2024 Medals: Overview Dashboard")

coord = get_coordinator()
st.session_state.setdefault("timeline_zoom", coord.transform.k)
st.session_state.setdefault("timeline_start", -coord.transform.x / coord.transform.k)

with st.sidebar:
    st.markdown("### Data")
    st.button("Reload data", on_click=on_reload)
    if coord.data is not None and coord.data.error:
        st.error(f"Data unavailable: {coord.data.error}")
    st.markdown("---")
    st.markdown("### Timeline")
    st.slider("Zoom", min_value=1.0, max_value=float(coord.settings.scale_extent[1]), step=0.5, key="timeline_zoom", on_change=on_window_change)
    st.slider("Pan (window start)", min_value=0.0, max_value=1.0, step=0.01, key="timeline_start", on_change=on_window_change)
    inspect_at = st.slider("Inspect position", min_value=0.0, max_value=1.0, value=0.5, step=0.01)
    if coord.selection.discipline:
        st.button("Show all disciplines", on_click=coord.detail.clear)

coord.flush()
payloads: Dict[str, Dict[str, Any]] = st.session_state.setdefault("payloads", {})
for view in VIEWS:
    if view not in payloads:
        payloads[view] = coord.render(view)

st.markdown(f"<div class='chip-row'>{format_selection_summary(coord.selection, coord.transform.k)}</div>", unsafe_allow_html=True)

left, right = st.columns([1, 1])
with left:
    with card("Overview", "Click a country"):
        render_payload(payloads["overview"], key="overview_chart", on_select=on_country_pick, selection_mode="country_pick")
with right:
    timeline_payload = payloads["timeline"]
    with card(timeline_payload.get("title", "Timeline")):
        render_payload(timeline_payload)
        readout = coord.timeline_readout(inspect_at)
        if readout is not None:
            st.caption(readout["text"])

with card("Detail", "Click a discipline to filter the timeline"):
    render_payload(payloads["detail"], key="detail_chart", on_select=on_discipline_pick, selection_mode="discipline_pick")
    series = coord.timeline_series()
    if not series.empty:
        st.download_button(
            "Export timeline CSV",
            data=series.to_csv(index=False).encode("utf-8"),
            file_name=f"timeline_{coord.selection.country_code}.csv",
            mime="text/csv",
        )

if coord.data is not None:
    with st.expander("Data quality", expanded=False):
        debug = compute_debug(coord.data)
        st.write({"row_counts": debug["row_counts"], "dropped_rows": debug["dropped_rows"], "cleaning_checks": debug["cleaning_checks"]})
        if debug["date_coverage"]:
            st.dataframe(pd.DataFrame([debug["date_coverage"]]), hide_index=True)
