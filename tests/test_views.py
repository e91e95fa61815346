import json

import pandas as pd
import pytest

from medals.aggregation import discipline_matrix, timeline_series, top_disciplines
from medals.data import CountryTotal, totals_to_frame
from medals.selection import SelectionState
from medals.settings import DashboardSettings
from medals.transform import IDENTITY, ViewTransform
from medals.view_detail import DetailController, compute_detail
from medals.view_overview import OverviewController, compute_overview
from medals.view_timeline import TimelineController, compute_timeline, timeline_readout


@pytest.fixture
def totals():
    return totals_to_frame(
        [
            CountryTotal("FRA", "France", 16, 26, 22, 64),
            CountryTotal("USA", "United States", 40, 44, 42, 126),
            CountryTotal("KEN", "Kenya", 4, 2, 5, 11),
        ]
    )


def test_overview_leaves_sorted_and_highlighted(totals):
    payload = compute_overview(SelectionState("FRA", "France"), totals, settings=DashboardSettings(label_top_n=2))
    assert payload["status"] == "ok"
    leaves = payload["leaves"]
    assert [leaf["country_code"] for leaf in leaves] == ["USA", "FRA", "KEN"]
    assert [leaf["selected"] for leaf in leaves] == [False, True, False]
    assert [leaf["label"] for leaf in leaves] == ["USA (126)", "FRA (64)", ""]
    assert payload["color_domain"] == [11, 126]
    spec = json.dumps(payload["charts"]["treemap"])
    assert "country_pick" in spec
    assert "yelloworangebrown" in spec


def test_overview_empty_and_error_states(totals):
    empty = compute_overview(SelectionState(), totals.iloc[0:0])
    assert empty["status"] == "empty"
    assert empty["charts"] == {}
    failed = compute_overview(SelectionState(), totals, error="medals.csv missing")
    assert failed["status"] == "no_data"
    assert "medals.csv missing" in failed["message"]


def test_overview_controller_resolves_name():
    emitted = []
    controller = OverviewController(lambda code, name: emitted.append((code, name)), lambda: {"FRA": "France"})
    controller.activate("fra")
    controller.activate("ZZZ", "Atlantis")
    assert emitted == [("FRA", "France"), ("ZZZ", "Atlantis")]
    with pytest.raises(ValueError):
        controller.activate("  ")


def test_timeline_payload(scenario_records):
    selection = SelectionState()
    payload = compute_timeline(selection, timeline_series(scenario_records, "USA"), IDENTITY)
    assert payload["status"] == "ok"
    assert payload["title"] == "Focus: Medal Timeline for United States"
    assert payload["series"][0] == {"date": "2024-07-28", "gold": 1, "silver": 1, "bronze": 0, "total": 2}
    assert payload["full_domain"] == ["2024-07-28", "2024-07-29"]
    assert payload["visible_domain"] == payload["full_domain"]
    assert "timeline" in payload["charts"]


def test_timeline_visible_domain_follows_transform(scenario_records):
    series = timeline_series(scenario_records, "USA")
    payload = compute_timeline(SelectionState(), series, ViewTransform.from_window(2, 0.0))
    assert payload["visible_domain"] == ["2024-07-28", "2024-07-28T12:00:00"]
    assert payload["transform"] == {"k": 2.0, "x": 0.0}


def test_timeline_empty_messages_depend_on_discipline(scenario_records):
    country_only = SelectionState("FRA", "France")
    payload = compute_timeline(country_only, timeline_series(scenario_records, "FRA"))
    assert payload["status"] == "empty"
    assert payload["message"] == "No medals recorded for this country."

    filtered = SelectionState("USA", "United States", "Judo")
    payload = compute_timeline(filtered, timeline_series(scenario_records, "USA", "Judo"))
    assert payload["message"] == "No medals in this discipline."
    assert payload["title"] == "Focus: United States - Judo"


def test_timeline_readout(scenario_records):
    series = timeline_series(scenario_records, "USA")
    first = timeline_readout(series, IDENTITY, 0.1)
    assert first["date"] == "2024-07-28"
    assert first["text"] == "Jul 28, 2024 - Gold: 1, Silver: 1, Bronze: 0 (Total: 2)"
    assert timeline_readout(series, IDENTITY, 0.9)["date"] == "2024-07-29"
    assert timeline_readout(series.iloc[0:0], IDENTITY, 0.5) is None


def test_timeline_controller_emits_transforms():
    current = [IDENTITY]
    controller = TimelineController(current.append, lambda: current[-1], (1.0, 32.0))
    controller.zoom(64)
    assert current[-1].k == 32.0
    controller.pan(-100)
    assert current[-1].visible_window()[1] == pytest.approx(1.0)
    controller.set_window(1, 0.7)
    assert current[-1] == IDENTITY
    assert controller.readout(0.5) is None


def test_timeline_controller_readout_uses_current_window(scenario_records):
    series = timeline_series(scenario_records, "USA")
    window = [ViewTransform.from_window(2, 0.5)]
    controller = TimelineController(window.append, lambda: window[-1], (1.0, 32.0), series=lambda: series)
    # 0.5 of the right half is 2024-07-28 18:00
    assert controller.readout(0.5)["date"] == "2024-07-29"


def test_detail_payload(scenario_records):
    disciplines = top_disciplines(scenario_records, "USA")
    matrix = discipline_matrix(scenario_records, "USA", disciplines)
    payload = compute_detail(SelectionState(), disciplines, matrix)
    assert payload["status"] == "ok"
    assert payload["title"] == "Detail: Discipline Mix for United States (Top 12)"
    assert payload["disciplines"] == ["Swimming", "Athletics"]
    assert len(payload["cells"]) == 6
    assert "discipline_pick" in json.dumps(payload["charts"]["heatmap"])


def test_detail_empty_state():
    payload = compute_detail(SelectionState("ATA", "Antarctica"), [], pd.DataFrame(columns=["discipline", "medal_type", "count"]))
    assert payload["status"] == "empty"
    assert payload["message"] == "No discipline-level medals recorded for this country."


def test_detail_controller_toggles():
    current = {"discipline": None}
    emitted = []

    def emit(discipline):
        emitted.append(discipline)
        current["discipline"] = discipline

    controller = DetailController(emit, lambda: current["discipline"])
    controller.activate("Judo")
    controller.activate("Judo")
    controller.activate("  ")
    controller.activate("Cycling Track")
    controller.clear()
    assert emitted == ["Judo", None, None, "Cycling Track", None]
