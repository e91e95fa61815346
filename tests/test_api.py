import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from medals.coordinator import Coordinator
from medals.data import MedalStore


@pytest.fixture
def client(csv_sources):
    with TestClient(create_app(Coordinator(MedalStore(*csv_sources)))) as test_client:
        yield test_client


def test_views_after_startup(client):
    res = client.get("/views")
    assert res.status_code == 200
    body = res.json()
    assert set(body) == {"overview", "timeline", "detail"}
    assert body["overview"]["status"] == "ok"
    assert body["timeline"]["title"] == "Focus: Medal Timeline for United States"


def test_unknown_view_is_404(client):
    res = client.get("/views/map")
    assert res.status_code == 404
    assert res.json()["type"] == "KeyError"
    assert client.get("/export/map").status_code == 404


def test_select_country_then_discipline(client):
    res = client.post("/selection/country", json={"country_code": "fra"})
    assert res.status_code == 200
    assert res.json()["selection"] == {"country_code": "FRA", "country_name": "France", "discipline": None}

    res = client.post("/selection/discipline", json={"discipline": "Judo"})
    views = res.json()["views"]
    assert views["timeline"]["title"] == "Focus: France - Judo"
    assert [row["total"] for row in views["timeline"]["series"]] == [1, 1]

    res = client.post("/selection/country", json={"country_code": "USA"})
    assert res.json()["selection"]["discipline"] is None


def test_select_country_validation(client):
    assert client.post("/selection/country", json={"country_code": ""}).status_code == 422
    res = client.post("/selection/country", json={"country_code": "   "})
    assert res.status_code == 422
    assert res.json()["type"] == "ValueError"


def test_zoom_and_readout(client):
    res = client.post("/timeline/zoom", json={"factor": 2, "anchor": 0})
    assert res.status_code == 200
    body = res.json()
    assert body["transform"] == {"k": 2.0, "x": 0.0}
    assert body["visible_domain"] == ["2024-07-28", "2024-07-28T12:00:00"]

    readout = client.get("/timeline/readout", params={"position": 1.0}).json()["readout"]
    assert readout["date"] == "2024-07-28"
    assert client.get("/timeline/readout", params={"position": 2}).status_code == 422

    selection = client.get("/selection").json()
    assert selection["transform"]["k"] == 2.0


def test_zoom_rejects_non_positive_factor(client):
    assert client.post("/timeline/zoom", json={"factor": 0}).status_code == 422


def test_window_and_pan(client):
    body = client.post("/timeline/window", json={"k": 4, "start": 0.5}).json()
    assert body["transform"]["k"] == 4.0
    body = client.post("/timeline/pan", json={"dx": -10}).json()
    assert body["transform"]["x"] == pytest.approx(-3.0)


def test_meta_endpoints(client):
    countries = client.get("/meta/countries").json()["countries"]
    assert [c["country_code"] for c in countries] == ["FRA", "JPN", "KEN", "USA"]
    disciplines = client.get("/meta/disciplines").json()
    assert disciplines == {"country_code": "USA", "disciplines": ["Swimming", "Athletics", "Rowing"]}


def test_export_detail_csv(client):
    res = client.get("/export/detail")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    lines = res.text.strip().splitlines()
    assert lines[0] == "discipline,medal_type,count"
    assert lines[1] == "Swimming,Gold Medal,1"
    assert len(lines) == 1 + 3 * 3


def test_reload_and_debug(client):
    res = client.post("/reload")
    assert res.json() == {"applied": True, "error": None, "row_counts": {"medal_rows": 7, "country_rows": 4}}
    debug = client.get("/debug").json()
    assert debug["dropped_rows"] == {"medals": 2, "totals": 1}
    assert debug["cleaning_checks"]["unparsable_dates"] == 1


def test_discipline_endpoint_sets_rather_than_toggles(client):
    for _ in range(2):
        res = client.post("/selection/discipline", json={"discipline": "Swimming"})
        assert res.json()["selection"]["discipline"] == "Swimming"
    res = client.post("/selection/discipline", json={"discipline": None})
    assert res.json()["selection"]["discipline"] is None


def test_restore_selection_normalizes_raw_input(client):
    client.post("/timeline/zoom", json={"factor": 4})
    res = client.post("/selection", json={"country_code": " fra ", "discipline": " Judo "})
    body = res.json()
    assert res.status_code == 200
    assert body["selection"] == {"country_code": "FRA", "country_name": "France", "discipline": "Judo"}
    assert body["views"]["timeline"]["transform"] == {"k": 1.0, "x": 0.0}

    res = client.post("/selection", json={"country_code": "", "discipline": "null"})
    assert res.json()["selection"] == {"country_code": "USA", "country_name": "United States", "discipline": None}


def test_create_app_normalizes_settings(csv_sources):
    application = create_app(settings={"top_disciplines": "1", "default_country_code": "fra"})
    coord = application.state.coordinator
    assert coord.settings.top_disciplines == 1
    assert coord.selection.country_code == "FRA"
    coord.store = MedalStore(*csv_sources)
    with TestClient(application) as test_client:
        detail = test_client.get("/views/detail").json()
    assert detail["disciplines"] == ["Judo"]
    assert detail["title"] == "Detail: Discipline Mix for France (Top 1)"


def test_readout_reports_screen_position(client):
    readout = client.get("/timeline/readout", params={"position": 0.9}).json()["readout"]
    assert readout["date"] == "2024-07-29"
    assert readout["position"] == pytest.approx(1.0)
