from medals.selection import SelectionState, default_selection, normalize_selection
from medals.settings import DashboardSettings, normalize_settings


def test_default_selection():
    state = default_selection()
    assert (state.country_code, state.country_name, state.discipline) == ("USA", "United States", None)


def test_select_country_clears_discipline():
    state = SelectionState().select_discipline("Swimming")
    moved = state.select_country("FRA", "France")
    assert moved == SelectionState("FRA", "France", None)


def test_select_discipline_keeps_country():
    state = SelectionState("FRA", "France").select_discipline("Judo")
    assert (state.country_code, state.country_name, state.discipline) == ("FRA", "France", "Judo")
    assert state.select_discipline("").discipline is None
    assert state.select_discipline("   ").discipline is None


def test_country_then_discipline_then_country():
    state = SelectionState().select_country("FRA", "France").select_discipline("Judo").select_country("USA", "United States")
    assert state.discipline is None


def test_normalize_selection():
    countries = {"FRA": "France"}
    state = normalize_selection({"country_code": " fra ", "discipline": "  "}, countries=countries)
    assert state == SelectionState("FRA", "France", None)
    unknown = normalize_selection({"country_code": "xyz"}, countries=countries)
    assert unknown.country_name == "XYZ"
    fallback = normalize_selection({"discipline": "Judo"})
    assert fallback == SelectionState("USA", "United States", "Judo")


def test_normalize_settings():
    settings = normalize_settings({"default_country_code": "fra", "top_disciplines": "200", "scale_extent": [0, 8]})
    assert settings.default_country_code == "FRA"
    assert settings.default_country_name == "FRA"
    assert settings.top_disciplines == 50
    assert settings.scale_extent == (1.0, 8.0)
    assert normalize_settings() == DashboardSettings()
    assert normalize_settings({"treemap_width": -5}).treemap_width == DashboardSettings().treemap_width
