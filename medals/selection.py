from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Optional

from medals.settings import DashboardSettings


@dataclass(frozen=True)
class SelectionState:
    country_code: str = "USA"
    country_name: str = "United States"
    discipline: Optional[str] = None

    def select_country(self, code: str, name: str) -> "SelectionState":
        # a new country always drops the discipline filter
        return SelectionState(country_code=code, country_name=name, discipline=None)

    def select_discipline(self, discipline: Optional[str]) -> "SelectionState":
        return replace(self, discipline=(discipline or "").strip() or None)


def default_selection(settings: Optional[DashboardSettings] = None) -> SelectionState:
    settings = settings or DashboardSettings()
    return SelectionState(country_code=settings.default_country_code, country_name=settings.default_country_name)


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    if not s or s.lower() in {"nan", "none", "null", "all"}:
        return None
    return s


def resolve_country_name(code: str, name: Optional[str], countries: Optional[Mapping[str, str]] = None) -> str:
    if name:
        return name
    if countries and code in countries:
        return countries[code]
    return code


def normalize_selection(
    raw: dict,
    *,
    countries: Optional[Mapping[str, str]] = None,
    settings: Optional[DashboardSettings] = None,
) -> SelectionState:
    base = default_selection(settings)
    code = _clean(raw.get("country_code"))
    if code is None:
        return base.select_discipline(_clean(raw.get("discipline")))
    code = code.upper()
    name = resolve_country_name(code, _clean(raw.get("country_name")), countries)
    return SelectionState(country_code=code, country_name=name, discipline=_clean(raw.get("discipline")))
