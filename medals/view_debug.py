from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from medals.data import MEDAL_TYPES, DashboardData


def compute_debug(data: DashboardData) -> Dict[str, Any]:
    medals = data.medals
    totals = data.totals
    payload: Dict[str, Any] = {
        "view": "debug",
        "sources": list(data.sources),
        "error": data.error,
        "row_counts": {"medal_rows": int(len(medals)), "country_rows": int(len(totals))},
        "dropped_rows": dict(data.dropped_rows),
        "cleaning_checks": {"unparsable_dates": 0, "unknown_medal_types": 0, "blank_disciplines": 0},
        "date_coverage": None,
        "distinct": {"countries": 0, "disciplines": 0},
        "countries_without_events": [],
    }
    if medals.empty:
        return payload

    dates = pd.to_datetime(medals["medal_date"], format="%Y-%m-%d", errors="coerce")
    payload["cleaning_checks"] = {
        "unparsable_dates": int(dates.isna().sum()),
        "unknown_medal_types": int((~medals["medal_type"].isin(MEDAL_TYPES)).sum()),
        "blank_disciplines": int((medals["discipline"].str.strip() == "").sum()),
    }
    if dates.notna().any():
        payload["date_coverage"] = {
            "min": dates.min().strftime("%Y-%m-%d"),
            "max": dates.max().strftime("%Y-%m-%d"),
            "days_present": int(dates.dropna().nunique()),
        }
    payload["distinct"] = {
        "countries": int(medals["country_code"].nunique()),
        "disciplines": int(medals.loc[medals["discipline"].str.strip() != "", "discipline"].nunique()),
    }
    if not totals.empty:
        missing = sorted(set(totals["country_code"]) - set(medals["country_code"]))
        payload["countries_without_events"] = missing[:50]
    return payload
