"""Derived views of the medal tables.

Every function here is pure: frames in, frames or plain lists out, and an empty
input gives an empty (but correctly shaped) result.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from medals.data import MEDAL_KEYS, MEDAL_TYPES

TIMELINE_COLUMNS = ["date", "gold", "silver", "bronze", "total"]
MATRIX_COLUMNS = ["discipline", "medal_type", "count"]
DEFAULT_TOP_DISCIPLINES = 12


def _empty_timeline() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "date": pd.Series(dtype="datetime64[ns]"),
            "gold": pd.Series(dtype="int64"),
            "silver": pd.Series(dtype="int64"),
            "bronze": pd.Series(dtype="int64"),
            "total": pd.Series(dtype="int64"),
        }
    )


def filter_records(records: pd.DataFrame, country_code: str, discipline: Optional[str] = None) -> pd.DataFrame:
    if records.empty or "country_code" not in records.columns:
        return records.iloc[0:0]
    mask = records["country_code"] == country_code
    if discipline:
        mask &= records["discipline"] == discipline
    return records[mask]


def timeline_series(records: pd.DataFrame, country_code: str, discipline: Optional[str] = None) -> pd.DataFrame:
    """Medal counts per day for one country, ascending by date.

    Rows whose date does not parse as YYYY-MM-DD are dropped.
    """
    filtered = filter_records(records, country_code, discipline)
    if filtered.empty:
        return _empty_timeline()

    dates = pd.to_datetime(filtered["medal_date"], format="%Y-%m-%d", errors="coerce")
    frame = pd.DataFrame({"date": dates, "medal": filtered["medal_type"].map(MEDAL_KEYS)}).dropna(subset=["date"])
    if frame.empty:
        return _empty_timeline()

    flags = pd.DataFrame({key: frame["medal"].eq(key) for key in ("gold", "silver", "bronze")})
    counts = flags.groupby(frame["date"]).sum().astype("int64")
    counts["total"] = counts["gold"] + counts["silver"] + counts["bronze"]
    counts = counts.sort_index()
    counts.index.name = "date"
    return counts.reset_index()[TIMELINE_COLUMNS]


def top_disciplines(records: pd.DataFrame, country_code: str, limit: int = DEFAULT_TOP_DISCIPLINES) -> List[str]:
    """Disciplines with the most medals for a country; ties keep first-seen order."""
    filtered = filter_records(records, country_code)
    if filtered.empty or limit <= 0:
        return []
    disciplines = filtered["discipline"].astype(str)
    disciplines = disciplines[disciplines.str.strip() != ""]
    if disciplines.empty:
        return []
    counts = disciplines.groupby(disciplines, sort=False).size()
    counts = counts.sort_values(ascending=False, kind="stable")
    return [str(d) for d in counts.index[:limit]]


def discipline_matrix(records: pd.DataFrame, country_code: str, disciplines: Sequence[str]) -> pd.DataFrame:
    """Dense (discipline x medal type) counts; absent pairs are zero."""
    filtered = filter_records(records, country_code)
    lookup: Dict[Tuple[str, str], int] = {}
    if not filtered.empty:
        lookup = {k: int(v) for k, v in filtered.groupby(["discipline", "medal_type"]).size().items()}
    rows = [
        {"discipline": d, "medal_type": m, "count": lookup.get((d, m), 0)}
        for d in disciplines
        for m in MEDAL_TYPES
    ]
    return pd.DataFrame(rows, columns=MATRIX_COLUMNS)


def overview_color_domain(totals: pd.DataFrame) -> Tuple[int, int]:
    if totals.empty or "total" not in totals.columns:
        return 0, 1
    values = pd.to_numeric(totals["total"], errors="coerce").dropna()
    if values.empty:
        return 0, 1
    return int(values.min()), int(values.max())


def country_lookup(totals: pd.DataFrame) -> Dict[str, str]:
    if totals.empty or not {"country_code", "country"}.issubset(totals.columns):
        return {}
    pairs = totals.drop_duplicates(subset=["country_code"])[["country_code", "country"]]
    return {str(code): str(name) for code, name in pairs.itertuples(index=False)}
