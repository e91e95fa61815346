from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
MEDALS_CSV = DATA_DIR / "medals.csv"
TOTALS_CSV = DATA_DIR / "medals_total.csv"

MEDAL_TYPES = ["Gold Medal", "Silver Medal", "Bronze Medal"]
MEDAL_KEYS = {"Gold Medal": "gold", "Silver Medal": "silver", "Bronze Medal": "bronze"}

MEDAL_COLUMNS = ["medal_type", "medal_date", "country_code", "discipline"]

TOTALS_COLUMNS = {
    "country_code": "country_code",
    "country": "country",
    "Gold Medal": "gold",
    "Silver Medal": "silver",
    "Bronze Medal": "bronze",
    "Total": "total",
}
TOTALS_COUNT_COLUMNS = ["gold", "silver", "bronze", "total"]

Source = Union[str, Path]


class LoadError(Exception):
    """A data source could not be read or lacks required columns."""


@dataclass(frozen=True)
class MedalRecord:
    medal_type: str
    medal_date: str
    country_code: str
    discipline: str


@dataclass(frozen=True)
class CountryTotal:
    country_code: str
    country: str
    gold: int = 0
    silver: int = 0
    bronze: int = 0
    total: int = 0


@dataclass(frozen=True, eq=False)
class DashboardData:
    medals: pd.DataFrame
    totals: pd.DataFrame
    sources: Tuple[str, ...] = ()
    dropped_rows: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def empty(cls, error: Optional[str] = None) -> "DashboardData":
        return cls(
            medals=pd.DataFrame(columns=MEDAL_COLUMNS),
            totals=pd.DataFrame(columns=list(TOTALS_COLUMNS.values())),
            error=error,
        )

    @property
    def has_data(self) -> bool:
        return self.error is None and not (self.medals.empty and self.totals.empty)


def records_to_frame(records: Iterable[MedalRecord]) -> pd.DataFrame:
    rows = [asdict(r) for r in records]
    if not rows:
        return pd.DataFrame(columns=MEDAL_COLUMNS)
    return pd.DataFrame(rows, columns=MEDAL_COLUMNS)


def totals_to_frame(totals: Iterable[CountryTotal]) -> pd.DataFrame:
    rows = [asdict(t) for t in totals]
    if not rows:
        return pd.DataFrame(columns=list(TOTALS_COLUMNS.values()))
    return pd.DataFrame(rows, columns=list(TOTALS_COLUMNS.values()))


def is_remote(source: Source) -> bool:
    return str(source).lower().startswith(("http://", "https://"))


def source_signature(sources: Iterable[Source]) -> Optional[Tuple[Tuple[str, float], ...]]:
    """Name + mtime per local file, or None when a source cannot be fingerprinted."""
    sig: List[Tuple[str, float]] = []
    for src in sources:
        if is_remote(src):
            return None
        path = Path(src)
        try:
            sig.append((str(path), path.stat().st_mtime))
        except OSError as exc:
            raise LoadError(f"Cannot read {path.name}: {exc}") from exc
    return tuple(sig)


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            series = df[col].astype("string").str.strip()
            series = series.replace({"nan": pd.NA, "None": pd.NA, "": pd.NA})
            df[col] = series
    return df


def read_table(source: Source, required: Iterable[str]) -> pd.DataFrame:
    name = Path(str(source)).name
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False)
    except (OSError, ValueError) as exc:
        raise LoadError(f"Cannot read {name}: {exc}") from exc
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise LoadError(f"{name} is missing columns: {', '.join(missing)}")
    return df


# ---------------- Loaders ----------------
def load_medal_records(source: Source) -> Tuple[pd.DataFrame, int]:
    df = read_table(source, MEDAL_COLUMNS)
    df = df[MEDAL_COLUMNS].copy()
    df = coerce_str_safe(df, MEDAL_COLUMNS)
    before = len(df)
    df = df.dropna(subset=["medal_date", "country_code"])
    df["medal_type"] = df["medal_type"].fillna("")
    df["discipline"] = df["discipline"].fillna("")
    df = df.astype(str).reset_index(drop=True)
    return df, before - len(df)


def load_country_totals(source: Source) -> Tuple[pd.DataFrame, int]:
    df = read_table(source, ["country_code"])
    df = df.rename(columns=TOTALS_COLUMNS)
    for col in TOTALS_COLUMNS.values():
        if col not in df.columns:
            df[col] = ""
    df = df[list(TOTALS_COLUMNS.values())].copy()
    df = coerce_str_safe(df, ["country_code", "country"])
    before = len(df)
    df = df.dropna(subset=["country_code"])
    df["country"] = df["country"].fillna(df["country_code"])
    for col in TOTALS_COUNT_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(int)
    df["country_code"] = df["country_code"].astype(str)
    df["country"] = df["country"].astype(str)
    return df.reset_index(drop=True), before - len(df)


def _load_uncached(medals_source: Source, totals_source: Source) -> DashboardData:
    medals, dropped_medals = load_medal_records(medals_source)
    totals, dropped_totals = load_country_totals(totals_source)
    logger.info(
        "Loaded %d medal records (%d dropped) and %d country totals (%d dropped)",
        len(medals),
        dropped_medals,
        len(totals),
        dropped_totals,
    )
    return DashboardData(
        medals=medals,
        totals=totals,
        sources=(str(medals_source), str(totals_source)),
        dropped_rows={"medals": dropped_medals, "totals": dropped_totals},
    )


@lru_cache(maxsize=4)
def _load_cached(medals_source: str, totals_source: str, files_sig: Tuple[Tuple[str, float], ...]) -> DashboardData:
    return _load_uncached(medals_source, totals_source)


class MedalStore:
    """Reads the medal events table and the country totals table."""

    def __init__(self, medals_source: Source = MEDALS_CSV, totals_source: Source = TOTALS_CSV):
        self.medals_source = medals_source
        self.totals_source = totals_source

    def load(self, *, force: bool = False) -> DashboardData:
        if force:
            _load_cached.cache_clear()
        files_sig = source_signature([self.medals_source, self.totals_source])
        if files_sig is None:
            return _load_uncached(self.medals_source, self.totals_source)
        return _load_cached(str(self.medals_source), str(self.totals_source), files_sig)
