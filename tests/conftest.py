from __future__ import annotations

import pytest

from medals.coordinator import Coordinator
from medals.data import MedalRecord, MedalStore, records_to_frame

MEDALS_CSV = """medal_type,medal_date,name,country_code,discipline
Gold Medal,2024-07-28,A,USA,Swimming
Silver Medal,2024-07-28,B,USA,Swimming
Gold Medal,2024-07-29,C,USA,Athletics
Bronze Medal,2024-07-30,D,FRA,Judo
Gold Medal,2024-08-01,E,FRA,Judo
Silver Medal,2024-08-02,F,FRA,Cycling Track
Gold Medal,,G,USA,Rowing
Bronze Medal,2024-08-03,H,,Rowing
Bronze Medal,not-a-date,I,USA,Rowing
"""

TOTALS_CSV = """country_code,country,Gold Medal,Silver Medal,Bronze Medal,Total
USA,United States,40,44,42,126
FRA,France,16,26,22,64
JPN,Japan,20,12,13,45
,Nowhere,1,0,0,1
KEN,Kenya,4,2,,6
"""


@pytest.fixture
def scenario_records():
    return records_to_frame(
        [
            MedalRecord("Gold Medal", "2024-07-28", "USA", "Swimming"),
            MedalRecord("Silver Medal", "2024-07-28", "USA", "Swimming"),
            MedalRecord("Gold Medal", "2024-07-29", "USA", "Athletics"),
        ]
    )


@pytest.fixture
def csv_sources(tmp_path):
    medals = tmp_path / "medals.csv"
    totals = tmp_path / "medals_total.csv"
    medals.write_text(MEDALS_CSV, encoding="utf-8")
    totals.write_text(TOTALS_CSV, encoding="utf-8")
    return medals, totals


@pytest.fixture
def store(csv_sources):
    return MedalStore(*csv_sources)


@pytest.fixture
def coordinator(store):
    coord = Coordinator(store)
    coord.load(force=True)
    return coord
