from datetime import date

import pytest

from src.quarter_records.quarter_records.core.enums import GradingPeriod
from src.quarter_records.quarter_records.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Q1", GradingPeriod.Q1),
        ("q2", GradingPeriod.Q2),
        ("3", GradingPeriod.Q3),
        ("4th", GradingPeriod.Q4),
        (" 1ST ", GradingPeriod.Q1),
        (GradingPeriod.Q3, GradingPeriod.Q3),
    ],
)
def test_parse_accepts_aliases(raw, expected):
    assert GradingPeriod.parse(raw) == expected


@pytest.mark.parametrize("raw", ["", None, "Q5", "fifth"])
def test_parse_rejects_unknown(raw):
    with pytest.raises(ValidationError):
        GradingPeriod.parse(raw)


def test_for_date_maps_months_to_quarters():
    assert GradingPeriod.for_date(date(2024, 1, 15)) == GradingPeriod.Q1
    assert GradingPeriod.for_date(date(2024, 6, 30)) == GradingPeriod.Q2
    assert GradingPeriod.for_date(date(2024, 7, 1)) == GradingPeriod.Q3
    assert GradingPeriod.for_date(date(2024, 12, 31)) == GradingPeriod.Q4
