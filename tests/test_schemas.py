from __future__ import annotations

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from tradebook.schemas import CreateAssetInput, CreateProgramInput, UpdateTradeInput


@pytest.mark.parametrize(
    "start",
    ["2024-01-01", "2024-01-01T10:00:00.000Z", "2024-01-01 10:00:00", datetime(2024, 1, 1, 10, 0)],
)
def test_date_inputs_accept_dates_and_timestamps(start) -> None:
    program = CreateProgramInput(
        name="P", description="", status="active", start_date=start, end_date="2024-12-31",
    )

    assert program.start_date == date(2024, 1, 1)


def test_malformed_date_is_rejected() -> None:
    with pytest.raises(ValidationError):
        CreateAssetInput(name="A", description="", currency="USD", value=1, date="2024-13-01T00:00:00Z")


def test_update_date_may_be_omitted_or_null() -> None:
    assert UpdateTradeInput(id=1).changes() == {}
    assert UpdateTradeInput(id=1, end_date=None).changes() == {}
    assert UpdateTradeInput(id=1, end_date="2025-06-30T08:00:00Z").changes() == {"end_date": date(2025, 6, 30)}
