from __future__ import annotations

from datetime import date, datetime

import pytest

from tradebook import crud, models
from tradebook.errors import InvalidRange
from tradebook.schemas import CreateProgramInput, UpdateProgramInput


def _program_input(**overrides) -> CreateProgramInput:
    fields = {
        "name": "Test Program",
        "description": "A program for testing",
        "status": "active",
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 12, 31),
    }
    fields.update(overrides)
    return CreateProgramInput(**fields)


@pytest.mark.asyncio
async def test_create_program_assigns_id_and_created_at(session) -> None:
    program = await crud.create_program(session, _program_input())

    assert program.id is not None
    assert program.name == "Test Program"
    assert program.status == "active"
    assert program.start_date == date(2024, 1, 1)
    assert isinstance(program.created_at, datetime)

    stored = await crud.get_program(session, program.id)
    assert stored is not None
    assert stored.description == "A program for testing"


@pytest.mark.asyncio
@pytest.mark.parametrize("end", [date(2024, 1, 1), date(2023, 12, 31)])
async def test_create_program_rejects_bad_range(session, count_rows, end) -> None:
    with pytest.raises(InvalidRange):
        await crud.create_program(session, _program_input(end_date=end))

    assert await count_rows(models.Program) == 0


@pytest.mark.asyncio
async def test_get_missing_program_returns_none(session) -> None:
    assert await crud.get_program(session, 999) is None


@pytest.mark.asyncio
async def test_list_programs_returns_all(session, make_program) -> None:
    assert await crud.list_programs(session) == []

    ids = [await make_program(name=f"Program {i}") for i in range(3)]

    programs = await crud.list_programs(session)
    assert [p.id for p in programs] == ids
    assert [p.name for p in programs] == ["Program 0", "Program 1", "Program 2"]


@pytest.mark.asyncio
async def test_update_program_changes_only_supplied_fields(session, make_program) -> None:
    program_id = await make_program()

    updated = await crud.update_program(
        session, UpdateProgramInput(id=program_id, name="Renamed", status="closed")
    )

    assert updated is not None
    assert updated.name == "Renamed"
    assert updated.status == "closed"
    assert updated.description == "Test program description"
    assert updated.end_date == date(2024, 12, 31)


@pytest.mark.asyncio
async def test_update_program_checks_merged_range(session, make_program) -> None:
    program_id = await make_program()

    with pytest.raises(InvalidRange):
        await crud.update_program(
            session, UpdateProgramInput(id=program_id, start_date=date(2024, 12, 31))
        )
    with pytest.raises(InvalidRange):
        await crud.update_program(
            session, UpdateProgramInput(id=program_id, end_date=date(2023, 6, 1))
        )

    program = await crud.get_program(session, program_id)
    assert program.start_date == date(2024, 1, 1)
    assert program.end_date == date(2024, 12, 31)

    moved = await crud.update_program(
        session, UpdateProgramInput(id=program_id, start_date=date(2024, 6, 1))
    )
    assert moved.start_date == date(2024, 6, 1)


@pytest.mark.asyncio
async def test_update_program_without_fields_reads_as_not_found(session, make_program) -> None:
    program_id = await make_program()

    assert await crud.update_program(session, UpdateProgramInput(id=program_id)) is None
    assert await crud.update_program(session, UpdateProgramInput(id=program_id, name=None)) is None
    assert await crud.get_program(session, program_id) is not None


@pytest.mark.asyncio
async def test_update_missing_program_returns_none(session) -> None:
    assert await crud.update_program(session, UpdateProgramInput(id=999, name="x")) is None


@pytest.mark.asyncio
async def test_delete_program(session, make_program) -> None:
    program_id = await make_program()

    assert await crud.delete_program(session, program_id) is True
    assert await crud.get_program(session, program_id) is None
    assert await crud.delete_program(session, program_id) is False


@pytest.mark.asyncio
async def test_delete_program_cascades_to_trades_not_assets(session, make_program, make_asset,
                                                           make_trade, count_rows) -> None:
    program_id = await make_program()
    a1, a2 = await make_asset(), await make_asset()
    for _ in range(3):
        await make_trade(program_id, asset_ids=[a1, a2])

    assert await crud.delete_program(session, program_id) is True

    assert await count_rows(models.Trade) == 0
    assert await count_rows(models.TradeAsset) == 0
    assert await count_rows(models.Asset) == 2


@pytest.mark.asyncio
async def test_delete_program_rolls_back_cascade_on_failure(session, make_program, make_asset,
                                                            make_trade, associations,
                                                            monkeypatch) -> None:
    program_id = await make_program()
    asset_id = await make_asset()
    trade_id = await make_trade(program_id, asset_ids=[asset_id])

    async def _fail(instance):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(session, "delete", _fail)
    with pytest.raises(RuntimeError):
        await crud.delete_program(session, program_id)
    monkeypatch.undo()

    assert await crud.get_program(session, program_id) is not None
    assert await crud.get_trade(session, trade_id) is not None
    assert await associations(trade_id) == [asset_id]
