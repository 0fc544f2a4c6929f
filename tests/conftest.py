from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from tradebook import crud, models
from tradebook.database import make_engine, make_sessionmaker, transaction
from tradebook.init_db import init_db
from tradebook.schemas import CreateAssetInput, CreateProgramInput, CreateTradeInput


@pytest_asyncio.fixture
async def engine():
    engine = make_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return make_sessionmaker(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def make_program(session):
    async def _make(**overrides: Any) -> int:
        fields = {
            "name": "Test Program",
            "description": "Test program description",
            "status": "active",
            "start_date": date(2024, 1, 1),
            "end_date": date(2024, 12, 31),
        }
        fields.update(overrides)
        program = await crud.create_program(session, CreateProgramInput(**fields))
        return program.id

    return _make


@pytest_asyncio.fixture
async def make_asset(session):
    async def _make(**overrides: Any) -> int:
        fields = {
            "name": "Test Asset",
            "description": "Test asset description",
            "currency": "USD",
            "value": Decimal("100.00"),
            "date": date(2024, 1, 1),
        }
        fields.update(overrides)
        asset = await crud.create_asset(session, CreateAssetInput(**fields))
        return asset.id

    return _make


@pytest_asyncio.fixture
async def make_trade(session):
    async def _make(program_id: int, **overrides: Any) -> int:
        fields = {
            "name": "Test Trade",
            "description": "Test trade description",
            "status": "pending",
            "start_date": date(2024, 2, 1),
            "end_date": date(2024, 2, 28),
            "program_id": program_id,
        }
        fields.update(overrides)
        trade = await crud.create_trade(session, CreateTradeInput(**fields))
        return trade.id

    return _make


@pytest_asyncio.fixture
async def associations(session):
    """Sorted asset ids associated with a trade, read straight from trade_assets."""
    async def _read(trade_id: int) -> list[int]:
        async with transaction(session):
            result = await session.execute(
                select(models.TradeAsset.asset_id)
                .where(models.TradeAsset.trade_id == trade_id)
                .order_by(models.TradeAsset.asset_id)
            )
            return list(result.scalars().all())

    return _read


@pytest_asyncio.fixture
async def count_rows(session):
    async def _count(model) -> int:
        async with transaction(session):
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    return _count
