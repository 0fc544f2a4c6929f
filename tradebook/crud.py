import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tradebook import models, relationships, schemas
from tradebook.database import transaction
from tradebook.validation import (
    to_money,
    validate_assets_exist,
    validate_date_range,
    validate_positive,
    validate_program_exists,
)

logger = logging.getLogger(__name__)


def _validate_merged_range(entity, changes: dict) -> None:
    # Re-check the range only when a date moves; the stored pair is already valid
    if "start_date" in changes or "end_date" in changes:
        validate_date_range(
            changes.get("start_date", entity.start_date),
            changes.get("end_date", entity.end_date),
        )


async def _list(session: AsyncSession, model) -> list:
    async with transaction(session):
        result = await session.execute(select(model).order_by(model.id))
        return list(result.scalars().all())


# Programs

async def create_program(session: AsyncSession, data: schemas.CreateProgramInput) -> models.Program:
    validate_date_range(data.start_date, data.end_date)
    async with transaction(session):
        program = models.Program(**data.model_dump())
        session.add(program)
        await session.flush()  # get program.id
    logger.info("Created program %s (%s)", program.id, program.name)
    return program


async def get_program(session: AsyncSession, program_id: int) -> Optional[models.Program]:
    async with transaction(session):
        return await session.get(models.Program, program_id)


async def list_programs(session: AsyncSession) -> List[models.Program]:
    return await _list(session, models.Program)


async def update_program(session: AsyncSession,
                         data: schemas.UpdateProgramInput) -> Optional[models.Program]:
    """Apply the supplied fields; None when nothing was supplied or the id is unknown."""
    changes = data.changes()
    if not changes:
        return None
    async with transaction(session):
        program = await session.get(models.Program, data.id)
        if program is None:
            return None
        _validate_merged_range(program, changes)
        for name, value in changes.items():
            setattr(program, name, value)
        await session.flush()
    logger.info("Updated program %s: %s", program.id, sorted(changes))
    return program


async def delete_program(session: AsyncSession, program_id: int) -> bool:
    """Delete a program, its trades and their asset associations. Assets stay."""
    async with transaction(session):
        program = await session.get(models.Program, program_id)
        if program is None:
            return False
        await relationships.cascade_delete_program_trades(session, program_id)
        await session.delete(program)
        await session.flush()
    logger.info("Deleted program %s", program_id)
    return True


# Assets

async def create_asset(session: AsyncSession, data: schemas.CreateAssetInput) -> models.Asset:
    value = to_money(data.value)
    validate_positive(value)
    async with transaction(session):
        asset = models.Asset(**data.model_dump(exclude={"value"}), value=value)
        session.add(asset)
        await session.flush()
    logger.info("Created asset %s (%s %s)", asset.id, asset.value, asset.currency)
    return asset


async def get_asset(session: AsyncSession, asset_id: int) -> Optional[models.Asset]:
    async with transaction(session):
        return await session.get(models.Asset, asset_id)


async def list_assets(session: AsyncSession) -> List[models.Asset]:
    return await _list(session, models.Asset)


async def update_asset(session: AsyncSession,
                       data: schemas.UpdateAssetInput) -> Optional[models.Asset]:
    changes = data.changes()
    if not changes:
        return None
    if "value" in changes:
        changes["value"] = to_money(changes["value"])
        validate_positive(changes["value"])
    async with transaction(session):
        asset = await session.get(models.Asset, data.id)
        if asset is None:
            return None
        for name, value in changes.items():
            setattr(asset, name, value)
        await session.flush()
    logger.info("Updated asset %s: %s", asset.id, sorted(changes))
    return asset


async def delete_asset(session: AsyncSession, asset_id: int) -> bool:
    """Delete an asset after detaching it from every trade. Trades stay."""
    async with transaction(session):
        asset = await session.get(models.Asset, asset_id)
        if asset is None:
            return False
        detached = await relationships.remove_asset_associations(session, asset_id)
        await session.delete(asset)
        await session.flush()
    logger.info("Deleted asset %s (detached from %d trades)", asset_id, detached)
    return True


# Trades

async def create_trade(session: AsyncSession, data: schemas.CreateTradeInput) -> models.Trade:
    validate_date_range(data.start_date, data.end_date)
    async with transaction(session):
        await validate_program_exists(session, data.program_id)
        if data.asset_ids:
            await validate_assets_exist(session, data.asset_ids)
        trade = models.Trade(**data.model_dump(exclude={"asset_ids"}))
        session.add(trade)
        await session.flush()  # get trade.id
        await relationships.set_trade_assets(session, trade.id, data.asset_ids)
    logger.info("Created trade %s in program %s with assets %s",
                trade.id, trade.program_id, data.asset_ids or [])
    return trade


async def get_trade(session: AsyncSession, trade_id: int) -> Optional[models.Trade]:
    async with transaction(session):
        return await session.get(models.Trade, trade_id)


async def get_trade_with_assets(session: AsyncSession, trade_id: int) -> Optional[models.Trade]:
    """Trade with .assets loaded through trade_assets (empty list if none)."""
    q = (
        select(models.Trade)
        .where(models.Trade.id == trade_id)
        .options(selectinload(models.Trade.assets))
        .execution_options(populate_existing=True)
    )
    async with transaction(session):
        result = await session.execute(q)
        return result.scalars().first()


async def list_trades(session: AsyncSession) -> List[models.Trade]:
    return await _list(session, models.Trade)


async def update_trade(session: AsyncSession,
                       data: schemas.UpdateTradeInput) -> Optional[models.Trade]:
    """Partial update. asset_ids, when present (even empty), replaces the association set."""
    changes = data.changes()
    if not changes:
        return None
    asset_ids = changes.pop("asset_ids", None)
    async with transaction(session):
        trade = await session.get(models.Trade, data.id)
        if trade is None:
            return None
        _validate_merged_range(trade, changes)
        if "program_id" in changes:
            await validate_program_exists(session, changes["program_id"])
        if asset_ids:
            await validate_assets_exist(session, asset_ids)
        for name, value in changes.items():
            setattr(trade, name, value)
        await session.flush()
        await relationships.set_trade_assets(session, trade.id, asset_ids)
    logger.info("Updated trade %s: %s", trade.id,
                sorted(changes) + (["asset_ids"] if asset_ids is not None else []))
    return trade


async def delete_trade(session: AsyncSession, trade_id: int) -> bool:
    async with transaction(session):
        trade = await session.get(models.Trade, trade_id)
        if trade is None:
            return False
        await relationships.remove_trade_associations(session, trade_id)
        await session.delete(trade)
        await session.flush()
    logger.info("Deleted trade %s", trade_id)
    return True
