"""
Trade <-> Asset association lifecycle and the cascade-delete scripts.

Every function runs inside the caller's transaction and never commits. The
store has no ON DELETE rules, so the order of the statements below is what
keeps foreign keys satisfied.
"""

import logging
from collections import Counter
from typing import List, Optional, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook import models
from tradebook.errors import Conflict

logger = logging.getLogger(__name__)


async def set_trade_assets(session: AsyncSession, trade_id: int,
                           asset_ids: Optional[Sequence[int]]) -> None:
    """Replace the full association set of a trade.

    None means "not supplied" and leaves the current rows alone; an empty
    sequence clears them.
    """
    if asset_ids is None:
        return

    duplicates = sorted(i for i, n in Counter(asset_ids).items() if n > 1)
    if duplicates:
        raise Conflict(
            f"Duplicate asset ids for trade {trade_id}: {', '.join(map(str, duplicates))}",
            ids=duplicates,
        )

    await remove_trade_associations(session, trade_id)
    if not asset_ids:
        return

    try:
        await session.execute(
            insert(models.TradeAsset),
            [{"trade_id": trade_id, "asset_id": asset_id} for asset_id in asset_ids],
        )
    except IntegrityError as exc:
        raise Conflict(f"Could not associate assets with trade {trade_id}: {exc.orig}",
                       ids=list(asset_ids)) from exc
    logger.debug("Trade %s associated with assets %s", trade_id, list(asset_ids))


async def remove_asset_associations(session: AsyncSession, asset_id: int) -> int:
    result = await session.execute(
        delete(models.TradeAsset)
        .where(models.TradeAsset.asset_id == asset_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def remove_trade_associations(session: AsyncSession, trade_id: int) -> int:
    result = await session.execute(
        delete(models.TradeAsset)
        .where(models.TradeAsset.trade_id == trade_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def cascade_delete_program_trades(session: AsyncSession, program_id: int) -> List[int]:
    """Delete every trade of a program together with its association rows.

    Assets are left in place. Returns the ids of the deleted trades.
    """
    result = await session.execute(
        select(models.Trade.id).where(models.Trade.program_id == program_id)
    )
    trade_ids = list(result.scalars().all())
    if not trade_ids:
        return []

    removed = 0
    for trade_id in trade_ids:
        removed += await remove_trade_associations(session, trade_id)

    await session.execute(
        delete(models.Trade).where(models.Trade.id.in_(trade_ids))
    )
    logger.info(
        "Program %s cascade: removed %d trades and %d asset associations",
        program_id, len(trade_ids), removed,
    )
    return trade_ids
