"""
FastAPI routes for the registry.
One endpoint per procedure: queries are GET, mutations are POST with a JSON body.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook import crud
from tradebook.database import get_session
from tradebook.errors import Conflict, InvalidRange, InvalidValue, NotFound, TradebookError
from tradebook.schemas import (
    AssetOut,
    CreateAssetInput,
    CreateProgramInput,
    CreateTradeInput,
    DeleteResult,
    HealthOut,
    IdInput,
    ProgramOut,
    TradeOut,
    TradeWithAssetsOut,
    UpdateAssetInput,
    UpdateProgramInput,
    UpdateTradeInput,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_STATUS = {
    InvalidRange: 400,
    InvalidValue: 400,
    NotFound: 404,
    Conflict: 409,
}


async def tradebook_error_handler(request: Request, exc: TradebookError) -> JSONResponse:
    status_code = _ERROR_STATUS.get(type(exc), 400)
    logger.warning("%s %s rejected (%d): %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TradebookError, tradebook_error_handler)


@router.get("/healthcheck", response_model=HealthOut)
async def healthcheck():
    return HealthOut(status="ok", timestamp=datetime.now(timezone.utc).isoformat())


# =======================
# Programs
# =======================

@router.post("/createProgram", response_model=ProgramOut)
async def create_program(body: CreateProgramInput, session: AsyncSession = Depends(get_session)):
    return ProgramOut.model_validate(await crud.create_program(session, body))


@router.get("/getPrograms", response_model=List[ProgramOut])
async def get_programs(session: AsyncSession = Depends(get_session)):
    return [ProgramOut.model_validate(p) for p in await crud.list_programs(session)]


@router.get("/getProgram", response_model=Optional[ProgramOut])
async def get_program(id: int, session: AsyncSession = Depends(get_session)):
    program = await crud.get_program(session, id)
    return ProgramOut.model_validate(program) if program else None


@router.post("/updateProgram", response_model=Optional[ProgramOut])
async def update_program(body: UpdateProgramInput, session: AsyncSession = Depends(get_session)):
    program = await crud.update_program(session, body)
    return ProgramOut.model_validate(program) if program else None


@router.post("/deleteProgram", response_model=DeleteResult)
async def delete_program(body: IdInput, session: AsyncSession = Depends(get_session)):
    return DeleteResult(success=await crud.delete_program(session, body.id))


# =======================
# Assets
# =======================

@router.post("/createAsset", response_model=AssetOut)
async def create_asset(body: CreateAssetInput, session: AsyncSession = Depends(get_session)):
    return AssetOut.model_validate(await crud.create_asset(session, body))


@router.get("/getAssets", response_model=List[AssetOut])
async def get_assets(session: AsyncSession = Depends(get_session)):
    return [AssetOut.model_validate(a) for a in await crud.list_assets(session)]


@router.get("/getAsset", response_model=Optional[AssetOut])
async def get_asset(id: int, session: AsyncSession = Depends(get_session)):
    asset = await crud.get_asset(session, id)
    return AssetOut.model_validate(asset) if asset else None


@router.post("/updateAsset", response_model=Optional[AssetOut])
async def update_asset(body: UpdateAssetInput, session: AsyncSession = Depends(get_session)):
    asset = await crud.update_asset(session, body)
    return AssetOut.model_validate(asset) if asset else None


@router.post("/deleteAsset", response_model=DeleteResult)
async def delete_asset(body: IdInput, session: AsyncSession = Depends(get_session)):
    return DeleteResult(success=await crud.delete_asset(session, body.id))


# =======================
# Trades
# =======================

@router.post("/createTrade", response_model=TradeOut)
async def create_trade(body: CreateTradeInput, session: AsyncSession = Depends(get_session)):
    return TradeOut.model_validate(await crud.create_trade(session, body))


@router.get("/getTrades", response_model=List[TradeOut])
async def get_trades(session: AsyncSession = Depends(get_session)):
    return [TradeOut.model_validate(t) for t in await crud.list_trades(session)]


@router.get("/getTrade", response_model=Optional[TradeWithAssetsOut])
async def get_trade(id: int, session: AsyncSession = Depends(get_session)):
    """Trade plus its resolved assets."""
    trade = await crud.get_trade_with_assets(session, id)
    return TradeWithAssetsOut.model_validate(trade) if trade else None


@router.post("/updateTrade", response_model=Optional[TradeOut])
async def update_trade(body: UpdateTradeInput, session: AsyncSession = Depends(get_session)):
    trade = await crud.update_trade(session, body)
    return TradeOut.model_validate(trade) if trade else None


@router.post("/deleteTrade", response_model=DeleteResult)
async def delete_trade(body: IdInput, session: AsyncSession = Depends(get_session)):
    return DeleteResult(success=await crud.delete_trade(session, body.id))
