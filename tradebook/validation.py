"""
Pre-write checks. Nothing here mutates the store: each function either
returns quietly or raises one of the errors from tradebook.errors.
"""

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook import models
from tradebook.errors import InvalidRange, InvalidValue, NotFound

CENTS = Decimal("0.01")
# Numeric(15, 2) leaves 13 integer digits
MAX_MONEY = Decimal(10) ** 13

Number = Union[int, float, str, Decimal]


def to_money(value: Number) -> Decimal:
    """Convert to the stored representation: a Decimal with 2 fractional digits.

    Floats are read through repr() so 999.99 becomes Decimal("999.99") and
    not its binary expansion.
    """
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidValue(f"Asset value is not a number: {value!r}")
    if not amount.is_finite():
        raise InvalidValue(f"Asset value must be finite: {value!r}")
    if abs(amount) >= MAX_MONEY:
        raise InvalidValue(f"Asset value exceeds 13 integer digits: {value!r}")
    try:
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidValue(f"Asset value cannot be stored with 2 decimals: {value!r}")
    # 9999999999999.995 rounds up past the limit
    if abs(amount) >= MAX_MONEY:
        raise InvalidValue(f"Asset value exceeds 13 integer digits: {value!r}")
    return amount


def validate_date_range(start: date, end: date) -> None:
    if start >= end:
        raise InvalidRange(f"Start date must be before end date ({start} >= {end})")


def validate_positive(value: Decimal) -> None:
    if value <= 0:
        raise InvalidValue(f"Asset value must be positive (got {value})")


async def validate_program_exists(session: AsyncSession, program_id: int) -> None:
    result = await session.execute(
        select(models.Program.id).where(models.Program.id == program_id)
    )
    if result.scalar_one_or_none() is None:
        raise NotFound("Program", [program_id])


async def validate_assets_exist(session: AsyncSession, asset_ids: Sequence[int]) -> None:
    """Raise NotFound naming every id in asset_ids with no Asset row."""
    if not asset_ids:
        return
    result = await session.execute(
        select(models.Asset.id).where(models.Asset.id.in_(set(asset_ids)))
    )
    existing = set(result.scalars().all())
    missing = []
    for asset_id in asset_ids:
        if asset_id not in existing and asset_id not in missing:
            missing.append(asset_id)
    if missing:
        raise NotFound("Assets", missing)
