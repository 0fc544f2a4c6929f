"""
Input and output shapes of the operation surface.

Update inputs keep track of which fields the caller actually sent
(pydantic's model_fields_set), so "not supplied" and "supplied as empty"
stay distinguishable, most importantly for Trade asset_ids.
"""

import datetime as dt
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _date_part(value: Any) -> Any:
    """Keep only the calendar date of a timestamp ('2024-01-01T10:00:00Z' -> 2024-01-01)."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10 and value[10] in "Tt ":
        return value[:10]
    return value


DateInput = Annotated[dt.date, BeforeValidator(_date_part)]


# =======================
# Input Models
# =======================

class IdInput(BaseModel):
    id: int


class CreateProgramInput(BaseModel):
    name: str = Field(min_length=1)
    description: str
    status: str = Field(min_length=1)
    start_date: DateInput
    end_date: DateInput


class CreateAssetInput(BaseModel):
    name: str = Field(min_length=1)
    description: str
    currency: str = Field(min_length=1)
    value: Decimal
    date: DateInput


class CreateTradeInput(BaseModel):
    name: str = Field(min_length=1)
    description: str
    status: str = Field(min_length=1)
    start_date: DateInput
    end_date: DateInput
    program_id: int
    asset_ids: Optional[List[int]] = None


class PartialUpdate(BaseModel):
    """Base for update inputs: an id plus any subset of the entity's fields."""

    id: int

    def changes(self) -> Dict[str, Any]:
        """Fields the caller supplied with a value; id excluded.

        An explicit null counts as not supplied.
        """
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "id" and getattr(self, name) is not None
        }


class UpdateProgramInput(PartialUpdate):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[DateInput] = None
    end_date: Optional[DateInput] = None


class UpdateAssetInput(PartialUpdate):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    currency: Optional[str] = Field(default=None, min_length=1)
    value: Optional[Decimal] = None
    date: Optional[DateInput] = None


class UpdateTradeInput(PartialUpdate):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[DateInput] = None
    end_date: Optional[DateInput] = None
    program_id: Optional[int] = None
    asset_ids: Optional[List[int]] = None


# =======================
# Response Models
# =======================

class ProgramOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    status: str
    start_date: dt.date
    end_date: dt.date
    created_at: dt.datetime


class AssetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    currency: str
    value: float
    date: dt.date
    created_at: dt.datetime


class TradeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    status: str
    start_date: dt.date
    end_date: dt.date
    program_id: int
    created_at: dt.datetime


class TradeWithAssetsOut(TradeOut):
    assets: List[AssetOut] = []


class DeleteResult(BaseModel):
    success: bool


class HealthOut(BaseModel):
    status: str
    timestamp: str
