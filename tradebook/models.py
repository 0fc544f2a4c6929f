from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, ForeignKey, DateTime, Date, Numeric, Index, Text
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Program(Base):
    __tablename__ = "programs"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(Text, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Asset(Base):
    __tablename__ = "assets"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    currency = Column(Text, nullable=False)
    # 2 fractional digits; callers convert through validation.to_money
    value = Column(Numeric(15, 2), nullable=False)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


# No ON DELETE actions: cascades are ordered deletes in relationships.py
class Trade(Base):
    __tablename__ = "trades"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(Text, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    program_id = Column(Integer, ForeignKey("programs.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    assets = relationship(
        "Asset",
        secondary="trade_assets",
        viewonly=True,
        order_by="Asset.id",
    )


class TradeAsset(Base):
    __tablename__ = "trade_assets"
    trade_id = Column(Integer, ForeignKey("trades.id"), primary_key=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), primary_key=True)

Index("ix_trade_assets_asset", TradeAsset.asset_id)
