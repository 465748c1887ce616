"""SQLModel models for metal rates and their append-only history."""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field

from jewel_pos.models.columns import decimal_column


class MetalType(str, Enum):
    GOLD = "gold"
    SILVER = "silver"


class Rate(SQLModel, table=True):
    """Current per-gram rate for one metal. One row per metal type."""

    __tablename__ = "rates"

    id: Optional[int] = Field(default=None, primary_key=True)
    metal_type: str = Field(index=True, unique=True)
    rate_per_gram: Decimal = Field(default=Decimal("0"), sa_column=decimal_column())
    is_locked: bool = Field(default=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class RateHistory(SQLModel, table=True):
    """One row per accepted rate update, never modified afterwards."""

    __tablename__ = "rate_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    metal_type: str = Field(index=True)
    rate_per_gram: Decimal = Field(sa_column=decimal_column())
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
