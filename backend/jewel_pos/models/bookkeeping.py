"""SQLModel models for document numbering and turnover bookkeeping."""
from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from jewel_pos.models.columns import decimal_column


class DocumentSequence(SQLModel, table=True):
    """Last issued sequence value per document prefix and year."""

    __tablename__ = "document_sequences"
    __table_args__ = (UniqueConstraint("prefix", "year", name="uq_document_sequence_prefix_year"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    prefix: str = Field(index=True)
    year: int = Field(index=True)
    last_value: int = Field(default=0)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class TurnoverAdjustment(SQLModel, table=True):
    """
    Turnover retained for a deleted bill.

    Written when a bill is deleted *without* removing it from turnover, so the
    reported daily/monthly/yearly figures keep counting its final amount.
    """

    __tablename__ = "turnover_adjustments"

    id: Optional[int] = Field(default=None, primary_key=True)
    bill_number: str = Field(index=True)
    amount: Decimal = Field(sa_column=decimal_column())
    # Date the amount counts towards (the deleted bill's created_at)
    effective_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
