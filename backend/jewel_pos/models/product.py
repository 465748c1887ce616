"""SQLModel model for catalogue products tagged with a barcode or unique number."""
from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field

from jewel_pos.models.columns import decimal_column

_ZERO = Decimal("0")


class Product(SQLModel, table=True):
    """A tagged piece in the showroom. Its fields seed a bill line when scanned."""

    __tablename__ = "products"

    id: Optional[int] = Field(default=None, primary_key=True)
    name_english: str
    name_marathi: Optional[str] = None
    metal_type: str = Field(default="gold")
    purity: Optional[str] = None
    weight_grams: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    making_charges_type: str = Field(default="manual")  # manual | percentage
    making_charges_percentage: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    making_charges_manual: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    stone_charges: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    other_charges: Decimal = Field(default=_ZERO, sa_column=decimal_column())

    barcode: Optional[str] = Field(default=None, index=True, unique=True)
    unique_number: Optional[str] = Field(default=None, index=True, unique=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
