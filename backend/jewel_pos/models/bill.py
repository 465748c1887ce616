"""SQLModel models for sales bills and their line items."""
from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field

from jewel_pos.models.columns import decimal_column

_ZERO = Decimal("0")


class Bill(SQLModel, table=True):
    """A sales invoice. Totals are stored as computed by the pricing engine."""

    __tablename__ = "bills"

    id: Optional[int] = Field(default=None, primary_key=True)
    bill_number: str = Field(index=True, unique=True)
    customer_id: Optional[int] = Field(default=None, foreign_key="customers.id", index=True)

    # Customer snapshot at billing time
    customer_name: str
    customer_phone: str = Field(index=True)
    customer_address: Optional[str] = None
    customer_gstin: Optional[str] = None

    # Totals
    total_weight: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    total_amount: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    discount_percentage: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    discount_amount: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    tax_percentage: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    tax_amount: Decimal = Field(default=_ZERO, sa_column=decimal_column())

    # GST split – exactly one of (cgst + sgst) or igst is non-zero
    is_igst: bool = Field(default=False)
    cgst_amount: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    sgst_amount: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    igst_amount: Decimal = Field(default=_ZERO, sa_column=decimal_column())

    final_amount: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    paid_amount: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    # Negative balance = customer credit
    balance_amount: Decimal = Field(default=_ZERO, sa_column=decimal_column())

    payment_method: Optional[str] = Field(default="cash")
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class BillItem(SQLModel, table=True):
    """One jewellery line on a bill."""

    __tablename__ = "bill_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    bill_id: int = Field(foreign_key="bills.id", index=True)

    item_name: str
    metal_type: str = Field(default="gold")
    purity: Optional[str] = None
    weight_grams: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    rate_per_gram: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    making_charges: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    making_charges_type: str = Field(default="manual")  # manual | percentage
    making_charges_percentage: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    stone_charges: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    other_charges: Decimal = Field(default=_ZERO, sa_column=decimal_column())
    total_amount: Decimal = Field(default=_ZERO, sa_column=decimal_column())

    order: int = Field(default=0)  # line order within bill
    created_at: datetime = Field(default_factory=datetime.utcnow)
