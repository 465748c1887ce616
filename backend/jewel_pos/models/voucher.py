"""SQLModel models for purchase (buy-back) vouchers."""
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field

from jewel_pos.models.columns import decimal_column


class PurchaseVoucher(SQLModel, table=True):
    """Old gold/silver bought back from a customer. No tax, no discount."""

    __tablename__ = "purchase_vouchers"

    id: Optional[int] = Field(default=None, primary_key=True)
    voucher_number: str = Field(index=True, unique=True)
    voucher_date: date = Field(default_factory=date.today, index=True)

    customer_name: str
    customer_phone: str = Field(index=True)
    customer_address: Optional[str] = None
    pan_aadhaar: Optional[str] = None

    total_weight: Decimal = Field(default=Decimal("0"), sa_column=decimal_column())
    total_amount: Decimal = Field(default=Decimal("0"), sa_column=decimal_column())

    payment_method: str = Field(default="cash")  # cash | bank
    utr_number: Optional[str] = None  # bank transfer reference
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)


class PurchaseVoucherItem(SQLModel, table=True):
    __tablename__ = "purchase_voucher_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    voucher_id: int = Field(foreign_key="purchase_vouchers.id", index=True)

    item_description: str
    metal_type: str = Field(default="gold")
    purity: str
    net_weight: Decimal = Field(sa_column=decimal_column())
    rate_per_gram: Decimal = Field(sa_column=decimal_column())
    total_amount: Decimal = Field(sa_column=decimal_column())

    order: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
