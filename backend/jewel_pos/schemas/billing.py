"""
Pydantic data-transfer types for bills and purchase vouchers.

Request bodies are validated here, at the API boundary, so the pricing
engine and the lifecycle managers never see unchecked shapes.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from jewel_pos.core.config import settings
from jewel_pos.models.rate import MetalType

_ZERO = Decimal("0")


class MakingChargesType(str, Enum):
    MANUAL = "manual"
    PERCENTAGE = "percentage"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK = "bank"


# ── Customers ─────────────────────────────────────────────────────────────────


class CustomerIn(BaseModel):
    name: str = ""
    phone: str = ""
    address: str = ""
    email: str = ""
    gstin: Optional[str] = None

    @field_validator("name", "phone", "address", "email", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("gstin", mode="before")
    @classmethod
    def normalise_gstin(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().upper()
        return v or None


# ── Bill items ────────────────────────────────────────────────────────────────


class BillItemIn(BaseModel):
    """A line as entered on the billing form."""

    item_name: str = ""
    metal_type: MetalType = MetalType.GOLD
    purity: str = "22k"
    weight_grams: Decimal = Field(default=_ZERO, ge=0)
    rate_per_gram: Decimal = Field(default=_ZERO, ge=0)
    making_charges: Decimal = Field(default=_ZERO, ge=0)
    making_charges_type: MakingChargesType = MakingChargesType.MANUAL
    making_charges_percentage: Decimal = Field(default=_ZERO, ge=0)
    stone_charges: Decimal = Field(default=_ZERO, ge=0)
    other_charges: Decimal = Field(default=_ZERO, ge=0)


class BillItemDraft(BillItemIn):
    """
    A line held by the invoice manager.

    ``id`` is either a client-side ``temp_…`` id or the persisted row id as a
    string; it is never written to the database.
    """

    id: str
    total_amount: Decimal = _ZERO


# ── Bills ─────────────────────────────────────────────────────────────────────


class BillingFieldsIn(BaseModel):
    discount_percentage: Decimal = Field(default=_ZERO, ge=0, le=100)
    tax_percentage: Decimal = Field(default_factory=lambda: settings.DEFAULT_TAX_PERCENTAGE, ge=0, le=100)
    # None = decide from the customer's GSTIN
    is_igst: Optional[bool] = None
    paid_amount: Decimal = Field(default=_ZERO, ge=0)
    payment_method: str = "cash"
    notes: Optional[str] = None


class BillCreate(BaseModel):
    customer: CustomerIn
    items: list[BillItemIn] = []
    billing: BillingFieldsIn = Field(default_factory=BillingFieldsIn)
    bill_date: Optional[datetime] = None


class BillUpdate(BaseModel):
    """Header-only update. Items of a saved bill cannot be changed."""

    customer: CustomerIn
    billing: BillingFieldsIn = Field(default_factory=BillingFieldsIn)


class BillPreviewRequest(BaseModel):
    items: list[BillItemIn] = []
    billing: BillingFieldsIn = Field(default_factory=BillingFieldsIn)
    customer_gstin: Optional[str] = None


class BillTotalsRead(BaseModel):
    total_weight: Decimal
    total_amount: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    is_igst: bool
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    final_amount: Decimal
    balance_amount: Decimal


class BillPreviewResponse(BaseModel):
    items: list[BillItemDraft]
    totals: BillTotalsRead
    warnings: list[str] = []


class BillItemRead(BaseModel):
    id: int
    item_name: str
    metal_type: str
    purity: Optional[str]
    weight_grams: Decimal
    rate_per_gram: Decimal
    making_charges: Decimal
    making_charges_type: str
    making_charges_percentage: Decimal
    stone_charges: Decimal
    other_charges: Decimal
    total_amount: Decimal

    class Config:
        from_attributes = True


class BillRead(BaseModel):
    id: int
    bill_number: str
    customer_id: Optional[int]
    customer_name: str
    customer_phone: str
    customer_address: Optional[str]
    customer_gstin: Optional[str]
    total_weight: Decimal
    total_amount: Decimal
    discount_percentage: Decimal
    discount_amount: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    is_igst: bool
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    final_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    payment_method: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BillDetail(BillRead):
    customer_email: Optional[str] = None
    items: list[BillItemRead] = []
    warnings: list[str] = []


class BillDeleteResponse(BaseModel):
    status: str
    bill_number: str
    delete_from_turnover: bool


# ── Purchase vouchers ─────────────────────────────────────────────────────────


class VoucherCustomerIn(BaseModel):
    name: str = ""
    phone: str = ""
    address: Optional[str] = None
    pan_aadhaar: Optional[str] = None

    @field_validator("name", "phone", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> str:
        return (v or "").strip()


class VoucherItemIn(BaseModel):
    item_description: str = ""
    metal_type: MetalType = MetalType.GOLD
    purity: str = ""
    net_weight: Decimal = Field(default=_ZERO, ge=0)
    rate_per_gram: Decimal = Field(default=_ZERO, ge=0)


class VoucherItemDraft(VoucherItemIn):
    id: str
    total_amount: Decimal = _ZERO


class VoucherPaymentIn(BaseModel):
    method: PaymentMethod = PaymentMethod.CASH
    utr_number: Optional[str] = None

    @field_validator("utr_number", mode="before")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class VoucherCreate(BaseModel):
    customer: VoucherCustomerIn
    items: list[VoucherItemIn] = []
    payment: VoucherPaymentIn = Field(default_factory=VoucherPaymentIn)
    notes: Optional[str] = None
    voucher_date: Optional[date] = None


class VoucherItemRead(BaseModel):
    id: int
    item_description: str
    metal_type: str
    purity: str
    net_weight: Decimal
    rate_per_gram: Decimal
    total_amount: Decimal

    class Config:
        from_attributes = True


class VoucherRead(BaseModel):
    id: int
    voucher_number: str
    voucher_date: date
    customer_name: str
    customer_phone: str
    customer_address: Optional[str]
    pan_aadhaar: Optional[str]
    total_weight: Decimal
    total_amount: Decimal
    payment_method: str
    utr_number: Optional[str]
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class VoucherDetail(VoucherRead):
    items: list[VoucherItemRead] = []
