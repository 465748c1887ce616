"""Pydantic response schemas for API endpoints."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from jewel_pos.schemas.billing import BillItemIn


class HealthResponse(BaseModel):
    status: str
    db: str
    version: str = "1.0.0"
    shop: str


class CustomerRead(BaseModel):
    id: int
    name: str
    phone: str
    address: Optional[str]
    email: Optional[str]
    gstin: Optional[str]

    class Config:
        from_attributes = True


class TurnoverReport(BaseModel):
    daily: Decimal
    monthly: Decimal
    yearly: Decimal
    as_of: datetime


class GstinCheck(BaseModel):
    gstin: str
    valid: bool
    state_code: Optional[str]
    is_igst: bool
    warning: Optional[str] = None


class LoginRequest(BaseModel):
    password: str


class LoginResponse(BaseModel):
    token: str
    expires_at: datetime


class OTPSendRequest(BaseModel):
    email: str


class OTPSendResponse(BaseModel):
    email: str
    delivered: bool
    expires_in_minutes: int


class OTPVerifyRequest(BaseModel):
    email: str
    code: str


class OTPVerifyResponse(BaseModel):
    email: str
    verified: bool


class ProductRead(BaseModel):
    id: int
    name_english: str
    name_marathi: Optional[str]
    metal_type: str
    purity: Optional[str]
    weight_grams: Decimal
    barcode: Optional[str]
    unique_number: Optional[str]

    class Config:
        from_attributes = True


class ProductLookup(BaseModel):
    product: ProductRead
    # Line defaults ready for /api/bills/preview
    item: BillItemIn
    quotation: Decimal
    rate_available: bool
    warnings: list[str] = []
