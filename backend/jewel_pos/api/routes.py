"""
General REST API routes for the shop backend.

Endpoints:
  GET  /api/health
  GET  /api/customers
  GET  /api/reports/turnover
  GET  /api/gstin/{gstin}
  GET  /api/products/lookup/{identifier}
  POST /api/otp/send
  POST /api/otp/verify
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from jewel_pos.core.auth import require_session
from jewel_pos.core.config import settings
from jewel_pos.core.database import get_session
from jewel_pos.models.rate import Rate
from jewel_pos.schemas.responses import (
    CustomerRead,
    GstinCheck,
    HealthResponse,
    OTPSendRequest,
    OTPSendResponse,
    OTPVerifyRequest,
    OTPVerifyResponse,
    ProductLookup,
    ProductRead,
    TurnoverReport,
)
from jewel_pos.services.notifier import OTPNotifier
from jewel_pos.services.pricing import (
    compute_item_total,
    detect_igst,
    gstin_warning,
    is_valid_gstin,
    item_from_product,
)
from jewel_pos.services.rates import RateProvider
from jewel_pos.services.store import RecordStore
from jewel_pos.services.turnover import TurnoverLedger

router = APIRouter(prefix="/api")
protected = [Depends(require_session)]


# ── Health ────────────────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
def health(session: Session = Depends(get_session)):
    try:
        session.exec(select(Rate).limit(1))
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {e}"
    return HealthResponse(status="ok", db=db_status, shop=settings.SHOP_NAME)


# ── Customers ─────────────────────────────────────────────────────────────────


@router.get("/customers", response_model=list[CustomerRead], dependencies=protected)
def search_customers(
    search: str = Query(default="", description="Name or phone fragment"),
    limit: int = Query(default=20, ge=1, le=200),
    session: Session = Depends(get_session),
):
    customers = RecordStore(session).search_customers(search.strip(), limit=limit)
    return [CustomerRead.model_validate(c) for c in customers]


# ── Reports ───────────────────────────────────────────────────────────────────


@router.get("/reports/turnover", response_model=TurnoverReport, dependencies=protected)
def turnover_report(session: Session = Depends(get_session)):
    """Turnover since the start of today, this month and this year."""
    figures = TurnoverLedger(session).figures()
    return TurnoverReport(
        daily=figures.daily,
        monthly=figures.monthly,
        yearly=figures.yearly,
        as_of=figures.as_of,
    )


# ── GST ───────────────────────────────────────────────────────────────────────


@router.get("/gstin/{gstin}", response_model=GstinCheck, dependencies=protected)
def check_gstin(gstin: str):
    """Format check plus the IGST default the billing form should apply."""
    gstin = gstin.strip().upper()
    return GstinCheck(
        gstin=gstin,
        valid=is_valid_gstin(gstin),
        state_code=gstin[:2] if len(gstin) >= 2 else None,
        is_igst=detect_igst(gstin, settings.SHOP_STATE_CODE),
        warning=gstin_warning(gstin),
    )


# ── Products ──────────────────────────────────────────────────────────────────


@router.get("/products/lookup/{identifier}", response_model=ProductLookup, dependencies=protected)
def lookup_product(identifier: str, session: Session = Depends(get_session)):
    """Resolve a scanned barcode or unique number into bill line defaults."""
    product = RecordStore(session).find_product(identifier)
    rate = RateProvider(session).get_rate(product.metal_type)
    item = item_from_product(product, rate)
    return ProductLookup(
        product=ProductRead.model_validate(product),
        item=item,
        quotation=compute_item_total(item),
        rate_available=bool(rate),
        warnings=[] if rate else [f"No {product.metal_type} rate set"],
    )


# ── Email OTP ─────────────────────────────────────────────────────────────────


@router.post("/otp/send", response_model=OTPSendResponse)
def send_otp(body: OTPSendRequest, session: Session = Depends(get_session)):
    notifier = OTPNotifier(session)
    _, delivered = notifier.issue(body.email)
    return OTPSendResponse(
        email=body.email.strip().lower(),
        delivered=delivered,
        expires_in_minutes=settings.OTP_EXPIRY_MINUTES,
    )


@router.post("/otp/verify", response_model=OTPVerifyResponse)
def verify_otp(body: OTPVerifyRequest, session: Session = Depends(get_session)):
    verified = OTPNotifier(session).verify(body.email, body.code)
    return OTPVerifyResponse(email=body.email.strip().lower(), verified=verified)
