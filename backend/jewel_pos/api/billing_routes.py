"""
Billing API routes.

Endpoints:
  POST   /api/bills/preview              – item + bill totals, nothing saved
  POST   /api/bills                      – create a bill
  GET    /api/bills                      – recent bills (optional search)
  GET    /api/bills/{bill_number}        – load a bill by exact number
  PUT    /api/bills/{bill_number}        – update header fields of a bill
  DELETE /api/bills/{bill_number}        – delete a bill
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from jewel_pos.core.auth import require_session
from jewel_pos.core.database import get_session
from jewel_pos.schemas.billing import (
    BillCreate,
    BillDeleteResponse,
    BillDetail,
    BillItemRead,
    BillPreviewRequest,
    BillPreviewResponse,
    BillRead,
    BillUpdate,
)
from jewel_pos.services.invoice import InvoiceManager
from jewel_pos.services.rates import RateProvider
from jewel_pos.services.store import RecordStore
from jewel_pos.services.turnover import TurnoverLedger

billing_router = APIRouter(
    prefix="/api/bills", tags=["billing"], dependencies=[Depends(require_session)]
)


def _manager(session: Session) -> InvoiceManager:
    return InvoiceManager(
        RecordStore(session),
        rates=RateProvider(session),
        turnover=TurnoverLedger(session),
    )


def _detail(manager: InvoiceManager) -> BillDetail:
    detail = BillDetail.model_validate(manager.bill)
    detail.customer_email = manager.customer.email or None
    detail.items = [
        BillItemRead(
            id=int(item.id),
            item_name=item.item_name,
            metal_type=item.metal_type.value,
            purity=item.purity,
            weight_grams=item.weight_grams,
            rate_per_gram=item.rate_per_gram,
            making_charges=item.making_charges,
            making_charges_type=item.making_charges_type.value,
            making_charges_percentage=item.making_charges_percentage,
            stone_charges=item.stone_charges,
            other_charges=item.other_charges,
            total_amount=item.total_amount,
        )
        for item in manager.items
    ]
    detail.warnings = manager.warnings
    return detail


@billing_router.post("/preview", response_model=BillPreviewResponse)
def preview_bill(body: BillPreviewRequest, session: Session = Depends(get_session)):
    """Price the form as it stands. Items missing a rate get the current metal rate."""
    manager = _manager(session)
    gstin = (body.customer_gstin or "").strip().upper() or None
    manager.set_gstin(gstin)
    manager.set_billing(body.billing)
    for item in body.items:
        manager.add_item(item)
    return BillPreviewResponse(
        items=manager.items,
        totals=manager.totals().to_schema(),
        warnings=manager.warnings,
    )


@billing_router.post("", response_model=BillDetail, status_code=201)
def create_bill(body: BillCreate, session: Session = Depends(get_session)):
    manager = _manager(session)
    manager.create_bill(body.customer, body.items, body.billing, bill_date=body.bill_date)
    return _detail(manager)


@billing_router.get("", response_model=list[BillRead])
def list_bills(
    search: Optional[str] = Query(default=None, description="Bill number, customer name or phone"),
    limit: int = Query(default=50, ge=1, le=500),
    session: Session = Depends(get_session),
):
    bills = RecordStore(session).list_bills(search=search, limit=limit)
    return [BillRead.model_validate(b) for b in bills]


@billing_router.get("/{bill_number}", response_model=BillDetail)
def get_bill(bill_number: str, session: Session = Depends(get_session)):
    manager = _manager(session)
    manager.search_bill(bill_number)
    return _detail(manager)


@billing_router.put("/{bill_number}", response_model=BillDetail)
def update_bill(bill_number: str, body: BillUpdate, session: Session = Depends(get_session)):
    """Overwrite customer and billing fields. Items stay as saved."""
    manager = _manager(session)
    manager.search_bill(bill_number)
    manager.begin_edit()
    manager.update_bill(body.customer, body.billing)
    return _detail(manager)


@billing_router.delete("/{bill_number}", response_model=BillDeleteResponse)
def delete_bill(
    bill_number: str,
    delete_from_turnover: bool = Query(default=True),
    session: Session = Depends(get_session),
):
    manager = _manager(session)
    manager.search_bill(bill_number)
    deleted = manager.delete_bill(delete_from_turnover)
    return BillDeleteResponse(
        status="deleted",
        bill_number=deleted.bill_number,
        delete_from_turnover=delete_from_turnover,
    )
