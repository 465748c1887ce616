"""
Purchase voucher API routes.

Endpoints:
  POST /api/vouchers                    – save a buy-back voucher
  GET  /api/vouchers/{voucher_number}   – read a saved voucher for printing
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel import Session

from jewel_pos.core.auth import require_session
from jewel_pos.core.database import get_session
from jewel_pos.core.errors import NotFoundError
from jewel_pos.schemas.billing import VoucherCreate, VoucherDetail, VoucherItemRead
from jewel_pos.services.rates import RateProvider
from jewel_pos.services.store import RecordStore
from jewel_pos.services.vouchers import VoucherManager

voucher_router = APIRouter(
    prefix="/api/vouchers", tags=["vouchers"], dependencies=[Depends(require_session)]
)


def _detail(store: RecordStore, voucher_number: str) -> VoucherDetail:
    found = store.find_voucher(voucher_number)
    if found is None:
        raise NotFoundError(f"Voucher {voucher_number} not found")
    voucher, items = found
    detail = VoucherDetail.model_validate(voucher)
    detail.items = [VoucherItemRead.model_validate(i) for i in items]
    return detail


@voucher_router.post("", response_model=VoucherDetail, status_code=201)
def save_voucher(body: VoucherCreate, session: Session = Depends(get_session)):
    store = RecordStore(session)
    manager = VoucherManager(store, rates=RateProvider(session))
    voucher = manager.save_voucher(
        body.customer,
        body.items,
        body.payment,
        notes=body.notes,
        voucher_date=body.voucher_date,
    )
    return _detail(store, voucher.voucher_number)


@voucher_router.get("/{voucher_number}", response_model=VoucherDetail)
def get_voucher(voucher_number: str, session: Session = Depends(get_session)):
    return _detail(RecordStore(session), voucher_number.strip())
