"""
Purchase voucher manager: buy-back of old gold/silver from customers.

Create-and-print only: vouchers carry no tax or discount and are not
edited or deleted after saving.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence
from uuid import uuid4

from loguru import logger

from jewel_pos.core.errors import NotFoundError, ValidationError
from jewel_pos.models.voucher import PurchaseVoucher
from jewel_pos.schemas.billing import (
    PaymentMethod,
    VoucherCustomerIn,
    VoucherItemDraft,
    VoucherItemIn,
    VoucherPaymentIn,
)
from jewel_pos.services.pricing import format_amount
from jewel_pos.services.rates import RateProvider
from jewel_pos.services.store import RecordStore


class VoucherManager:
    def __init__(self, store: RecordStore, rates: Optional[RateProvider] = None) -> None:
        self.store = store
        self.rates = rates
        self.items: list[VoucherItemDraft] = []

    def _as_draft(self, item: VoucherItemIn) -> VoucherItemDraft:
        if isinstance(item, VoucherItemDraft):
            draft = item.model_copy()
        else:
            draft = VoucherItemDraft(**item.model_dump(), id=f"temp_{uuid4().hex[:12]}")

        if not draft.rate_per_gram and self.rates is not None:
            draft.rate_per_gram = self.rates.get_rate(draft.metal_type)

        if not draft.item_description.strip() or not draft.purity.strip() or not draft.net_weight:
            raise ValidationError("Please fill item description, purity and net weight")
        if not draft.rate_per_gram:
            raise ValidationError(f"No {draft.metal_type.value} rate available; enter a rate")

        draft.total_amount = draft.net_weight * draft.rate_per_gram
        return draft

    def add_item(self, item: VoucherItemIn) -> VoucherItemDraft:
        draft = self._as_draft(item)
        self.items.append(draft)
        return draft

    def remove_item(self, item_id: str) -> None:
        for item in self.items:
            if item.id == item_id:
                self.items.remove(item)
                return
        raise NotFoundError(f"Item {item_id} is not on this voucher")

    def save_voucher(
        self,
        customer: VoucherCustomerIn,
        items: Sequence[VoucherItemIn],
        payment: VoucherPaymentIn,
        notes: Optional[str] = None,
        voucher_date: Optional[date] = None,
    ) -> PurchaseVoucher:
        if not customer.name or not customer.phone or not items:
            raise ValidationError("Please fill customer name and phone and add at least one item")
        if payment.method == PaymentMethod.BANK and not payment.utr_number:
            raise ValidationError("UTR number is required for bank payments")
        drafts = [self._as_draft(item) for item in items]

        header = {
            "voucher_date": voucher_date or date.today(),
            "customer_name": customer.name,
            "customer_phone": customer.phone,
            "customer_address": customer.address or None,
            "pan_aadhaar": customer.pan_aadhaar or None,
            "total_weight": sum((d.net_weight for d in drafts), Decimal("0")),
            "total_amount": sum((d.total_amount for d in drafts), Decimal("0")),
            "payment_method": payment.method.value,
            # UTR only means something for bank transfers
            "utr_number": payment.utr_number if payment.method == PaymentMethod.BANK else None,
            "notes": notes,
        }
        rows = []
        for d in drafts:
            row = d.model_dump(exclude={"id"})
            row["metal_type"] = d.metal_type.value
            rows.append(row)

        voucher, _ = self.store.create_voucher(header, rows)
        self.items = []
        logger.info(
            f"vouchers: {voucher.voucher_number} saved for {voucher.customer_name} "
            f"({len(rows)} items, {format_amount(voucher.total_amount)})"
        )
        return voucher
