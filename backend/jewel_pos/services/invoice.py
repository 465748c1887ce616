"""
Invoice lifecycle manager.

Lifecycle::

    EMPTY -> DRAFTING -> SAVED -> VIEWING <-> EDITING -> SAVED (updated)
    VIEWING | EDITING -> DELETED

All status changes go through ``_transition``. Totals are recomputed only
when ``totals()`` is called (or when a bill is saved); removing an item
does not recompute them by itself.

Known limitation: items of a saved bill cannot be edited. ``update_bill``
overwrites header fields (customer, discount, tax, payment) only.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from functools import partial
from typing import Any, Optional, Sequence
from uuid import uuid4

from loguru import logger

from jewel_pos.core.config import settings
from jewel_pos.core.errors import NotFoundError, StateError, ValidationError
from jewel_pos.models.bill import Bill, BillItem
from jewel_pos.schemas.billing import BillingFieldsIn, BillItemDraft, BillItemIn, CustomerIn
from jewel_pos.services.pricing import (
    BillTotals,
    apply_item_changes,
    compute_bill_totals,
    detect_igst,
    format_amount,
    gstin_warning,
    recompute_derived,
)
from jewel_pos.services.rates import RateProvider
from jewel_pos.services.store import RecordStore
from jewel_pos.services.turnover import TurnoverLedger


class InvoiceState(str, Enum):
    EMPTY = "empty"
    DRAFTING = "drafting"
    SAVED = "saved"
    VIEWING = "viewing"
    EDITING = "editing"
    DELETED = "deleted"


# current state -> states reachable from it (reset to EMPTY is always allowed)
INVOICE_TRANSITIONS: dict[InvoiceState, set[InvoiceState]] = {
    InvoiceState.EMPTY: {InvoiceState.DRAFTING, InvoiceState.VIEWING},
    InvoiceState.DRAFTING: {InvoiceState.DRAFTING, InvoiceState.SAVED, InvoiceState.VIEWING},
    InvoiceState.SAVED: {InvoiceState.VIEWING, InvoiceState.EDITING},
    InvoiceState.VIEWING: {InvoiceState.VIEWING, InvoiceState.EDITING, InvoiceState.DELETED},
    InvoiceState.EDITING: {InvoiceState.VIEWING, InvoiceState.SAVED, InvoiceState.DELETED},
    InvoiceState.DELETED: {InvoiceState.VIEWING},
}

_DRAFT_STATES = {InvoiceState.EMPTY, InvoiceState.DRAFTING}


class InvoiceManager:
    def __init__(
        self,
        store: RecordStore,
        rates: Optional[RateProvider] = None,
        turnover: Optional[TurnoverLedger] = None,
        shop_state_code: str = settings.SHOP_STATE_CODE,
    ) -> None:
        self.store = store
        self.rates = rates
        self.turnover = turnover
        self.shop_state_code = shop_state_code
        self.reset()

    # ── State ─────────────────────────────────────────────────────────────────

    def reset(self) -> None:
        self.state = InvoiceState.EMPTY
        self.items: list[BillItemDraft] = []
        self.customer = CustomerIn()
        self.billing = BillingFieldsIn()
        self.is_igst = False
        self._igst_manual = False
        self.bill: Optional[Bill] = None

    def _transition(self, target: InvoiceState) -> None:
        if target not in INVOICE_TRANSITIONS[self.state]:
            raise StateError(f"Cannot go from {self.state.value} to {target.value}")
        self.state = target

    def _require(self, *states: InvoiceState, action: str) -> None:
        if self.state not in states:
            raise StateError(f"Cannot {action} while the bill is {self.state.value}")

    @property
    def warnings(self) -> list[str]:
        warning = gstin_warning(self.customer.gstin)
        return [warning] if warning else []

    # ── Items ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _check_item(draft: BillItemDraft) -> None:
        if not draft.item_name.strip() or not draft.weight_grams or not draft.rate_per_gram:
            detail = "Please fill item name, weight and rate"
            if not draft.rate_per_gram:
                detail += f" (no {draft.metal_type.value} rate available)"
            raise ValidationError(detail)

    def _as_draft(self, item: BillItemIn) -> BillItemDraft:
        if isinstance(item, BillItemDraft):
            draft = item.model_copy()
        else:
            draft = BillItemDraft(**item.model_dump(), id=f"temp_{uuid4().hex[:12]}")

        if not draft.rate_per_gram and self.rates is not None:
            draft.rate_per_gram = self.rates.get_rate(draft.metal_type)

        self._check_item(draft)
        recompute_derived(draft)
        return draft

    def add_item(self, item: BillItemIn) -> BillItemDraft:
        self._require(*_DRAFT_STATES, action="add items")
        draft = self._as_draft(item)
        self.items.append(draft)
        self._transition(InvoiceState.DRAFTING)
        return draft

    def _find_item(self, item_id: str) -> BillItemDraft:
        for item in self.items:
            if item.id == str(item_id):
                return item
        raise NotFoundError(f"Item {item_id} is not on this bill")

    def update_item(self, item_id: str, **changes: Any) -> BillItemDraft:
        """
        Change entered fields of a draft line; weight/rate changes refresh
        derived values. The line is left as it was if the result is invalid.
        """
        self._require(*_DRAFT_STATES, action="change items")
        item = self._find_item(item_id)
        try:
            updated = apply_item_changes(item.model_copy(), **changes)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        self._check_item(updated)
        self.items[self.items.index(item)] = updated
        return updated

    def remove_item(self, item_id: str) -> None:
        """Drop a line by temporary or persisted id. Call ``totals()`` afterwards."""
        self._require(*_DRAFT_STATES, action="remove items")
        self.items.remove(self._find_item(item_id))

    # ── Customer / GST ────────────────────────────────────────────────────────

    def set_gstin(self, gstin: Optional[str]) -> None:
        """Set the customer's GSTIN; a changed GSTIN re-runs IGST auto-detection."""
        gstin = (gstin or "").strip().upper() or None
        changed = gstin != self.customer.gstin
        self.customer = self.customer.model_copy(update={"gstin": gstin})
        if changed:
            self._igst_manual = False
            self.is_igst = detect_igst(gstin, self.shop_state_code)
            warning = gstin_warning(gstin)
            if warning:
                logger.warning(f"billing: {warning}")

    def set_igst(self, is_igst: bool) -> None:
        """Manual IGST toggle; wins over auto-detection until the GSTIN changes."""
        self.is_igst = is_igst
        self._igst_manual = True

    def set_customer(self, customer: CustomerIn) -> None:
        gstin = customer.gstin
        self.customer = customer.model_copy(update={"gstin": self.customer.gstin})
        self.set_gstin(gstin)

    def set_billing(self, billing: BillingFieldsIn) -> None:
        self.billing = billing
        if billing.is_igst is not None:
            self.set_igst(billing.is_igst)

    def totals(self) -> BillTotals:
        return compute_bill_totals(
            self.items,
            discount_percentage=self.billing.discount_percentage,
            tax_percentage=self.billing.tax_percentage,
            is_igst=self.is_igst,
            paid_amount=self.billing.paid_amount,
        )

    # ── Persistence ───────────────────────────────────────────────────────────

    @staticmethod
    def _check_customer(customer: CustomerIn) -> list[str]:
        return [
            label
            for label, value in (
                ("name", customer.name),
                ("phone", customer.phone),
                ("email", customer.email),
            )
            if not value
        ]

    def _header(self, totals: BillTotals) -> dict:
        return {
            "total_weight": totals.total_weight,
            "total_amount": totals.total_amount,
            "discount_percentage": self.billing.discount_percentage,
            "discount_amount": totals.discount_amount,
            "tax_percentage": self.billing.tax_percentage,
            "tax_amount": totals.tax_amount,
            "is_igst": totals.is_igst,
            "cgst_amount": totals.cgst_amount,
            "sgst_amount": totals.sgst_amount,
            "igst_amount": totals.igst_amount,
            "final_amount": totals.final_amount,
            "paid_amount": self.billing.paid_amount,
            "balance_amount": totals.balance_amount,
            "payment_method": self.billing.payment_method,
            "notes": self.billing.notes,
        }

    @staticmethod
    def _item_row(draft: BillItemDraft) -> dict:
        row = draft.model_dump(exclude={"id"})
        row["metal_type"] = draft.metal_type.value
        row["making_charges_type"] = draft.making_charges_type.value
        return row

    @staticmethod
    def _draft_from_row(row: BillItem) -> BillItemDraft:
        data = {name: getattr(row, name) for name in BillItemIn.model_fields}
        data["purity"] = row.purity or ""
        return BillItemDraft(**data, id=str(row.id), total_amount=row.total_amount)

    def create_bill(
        self,
        customer: CustomerIn,
        items: Sequence[BillItemIn],
        billing: BillingFieldsIn,
        bill_date: Optional[datetime] = None,
    ) -> Bill:
        """
        Validate, then persist a new bill.

        The customer is upserted by phone and the bill number is assigned by
        the store. Nothing is written when validation fails.
        """
        self._require(*_DRAFT_STATES, action="save a new bill")
        missing = self._check_customer(customer)
        if missing or not items:
            raise ValidationError(
                "Please fill customer name, phone and email and add at least one item"
            )
        drafts = [self._as_draft(item) for item in items]

        self.set_customer(customer)
        self.set_billing(billing)
        self.items = drafts
        if self.state == InvoiceState.EMPTY:
            self._transition(InvoiceState.DRAFTING)
        totals = self.totals()

        bill, rows = self.store.create_bill(
            self.customer,
            self._header(totals),
            [self._item_row(d) for d in drafts],
            created_at=bill_date,
        )
        self.bill = bill
        self.items = [self._draft_from_row(r) for r in rows]
        self._transition(InvoiceState.SAVED)
        logger.info(
            f"billing: bill {bill.bill_number} created for {bill.customer_name} "
            f"({len(rows)} items, final {format_amount(totals.final_amount)})"
        )
        return bill

    def search_bill(self, bill_number: str) -> Bill:
        """Load a saved bill by exact number into the form (VIEWING)."""
        bill_number = bill_number.strip()
        found = self.store.find_bill(bill_number)
        if found is None:
            raise NotFoundError(f"Bill {bill_number} not found")
        self._transition(InvoiceState.VIEWING)

        bill, rows = found
        stored_customer = self.store.find_customer_by_phone(bill.customer_phone)
        self.bill = bill
        self.customer = CustomerIn(
            name=bill.customer_name,
            phone=bill.customer_phone,
            address=bill.customer_address or "",
            email=(stored_customer.email if stored_customer else None) or "",
            gstin=bill.customer_gstin,
        )
        self.items = [self._draft_from_row(r) for r in rows]
        self.billing = BillingFieldsIn(
            discount_percentage=bill.discount_percentage,
            tax_percentage=bill.tax_percentage,
            is_igst=bill.is_igst,
            paid_amount=bill.paid_amount,
            payment_method=bill.payment_method or "cash",
            notes=bill.notes,
        )
        # The stored split stands until the GSTIN is changed
        self.is_igst = bill.is_igst
        self._igst_manual = True
        return bill

    def begin_edit(self) -> None:
        self._transition(InvoiceState.EDITING)

    def cancel_edit(self) -> None:
        self._require(InvoiceState.EDITING, action="cancel editing")
        self._transition(InvoiceState.VIEWING)

    def update_bill(
        self,
        customer: Optional[CustomerIn] = None,
        billing: Optional[BillingFieldsIn] = None,
    ) -> Bill:
        """Overwrite the bill's header fields, then reload it from the store."""
        self._require(InvoiceState.EDITING, action="update the bill")
        customer = customer or self.customer
        missing = self._check_customer(customer)
        if missing:
            raise ValidationError(f"Please fill customer {', '.join(missing)}")

        self.set_customer(customer)
        if billing is not None:
            self.set_billing(billing)
        totals = self.totals()

        bill_number = self.bill.bill_number
        self.store.update_bill(bill_number, self.customer, self._header(totals))
        self._transition(InvoiceState.SAVED)
        logger.info(f"billing: bill {bill_number} updated (final {format_amount(totals.final_amount)})")
        return self.search_bill(bill_number)

    def delete_bill(self, delete_from_turnover: bool) -> Bill:
        """
        Delete the loaded bill (items first, then the bill).

        ``delete_from_turnover`` is handed to the turnover ledger inside the
        delete transaction; it does not change what is deleted.
        """
        self._require(InvoiceState.VIEWING, InvoiceState.EDITING, action="delete the bill")
        on_delete = None
        if self.turnover is not None:
            on_delete = partial(self.turnover.bill_deleted, delete_from_turnover=delete_from_turnover)
        deleted = self.store.delete_bill(self.bill.bill_number, on_delete=on_delete)
        self.bill = deleted
        self._transition(InvoiceState.DELETED)
        logger.info(
            f"billing: bill {deleted.bill_number} deleted "
            f"(delete_from_turnover={delete_from_turnover})"
        )
        return deleted
