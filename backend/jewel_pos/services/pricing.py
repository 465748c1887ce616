"""
Pricing engine: item totals, bill totals and GST helpers.

Everything here is a pure function over Decimals. Values are never rounded
when stored; ``format_amount`` rounds to paise for display only.

Derived-value contract: an item's ``making_charges`` (percentage mode) and
``total_amount`` depend on its weight and rate. Any code that changes weight
or rate must call ``recompute_derived(item)`` afterwards, or go through
``apply_item_changes`` which does it.
"""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from jewel_pos.models.product import Product
from jewel_pos.models.rate import MetalType
from jewel_pos.schemas.billing import BillItemDraft, BillItemIn, BillTotalsRead, MakingChargesType

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_PAISE = Decimal("0.01")

# 2 digit state code, 10 char PAN, entity number, 'Z', checksum
GSTIN_PATTERN = re.compile(r"^\d{2}[A-Z]{5}\d{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")

# Fields whose change invalidates making charges / total
_DERIVED_INPUTS = {
    "weight_grams",
    "rate_per_gram",
    "making_charges",
    "making_charges_type",
    "making_charges_percentage",
    "stone_charges",
    "other_charges",
}


@dataclass(frozen=True)
class BillTotals:
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

    def to_schema(self) -> BillTotalsRead:
        return BillTotalsRead(**asdict(self))


# ── Items ─────────────────────────────────────────────────────────────────────


def compute_item_total(item: BillItemIn) -> Decimal:
    """weight × rate + making + stone + other."""
    return (
        item.weight_grams * item.rate_per_gram
        + item.making_charges
        + item.stone_charges
        + item.other_charges
    )


def recompute_making_charges(item: BillItemIn) -> None:
    """Percentage-mode making charges follow the metal value; manual ones are left alone."""
    if item.making_charges_type == MakingChargesType.PERCENTAGE:
        item.making_charges = (
            item.weight_grams * item.rate_per_gram * item.making_charges_percentage / _HUNDRED
        )


def recompute_derived(item: BillItemDraft) -> Decimal:
    """Refresh making charges, then the item total. Returns the new total."""
    recompute_making_charges(item)
    item.total_amount = compute_item_total(item)
    return item.total_amount


def apply_item_changes(item: BillItemDraft, **changes: Any) -> BillItemDraft:
    """
    Set entered fields on a draft line and recompute whatever depends on them.

    Only fields of ``BillItemIn`` can be changed; ``id`` and ``total_amount``
    are owned by the draft and raise ``ValueError``.
    """
    unknown = set(changes) - set(BillItemIn.model_fields)
    if unknown:
        raise ValueError(f"Cannot change item field(s): {', '.join(sorted(unknown))}")
    for field, value in changes.items():
        if field == "making_charges_type":
            value = MakingChargesType(value)
        elif field == "metal_type":
            value = MetalType(value)
        elif field in _DERIVED_INPUTS:
            try:
                value = Decimal(str(value))
            except InvalidOperation:
                raise ValueError(f"{field} must be a number") from None
            if value < 0:
                raise ValueError(f"{field} cannot be negative")
        else:
            value = str(value)
        setattr(item, field, value)
    if _DERIVED_INPUTS & set(changes):
        recompute_derived(item)
    return item


def item_from_product(product: Product, rate_per_gram: Decimal) -> BillItemIn:
    """Bill line defaults for a scanned product, priced at the current metal rate."""
    item = BillItemIn(
        item_name=product.name_english,
        metal_type=product.metal_type,
        purity=product.purity or "",
        weight_grams=product.weight_grams,
        rate_per_gram=rate_per_gram,
        making_charges=product.making_charges_manual,
        making_charges_type=product.making_charges_type,
        making_charges_percentage=product.making_charges_percentage,
        stone_charges=product.stone_charges,
        other_charges=product.other_charges,
    )
    recompute_making_charges(item)
    return item


# ── Bills ─────────────────────────────────────────────────────────────────────


def compute_bill_totals(
    items: Iterable[BillItemIn],
    discount_percentage: Decimal = _ZERO,
    tax_percentage: Decimal = _ZERO,
    is_igst: bool = False,
    paid_amount: Decimal = _ZERO,
) -> BillTotals:
    """
    Aggregate item totals into bill totals.

    Draft lines contribute their ``total_amount``; plain entered lines are
    computed. A paid amount larger than the final amount yields a negative balance (customer credit).
    """
    items = list(items)
    total_weight = sum((i.weight_grams for i in items), _ZERO)
    total_amount = sum((_item_total(i) for i in items), _ZERO)

    discount_amount = total_amount * discount_percentage / _HUNDRED if discount_percentage else _ZERO
    taxable = total_amount - discount_amount
    tax_amount = taxable * tax_percentage / _HUNDRED if tax_percentage else _ZERO

    if is_igst:
        igst, cgst, sgst = tax_amount, _ZERO, _ZERO
    else:
        igst = _ZERO
        cgst = sgst = tax_amount / 2

    final_amount = taxable + tax_amount
    return BillTotals(
        total_weight=total_weight,
        total_amount=total_amount,
        discount_amount=discount_amount,
        taxable_amount=taxable,
        tax_amount=tax_amount,
        is_igst=is_igst,
        cgst_amount=cgst,
        sgst_amount=sgst,
        igst_amount=igst,
        final_amount=final_amount,
        balance_amount=final_amount - paid_amount,
    )


def _item_total(item: BillItemIn) -> Decimal:
    if isinstance(item, BillItemDraft):
        return item.total_amount
    return compute_item_total(item)


# ── GST ───────────────────────────────────────────────────────────────────────


def is_valid_gstin(gstin: Optional[str]) -> bool:
    return bool(gstin) and GSTIN_PATTERN.match(gstin) is not None


def gstin_warning(gstin: Optional[str]) -> Optional[str]:
    """Soft warning text for a malformed GSTIN; never blocks billing."""
    if gstin and not is_valid_gstin(gstin):
        return f"GSTIN '{gstin}' does not look valid (expected 15 characters like 27AABCU9603R1ZM)"
    return None


def detect_igst(gstin: Optional[str], shop_state_code: str) -> bool:
    """Inter-state (IGST) when the GSTIN's state code differs from the shop's."""
    if not gstin or len(gstin) < 2:
        return False
    return gstin[:2] != shop_state_code


# ── Display ───────────────────────────────────────────────────────────────────


def format_amount(amount: Decimal) -> str:
    """Round to paise for display, e.g. Decimal('907.5') -> '907.50'."""
    return f"{amount.quantize(_PAISE, rounding=ROUND_HALF_UP):,}"
