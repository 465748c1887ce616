"""Unit tests for the pricing engine and GST helpers."""
from decimal import Decimal

import pytest

from jewel_pos.models.product import Product
from jewel_pos.models.rate import MetalType
from jewel_pos.schemas.billing import BillItemDraft, BillItemIn, MakingChargesType
from jewel_pos.services.pricing import (
    apply_item_changes,
    compute_bill_totals,
    compute_item_total,
    detect_igst,
    format_amount,
    gstin_warning,
    is_valid_gstin,
    item_from_product,
    recompute_derived,
)

D = Decimal


def _item(**kw) -> BillItemDraft:
    base = dict(
        id="temp_1",
        item_name="Ring",
        weight_grams=D("10"),
        rate_per_gram=D("6000"),
        making_charges=D("500"),
    )
    base.update(kw)
    item = BillItemDraft(**base)
    recompute_derived(item)
    return item


class TestItemTotals:
    def test_item_total_formula(self):
        item = BillItemIn(
            item_name="Chain",
            weight_grams=D("12.345"),
            rate_per_gram=D("6123.5"),
            making_charges=D("750"),
            stone_charges=D("1200"),
            other_charges=D("35.25"),
        )
        expected = D("12.345") * D("6123.5") + D("750") + D("1200") + D("35.25")
        assert compute_item_total(item) == expected

    def test_values_not_rounded(self):
        item = _item(weight_grams=D("1.111"), rate_per_gram=D("3.333"), making_charges=D("0"))
        assert item.total_amount == D("3.702963")

    def test_percentage_making_follows_weight(self):
        item = _item(
            making_charges=D("0"),
            making_charges_type=MakingChargesType.PERCENTAGE,
            making_charges_percentage=D("10"),
        )
        assert item.making_charges == D("6000")
        assert item.total_amount == D("66000")

        apply_item_changes(item, weight_grams="5")
        assert item.making_charges == D("3000")
        assert item.total_amount == D("33000")

    def test_percentage_making_follows_rate(self):
        item = _item(
            making_charges_type=MakingChargesType.PERCENTAGE,
            making_charges_percentage=D("12.5"),
        )
        apply_item_changes(item, rate_per_gram=D("7000"))
        assert item.making_charges == D("10") * D("7000") * D("12.5") / D("100")

    def test_manual_making_untouched(self):
        item = _item()
        apply_item_changes(item, weight_grams=D("20"), rate_per_gram=D("6500"))
        assert item.making_charges == D("500")
        assert item.total_amount == D("130500")

    def test_negative_change_rejected(self):
        item = _item()
        with pytest.raises(ValueError):
            apply_item_changes(item, weight_grams="-1")
        assert item.weight_grams == D("10")

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            apply_item_changes(_item(), colour="red")

    @pytest.mark.parametrize("field", ["total_amount", "id"])
    def test_draft_owned_fields_rejected(self, field):
        item = _item()
        with pytest.raises(ValueError):
            apply_item_changes(item, **{field: "1"})
        assert item.total_amount == D("60500")
        assert item.id == "temp_1"

    def test_non_numeric_value_rejected(self):
        with pytest.raises(ValueError):
            apply_item_changes(_item(), weight_grams="ten")

    def test_metal_type_coerced(self):
        item = apply_item_changes(_item(), metal_type="silver")
        assert item.metal_type == MetalType.SILVER


class TestBillTotals:
    def test_end_to_end_example(self):
        totals = compute_bill_totals(
            [_item()],
            discount_percentage=D("0"),
            tax_percentage=D("3"),
            is_igst=False,
            paid_amount=D("50000"),
        )
        assert totals.total_amount == D("60500")
        assert totals.tax_amount == D("1815")
        assert totals.cgst_amount == D("907.5")
        assert totals.sgst_amount == D("907.5")
        assert totals.igst_amount == D("0")
        assert totals.final_amount == D("62315")
        assert totals.balance_amount == D("12315")

    def test_igst_takes_whole_tax(self):
        totals = compute_bill_totals([_item()], tax_percentage=D("3"), is_igst=True)
        assert totals.igst_amount == totals.tax_amount == D("1815")
        assert totals.cgst_amount == D("0")
        assert totals.sgst_amount == D("0")

    def test_discount_before_tax(self):
        totals = compute_bill_totals(
            [_item()], discount_percentage=D("10"), tax_percentage=D("3")
        )
        assert totals.discount_amount == D("6050")
        assert totals.taxable_amount == D("54450")
        assert totals.tax_amount == D("1633.5")
        assert totals.final_amount == totals.total_amount - totals.discount_amount + totals.tax_amount

    def test_overpayment_gives_negative_balance(self):
        totals = compute_bill_totals([_item()], tax_percentage=D("3"), paid_amount=D("70000"))
        assert totals.balance_amount == D("-7685")

    def test_multiple_items_and_weight(self):
        totals = compute_bill_totals(
            [_item(), _item(id="temp_2", weight_grams=D("2.5"), making_charges=D("0"))],
            tax_percentage=D("0"),
        )
        assert totals.total_weight == D("12.5")
        assert totals.total_amount == D("75500")
        assert totals.cgst_amount == totals.sgst_amount == D("0")

    def test_empty_bill(self):
        totals = compute_bill_totals([], tax_percentage=D("3"))
        assert totals.final_amount == D("0")
        assert totals.balance_amount == D("0")


class TestGstin:
    def test_same_state_is_intra(self):
        assert detect_igst("27AABCU9603R1ZM", "27") is False

    def test_other_state_is_inter(self):
        assert detect_igst("09AABCU9603R1ZM", "27") is True

    def test_no_gstin_defaults_intra(self):
        assert detect_igst(None, "27") is False
        assert detect_igst("", "27") is False

    def test_format(self):
        assert is_valid_gstin("27AABCU9603R1ZM")
        assert not is_valid_gstin("27AABCU9603R1Z")
        assert not is_valid_gstin(None)

    def test_warning_is_soft(self):
        assert gstin_warning("27AABCU9603R1ZM") is None
        assert gstin_warning(None) is None
        assert "does not look valid" in gstin_warning("NOTAGSTIN")


class TestFormatAmount:
    def test_rounds_for_display(self):
        assert format_amount(D("907.5")) == "907.50"
        assert format_amount(D("62315")) == "62,315.00"
        assert format_amount(D("0.005")) == "0.01"


class TestProductDefaults:
    def test_percentage_product_priced_at_rate(self):
        product = Product(
            name_english="Bangle",
            metal_type="gold",
            purity="22k",
            weight_grams=D("15.2"),
            making_charges_type="percentage",
            making_charges_percentage=D("8"),
            stone_charges=D("1200"),
        )
        item = item_from_product(product, D("6500"))
        assert item.item_name == "Bangle"
        assert item.making_charges == D("15.2") * D("6500") * D("8") / D("100")
        assert compute_item_total(item) == D("98800") + D("7904") + D("1200")

    def test_manual_product_keeps_flat_charge(self):
        product = Product(
            name_english="Anklet",
            metal_type="silver",
            weight_grams=D("40"),
            making_charges_manual=D("350"),
        )
        item = item_from_product(product, D("75"))
        assert item.metal_type == MetalType.SILVER
        assert item.purity == ""
        assert compute_item_total(item) == D("3350")
