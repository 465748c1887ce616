"""Scanner lookups against the product catalogue."""
from decimal import Decimal

import pytest

from jewel_pos.core.errors import NotFoundError, ValidationError
from jewel_pos.models.product import Product
from jewel_pos.services.store import RecordStore

D = Decimal


@pytest.fixture
def store(session):
    session.add_all(
        [
            Product(
                name_english="Gold Chain",
                purity="22k",
                weight_grams=D("12.345"),
                barcode="8901000000011",
                unique_number="GC-0001",
            ),
            Product(name_english="Silver Coin", metal_type="silver", unique_number="SC-0007"),
        ]
    )
    session.commit()
    return RecordStore(session)


class TestFindProduct:
    def test_by_barcode(self, store):
        product = store.find_product("8901000000011")
        assert product.unique_number == "GC-0001"
        assert product.weight_grams == D("12.345")

    def test_by_unique_number(self, store):
        assert store.find_product("SC-0007").name_english == "Silver Coin"

    def test_scanner_whitespace_ignored(self, store):
        assert store.find_product(" GC-0001\n").name_english == "Gold Chain"

    def test_miss(self, store):
        with pytest.raises(NotFoundError):
            store.find_product("GC-9999")

    def test_blank_rejected(self, store):
        with pytest.raises(ValidationError):
            store.find_product("  ")
