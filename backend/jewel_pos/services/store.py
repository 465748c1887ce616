"""
Record store used by the bill and voucher lifecycle managers.

All SQL for those flows lives here. Each public write runs inside one
transaction: a bill and its items are committed together, so a failed item
insert never leaves a bill row behind. Database failures surface as
``PersistenceError`` with the underlying message; failed writes are not retried.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, or_, select, update

from jewel_pos.core.config import settings
from jewel_pos.core.errors import NotFoundError, PersistenceError, ValidationError
from jewel_pos.models.bill import Bill, BillItem
from jewel_pos.models.bookkeeping import DocumentSequence
from jewel_pos.models.customer import Customer
from jewel_pos.models.product import Product
from jewel_pos.models.voucher import PurchaseVoucher, PurchaseVoucherItem
from jewel_pos.schemas.billing import CustomerIn


class RecordStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def transaction(self, action: str) -> Iterator[Session]:
        """Commit on success; roll back and wrap database errors otherwise."""
        try:
            yield self.session
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"store: {action} failed: {exc}")
            raise PersistenceError(f"Failed to {action}: {exc}") from exc
        except Exception:
            self.session.rollback()
            raise

    # ── Customers ─────────────────────────────────────────────────────────────

    def _upsert_customer(self, data: CustomerIn) -> Customer:
        existing = self.session.exec(
            select(Customer).where(Customer.phone == data.phone)
        ).first()
        if existing:
            # Current form values win, including blanks
            existing.name = data.name
            existing.address = data.address or None
            existing.email = data.email or None
            existing.gstin = data.gstin
            existing.updated_at = datetime.utcnow()
            self.session.add(existing)
            return existing
        customer = Customer(
            name=data.name,
            phone=data.phone,
            address=data.address or None,
            email=data.email or None,
            gstin=data.gstin,
        )
        self.session.add(customer)
        self.session.flush()
        return customer

    def upsert_customer(self, data: CustomerIn) -> Customer:
        with self.transaction("save customer"):
            customer = self._upsert_customer(data)
        self.session.refresh(customer)
        return customer

    def find_customer_by_phone(self, phone: str) -> Optional[Customer]:
        return self.session.exec(select(Customer).where(Customer.phone == phone)).first()

    def search_customers(self, term: str = "", limit: int = 20) -> list[Customer]:
        stmt = select(Customer)
        if term:
            stmt = stmt.where(
                or_(
                    col(Customer.name).ilike(f"%{term}%"),
                    col(Customer.phone).contains(term),
                )
            )
        stmt = stmt.order_by(Customer.name).limit(limit)
        return list(self.session.exec(stmt).all())

    # ── Numbering ─────────────────────────────────────────────────────────────

    def _bump_sequence(self, prefix: str, year: int) -> Optional[int]:
        """Atomically increment the sequence row; None when the row does not exist yet."""
        result = self.session.exec(
            update(DocumentSequence)
            .where(DocumentSequence.prefix == prefix, DocumentSequence.year == year)
            .values(last_value=DocumentSequence.last_value + 1, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return self.session.exec(
            select(DocumentSequence.last_value).where(
                DocumentSequence.prefix == prefix, DocumentSequence.year == year
            )
        ).one()

    def _next_number(self, prefix: str, year: int) -> str:
        """
        Next ``{PREFIX}-{YEAR}-{SEQ}`` number. Must run inside a transaction:
        the sequence row is incremented and committed with the document.

        The increment is a single UPDATE, which takes the write lock, so two
        terminals never read the same value. The first document of a year
        inserts the row; if another terminal inserted it first, the unique
        (prefix, year) constraint rejects ours and the increment is redone.
        """
        value = self._bump_sequence(prefix, year)
        if value is None:
            try:
                with self.session.begin_nested():
                    self.session.add(DocumentSequence(prefix=prefix, year=year, last_value=1))
                value = 1
            except IntegrityError:
                logger.info(f"store: {prefix}-{year} sequence created concurrently")
                value = self._bump_sequence(prefix, year)
        return f"{prefix}-{year}-{value:0{settings.NUMBER_PADDING}d}"

    # ── Bills ─────────────────────────────────────────────────────────────────

    def create_bill(
        self,
        customer: CustomerIn,
        header: dict,
        items: list[dict],
        created_at: Optional[datetime] = None,
    ) -> tuple[Bill, list[BillItem]]:
        """Upsert the customer, number the bill, insert bill then items, in one commit."""
        created_at = created_at or datetime.utcnow()
        with self.transaction("save bill"):
            cust = self._upsert_customer(customer)
            bill = Bill(
                **header,
                bill_number=self._next_number(settings.BILL_PREFIX, created_at.year),
                customer_id=cust.id,
                customer_name=customer.name,
                customer_phone=customer.phone,
                customer_address=customer.address or None,
                customer_gstin=customer.gstin,
                created_at=created_at,
                updated_at=created_at,
            )
            self.session.add(bill)
            self.session.flush()

            rows = [BillItem(**data, bill_id=bill.id, order=i) for i, data in enumerate(items)]
            self.session.add_all(rows)
            self.session.flush()

        self.session.refresh(bill)
        for row in rows:
            self.session.refresh(row)
        return bill, rows

    def find_bill(self, bill_number: str) -> Optional[tuple[Bill, list[BillItem]]]:
        bill = self.session.exec(select(Bill).where(Bill.bill_number == bill_number)).first()
        if bill is None:
            return None
        items = self.session.exec(
            select(BillItem).where(BillItem.bill_id == bill.id).order_by(BillItem.order)
        ).all()
        return bill, list(items)

    def list_bills(self, search: Optional[str] = None, limit: int = 50) -> list[Bill]:
        stmt = select(Bill)
        if search:
            stmt = stmt.where(
                or_(
                    col(Bill.bill_number).contains(search),
                    col(Bill.customer_name).ilike(f"%{search}%"),
                    col(Bill.customer_phone).contains(search),
                )
            )
        stmt = stmt.order_by(col(Bill.created_at).desc(), col(Bill.id).desc()).limit(limit)
        return list(self.session.exec(stmt).all())

    def update_bill(self, bill_number: str, customer: CustomerIn, header: dict) -> Bill:
        """Overwrite header fields and the customer snapshot. Items are not touched."""
        with self.transaction("update bill"):
            bill = self.session.exec(select(Bill).where(Bill.bill_number == bill_number)).first()
            if bill is None:
                raise NotFoundError(f"Bill {bill_number} not found")
            cust = self._upsert_customer(customer)
            for key, value in header.items():
                setattr(bill, key, value)
            bill.customer_id = cust.id
            bill.customer_name = customer.name
            bill.customer_phone = customer.phone
            bill.customer_address = customer.address or None
            bill.customer_gstin = customer.gstin
            bill.updated_at = datetime.utcnow()
            self.session.add(bill)
        self.session.refresh(bill)
        return bill

    def delete_bill(
        self,
        bill_number: str,
        on_delete: Optional[Callable[[Bill], None]] = None,
    ) -> Bill:
        """
        Delete the bill's items, then the bill. Returns the deleted row's data.

        ``on_delete`` runs with that data inside the same transaction, so any
        bookkeeping it writes is committed or rolled back with the deletion.
        """
        with self.transaction("delete bill"):
            bill = self.session.exec(select(Bill).where(Bill.bill_number == bill_number)).first()
            if bill is None:
                raise NotFoundError(f"Bill {bill_number} not found")
            snapshot = Bill.model_validate(bill.model_dump())
            items = self.session.exec(select(BillItem).where(BillItem.bill_id == bill.id)).all()
            for item in items:
                self.session.delete(item)
            self.session.flush()
            self.session.delete(bill)
            if on_delete is not None:
                on_delete(snapshot)
            self.session.flush()
        return snapshot

    # ── Products ──────────────────────────────────────────────────────────────

    def find_product(self, identifier: str) -> Product:
        """Exact match on barcode or unique number, as read by the scanner."""
        identifier = (identifier or "").strip()
        if not identifier:
            raise ValidationError("Please scan or enter a barcode / unique number")
        product = self.session.exec(
            select(Product).where(
                or_(Product.barcode == identifier, Product.unique_number == identifier)
            )
        ).first()
        if product is None:
            raise NotFoundError(f"Product {identifier} not found")
        return product

    # ── Purchase vouchers ─────────────────────────────────────────────────────

    def create_voucher(
        self, header: dict, items: list[dict]
    ) -> tuple[PurchaseVoucher, list[PurchaseVoucherItem]]:
        voucher_date = header["voucher_date"]
        with self.transaction("save purchase voucher"):
            voucher = PurchaseVoucher(
                **header,
                voucher_number=self._next_number(settings.VOUCHER_PREFIX, voucher_date.year),
            )
            self.session.add(voucher)
            self.session.flush()
            rows = [
                PurchaseVoucherItem(**data, voucher_id=voucher.id, order=i)
                for i, data in enumerate(items)
            ]
            self.session.add_all(rows)
            self.session.flush()

        self.session.refresh(voucher)
        for row in rows:
            self.session.refresh(row)
        return voucher, rows

    def find_voucher(
        self, voucher_number: str
    ) -> Optional[tuple[PurchaseVoucher, list[PurchaseVoucherItem]]]:
        voucher = self.session.exec(
            select(PurchaseVoucher).where(PurchaseVoucher.voucher_number == voucher_number)
        ).first()
        if voucher is None:
            return None
        items = self.session.exec(
            select(PurchaseVoucherItem)
            .where(PurchaseVoucherItem.voucher_id == voucher.id)
            .order_by(PurchaseVoucherItem.order)
        ).all()
        return voucher, list(items)
