"""Turnover periods follow the shop's local calendar."""
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from jewel_pos.models.bill import Bill
from jewel_pos.models.bookkeeping import TurnoverAdjustment
from jewel_pos.services.turnover import TurnoverLedger, period_starts

D = Decimal
IST = ZoneInfo("Asia/Kolkata")


def _bill(session, number: str, amount: str, created_at: datetime) -> Bill:
    bill = Bill(
        bill_number=number,
        customer_name="Asha Patil",
        customer_phone="9820012345",
        final_amount=D(amount),
        created_at=created_at,
        updated_at=created_at,
    )
    session.add(bill)
    session.commit()
    return bill


@pytest.fixture
def ledger(session):
    return TurnoverLedger(session, tz=IST)


class TestPeriodStarts:
    def test_local_midnight_in_utc(self):
        day, month, year = period_starts(datetime(2026, 3, 5, 6, 0), IST)
        assert day == datetime(2026, 3, 4, 18, 30)
        assert month == datetime(2026, 2, 28, 18, 30)
        assert year == datetime(2025, 12, 31, 18, 30)

    def test_utc_evening_is_next_local_day(self):
        # 20:00 UTC on the 4th is 01:30 on the 5th in the shop
        day, _, _ = period_starts(datetime(2026, 3, 4, 20, 0), IST)
        assert day == datetime(2026, 3, 4, 18, 30)


class TestFigures:
    def test_after_local_midnight_counts_today(self, session, ledger):
        _bill(session, "BILL-2026-00001", "1000", datetime(2026, 3, 4, 20, 0))
        figures = ledger.figures(now=datetime(2026, 3, 5, 6, 0))
        assert figures.daily == D("1000")
        assert figures.monthly == D("1000")

    def test_before_local_midnight_is_yesterday(self, session, ledger):
        _bill(session, "BILL-2026-00001", "1000", datetime(2026, 3, 4, 18, 0))
        figures = ledger.figures(now=datetime(2026, 3, 5, 6, 0))
        assert figures.daily == D("0")
        assert figures.monthly == D("1000")
        assert figures.yearly == D("1000")

    def test_month_boundary_in_local_time(self, session, ledger):
        # 1 March 00:30 in the shop, still February in UTC
        _bill(session, "BILL-2026-00001", "250.125", datetime(2026, 2, 28, 19, 0))
        figures = ledger.figures(now=datetime(2026, 3, 10, 6, 0))
        assert figures.monthly == D("250.125")

    def test_retained_adjustment_counted_exactly(self, session, ledger):
        _bill(session, "BILL-2026-00001", "0.1", datetime(2026, 3, 5, 1, 0))
        session.add(
            TurnoverAdjustment(
                bill_number="BILL-2026-00002",
                amount=D("0.2"),
                effective_at=datetime(2026, 3, 5, 2, 0),
            )
        )
        session.commit()
        assert ledger.figures(now=datetime(2026, 3, 5, 6, 0)).daily == D("0.3")

    def test_retained_on_delete_in_same_session(self, session, ledger):
        bill = _bill(session, "BILL-2026-00001", "500", datetime(2026, 3, 5, 1, 0))
        assert ledger.bill_deleted(bill, delete_from_turnover=True) is None
        adjustment = ledger.bill_deleted(bill, delete_from_turnover=False)
        assert adjustment.effective_at == bill.created_at
        assert adjustment in session.new
