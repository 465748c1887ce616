"""
Turnover figures for the dashboard, and the bookkeeping behind bill deletion.

Turnover is the sum of ``final_amount`` over bills created in a period. When
a bill is deleted the operator chooses whether it also leaves turnover; if it
should stay, its amount is kept as a ``TurnoverAdjustment`` dated to the bill.

Periods follow the shop's local calendar (``SHOP_TIMEZONE``); timestamps are
stored as naive UTC.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from loguru import logger
from sqlmodel import Session, select

from jewel_pos.core.config import settings
from jewel_pos.models.bill import Bill
from jewel_pos.models.bookkeeping import TurnoverAdjustment

_ZERO = Decimal("0")


@dataclass(frozen=True)
class TurnoverFigures:
    daily: Decimal
    monthly: Decimal
    yearly: Decimal
    as_of: datetime


def period_starts(now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime, datetime]:
    """Start of the local day, month and year containing ``now``, as naive UTC."""
    local = now.replace(tzinfo=timezone.utc).astimezone(tz)
    day = local.replace(hour=0, minute=0, second=0, microsecond=0)
    starts = (day, day.replace(day=1), day.replace(month=1, day=1))
    return tuple(s.astimezone(timezone.utc).replace(tzinfo=None) for s in starts)


class TurnoverLedger:
    def __init__(self, session: Session, tz: Optional[ZoneInfo] = None) -> None:
        self.session = session
        self.tz = tz or ZoneInfo(settings.SHOP_TIMEZONE)

    def bill_deleted(self, bill: Bill, delete_from_turnover: bool) -> Optional[TurnoverAdjustment]:
        """
        React to a deleted bill. Keeps its amount in turnover unless asked not to.

        Runs inside the caller's delete transaction and does not commit.
        """
        if delete_from_turnover:
            logger.info(f"turnover: {bill.bill_number} removed from turnover")
            return None
        adjustment = TurnoverAdjustment(
            bill_number=bill.bill_number,
            amount=bill.final_amount,
            effective_at=bill.created_at,
        )
        self.session.add(adjustment)
        logger.info(f"turnover: retaining {bill.final_amount} for deleted {bill.bill_number}")
        return adjustment

    def total_since(self, start: datetime) -> Decimal:
        # Summed in Python: amounts are stored as exact decimal text
        billed = self.session.exec(select(Bill.final_amount).where(Bill.created_at >= start)).all()
        retained = self.session.exec(
            select(TurnoverAdjustment.amount).where(TurnoverAdjustment.effective_at >= start)
        ).all()
        return sum(billed, _ZERO) + sum(retained, _ZERO)

    def figures(self, now: Optional[datetime] = None) -> TurnoverFigures:
        now = now or datetime.utcnow()
        start_of_day, start_of_month, start_of_year = period_starts(now, self.tz)
        return TurnoverFigures(
            daily=self.total_since(start_of_day),
            monthly=self.total_since(start_of_month),
            yearly=self.total_since(start_of_year),
            as_of=now,
        )
