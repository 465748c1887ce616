"""
Rate provider: current per-gram metal rates with a cooperative lock.

Rates are entered per 10 g on the rate screen and stored per gram. Every
accepted update appends a ``RateHistory`` row used for the trend display.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from jewel_pos.core.errors import LockError, NotFoundError, PersistenceError, ValidationError
from jewel_pos.models.rate import MetalType, Rate, RateHistory

_TEN = Decimal("10")

# Warn when a single save moves a rate by more than this fraction
CHANGE_THRESHOLD = Decimal("0.30")


def _metal(metal_type: MetalType | str) -> str:
    try:
        return MetalType(metal_type).value
    except ValueError:
        raise ValidationError(f"Unknown metal type '{metal_type}'")


def rate_change_warning(old: Optional[Decimal], new: Decimal) -> Optional[str]:
    """Advisory text when a rate changes by more than CHANGE_THRESHOLD."""
    if not old or old <= 0:
        return None
    pct = abs(new - old) / old
    if pct > CHANGE_THRESHOLD:
        return f"rate changed by {pct * 100:.1f}% (threshold is {CHANGE_THRESHOLD * 100:.0f}%)"
    return None


class RateProvider:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, metal_type: MetalType | str) -> Optional[Rate]:
        metal = _metal(metal_type)
        return self.session.exec(select(Rate).where(Rate.metal_type == metal)).first()

    def get_rate(self, metal_type: MetalType | str) -> Decimal:
        """
        Per-gram rate for a metal, or 0 when no rate has been set.

        Callers must treat 0 as "no rate available" and tell the operator.
        """
        rate = self.get(metal_type)
        if rate is None or not rate.rate_per_gram:
            logger.warning(f"rates: no {_metal(metal_type)} rate set")
            return Decimal("0")
        return rate.rate_per_gram

    def list_rates(self) -> list[Rate]:
        return list(self.session.exec(select(Rate).order_by(Rate.metal_type)).all())

    def set_rate(self, metal_type: MetalType | str, rate_per_10_grams: Decimal) -> Rate:
        """Store a new rate entered per 10 g. Rejected while the rate is locked."""
        metal = _metal(metal_type)
        if rate_per_10_grams is None or rate_per_10_grams <= 0:
            raise ValidationError("Please enter a valid rate")

        existing = self.get(metal)
        if existing is not None and existing.is_locked:
            raise LockError(f"{metal.capitalize()} rate is locked; unlock it before updating")

        per_gram = Decimal(rate_per_10_grams) / _TEN
        now = datetime.utcnow()
        rate = existing or Rate(metal_type=metal)
        rate.rate_per_gram = per_gram
        rate.updated_at = now
        try:
            self.session.add(rate)
            self.session.add(RateHistory(metal_type=metal, rate_per_gram=per_gram, created_at=now))
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"rates: failed to save {metal} rate: {exc}")
            raise PersistenceError(f"Failed to update rate: {exc}") from exc
        self.session.refresh(rate)
        logger.info(f"rates: {metal} set to {per_gram}/g ({rate_per_10_grams}/10g)")
        return rate

    def toggle_lock(self, metal_type: MetalType | str) -> Rate:
        metal = _metal(metal_type)
        rate = self.get(metal)
        if rate is None:
            raise NotFoundError(f"No {metal} rate to lock; set a rate first")
        rate.is_locked = not rate.is_locked
        try:
            self.session.add(rate)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"rates: failed to toggle {metal} lock: {exc}")
            raise PersistenceError(f"Failed to update lock status: {exc}") from exc
        self.session.refresh(rate)
        logger.info(f"rates: {metal} {'locked' if rate.is_locked else 'unlocked'}")
        return rate

    def history(self, metal_type: MetalType | str, days: int = 7, limit: int = 7) -> list[RateHistory]:
        """Most recent history rows within the last ``days`` days, newest first."""
        metal = _metal(metal_type)
        cutoff = datetime.utcnow() - timedelta(days=days)
        stmt = (
            select(RateHistory)
            .where(RateHistory.metal_type == metal, RateHistory.created_at >= cutoff)
            .order_by(col(RateHistory.created_at).desc(), col(RateHistory.id).desc())
            .limit(limit)
        )
        return list(self.session.exec(stmt).all())
