"""
Metal Rate API.

Rates are entered per 10 g and stored per gram. A locked rate refuses
updates until it is unlocked; every accepted update is appended to the
rate history used for the trend display.

Endpoints:
  GET    /api/rates                     – current rate for every metal
  GET    /api/rates/{metal}             – current per-gram rate (0 when unset)
  POST   /api/rates/{metal}             – set rate (body: rate per 10 g)
  POST   /api/rates/{metal}/lock        – toggle the lock
  GET    /api/rates/{metal}/history     – recent history, newest first
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from jewel_pos.core.auth import require_session
from jewel_pos.core.database import get_session
from jewel_pos.models.rate import MetalType, Rate
from jewel_pos.services.rates import RateProvider, rate_change_warning

rate_router = APIRouter(
    prefix="/api/rates", tags=["rates"], dependencies=[Depends(require_session)]
)


# ── Pydantic schemas ──────────────────────────────────────────────────────────


class RateIn(BaseModel):
    """Body for POST /api/rates/{metal}."""
    rate_per_10_grams: Decimal = Field(gt=0)


class RateRead(BaseModel):
    metal_type: str
    rate_per_gram: Decimal
    rate_per_10_grams: Decimal
    is_locked: bool
    updated_at: Optional[datetime] = None
    available: bool = True
    warnings: list[str] = []


class RateHistoryRead(BaseModel):
    metal_type: str
    rate_per_gram: Decimal
    rate_per_10_grams: Decimal
    created_at: datetime


class RateTrend(BaseModel):
    metal_type: str
    entries: list[RateHistoryRead]
    # latest minus previous, per gram; None with fewer than two entries
    change: Optional[Decimal] = None
    change_percentage: Optional[Decimal] = None


def _read(rate: Rate, warnings: Optional[list[str]] = None) -> RateRead:
    return RateRead(
        metal_type=rate.metal_type,
        rate_per_gram=rate.rate_per_gram,
        rate_per_10_grams=rate.rate_per_gram * 10,
        is_locked=rate.is_locked,
        updated_at=rate.updated_at,
        warnings=warnings or [],
    )


# ── Endpoints ─────────────────────────────────────────────────────────────────


@rate_router.get("", response_model=list[RateRead])
def list_rates(session: Session = Depends(get_session)):
    return [_read(r) for r in RateProvider(session).list_rates()]


@rate_router.get("/{metal}", response_model=RateRead)
def get_rate(metal: MetalType, session: Session = Depends(get_session)):
    """Current rate; ``available`` is false (and the rate 0) when none is set."""
    provider = RateProvider(session)
    rate = provider.get(metal)
    if rate is None or not rate.rate_per_gram:
        return RateRead(
            metal_type=metal.value,
            rate_per_gram=Decimal("0"),
            rate_per_10_grams=Decimal("0"),
            is_locked=bool(rate and rate.is_locked),
            available=False,
            warnings=[f"No {metal.value} rate set"],
        )
    return _read(rate)


@rate_router.post("/{metal}", response_model=RateRead)
def set_rate(metal: MetalType, body: RateIn, session: Session = Depends(get_session)):
    """
    Save a new rate.

    A change of more than 30 % from the previous rate adds a warning to the
    response; the rate is still saved.
    """
    provider = RateProvider(session)
    previous = provider.get(metal)
    old_per_gram = previous.rate_per_gram if previous else None

    rate = provider.set_rate(metal, body.rate_per_10_grams)

    warning = rate_change_warning(old_per_gram, rate.rate_per_gram)
    return _read(rate, [warning] if warning else [])


@rate_router.post("/{metal}/lock", response_model=RateRead)
def toggle_lock(metal: MetalType, session: Session = Depends(get_session)):
    return _read(RateProvider(session).toggle_lock(metal))


@rate_router.get("/{metal}/history", response_model=RateTrend)
def rate_history(
    metal: MetalType,
    days: int = Query(default=7, ge=1, le=365),
    limit: int = Query(default=7, ge=1, le=100),
    session: Session = Depends(get_session),
):
    rows = RateProvider(session).history(metal, days=days, limit=limit)
    trend = RateTrend(
        metal_type=metal.value,
        entries=[
            RateHistoryRead(
                metal_type=r.metal_type,
                rate_per_gram=r.rate_per_gram,
                rate_per_10_grams=r.rate_per_gram * 10,
                created_at=r.created_at,
            )
            for r in rows
        ],
    )
    if len(rows) >= 2:
        latest, prev = rows[0].rate_per_gram, rows[1].rate_per_gram
        trend.change = latest - prev
        if prev:
            trend.change_percentage = (latest - prev) / prev * 100
    return trend
