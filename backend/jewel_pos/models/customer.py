"""SQLModel model for shop customers."""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


class Customer(SQLModel, table=True):
    """A customer, deduplicated by phone number."""

    __tablename__ = "customers"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    phone: str = Field(index=True, unique=True)
    address: Optional[str] = None
    email: Optional[str] = None
    gstin: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
