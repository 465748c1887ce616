"""SQLModel model for email verification codes."""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


class EmailOTP(SQLModel, table=True):
    __tablename__ = "email_otps"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    code_hash: str
    expires_at: datetime
    is_consumed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
