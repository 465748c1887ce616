"""Column types shared by the SQLModel tables."""
from decimal import Decimal

from sqlalchemy import Column, String
from sqlalchemy.types import TypeDecorator


class DecimalString(TypeDecorator):
    """Exact ``Decimal`` stored as text. SQLite has no lossless NUMERIC."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value if isinstance(value, Decimal) else Decimal(str(value)))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


def decimal_column(nullable: bool = False) -> Column:
    """A fresh column per field; Column objects cannot be shared between tables."""
    return Column(DecimalString(), nullable=nullable)
