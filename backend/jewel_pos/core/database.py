"""SQLModel database engine and session management."""
from sqlmodel import SQLModel, create_engine, Session
from jewel_pos.core.config import settings

# Import models so SQLModel.metadata knows about all tables
import jewel_pos.models.rate  # noqa: F401
import jewel_pos.models.customer  # noqa: F401
import jewel_pos.models.bill  # noqa: F401
import jewel_pos.models.voucher  # noqa: F401
import jewel_pos.models.bookkeeping  # noqa: F401
import jewel_pos.models.otp  # noqa: F401
import jewel_pos.models.product  # noqa: F401

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False},
    echo=False,
)


def create_db_and_tables() -> None:
    """Create all tables defined in SQLModel models."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """FastAPI dependency: yields a SQLModel session."""
    with Session(engine) as session:
        yield session
