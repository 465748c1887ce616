"""Application configuration loaded from environment variables."""
import os
from decimal import Decimal
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings:
    # SQLite DB URL
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'jewel_pos.db'}"
    )

    # API server
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # Auth – single shared password for the whole shop
    AUTH_ENABLED: bool = os.getenv("AUTH_ENABLED", "false").lower() == "true"
    APP_PASSWORD: str = os.getenv("APP_PASSWORD", "changeme")
    SESSION_TTL_MINUTES: int = int(os.getenv("SESSION_TTL_MINUTES", "720"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "logs/app.log")

    # CORS
    CORS_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv(
            "CORS_ORIGINS", "http://localhost:5173,http://localhost:8080"
        ).split(",")
    ]

    # Shop identity – state code is the first two digits of the shop's own GSTIN
    SHOP_NAME: str = os.getenv("SHOP_NAME", "Shree Alankar")
    SHOP_STATE_CODE: str = os.getenv("SHOP_STATE_CODE", "27")
    # Day/month/year boundaries for turnover figures
    SHOP_TIMEZONE: str = os.getenv("SHOP_TIMEZONE", "Asia/Kolkata")

    # Billing defaults
    DEFAULT_TAX_PERCENTAGE: Decimal = Decimal(os.getenv("DEFAULT_TAX_PERCENTAGE", "3"))
    BILL_PREFIX: str = os.getenv("BILL_PREFIX", "BILL")
    VOUCHER_PREFIX: str = os.getenv("VOUCHER_PREFIX", "PV")
    NUMBER_PADDING: int = int(os.getenv("NUMBER_PADDING", "5"))

    # Email OTP
    OTP_EXPIRY_MINUTES: int = int(os.getenv("OTP_EXPIRY_MINUTES", "10"))
    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    MAIL_FROM: str = os.getenv("MAIL_FROM", "")


settings = Settings()
