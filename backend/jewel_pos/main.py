"""
Jewellery shop billing – FastAPI application entry point.

Run with:
    uvicorn jewel_pos.main:app --reload --host 0.0.0.0 --port 8000
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from jewel_pos.api.auth_routes import auth_router
from jewel_pos.api.billing_routes import billing_router
from jewel_pos.api.rate_routes import rate_router
from jewel_pos.api.routes import router
from jewel_pos.api.voucher_routes import voucher_router
from jewel_pos.core.auth import build_registry
from jewel_pos.core.config import settings
from jewel_pos.core.database import create_db_and_tables
from jewel_pos.core.errors import register_exception_handlers
from jewel_pos.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown hooks."""
    setup_logging()
    logger.info(f"Starting {settings.SHOP_NAME} billing backend …")
    create_db_and_tables()
    logger.info("Database tables ready")
    app.state.sessions = build_registry()
    yield
    app.state.sessions.clear()
    logger.info("Billing backend shut down")


app = FastAPI(
    title="Jewellery Shop Billing API",
    description="Billing, purchase vouchers and metal rates for the shop terminal",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS – allow frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(router)
app.include_router(auth_router)
app.include_router(rate_router)
app.include_router(billing_router)
app.include_router(voucher_router)


@app.get("/")
def root():
    return {"message": "Jewellery Shop Billing API", "docs": "/docs"}
