"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import plaid, sync, transactions, trips
from config import settings
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report configuration problems once on startup."""
    if not (settings.PLAID_CLIENT_ID and settings.PLAID_SECRET):
        logger.warning(
            "Plaid credentials are not configured; linking and sync will fail. "
            "Run scripts/setup_plaid.py or set PLAID_CLIENT_ID / PLAID_SECRET."
        )
    logger.info(
        "Trip Ledger starting (environment=%s, plaid=%s)",
        settings.ENVIRONMENT,
        settings.PLAID_ENVIRONMENT,
    )
    yield


app = FastAPI(
    title="Trip Ledger",
    description="Transaction sync and trip expense consolidation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(plaid.router)
app.include_router(sync.router)
app.include_router(transactions.router)
app.include_router(trips.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
