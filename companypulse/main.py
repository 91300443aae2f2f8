"""CompanyPulse: company health signals from reconciled public sources.

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from companypulse.api.routes import router
from companypulse.db.database import init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logging.getLogger(__name__).info("Database initialized")
    yield


app = FastAPI(
    title="CompanyPulse",
    description="Job posting and funding signal reconciliation with company health metrics",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)
