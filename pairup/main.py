# pairup/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from pairup.core.config import get_settings
from pairup.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from pairup.models import profile as _profile_models  # noqa: F401
from pairup.models import pairing as _pairing_models  # noqa: F401
from pairup.models import engagement as _engagement_models  # noqa: F401

# Routers
from pairup.routers.access import router as access_router
from pairup.routers.analysis import router as analysis_router
from pairup.routers.auth import router as auth_router
from pairup.routers.auth import callback_router
from pairup.routers.engagement import router as engagement_router
from pairup.routers.pairings import router as pairings_router
from pairup.routers.profile import router as profile_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
    """
    logger.info("Startup: connecting to Supabase Postgres...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME or "PairUp API",
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned API prefix, e.g. /api/v1
app.include_router(access_router, prefix=settings.API_V1_STR)
app.include_router(auth_router, prefix=settings.API_V1_STR)
app.include_router(profile_router, prefix=settings.API_V1_STR)
app.include_router(analysis_router, prefix=settings.API_V1_STR)
app.include_router(pairings_router, prefix=settings.API_V1_STR)
app.include_router(engagement_router, prefix=settings.API_V1_STR)
app.include_router(callback_router)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "pairup-backend"}
