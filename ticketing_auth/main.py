# ticketing_auth/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI
from sqlmodel import Session

from ticketing_auth.core.config import get_settings
from ticketing_auth.core.responses import register_exception_handlers
from ticketing_auth.database import create_db_and_tables, get_engine
from ticketing_auth.repositories.role_repo import RoleRepository

# Routers
from ticketing_auth.routers.auth import router as auth_router
from ticketing_auth.routers.manager_auth import router as manager_auth_router
from ticketing_auth.routers.users import router as users_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
      - Seed the role catalog (Admin, Manager, User, Coordinator).

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to the database...")
    try:
        create_db_and_tables()
        with Session(get_engine()) as session:
            RoleRepository().ensure_catalog(session)
        logger.info("Startup: DB connection OK, tables and roles verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME or "Ticketing Auth API",
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router, prefix=settings.API_PREFIX)
app.include_router(manager_auth_router, prefix=settings.API_PREFIX)
app.include_router(users_router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "ticketing-auth"}
