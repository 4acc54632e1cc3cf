from fastapi import FastAPI
from lunarlink.api import admin, auth, codes
from lunarlink.core.config import settings
from lunarlink.db.session import Base, SessionLocal, engine
from lunarlink import models  # noqa: F401  registers the tables on Base.metadata
from lunarlink.services.code_repository import CodeRepository
from alembic import command
from alembic.config import Config
import logging
import os

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title="Lunar Link",
    description="WiFi access code distribution: batch uploads, code issuance and stock dashboard",
    version="1.0.0"
)


def run_migrations():
    """
    Run Alembic database migrations programmatically.

    Loads alembic.ini from the project root and upgrades the database to the
    latest revision, so the schema matches the models before the API starts
    accepting requests.
    """
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    alembic_cfg = Config(os.path.join(base_dir, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(base_dir, "migrations"))
    # configparser treats % as interpolation
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))
    command.upgrade(alembic_cfg, "head")


def should_run_migrations() -> bool:
    """
    Check if migrations should be run on startup.

    Returns True when RUN_MIGRATIONS_ON_STARTUP is set. Otherwise the tables
    are created directly from the models if missing.
    """
    return settings.run_migrations_on_startup


@app.on_event("startup")
def startup_event():
    """
    Application startup event handler.

    Brings the schema up to date and makes sure the counters row exists.
    """
    if should_run_migrations():
        logger.info("Running migrations at startup...")
        run_migrations()
        logger.info("Migrations applied successfully.")
    else:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        CodeRepository(db).ensure_counters()
    finally:
        db.close()


@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}


# Include API routers with their respective prefixes and tags
# Auth router - handles password login and session tokens
app.include_router(auth.router, prefix="/auth", tags=["Auth"])

# Codes router - handles code requests, accept/reject and availability
app.include_router(codes.router, prefix="/codes", tags=["Codes"])

# Admin router - handles uploads, dashboard, history and data reset
app.include_router(admin.router, prefix="/admin", tags=["Admin"])
