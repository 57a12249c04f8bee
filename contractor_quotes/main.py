from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from .config import settings
from .database import engine, Base
from .routers import pricing, products, quotes

logger = logging.getLogger("contractor_quotes")

# Fresh databases get every catalog and quote table here; column changes
# on an existing database come from the Alembic revisions below.
Base.metadata.create_all(bind=engine)


def _upgrade_schema():
    """Bring the catalog/quote schema up to the newest Alembic revision.

    A database built by create_all() already holds the catalog and quote
    tables but has no revision recorded, so it is marked as current before
    the upgrade runs. A failed upgrade is logged and the API still starts
    against the existing tables.
    """
    try:
        from alembic.config import Config
        from alembic import command
        from sqlalchemy import inspect

        ini_path = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
        if not os.path.exists(ini_path):
            logger.info("No alembic.ini next to the package; schema upgrade skipped")
            return

        cfg = Config(ini_path)
        cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

        tables = set(inspect(engine).get_table_names())
        if "alembic_version" not in tables and {"products", "quotes"} <= tables:
            logger.info("Catalog tables predate revision tracking; marking schema as current")
            command.stamp(cfg, "head")

        command.upgrade(cfg, "head")
        logger.info("Schema is at the latest revision")

    except Exception as exc:
        logger.warning("Schema upgrade failed, serving existing tables: %s", exc)


app = FastAPI(
    title="Contractor Quotes",
    description="Measurement-based quoting with a single pricing engine",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Catalog, standalone pricing and quote routes all live under /api
app.include_router(products.router, prefix="/api")
app.include_router(pricing.router, prefix="/api")
app.include_router(quotes.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "contractor-quotes"}


@app.on_event("startup")
def upgrade_schema():
    _upgrade_schema()


@app.on_event("startup")
def auto_seed():
    """Load the starter catalog (sod, fence, mulch) when SEED_CATALOG is on."""
    if not settings.SEED_CATALOG:
        return
    from .database import SessionLocal
    db = SessionLocal()
    try:
        products.seed_default_products(db)
    finally:
        db.close()
