"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI

from drop_economy.api.economy import router as economy_router
from drop_economy.api.errors import register_error_handlers
from drop_economy.api.health import router as health_router
from drop_economy.config import settings
from drop_economy.core.event_bus import EventBus
from drop_economy.core.logging import get_logger, setup_logging
from drop_economy.db.database import SessionLocal, engine as db_engine
from drop_economy.db.models import Base
from drop_economy.services.catalog_service import CatalogStore

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

DEFAULT_SEED_PATH = Path(__file__).parent / "data" / "seed_items.json"


def seed_catalog(seed_path: Path) -> int:
    """Load the seed catalog into an empty item table. Returns rows inserted."""
    db = SessionLocal()
    try:
        catalog = CatalogStore(db)
        if catalog.count() > 0:
            logger.info("Catalog already populated, skipping seed.")
            return 0
        return catalog.load_from_json(seed_path)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    seed_path = Path(settings.CATALOG_SEED_PATH or DEFAULT_SEED_PATH)
    if seed_path.exists():
        seed_catalog(seed_path)
    else:
        logger.warning("Catalog seed file not found: %s", seed_path)

    app.state.event_bus = EventBus()
    app.state.settings = settings
    logger.info("Drop economy ready.")

    yield

    logger.info("Shutting down...")
    app.state.event_bus.clear()


app = FastAPI(title="Forum Drop Economy", lifespan=lifespan)

app.include_router(health_router)
app.include_router(economy_router)
register_error_handlers(app)
