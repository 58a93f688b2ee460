import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings
from app.database import Database
from app.database_init import ensure_database
from app.routes import telegram_sync

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """
    Build the API. Run with: uvicorn app.main:create_app --factory

    Tests pass their own settings and an already-prepared database.
    """
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    owns_database = database is None
    if owns_database:
        # --- ensure database exists + create tables ---
        ensure_database(settings.DATABASE_URL)
        database = Database(settings.DATABASE_URL)
        database.create_tables()

    if not settings.BOT_TOKEN:
        logger.warning("TELEGRAM_BOT_TOKEN is not set; /api/telegram/sync will answer 500")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_database:
            app.state.db.dispose()

    app = FastAPI(title="Telegram User Sync API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # --- Routes ---
    app.include_router(telegram_sync.router)

    @app.get("/")
    def root():
        return {"message": "Telegram User Sync API is running"}

    return app
