import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from user_directory import models  # noqa: F401  (registers tables on Base.metadata)
from user_directory.config import Settings
from user_directory.database import Database
from user_directory.routers import auth, users
from user_directory.utils.response import (
    create_response,
    handle_exception,
    http_exception_handler,
    validation_exception_handler,
)

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    database = Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables if absent
        database.create_all()
        logger.info("%s started with database %s", settings.PROJECT_NAME, database.engine.url)
        yield
        database.dispose()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # CORS for SPA / API access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router)
    app.include_router(users.router)

    # Serve uploaded profile photos and appointment letters
    settings.upload_root.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.upload_root), name="uploads")

    @app.get("/")
    def home():
        try:
            return create_response(
                message="API is running",
                data={"service": "user-directory", "name": settings.PROJECT_NAME},
                status_code=status.HTTP_200_OK,
            )
        except Exception as exc:
            return handle_exception(exc)

    return app


def run(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Serve the API; equivalent to `uvicorn user_directory.main:create_app --factory`."""
    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    uvicorn.run(create_app, factory=True, host=host, port=port, log_level=settings.LOG_LEVEL.lower())
