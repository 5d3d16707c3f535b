"""FastAPI app factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import WebConfig
from .tasks.errors import TaskNotFoundError, TaskValidationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App lifespan: open the task store, close it on shutdown."""
    from .db.database import close_db, init_db

    config: WebConfig = app.state.config
    await init_db(config.db_path)

    yield

    await close_db()


def create_app(config: WebConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or WebConfig.load()

    app = FastAPI(
        title="Task Pool",
        description="Lease-based task claiming and recommendation for agents",
        version="0.1.0",
        lifespan=lifespan,
        debug=config.debug,
    )
    app.state.config = config

    # CORS
    origins = config.cors_origins or [
        "http://localhost",
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .tasks.router import router as tasks_router

    app.include_router(tasks_router)

    # Error handlers
    @app.exception_handler(TaskNotFoundError)
    async def not_found_handler(request: Request, exc: TaskNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(TaskValidationError)
    async def validation_error_handler(request: Request, exc: TaskValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    # Malformed request bodies and query params are bad input like any other
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app
