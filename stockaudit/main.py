import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from stockaudit.api.v1.api import api_router
from stockaudit.core.config import settings
from stockaudit.core.locks import KeyedLockRegistry
from stockaudit.core.logging_config import setup_logging
from stockaudit.db.init_db import init_db
from stockaudit.middleware.logging import LoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    await init_db()
    yield
    logger.info(f"Shutting down {settings.APP_NAME}")


app_config = {
    "title": settings.APP_NAME,
    "description": "Stock audit reconciliation and cyclic count scheduling",
    "version": settings.APP_VERSION,
    "debug": settings.DEBUG,
    "lifespan": lifespan,
}

app = FastAPI(**app_config)

# one registry per application instance, shared by every request
app.state.locks = KeyedLockRegistry()

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS
)

app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        f"Storage failure on {request.method} {request.url.path}: {type(exc).__name__}: {exc}"
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Storage failure, please retry the operation"}
    )


@app.get("/")
async def root():
    return {
        "message": f"Welcome to the {settings.APP_NAME}",
        "status": "active",
        "version": settings.APP_VERSION,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT
    }
