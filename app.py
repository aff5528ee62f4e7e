"""
LearnHub Course Platform API
FastAPI application: middleware, exception handlers and routers
"""

from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from config import settings
from routes import admin, auth, learning, outreach, student, users
from schemas.openapi_models import OpenAPIMetadata, OpenAPITags
from storage import Storage, create_app_storage, get_storage
from utils.auth_middleware import add_auth_context_to_request
from utils.error_handling import register_exception_handlers
from utils.structured_logging import configure_logging, get_logger, log_request_middleware, LogCategory

# Configure structured logging system
configure_logging(level=settings.LOG_LEVEL, json_output=True)
logger = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    storage = create_app_storage()
    if storage is not None:
        from scripts.seed import seed_storage

        seed_storage(storage)
        logger.info("Using in-memory storage with seed data", category=LogCategory.SYSTEM)
    else:
        from db import create_sqlite_schema

        create_sqlite_schema()
        logger.info("Using database storage", category=LogCategory.SYSTEM)

    app.state.storage = storage
    yield
    app.state.storage = None


app = FastAPI(
    title=OpenAPIMetadata.TITLE,
    description=OpenAPIMetadata.DESCRIPTION,
    version=OpenAPIMetadata.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=OpenAPITags.ALL,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin", "X-Correlation-ID"],
    expose_headers=["X-Correlation-ID", "X-Request-ID"],
)


# Structured logging middleware - adds correlation IDs and logs all requests
@app.middleware("http")
async def structured_logging_middleware(request: Request, call_next):
    return await log_request_middleware(request, call_next)


# Authentication middleware - adds auth context to all requests
@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    return await add_auth_context_to_request(request, call_next)


register_exception_handlers(app)

app.include_router(auth.router, prefix="/api", tags=["Authentication"])
app.include_router(learning.router, prefix="/api", tags=["Catalog"])
app.include_router(student.router, prefix="/api", tags=["Student"])
app.include_router(users.router, prefix="/api", tags=["Rewards"])
app.include_router(admin.router, prefix="/api", tags=["Admin"])
app.include_router(outreach.router, prefix="/api", tags=["Outreach"])

app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/", tags=["System"], summary="Service information")
async def root():
    return {
        "name": OpenAPIMetadata.TITLE,
        "version": OpenAPIMetadata.VERSION,
        "docs": "/docs",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health", tags=["System"], summary="Storage health check")
async def health(storage: Storage = Depends(get_storage)):
    try:
        storage.ping()
    except Exception as e:
        logger.error("Health check failed", category=LogCategory.DATABASE, exception=e)
        return JSONResponse(status_code=503, content={"status": "unhealthy", "storage": type(storage).__name__})
    return {"status": "healthy", "storage": type(storage).__name__}
