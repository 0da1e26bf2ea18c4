from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from swiftnotes.config import settings
from swiftnotes.db import check_database_connection, connect_with_retry, engine
from swiftnotes.exceptions import AppException, ValidationError
from swiftnotes.routes import api_router
from swiftnotes.logging_config import setup_logging, get_logger
from swiftnotes.middleware.logging_middleware import LoggingMiddleware

# Setup logging
setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        logger.info("Starting up...")
        await connect_with_retry()
        yield
    finally:
        logger.info("Shutting down...")
        await engine.dispose()


app = FastAPI(
    title="SwiftNotes API",
    description="User profile and preference synchronization API",
    version="1.0.0",
    lifespan=lifespan
)

# Logging middleware
app.add_middleware(LoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["DELETE", "GET", "POST", "PUT"],
    allow_headers=["*"],
)


def _error_response(status_code: int, error: str, headers=None, **extra) -> JSONResponse:
    content = {"success": False, "error": error}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


# Global exception handlers
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    if isinstance(exc, ValidationError):
        return _error_response(exc.status_code, exc.detail, fields=exc.fields)
    return _error_response(exc.status_code, exc.detail, headers=exc.headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected request body on {request.url.path}: {exc.errors()}")
    return _error_response(
        422,
        "Request body must be a JSON object with valid fields",
    )


# Include routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    db_status = await check_database_connection()
    return {
        "status": "ok" if db_status else "degraded",
        "database": "connected" if db_status else "disconnected"
    }
