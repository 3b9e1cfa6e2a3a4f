"""
The Parently ASGI app.

Wires the auth, parent and kids routers behind the origin policy, audit
and security-header middleware. Every error, including framework 404s
and request validation failures, leaves as {success: false, error}.

Run with: uvicorn parently.api.main:app --reload
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from parently.api.routes import auth_router, health_router, kids_router, parent_router
from parently.api.routes.health import APP_VERSION, AVAILABLE_ENDPOINTS
from parently.core.audit import AuditMiddleware, OriginPolicyMiddleware, SecurityHeadersMiddleware
from parently.core.config import get_settings
from parently.core.exceptions import DatabaseError, ParentlyException, RateLimitExceeded
from parently.core.logging_config import get_logger, setup_logging


# Initialize logging before anything else
settings = get_settings()
setup_logging(settings.log_level, log_to_file=settings.log_to_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup; release the pool on shutdown."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")
    logger.info(f"LLM models: fast={settings.llm_model_fast}, smart={settings.llm_model_smart}")

    from parently.database.connection import get_database
    from parently.database.init_db import create_tables

    if get_database().check_connection():
        create_tables()
    else:
        logger.warning("Database unreachable at startup; tables not created")

    yield  # Application runs here

    logger.info(f"Shutting down {settings.app_name}")
    get_database().close()


# Create FastAPI application
app = FastAPI(
    title="Parently API",
    description="""
    Backend for an AI assistant serving parents and their children.

    ## Features

    - **Check-ins**: Morning and evening emotional / financial self-reports
    - **Daily Plans**: AI-generated, cached per day
    - **Chat**: Complexity-routed answers for parents, a friendly assistant for kids
    - **Tasks & Points**: Parents assign tasks, kids complete them
    - **Insights**: AI summaries of each child's recent messages
    - **Financial Goals**: Savings targets with progress tracking
    """,
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ============================================================
# Middleware (last added runs first)
# ============================================================

# Innermost: origin allow-list
app.add_middleware(OriginPolicyMiddleware, allowed_origins=settings.allowed_origins)

app.add_middleware(SecurityHeadersMiddleware)

if settings.enable_audit_logging:
    app.add_middleware(AuditMiddleware)


# ============================================================
# Exception Handlers
# ============================================================

@app.exception_handler(ParentlyException)
async def parently_exception_handler(request: Request, exc: ParentlyException):
    """Render every application error as {success: false, error}."""
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {"Retry-After": str(exc.retry_after)}

    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.status_code} on {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Flatten pydantic errors into a single 400 message."""
    parts = []
    for error in exc.errors():
        field = ".".join(
            str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path", "header")
        )
        parts.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))

    return JSONResponse(
        status_code=400,
        content={"success": False, "error": f"Validation error: {', '.join(parts)}"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Endpoint not found",
                "availableEndpoints": AVAILABLE_ENDPOINTS,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.url.path}: {exc}")
    error = DatabaseError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Last resort: log the traceback, tell the client nothing."""
    logger.exception(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


# ============================================================
# Routers
# ============================================================

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(parent_router)
app.include_router(kids_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "parently.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development()
    )
