"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from database.engine import close_db
from api.routes import health
from api.routes.v1 import (
    admin,
    board,
    candidates,
    dashboard,
    interviews,
    jobs,
    me,
    notifications,
    search,
)

# Import middleware components
from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
    RateLimitMiddleware,
    AuthenticationMiddleware,
)

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    # Startup. The schema is managed by alembic, not created here.
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Applicant tracking API: jobs, candidate pipeline, interviews and notifications",
    version=VERSION,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Setup error handlers (before middleware)
setup_error_handlers(app)

# Add middleware (order matters - the last one added runs first)
# 5. Rate limiting (innermost - keyed by the profile set by authentication)
if settings.rate_limit_enabled:
    app.add_middleware(
        RateLimitMiddleware,
        backend=settings.rate_limit_backend,
        redis_url=settings.redis_url,
        default_per_minute=settings.rate_limit_per_minute,
        admin_per_minute=settings.admin_rate_limit_per_minute,
        key_prefix="ats:ratelimit",
        enable_headers=True,
    )

# 4. Authentication middleware (verifies hosted-auth JWTs, loads the profile)
app.add_middleware(AuthenticationMiddleware)

# 3. CORS (outside authentication so 401s and preflights carry CORS headers)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Structured logging middleware (logs all requests/responses)
app.add_middleware(
    StructuredLoggingMiddleware,
    log_request_body=settings.log_request_body,
    log_response_body=settings.log_response_body,
    max_body_size=settings.log_max_body_size,
)

# 1. Error handling middleware (outermost - catches all errors)
app.add_middleware(
    ErrorHandlingMiddleware,
    debug=settings.debug,
)

# Health check routes
app.include_router(health.router, tags=["Health"])

# API v1 routes
for module in (jobs, candidates, board, interviews, notifications, search, admin, dashboard, me):
    app.include_router(module.router, prefix=settings.api_v1_prefix)


@app.get("/", include_in_schema=False)
async def root():
    return {"name": settings.app_name, "version": VERSION}


def main():
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
