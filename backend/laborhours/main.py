"""
Labor Hours API application.

Run with ``uvicorn laborhours.main:app`` or ``python -m laborhours.main``.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from laborhours.core.config import settings
from laborhours.core.database import init_db, close_db, AsyncSessionLocal
from laborhours.core.exceptions import LaborHoursError, error_response
from laborhours.core.logging_config import logger
from laborhours.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from laborhours.core.rate_limiter import limiter, rate_limit_exceeded_handler
from laborhours.api.v1.router import api_router
from laborhours.db.seed_data import seed_defaults

VERSION = "1.0.0"


async def ensure_database_ready() -> bool:
    """Create missing tables, then the default template and first admin"""
    try:
        await init_db()
        async with AsyncSessionLocal() as db:
            await seed_defaults(db)
    except Exception as e:
        logger.log_error_with_context(e, "startup database initialization")
        return False
    logger.info("[Startup] Database ready")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"[Startup] {settings.APP_NAME} {VERSION} ({settings.ENVIRONMENT})")
    if not await ensure_database_ready():
        logger.warning("[Startup] Database not ready, requests may fail")

    yield

    logger.info(f"[Shutdown] {settings.APP_NAME}")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Labor hours reporting: process questionnaire and user administration",
    version=VERSION,
    lifespan=lifespan,
    redirect_slashes=False
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Last added runs first: CORS, size limit, security headers, request logging
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_CSV_UPLOAD_SIZE + 64 * 1024)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID", "X-Response-Time", "Content-Disposition"],
)


@app.exception_handler(LaborHoursError)
async def laborhours_exception_handler(request: Request, exc: LaborHoursError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"[API] {request.method} {request.url.path}: {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.log_error_with_context(exc, f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": "INTERNAL_ERROR",
                "message": str(exc) if settings.DEBUG else "An unexpected error occurred",
                "details": {},
            },
        }
    )


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "version": VERSION, "environment": settings.ENVIRONMENT}


app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "laborhours.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )
