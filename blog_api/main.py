from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from blog_api.config import Settings, settings as default_settings
from blog_api.db.session import Database
from blog_api.api import algorithms, auth, comments
from blog_api.exceptions import ServiceError, to_http_exception
from blog_api.services.redis_service import RedisService
from blog_api.utils.rate_limit import configure_limiter, limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    # Startup
    logger.info("Starting up...")
    database: Database = app.state.database

    try:
        await database.create_all()
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")

    if await database.ping():
        logger.info("Database connection successful")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.redis.close()
    await database.close()

async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map service errors that escape a router to their HTTP status"""
    http_exc = to_http_exception(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})

async def comment_body_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed comment bodies are client errors (400); other requests keep FastAPI's 422"""
    comments_prefix = f"{request.app.state.settings.API_PREFIX}/comments"
    body_errors = [e for e in exc.errors() if e.get("loc", ("",))[0] == "body"]

    if not request.url.path.startswith(comments_prefix) or not body_errors:
        return await request_validation_exception_handler(request, exc)

    logger.warning(f"Malformed comment body on {request.method} {request.url.path}: {body_errors}")
    fields = sorted({".".join(str(part) for part in e["loc"][1:]) or "body" for e in body_errors})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": f"Invalid comment body: {', '.join(fields)}"}
    )

def create_app(
    settings: Settings = default_settings,
    database: Optional[Database] = None,
    redis: Optional[RedisService] = None
) -> FastAPI:
    """Build the application and the per-process clients it owns"""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Comments, sign-in and algorithm notes for a personal blog",
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.database = database or Database.from_settings(settings)
    app.state.redis = redis or RedisService(settings.redis_url)

    # Add rate limiter
    configure_limiter(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, comment_body_error_handler)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Authentication"])
    app.include_router(comments.router, prefix=f"{settings.API_PREFIX}/comments", tags=["Comments"])
    app.include_router(algorithms.router, prefix=f"{settings.API_PREFIX}/algorithms", tags=["Algorithms"])

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "message": f"Welcome to {settings.PROJECT_NAME}",
            "version": settings.VERSION,
            "docs": f"{settings.API_PREFIX}/docs",
        }

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint"""
        database_ok = await request.app.state.database.ping()
        return {
            "status": "healthy" if database_ok else "degraded",
            "database": "connected" if database_ok else "unavailable",
            "timestamp": datetime.utcnow().isoformat()
        }

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "blog_api.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        log_level="info"
    )
