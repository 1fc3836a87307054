"""
Main FastAPI application entry point
"""
import warnings

# Suppress Pydantic protected namespace warnings
warnings.filterwarnings('ignore', message='.*has conflict with protected namespace.*', category=UserWarning)

from contextlib import asynccontextmanager
from pathlib import Path

from app.api.routes import health, pages, repositories, versions, webhooks
from app.core.auth import IdentityMiddleware
from app.core.config import get_settings
from app.core.errors import PromptHubError
from app.core.logging_config import LoggingConfig
from app.core.middleware import LoggingContextMiddleware
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

# Configure logging first
LoggingConfig.configure()

# Get logger for this module
logger = LoggingConfig.get_logger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "frontend" / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode...")
    yield
    logger.info(f"Shutting down {settings.app_name}...")


# Create FastAPI app
# Settings loaded here to get app name
_settings = get_settings()
app = FastAPI(
    title=_settings.app_name,
    description="Versioned, shareable prompt repositories",
    version="0.1.0",
    lifespan=lifespan,
)

# The middleware added last runs first: logging context wraps identity resolution
app.add_middleware(IdentityMiddleware)
app.add_middleware(LoggingContextMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PromptHubError)
async def prompt_hub_exception_handler(request: Request, exc: PromptHubError):
    """Render domain errors as {error, details?}"""
    if exc.status_code >= 500:
        logger.error(
            exc.message,
            extra={"details": exc.details, "path": request.url.path, "method": request.method},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters are reported as 400"""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body.", "details": details},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log all unhandled errors"""
    logger.error(
        "Unhandled exception",
        exc_info=exc,
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(
        status_code=500,
        content={"error": "An unexpected error occurred."},
    )


# Include routers
app.include_router(pages.router)
app.include_router(health.router)
app.include_router(repositories.router)
app.include_router(versions.router)
app.include_router(webhooks.router)

if STATIC_DIR.exists():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/api")
async def root():
    """Root API endpoint"""
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "status": "running",
        "environment": settings.app_env,
    }


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_env == "development",
    )
