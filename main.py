"""
Profiling Assessment - Proctored Psychometric Assessment Service

Main application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from profiling.config.settings import get_settings
from profiling.api.router import api_router
from profiling.api.errors import register_exception_handlers
from profiling.api.dependencies import cleanup

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Running in {'debug' if settings.debug else 'production'} mode")
    if not settings.llm_enabled:
        logger.warning("LLM_API_KEY not set; questions and reports use the built-in templates")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await cleanup()


# Create FastAPI application
settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Proctored psychometric assessment with AI-generated questions and reports",
    version=settings.app_version,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Mount API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "llm_enabled": settings.llm_enabled,
    }


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
