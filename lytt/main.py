"""
FastAPI application entry point for the Lytt retrieval engine.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lytt.api.routes import router as api_router
from lytt.config import get_settings
from lytt.services import get_services

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    settings = get_settings()
    logger.info("Starting Lytt")
    logger.info(f"Vector store: {settings.vector_store} at {settings.database_path}")

    if get_services not in app.dependency_overrides:
        services = get_services()
        logger.info(f"Store ready with {services.store.count_chunks()} chunks")

    yield

    # Shutdown
    logger.info("Shutting down Lytt")


# Create FastAPI app
app = FastAPI(
    title="Lytt",
    description="Chunking and vector retrieval over video transcripts",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount API routes
app.include_router(api_router, prefix="/api")


def main():
    """Run the application with uvicorn."""
    import uvicorn
    settings = get_settings()

    uvicorn.run(
        "lytt.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
