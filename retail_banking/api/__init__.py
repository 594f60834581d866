"""
Retail Banking API Application Factory
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .security import router as security_router
from .accounts import router as accounts_router
from .loans import router as loans_router
from .. import __version__
from ..async_storage import AsyncStorageInterface, create_async_storage
from ..config import BankingConfig, get_config
from ..logging_config import setup_logging
from ..seed import seed_demo_data


def create_app(
    config: Optional[BankingConfig] = None,
    storage: Optional[AsyncStorageInterface] = None
) -> FastAPI:
    """Create and configure the FastAPI application"""
    config = config or get_config()
    storage = storage or create_async_storage(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger = setup_logging(config.log_level, fmt=config.log_format)
        if config.seed_demo_data:
            await seed_demo_data(storage)
        logger.info("Retail banking API started with %s storage", config.storage_type)
        yield
        await storage.close()

    app = FastAPI(
        title="Retail Banking API",
        description="Customer accounts, transfers and loans",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.config = config
    app.state.storage = storage

    # Include routers
    app.include_router(security_router, prefix="/security", tags=["Security"])
    app.include_router(accounts_router, prefix="/accounts", tags=["Accounts"])
    app.include_router(loans_router, prefix="/loans", tags=["Loans"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "retail_banking_api",
            "version": __version__
        }

    return app
