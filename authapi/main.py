#!/usr/bin/env python3
"""
authapi - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Connects storage and builds the authentication stack
3. Runs the API server

All business logic is in the modules, following black box principles.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from authapi.config.provider import ConfigProvider, EnvConfigProvider
from authapi.logging_config import configure_logging, get_logging_config
from authapi.modules.api import (
    create_auth_router,
    create_user_router,
    register_exception_handlers,
)
from authapi.modules.auth.factory import AuthFactory, AuthStack
from authapi.modules.storage import StorageModule

logger = logging.getLogger(__name__)


def include_routes(app: FastAPI, stack: AuthStack) -> None:
    """Mount every router against a wired stack."""
    app.state.auth_stack = stack
    app.include_router(create_auth_router(stack))
    app.include_router(create_user_router(stack))


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    stack: Optional[AuthStack] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config_provider: Configuration source (environment by default)
        stack: Pre-built authentication stack; when given, no storage
            connection is made at startup

    Returns:
        Configured FastAPI app
    """
    config_provider = config_provider or EnvConfigProvider()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - initialize and cleanup resources.
        """
        storage = None
        if stack is None:
            logger.info("Starting authapi...")
            storage_config = config_provider.get_storage_config()
            storage = StorageModule(storage_config.url, password=storage_config.password)
            redis_client = await storage.connect()

            include_routes(app, AuthFactory.build(config_provider, redis_client))
            logger.info("authapi started successfully")

        yield

        if storage:
            logger.info("Shutting down authapi...")
            await storage.disconnect()
            logger.info("authapi shutdown complete")

    app = FastAPI(
        title="authapi",
        description="Password authentication and signed identity tokens",
        version="1.0.0",
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    @app.get("/")
    async def health_check():
        """Health check endpoint."""
        return {"message": "hello, world"}

    if stack is not None:
        include_routes(app, stack)

    return app


def main() -> None:
    config_provider = EnvConfigProvider()
    api_config = config_provider.get_api_config()
    configure_logging(api_config.log_level)

    uvicorn.run(
        create_app(config_provider),
        host=api_config.host,
        port=api_config.port,
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    main()
