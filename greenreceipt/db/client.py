from contextlib import asynccontextmanager
from typing import AsyncIterator

import anyio
from fastapi import FastAPI, Request
from loguru import logger
from pymongo import MongoClient
from pymongo.database import Database

from greenreceipt.config import config
from greenreceipt.exceptions import DatabaseNotConfiguredError
from .indexes import ensure_indexes


def create_mongo_client() -> MongoClient:
    """
    Build the MongoDB client from configuration.

    The driver keeps its own connection pool; the client is created once per
    process and shared by every repository.
    """
    if not config.MONGO_URI:
        raise RuntimeError("MongoDB configuration missing. Set MONGO_URI.")

    return MongoClient(
        config.MONGO_URI,
        maxPoolSize=config.MONGO_MAX_POOL_SIZE,
        minPoolSize=config.MONGO_MIN_POOL_SIZE,
        serverSelectionTimeoutMS=config.MONGO_SERVER_SELECTION_TIMEOUT_MS,
        socketTimeoutMS=config.MONGO_SOCKET_TIMEOUT_MS,
        retryWrites=True,
        w="majority",
        tz_aware=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    FastAPI Lifespan Context Manager.
    Opens the MongoDB connection on startup and closes it on shutdown.
    """
    client = None
    try:
        if not config.JWT_SECRET_KEY:
            raise RuntimeError("JWT_SECRET_KEY is required to sign access tokens.")

        logger.info("Connecting to MongoDB...")
        client = create_mongo_client()
        await anyio.to_thread.run_sync(lambda: client.admin.command("ping"))

        db = client[config.MONGO_DB_NAME]
        await anyio.to_thread.run_sync(ensure_indexes, db)

        app.state.mongo = client
        app.state.db = db
        logger.info(f"MongoDB connected: database={config.MONGO_DB_NAME}")

        yield

    except RuntimeError as e:
        logger.error(
            f"Startup failed: {e} | "
            f"MONGO_URI={'set' if config.MONGO_URI else 'MISSING'}, "
            f"JWT_SECRET_KEY={'set' if config.JWT_SECRET_KEY else 'MISSING'}"
        )
        raise
    finally:
        if client is not None:
            logger.info("Closing MongoDB client...")
            client.close()
            logger.info("MongoDB client closed")


def get_database(request: Request) -> Database:
    """Dependency returning the database opened by the lifespan."""
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise DatabaseNotConfiguredError("MongoDB client not initialized")
    return db
