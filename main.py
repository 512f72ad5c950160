"""Run the GreenReceipt API server.

Usage:
    python main.py
    # or
    uvicorn greenreceipt.api:app --reload --host 0.0.0.0 --port 5000
"""
import sys

import uvicorn
from loguru import logger

from greenreceipt.config import config

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run the GreenReceipt API server")
    parser.add_argument("--host", type=str, default=config.HOST, help="Host to bind")
    parser.add_argument("--port", type=int, default=config.PORT, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    args, unknown = parser.parse_known_args()

    logger.remove()
    logger.add(sys.stderr, level=config.LOG_LEVEL.upper())

    uvicorn.run(
        "greenreceipt.api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.LOG_LEVEL.lower(),
    )
