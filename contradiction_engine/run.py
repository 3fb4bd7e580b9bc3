#!/usr/bin/env python3
"""
Quick runner for the Contradiction Engine API
=============================================

Usage:
    python -m contradiction_engine.run
    # or
    contradiction-engine-api

Bind address comes from CONTRADICTION_HOST / CONTRADICTION_PORT.
"""

import uvicorn

from .config import get_settings


def main() -> None:
    settings = get_settings()
    print("Starting Contradiction Engine API...")
    print(f"API docs: http://{settings.host}:{settings.port}/docs")
    print(f"Health:   http://{settings.host}:{settings.port}/health")
    print()

    uvicorn.run(
        "contradiction_engine.api:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
