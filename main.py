"""
main.py - Server launcher and entry point.

Run this file to start the room access server:

    python main.py

This file does NOT contain application logic. See app.py for the FastAPI
application, service wiring, and startup sequence.

Direct uvicorn usage:
    uvicorn app:app --reload
"""

from __future__ import annotations

import uvicorn

from backend.utils.config import get_settings


def main() -> None:
    """Start the room access server."""
    settings = get_settings()
    print("=" * 60)
    print(f"  {settings.app_name}")
    print("=" * 60)
    print(f"  API      : http://{settings.host}:{settings.port}/api")
    print(f"  Health   : http://{settings.host}:{settings.port}/api/health")
    print(f"  API docs : http://{settings.host}:{settings.port}/docs")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    # Blocks until CTRL+C
    uvicorn.run(
        "app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
