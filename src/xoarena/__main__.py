"""Entry point for running XOArena via ``python -m xoarena``."""

from __future__ import annotations

import logging

import uvicorn

from .config import load_settings


def main() -> None:
    """Start the FastAPI-powered XOArena web server."""

    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("xoarena.ui:app", host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    main()
