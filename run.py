"""Entry point for serving the Book Search API.

Runs the FastAPI application under Uvicorn.  Configuration such as
``JWT_SECRET_KEY``, ``DATABASE_URL``, ``API_HOST`` and ``API_PORT`` is
read from the environment (see ``book_search_api/app/core/config.py``).

Usage:
    JWT_SECRET_KEY=... python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from book_search_api.app.core.config import settings


async def run_api() -> None:
    """Start the API using Uvicorn."""
    from book_search_api.app.main import app

    config = Config(
        app=app,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    await server.serve()


def main() -> None:
    try:
        asyncio.run(run_api())
    except RuntimeError as exc:
        # Raised at startup, e.g. when JWT_SECRET_KEY is missing.
        logging.getLogger(__name__).critical("%s", exc)
        raise SystemExit(1)
    except (KeyboardInterrupt, SystemExit):
        pass


if __name__ == "__main__":
    main()
