from __future__ import annotations

import logging
import sys

import structlog
from aiohttp import web

from instagrab.config import settings
from instagrab.scrapers import InstagramScraper
from instagrab.web.handlers import SCRAPER_KEY, routes
from instagrab.web.middlewares import error_middleware, logging_middleware


def configure_logging() -> None:
    """Set up structlog with JSON rendering for production, pretty for dev."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # aiohttp reports its own server errors through stdlib logging
    logging.basicConfig(level=level, stream=sys.stderr, format="%(message)s")

    if sys.stderr.isatty():
        renderers = [structlog.dev.ConsoleRenderer()]
    else:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_app() -> web.Application:
    app = web.Application(middlewares=[logging_middleware, error_middleware])
    app[SCRAPER_KEY] = InstagramScraper()
    app.add_routes(routes)
    return app


def main() -> None:
    configure_logging()
    log = structlog.get_logger()

    log.info(
        "starting_server",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )

    web.run_app(
        create_app(),
        host=settings.host,
        port=settings.port,
        access_log=None,
        print=None,
    )


if __name__ == "__main__":
    main()
