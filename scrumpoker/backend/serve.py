"""Command line entry point running the backend under uvicorn."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace

from .config import BackendSettings, load_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args(defaults: BackendSettings, argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scrum poker realtime server")
    parser.add_argument("--host", default=defaults.host)
    parser.add_argument("--port", type=int, default=defaults.port)
    parser.add_argument("--log-level", default=defaults.log_level, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def main(argv: list[str] | None = None) -> int:
    defaults = load_settings()
    args = parse_args(defaults, argv)
    settings = replace(defaults, host=args.host, port=args.port, log_level=args.log_level)
    configure_logging(settings.log_level)

    import uvicorn

    from .api import create_app

    logging.getLogger(__name__).info("Scrum poker server running on %s:%d", settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
