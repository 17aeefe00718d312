#!/usr/bin/env python3
"""Run the Saviora API under Uvicorn."""

import argparse
import logging

import uvicorn

from .config import get_settings


def _build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Saviora dream dialogue server")
    parser.add_argument("--host", default=settings.server_host, help=f"Bind address (default: {settings.server_host})")
    parser.add_argument("--port", type=int, default=settings.server_port, help=f"Bind port (default: {settings.server_port})")
    parser.add_argument("--reload", action="store_true", help="Restart on source changes")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="Uvicorn log level",
    )
    return parser


def main() -> None:
    args = _build_parser().parse_args()

    # Only warnings from the access log and the reload watcher
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("watchfiles.main").setLevel(logging.WARNING)

    if args.reload:
        target = "saviora_server.app:app"
    else:
        from .app import app as target

    uvicorn.run(
        target,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        access_log=False,
    )


if __name__ == "__main__":  # pragma: no cover - CLI invocation guard
    main()
