from __future__ import annotations

import argparse
import logging
import os

from fastapi import FastAPI

from interface_entry.bootstrap.application_builder import application_lifespan, configure_application

log = logging.getLogger("interface_entry.app")

CLI_DESCRIPTION = "Agent response pipeline service"
DEFAULT_HOST = "0.0.0.0"


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Agent Response Pipeline", version="1.0.0", lifespan=application_lifespan)
    return configure_application(fastapi_app)


def configure_arg_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--host", default=DEFAULT_HOST, help=f"Bind address (default {DEFAULT_HOST})")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8000")),
        help="Listen port (default 8000, or PORT)",
    )


def handle_cli(args: argparse.Namespace) -> None:
    import uvicorn

    log.info("startup.listen", extra={"host": args.host, "port": args.port})
    # Logging is already configured; keep uvicorn from installing its own handlers.
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


app = create_app()
