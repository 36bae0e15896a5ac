"""Run the observer bridge: ``python -m pysatisfactory``.

Settings not given on the command line are read from ``SATISFACTORY_*``
environment variables (see :meth:`SatisfactoryConfig.from_env`).
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from aiohttp import web

from pysatisfactory.config import SatisfactoryConfig
from pysatisfactory.engine import StateSyncEngine
from pysatisfactory.exceptions import SatisfactoryConfigError
from pysatisfactory.web import create_app

_logger = logging.getLogger("pysatisfactory")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pysatisfactory-bridge",
        description="Push dedicated server state changes to WebSocket observers.",
    )
    parser.add_argument("--host", help="Dedicated server host (SATISFACTORY_HOST)")
    parser.add_argument("--port", type=int, help="Dedicated server game port (SATISFACTORY_PORT)")
    parser.add_argument("--listen-host", help="Bind address for observers (SATISFACTORY_LISTEN_HOST)")
    parser.add_argument("--listen-port", type=int, help="Bind port for observers (SATISFACTORY_LISTEN_PORT)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    for field_name in ("host", "port", "listen_host", "listen_port"):
        value = getattr(args, field_name)
        if value is not None:
            overrides[field_name] = value

    try:
        config = SatisfactoryConfig.from_env(**overrides)
    except SatisfactoryConfigError as exc:
        _logger.error("Invalid configuration: %s", exc)
        return 2

    app = create_app(StateSyncEngine(config))
    web.run_app(app, host=config.listen_host, port=config.listen_port, print=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
