"""Entry point for running the speedtest exporter."""

from __future__ import annotations

import argparse
import logging
import sys

from speedtest_exporter import bootstrap

LOGGER = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Prometheus exporter running a speedtest on every scrape")
    parser.add_argument("--config", default=None, help="Path to config.yaml (defaults are used when omitted)")
    parser.add_argument("--host", default=None, help="Override listening host")
    parser.add_argument("--port", type=int, default=None, help="Listening port to expose metrics on")
    parser.add_argument(
        "--server-ids",
        default=None,
        help="Comma-separated Speedtest.net server IDs to test against, -1 picks the closest server",
    )
    parser.add_argument(
        "--server-fallback",
        action="store_true",
        default=None,
        help="If a requested server ID is not available, fall back to the closest available server",
    )
    parser.add_argument("--log-level", default=None, help="Override log level (DEBUG, INFO, ...)")
    parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    overrides = {
        "host": args.host,
        "port": args.port,
        "server_ids": args.server_ids,
        "server_fallback": args.server_fallback,
        "log_level": args.log_level,
    }
    try:
        context = bootstrap(args.config, overrides)
    except ValueError as exc:
        logging.basicConfig(level=logging.ERROR)
        LOGGER.error("Invalid configuration: %s", exc)
        sys.exit(1)

    web = context.config.web
    LOGGER.info(
        "Server started on %s:%s (server_ids=%s, server_fallback=%s)",
        web.host,
        web.port,
        context.config.speedtest.server_ids,
        context.config.speedtest.server_fallback,
    )
    context.web_app.run(host=web.host, port=web.port, debug=args.debug, threaded=True)


if __name__ == "__main__":
    main()
