#!/usr/bin/env python3
"""
Collab Relay Server - Main Entry Point

Usage:
    python main_server.py

Optional arguments:
    --host HOST           Bind address (default: $RELAY_HOST or 0.0.0.0)
    --port PORT           TCP port (default: $PORT or 4000)
    --logs-dir DIR        Also append session events to DIR/sessions.log
    --log-level LEVEL     DEBUG, INFO, WARNING or ERROR (default: $RELAY_LOG_LEVEL or INFO)
    --max-payload BYTES   Largest accepted frame payload, 0 for no limit (default: 16 MiB)
"""

import argparse
import asyncio
import sys

from collab_relay.server.main_server import RelayServer
from collab_relay.server.utils.config import ServerConfig
from collab_relay.server.utils.logger import logger


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Collab Relay Server')
    parser.add_argument('--host', type=str, default=None,
                        help='Host to bind to (default: $RELAY_HOST or 0.0.0.0)')
    parser.add_argument('--port', type=int, default=None,
                        help='TCP port (default: $PORT or 4000)')
    parser.add_argument('--logs-dir', type=str, default=None,
                        help='Directory for the session event log (default: none)')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Logging level (default: $RELAY_LOG_LEVEL or INFO)')
    parser.add_argument('--max-payload', type=int, default=None,
                        help='Maximum frame payload in bytes, 0 disables the limit')
    return parser.parse_args(argv)


def build_config(args) -> ServerConfig:
    config = ServerConfig.from_env(
        host=args.host,
        port=args.port,
        logs_dir=args.logs_dir,
        log_level=args.log_level,
        max_payload_size=args.max_payload,
    )
    if config.max_payload_size == 0:
        config.max_payload_size = None
    return config


def main(argv=None) -> int:
    try:
        config = build_config(parse_args(argv))
        logger.configure(config.logs_dir, config.log_level_value)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    logger.info(f"Starting collab relay server on {config.host}:{config.port}...")
    server = RelayServer(config)
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
    except OSError as e:
        logger.error(f"Server failed to start: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
