"""
Server configuration module.

This module handles server-side configuration settings.
"""

import logging
import os
from typing import Mapping, Optional

from collab_relay.common.constants import (
    DEFAULT_SERVER_HOST, DEFAULT_PORT, READ_SIZE, MAX_PAYLOAD_SIZE, LOG_DIR,
    PORT_ENV_VAR, HOST_ENV_VAR, LOG_LEVEL_ENV_VAR
)


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 logs_dir: Optional[str] = LOG_DIR, log_level: str = 'INFO',
                 max_payload_size: Optional[int] = MAX_PAYLOAD_SIZE):
        self.host = host
        self.port = port

        # Logging configuration
        self.logs_dir = logs_dir
        self.log_level = log_level.upper()

        # Framing settings
        self.read_size = READ_SIZE
        self.max_payload_size = max_payload_size

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'ServerConfig':
        """Build a config from environment variables; explicit overrides win."""
        environ = os.environ if environ is None else environ

        port_value = environ.get(PORT_ENV_VAR, '')
        if port_value:
            try:
                port = int(port_value)
            except ValueError:
                raise ValueError(f"{PORT_ENV_VAR} must be an integer, got {port_value!r}")
        else:
            port = DEFAULT_PORT

        settings = {
            'host': environ.get(HOST_ENV_VAR) or DEFAULT_SERVER_HOST,
            'port': port,
            'log_level': environ.get(LOG_LEVEL_ENV_VAR) or 'INFO',
        }
        settings.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**settings)

    @property
    def log_level_value(self) -> int:
        """Numeric logging level for the configured level name."""
        level = logging.getLevelName(self.log_level)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level {self.log_level!r}")
        return level

