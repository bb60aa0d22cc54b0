"""
Server logging module.

This module handles server-side logging functionality.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from collab_relay.common.constants import SESSION_LOG_FILE


class ServerLogger:
    """Server logging class."""

    def __init__(self, logs_dir: Optional[str] = None, log_level: int = logging.INFO):
        self.logger = logging.getLogger('collab_relay')
        self.session_log_path: Optional[Path] = None
        self.configure(logs_dir, log_level)

    def configure(self, logs_dir: Optional[str] = None, log_level: int = logging.INFO):
        """(Re)build handlers and the optional session log file."""
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if logs_dir:
            logs_path = Path(logs_dir)
            logs_path.mkdir(parents=True, exist_ok=True)
            self.session_log_path = logs_path / SESSION_LOG_FILE
        else:
            self.session_log_path = None

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, addr, conn_id: int):
        """Log client connection."""
        self.info(f"Serving new client {addr} (conn={conn_id})")

    def log_disconnect(self, addr, conn_id: int):
        """Log client disconnect."""
        self.info(f"Client {addr} (conn={conn_id}) disconnected")

    def log_session_created(self, name: str, conn_id: int):
        self.info(f"Created new session '{name}' (master conn={conn_id})")
        self._write_session_event('CREATE', name, conn_id)

    def log_session_joined(self, name: str, conn_id: int, member_count: int):
        self.info(f"Client conn={conn_id} joined session '{name}' ({member_count} members)")
        self._write_session_event('JOIN', name, conn_id)

    def log_member_removed(self, name: str, conn_id: int, member_count: int):
        self.info(f"Removed client conn={conn_id} from session '{name}' ({member_count} members left)")
        self._write_session_event('LEAVE', name, conn_id)

    def log_session_teardown(self, name: str, conn_id: int, sessions_remaining: int):
        self.info(f"Tearing down session '{name}' (master conn={conn_id})")
        self.info(f"  Sessions remaining: {sessions_remaining}")
        self._write_session_event('TEARDOWN', name, conn_id)

    def log_broadcast(self, name: str, conn_id: int, size: int, recipients: int):
        self.debug(f"Broadcast from conn={conn_id} in '{name}': {size} bytes to {recipients} recipient(s)")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")

    def _write_session_event(self, event: str, name: str, conn_id: int):
        """Append a session lifecycle line to the session log, if enabled."""
        if self.session_log_path is None:
            return
        try:
            with open(self.session_log_path, 'a', encoding='utf-8', errors='backslashreplace') as f:
                f.write(f"{datetime.now().isoformat()} | {event} | {name} | conn={conn_id}\n")
        except OSError as e:
            self.error(f"Failed to write to log file {self.session_log_path}: {e}")


# Global logger instance
logger = ServerLogger()
