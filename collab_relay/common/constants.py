"""
Shared constants for the Collab Relay system.

This module contains all constants used across client and server components.
"""

# Network Configuration
DEFAULT_HOST = 'localhost'
DEFAULT_SERVER_HOST = '0.0.0.0'
DEFAULT_PORT = 4000
PORT_ENV_VAR = 'PORT'
HOST_ENV_VAR = 'RELAY_HOST'
LOG_LEVEL_ENV_VAR = 'RELAY_LOG_LEVEL'

# Buffer Sizes
READ_SIZE = 4096
MAX_PAYLOAD_SIZE = 16 * 1024 * 1024  # 16 MiB

# Wire format
CLIENT_MESSAGE_SIGNATURE = 0x12345678
SERVER_MESSAGE_SIGNATURE = 0x98765432
HEADER_FORMAT = '<III'  # signature, payload length, message type
HEADER_SIZE = 12

# Logging
LOG_DIR = None
SESSION_LOG_FILE = 'sessions.log'


# Message Types
class ClientMessageTypes:
    CREATE_SESSION = 0x1
    JOIN_SESSION = 0x2
    BROADCAST = 0x3


class ServerMessageTypes:
    CREATED_SESSION = 0x1
    JOINED_SESSION = 0x2
    BROADCAST_COMMAND = 0x3
