"""
Protocol definitions for the Collab Relay system.

This module defines the binary frame format shared by client and server.

Format on the wire (all integers little-endian uint32):
  [signature] [payload length] [message type] [payload bytes]

Client frames carry CLIENT_MESSAGE_SIGNATURE, server frames carry
SERVER_MESSAGE_SIGNATURE; the header layout is otherwise identical.
"""

import struct
from dataclasses import dataclass
from typing import Iterator, Optional

from collab_relay.common.constants import (
    CLIENT_MESSAGE_SIGNATURE, SERVER_MESSAGE_SIGNATURE, HEADER_FORMAT, HEADER_SIZE,
    ClientMessageTypes, ServerMessageTypes
)

HEADER_STRUCT = struct.Struct(HEADER_FORMAT)


class ProtocolError(ValueError):
    """Raised when a byte stream violates the frame format."""


@dataclass(frozen=True)
class Frame:
    """One complete protocol message."""
    message_type: int
    payload: bytes


class FrameDecoder:
    """Incremental decoder turning a byte stream into frames.

    Usage:
      decoder = FrameDecoder()
      decoder.feed(chunk)
      for frame in decoder.frames():
          ...

    Bytes of an incomplete trailing frame stay buffered until the next feed().
    A bad signature is fatal: the decoder raises ProtocolError and refuses
    to process anything else.
    """

    def __init__(self, signature: int = CLIENT_MESSAGE_SIGNATURE,
                 max_payload_size: Optional[int] = None):
        self.signature = signature
        self.max_payload_size = max_payload_size
        self._buffer = bytearray()
        self._failed = False

    def feed(self, data: bytes) -> None:
        """Append freshly read bytes to the buffer."""
        self._buffer.extend(data)

    def frames(self) -> Iterator[Frame]:
        """Yield every complete frame currently buffered."""
        while True:
            if self._failed:
                raise ProtocolError("decoder stopped after a protocol violation")
            if len(self._buffer) < HEADER_SIZE:
                return

            signature, payload_size, message_type = HEADER_STRUCT.unpack_from(self._buffer)
            if signature != self.signature:
                self._failed = True
                raise ProtocolError(f"incorrect message signature 0x{signature:08x}")
            if self.max_payload_size is not None and payload_size > self.max_payload_size:
                self._failed = True
                raise ProtocolError(
                    f"payload of {payload_size} bytes exceeds limit of {self.max_payload_size}"
                )

            message_size = HEADER_SIZE + payload_size
            if len(self._buffer) < message_size:
                return

            payload = bytes(self._buffer[HEADER_SIZE:message_size])
            del self._buffer[:message_size]
            yield Frame(message_type, payload)

    @property
    def buffered(self) -> int:
        """Number of bytes waiting for the rest of their frame."""
        return len(self._buffer)

    @property
    def failed(self) -> bool:
        return self._failed


def encode_message(payload: bytes, message_type: int, signature: int) -> bytes:
    """Serialize one frame: 12-byte header followed by the payload."""
    return HEADER_STRUCT.pack(signature, len(payload), message_type) + payload


def encode_server_message(payload: bytes, message_type: int) -> bytes:
    """Create a server -> client frame."""
    return encode_message(payload, message_type, SERVER_MESSAGE_SIGNATURE)


def encode_client_message(payload: bytes, message_type: int) -> bytes:
    """Create a client -> server frame."""
    return encode_message(payload, message_type, CLIENT_MESSAGE_SIGNATURE)


def create_created_session_message(session_name: str) -> bytes:
    """Create a created-session acknowledgement."""
    return encode_server_message(encode_session_name(session_name), ServerMessageTypes.CREATED_SESSION)


def create_joined_session_message(session_name: str) -> bytes:
    """Create a joined-session acknowledgement."""
    return encode_server_message(encode_session_name(session_name), ServerMessageTypes.JOINED_SESSION)


def create_broadcast_command_message(command: bytes) -> bytes:
    """Create a broadcast command relayed to session members."""
    return encode_server_message(command, ServerMessageTypes.BROADCAST_COMMAND)


def create_session_request(session_name: str) -> bytes:
    """Create a create-session request."""
    return encode_client_message(encode_session_name(session_name), ClientMessageTypes.CREATE_SESSION)


def create_join_request(session_name: str) -> bytes:
    """Create a join-session request."""
    return encode_client_message(encode_session_name(session_name), ClientMessageTypes.JOIN_SESSION)


def create_broadcast_request(command: bytes) -> bytes:
    """Create a broadcast request."""
    return encode_client_message(command, ClientMessageTypes.BROADCAST)


def decode_session_name(payload: bytes) -> str:
    """Interpret a create/join payload as a session name.

    Bytes that are not valid UTF-8 are kept as surrogates, so distinct
    payloads always give distinct names and encode_session_name() restores
    the exact bytes.
    """
    return payload.decode('utf-8', errors='surrogateescape')


def encode_session_name(session_name: str) -> bytes:
    """Inverse of decode_session_name()."""
    return session_name.encode('utf-8', errors='surrogateescape')
