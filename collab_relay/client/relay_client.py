"""
Relay client module.

This module handles the client side of the session relay protocol.
"""

import asyncio
from typing import Optional

from collab_relay.common.constants import DEFAULT_HOST, DEFAULT_PORT, READ_SIZE, SERVER_MESSAGE_SIGNATURE
from collab_relay.common.protocol_definitions import (
    Frame, FrameDecoder, create_session_request, create_join_request, create_broadcast_request
)


class RelayClient:
    """Client-side session relay functionality."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        self.host = host
        self.port = port
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.decoder = FrameDecoder(signature=SERVER_MESSAGE_SIGNATURE)
        self._frames = []

    async def connect(self):
        """Open the TCP stream to the relay server."""
        self.reader, self.writer = await asyncio.open_connection(self.host, self.port)

    async def send_raw(self, data: bytes):
        """Write already-encoded bytes to the server."""
        if not self.writer:
            raise ConnectionError("Not connected to server")
        self.writer.write(data)
        await self.writer.drain()

    async def create_session(self, name: str):
        await self.send_raw(create_session_request(name))

    async def join_session(self, name: str):
        await self.send_raw(create_join_request(name))

    async def broadcast(self, command: bytes):
        await self.send_raw(create_broadcast_request(command))

    async def receive(self) -> Optional[Frame]:
        """Return the next server frame, or None once the server closes the stream."""
        while not self._frames:
            try:
                data = await self.reader.read(READ_SIZE)
            except ConnectionResetError:
                return None
            if not data:
                return None
            self.decoder.feed(data)
            self._frames.extend(self.decoder.frames())
        return self._frames.pop(0)

    async def close(self):
        if self.writer is None:
            return
        writer, self.writer = self.writer, None
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            # Server may already have torn the stream down.
            pass
