"""
Collab Relay Server

Accepts client streams, frames their bytes into messages and dispatches
create / join / broadcast requests against the shared session registry.
"""

import asyncio
from typing import Optional, Set

from collab_relay.common.constants import ClientMessageTypes
from collab_relay.common.protocol_definitions import (
    Frame, FrameDecoder, ProtocolError, decode_session_name,
    create_created_session_message, create_joined_session_message
)
from collab_relay.server.connection import ClientConnection
from collab_relay.server.session.broadcaster import Broadcaster
from collab_relay.server.session.registry import SessionRegistry
from collab_relay.server.utils.config import ServerConfig
from collab_relay.server.utils.logger import logger


class RelayServer:
    """Main server class tying connections, sessions and broadcasts together."""

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.registry = SessionRegistry()
        self.broadcaster = Broadcaster(self.registry)
        self.connections: Set[ClientConnection] = set()
        self.server: Optional[asyncio.AbstractServer] = None

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Handle individual client connection."""
        conn = ClientConnection(
            reader=reader,
            writer=writer,
            decoder=FrameDecoder(max_payload_size=self.config.max_payload_size),
        )
        self.connections.add(conn)
        logger.log_connection(conn.addr, conn.conn_id)

        try:
            while not conn.closed:
                data = await reader.read(self.config.read_size)
                if not data:
                    logger.info(f"Connection closed by client conn={conn.conn_id}")
                    break

                conn.decoder.feed(data)
                for frame in conn.decoder.frames():
                    # A teardown may have closed us while a previous frame awaited.
                    if conn.closed:
                        break
                    await self.dispatch(conn, frame)

        except ProtocolError as e:
            logger.warning(f"Protocol violation from conn={conn.conn_id}: {e}. Disconnecting...")
        except asyncio.CancelledError:
            logger.info(f"Connection cancelled for conn={conn.conn_id}")
            raise
        except (ConnectionError, OSError) as e:
            logger.info(f"Socket error for conn={conn.conn_id}: {e}")
        except Exception as e:
            logger.log_error(f"connection conn={conn.conn_id}", e)
        finally:
            await self.disconnect_client(conn)

    async def dispatch(self, conn: ClientConnection, frame: Frame):
        """Route one decoded frame by message type."""
        if frame.message_type == ClientMessageTypes.CREATE_SESSION:
            name = decode_session_name(frame.payload)
            if await self.registry.create_session(name, conn):
                await self.send_message(conn, create_created_session_message(name))
        elif frame.message_type == ClientMessageTypes.JOIN_SESSION:
            name = decode_session_name(frame.payload)
            if await self.registry.join_session(name, conn):
                await self.send_message(conn, create_joined_session_message(name))
        elif frame.message_type == ClientMessageTypes.BROADCAST:
            await self.broadcaster.broadcast(conn, frame.payload)
        else:
            logger.warning(f"Unknown message type 0x{frame.message_type:x} from conn={conn.conn_id}")

    async def send_message(self, conn: ClientConnection, message: bytes) -> bool:
        """Send an encoded server message to one client."""
        try:
            conn.writer.write(message)
            await conn.writer.drain()
            return True
        except (ConnectionError, OSError) as e:
            logger.error(f"Failed to send to conn={conn.conn_id}: {e}")
            return False

    async def disconnect_client(self, conn: ClientConnection):
        """Release the transport, then leave or tear down its session."""
        logger.log_disconnect(conn.addr, conn.conn_id)
        conn.close()
        self.connections.discard(conn)

        orphans = await self.registry.remove_member(conn.session_name, conn)
        for orphan in orphans:
            orphan.close()
        await conn.wait_closed()
        for orphan in orphans:
            await orphan.wait_closed()

    async def start(self):
        """Bind the listener; errors here are fatal to the process."""
        try:
            self.server = await asyncio.start_server(
                self.handle_client,
                self.config.host,
                self.config.port
            )
        except OSError as e:
            logger.log_error("listener", e)
            raise

        addr = ', '.join(str(sock.getsockname()) for sock in self.server.sockets)
        logger.info(f"Server listening on {addr}")
        return self.server

    async def serve_forever(self):
        """Start the server and serve until cancelled."""
        if self.server is None:
            await self.start()
        async with self.server:
            await self.server.serve_forever()

    async def stop(self):
        """Close the listener and every live connection."""
        server, self.server = self.server, None
        if server is not None:
            server.close()

        for conn in list(self.connections):
            conn.close()
        if server is not None:
            await server.wait_closed()
        await self.broadcaster.wait_idle()
        logger.info("Server stopped")

    @property
    def port(self) -> int:
        """Port actually bound (useful when configured with port 0)."""
        return self.server.sockets[0].getsockname()[1]
