"""
Client connection module.

Per-stream state held by the server for every accepted client.
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Optional

from collab_relay.common.protocol_definitions import FrameDecoder
from collab_relay.server.utils.logger import logger

_conn_ids = itertools.count(1)


@dataclass(eq=False)
class ClientConnection:
    """One accepted transport stream.

    Compared by identity: two connections are never equal, even when they
    share a peer address or a session name.
    """
    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    decoder: FrameDecoder = field(default_factory=FrameDecoder)
    session_name: Optional[str] = None
    conn_id: int = field(default_factory=lambda: next(_conn_ids))
    closed: bool = False

    @property
    def addr(self):
        return self.writer.get_extra_info('peername')

    def close(self) -> None:
        """Close the transport. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self.writer.close()

    async def wait_closed(self) -> None:
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Connection conn={self.conn_id} closed with error: {e}")

    def __repr__(self):
        return f"ClientConnection(conn={self.conn_id}, session={self.session_name!r})"
