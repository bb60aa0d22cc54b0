"""
Session broadcaster module.

This module handles fan-out of broadcast commands to session members.
"""

import asyncio
from typing import List, Set

from collab_relay.common.protocol_definitions import create_broadcast_command_message
from collab_relay.server.connection import ClientConnection
from collab_relay.server.session.registry import SessionRegistry
from collab_relay.server.utils.logger import logger


class Broadcaster:
    """Delivers one sender's command to every other member of its session.

    Each recipient gets its own write task, so a slow or dead peer never
    holds up the sender or the other recipients.
    """

    def __init__(self, registry: SessionRegistry):
        self.registry = registry
        self.pending: Set[asyncio.Task] = set()

    async def broadcast(self, sender: ClientConnection, command: bytes) -> List[asyncio.Task]:
        """Encode `command` once and schedule delivery to the sender's peers."""
        recipients = await self.registry.recipients(sender)
        if not recipients:
            logger.debug(f"Broadcast from conn={sender.conn_id} has no recipients")
            return []

        message = create_broadcast_command_message(command)
        logger.log_broadcast(sender.session_name, sender.conn_id, len(command), len(recipients))

        tasks = []
        for recipient in recipients:
            if recipient.closed:
                continue
            task = asyncio.create_task(self._deliver(recipient, message))
            self.pending.add(task)
            task.add_done_callback(self.pending.discard)
            tasks.append(task)
        return tasks

    async def _deliver(self, recipient: ClientConnection, message: bytes) -> bool:
        """Write one encoded message to one recipient."""
        try:
            recipient.writer.write(message)
            await recipient.writer.drain()
            return True
        except (ConnectionError, OSError) as e:
            logger.error(f"Failed to broadcast message to conn={recipient.conn_id}: {e}")
            return False

    async def wait_idle(self):
        """Wait for every in-flight delivery to finish."""
        while self.pending:
            await asyncio.wait(list(self.pending))

    def get_pending_count(self) -> int:
        return len(self.pending)
