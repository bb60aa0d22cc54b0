"""
Session registry module.

Process-wide mapping from session name to session state. Every public
operation runs as one critical section under the registry lock.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from collab_relay.server.connection import ClientConnection
from collab_relay.server.utils.logger import logger


@dataclass(eq=False)
class Session:
    """A named collaboration room; the master is always members[0] until teardown."""
    name: str
    master: ClientConnection
    members: List[ClientConnection] = field(default_factory=list)

    def has_member(self, connection: ClientConnection) -> bool:
        return any(member is connection for member in self.members)


class SessionRegistry:
    """Create/join/leave/teardown of named sessions."""

    def __init__(self):
        self.sessions: Dict[str, Session] = {}
        self.lock = asyncio.Lock()  # Protect shared state

    async def create_session(self, name: str, requester: ClientConnection) -> Optional[Session]:
        """Register a new session with `requester` as master and sole member.

        Returns None, leaving everything untouched, if the name is taken, the
        requester is already closed, or it already belongs to a session.
        """
        async with self.lock:
            if requester.closed:
                return None
            if name in self.sessions:
                logger.warning(f"Session '{name}' already exists.")
                return None
            if requester.session_name is not None:
                logger.warning(
                    f"Client conn={requester.conn_id} is already in session "
                    f"'{requester.session_name}', cannot create '{name}'"
                )
                return None

            session = Session(name=name, master=requester, members=[requester])
            self.sessions[name] = session
            requester.session_name = name

        logger.log_session_created(name, requester.conn_id)
        return session

    async def join_session(self, name: str, requester: ClientConnection) -> Optional[Session]:
        """Append `requester` to an existing session.

        Returns None for an unknown session, a closed requester, a repeated
        join, or a requester that is still a member of another session.
        """
        async with self.lock:
            session = self.sessions.get(name)
            if session is None:
                logger.warning(f"Session '{name}' doesn't exist.")
                return None
            if requester.closed:
                return None
            if session.has_member(requester):
                logger.warning(f"Client conn={requester.conn_id} is already in session '{name}'")
                return None
            if requester.session_name is not None:
                logger.warning(
                    f"Client conn={requester.conn_id} is already in session "
                    f"'{requester.session_name}', cannot join '{name}'"
                )
                return None

            session.members.append(requester)
            requester.session_name = name
            member_count = len(session.members)

        logger.log_session_joined(name, requester.conn_id, member_count)
        return session

    async def remove_member(self, name: Optional[str], connection: ClientConnection) -> List[ClientConnection]:
        """Take `connection` out of session `name`.

        If `connection` is the master the whole session is deleted and the
        remaining members are returned so the caller can close them.
        Otherwise only that member is dropped and an empty list is returned.
        """
        if name is None:
            return []

        async with self.lock:
            session = self.sessions.get(name)
            if session is None or not session.has_member(connection):
                return []

            if session.master is connection:
                del self.sessions[name]
                orphans = [member for member in session.members if member is not connection]
                for member in session.members:
                    member.session_name = None
                session.members = []
                sessions_remaining = len(self.sessions)
            else:
                members = session.members
                for i, member in enumerate(members):
                    if member is connection:
                        members[i] = members[-1]
                        members.pop()
                        break
                connection.session_name = None
                member_count = len(members)
                orphans = None

        if orphans is None:
            logger.log_member_removed(name, connection.conn_id, member_count)
            return []

        logger.log_session_teardown(name, connection.conn_id, sessions_remaining)
        return orphans

    async def lookup(self, name: str) -> Optional[Session]:
        async with self.lock:
            return self.sessions.get(name)

    async def recipients(self, sender: ClientConnection) -> List[ClientConnection]:
        """Snapshot of every other member of the sender's session."""
        async with self.lock:
            session = self.sessions.get(sender.session_name) if sender.session_name else None
            if session is None or not session.has_member(sender):
                return []
            return [member for member in session.members if member is not sender]

    def session_count(self) -> int:
        return len(self.sessions)

    def session_names(self) -> List[str]:
        return list(self.sessions)
