"""
Collab Relay - a session relay server for collaborative editing clients.

One master client creates a named session, other clients join it, and every
broadcast from a member is fanned out to the rest of the session.
"""

__version__ = '1.0.0'
