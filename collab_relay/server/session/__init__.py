"""
Session module for server-side relay functionality.

Handles:
- Session create / join / leave / teardown
- Broadcast fan-out to session members
"""
