"""
Server package for the Collab Relay system.

This package contains all server-side functionality including:
- Client connection management
- Session registry and fan-out broadcasting
- Configuration and utilities
"""
