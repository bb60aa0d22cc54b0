"""
Common package shared by the relay client and server.

Contains:
- Wire constants and message type codes
- Frame encoding and incremental decoding
"""
