"""
Client package for the Collab Relay system.
"""
