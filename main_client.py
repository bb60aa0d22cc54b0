#!/usr/bin/env python3
"""
Collab Relay Client - Main Entry Point

Line-oriented client: every line typed on stdin is broadcast to the rest of
the session, every broadcast received is printed.

Usage:
    python main_client.py --create NAME
    python main_client.py --join NAME
"""

import argparse
import asyncio
import sys

from collab_relay.client.relay_client import RelayClient
from collab_relay.common.constants import DEFAULT_HOST, DEFAULT_PORT, ServerMessageTypes


async def print_incoming(client: RelayClient):
    """Print server frames until the stream closes."""
    while True:
        frame = await client.receive()
        if frame is None:
            print("[INFO] Server closed the connection")
            return
        if frame.message_type == ServerMessageTypes.CREATED_SESSION:
            print(f"[INFO] Created session '{frame.payload.decode('utf-8', errors='replace')}'")
        elif frame.message_type == ServerMessageTypes.JOINED_SESSION:
            print(f"[INFO] Joined session '{frame.payload.decode('utf-8', errors='replace')}'")
        elif frame.message_type == ServerMessageTypes.BROADCAST_COMMAND:
            print(f"[BROADCAST] {frame.payload.decode('utf-8', errors='replace')}")


async def send_stdin(client: RelayClient):
    """Broadcast each stdin line until EOF."""
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            return
        await client.broadcast(line.rstrip('\n').encode('utf-8'))


async def run(host: str, port: int, create: str = None, join: str = None):
    client = RelayClient(host, port)
    await client.connect()
    print(f"[INFO] Connected to {host}:{port}")
    try:
        if create:
            await client.create_session(create)
        else:
            await client.join_session(join)

        receiver = asyncio.create_task(print_incoming(client))
        sender = asyncio.create_task(send_stdin(client))
        done, pending = await asyncio.wait({receiver, sender}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            task.result()
    finally:
        await client.close()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Collab Relay Client')
    parser.add_argument('--host', type=str, default=DEFAULT_HOST,
                        help=f'Server address (default: {DEFAULT_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'Server port (default: {DEFAULT_PORT})')
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--create', type=str, help='Create a session with this name')
    group.add_argument('--join', type=str, help='Join the session with this name')

    args = parser.parse_args()

    try:
        asyncio.run(run(args.host, args.port, args.create, args.join))
    except KeyboardInterrupt:
        print("\n[INFO] Interrupted by user")
    except (ConnectionError, OSError) as e:
        print(f"[ERROR] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
