#!/usr/bin/env python3
"""
Unit tests for the binary frame format.

Covers:
- Exact header layout produced by the encoders
- Incremental decoding across arbitrary read boundaries
- Fatal handling of a bad signature or oversized payload
"""

import struct
import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from collab_relay.common.constants import (
    CLIENT_MESSAGE_SIGNATURE, SERVER_MESSAGE_SIGNATURE, ClientMessageTypes, ServerMessageTypes
)
from collab_relay.common.protocol_definitions import (
    Frame, FrameDecoder, ProtocolError, encode_message, create_broadcast_command_message,
    create_session_request, create_join_request, create_broadcast_request, decode_session_name,
    encode_session_name, create_created_session_message
)


def decode_all(decoder, chunks):
    """Feed chunks one by one, collecting every frame produced along the way."""
    frames = []
    for chunk in chunks:
        decoder.feed(chunk)
        frames.extend(decoder.frames())
    return frames


class TestEncoding(unittest.TestCase):
    """Test cases for frame encoding."""

    def test_server_header_is_little_endian(self):
        data = create_broadcast_command_message(b'abc')
        self.assertEqual(data[:4], bytes([0x32, 0x54, 0x76, 0x98]))
        self.assertEqual(data[4:8], bytes([3, 0, 0, 0]))
        self.assertEqual(data[8:12], bytes([ServerMessageTypes.BROADCAST_COMMAND, 0, 0, 0]))
        self.assertEqual(data[12:], b'abc')

    def test_client_requests(self):
        data = create_session_request('alpha')
        self.assertEqual(struct.unpack('<III', data[:12]),
                         (CLIENT_MESSAGE_SIGNATURE, 5, ClientMessageTypes.CREATE_SESSION))
        self.assertEqual(data[12:], b'alpha')

        data = create_join_request('alpha')
        self.assertEqual(struct.unpack('<I', data[8:12])[0], ClientMessageTypes.JOIN_SESSION)

    def test_empty_payload(self):
        data = encode_message(b'', 7, CLIENT_MESSAGE_SIGNATURE)
        self.assertEqual(len(data), 12)

    def test_session_names_keep_non_utf8_bytes(self):
        self.assertEqual(decode_session_name('café'.encode('utf-8')), 'café')
        self.assertNotEqual(decode_session_name(b'\xff'), decode_session_name(b'\xfe'))
        self.assertEqual(encode_session_name(decode_session_name(b'a\xffb')), b'a\xffb')
        self.assertEqual(create_created_session_message(decode_session_name(b'\xff'))[12:], b'\xff')


class TestFrameDecoder(unittest.TestCase):
    """Test cases for incremental frame decoding."""

    def setUp(self):
        self.stream = (
            create_session_request('alpha')
            + create_broadcast_request(b'\x00\x01 payload \xff')
            + encode_message(b'', 0x9, CLIENT_MESSAGE_SIGNATURE)
            + create_join_request('beta')
        )
        self.expected = [
            Frame(ClientMessageTypes.CREATE_SESSION, b'alpha'),
            Frame(ClientMessageTypes.BROADCAST, b'\x00\x01 payload \xff'),
            Frame(0x9, b''),
            Frame(ClientMessageTypes.JOIN_SESSION, b'beta'),
        ]

    def test_single_read(self):
        frames = decode_all(FrameDecoder(), [self.stream])
        self.assertEqual(frames, self.expected)

    def test_one_byte_at_a_time(self):
        chunks = [self.stream[i:i + 1] for i in range(len(self.stream))]
        decoder = FrameDecoder()
        self.assertEqual(decode_all(decoder, chunks), self.expected)
        self.assertEqual(decoder.buffered, 0)

    def test_uneven_chunks(self):
        for size in (2, 5, 11, 12, 13, 29):
            chunks = [self.stream[i:i + size] for i in range(0, len(self.stream), size)]
            self.assertEqual(decode_all(FrameDecoder(), chunks), self.expected, f"chunk size {size}")

    def test_partial_frame_stays_buffered(self):
        decoder = FrameDecoder()
        data = create_broadcast_request(b'0123456789')
        decoder.feed(data[:15])
        self.assertEqual(list(decoder.frames()), [])
        self.assertEqual(decoder.buffered, 15)

        decoder.feed(data[15:])
        self.assertEqual(list(decoder.frames()), [Frame(ClientMessageTypes.BROADCAST, b'0123456789')])
        self.assertEqual(decoder.buffered, 0)

    def test_does_not_consume_next_frame(self):
        decoder = FrameDecoder()
        second = create_join_request('beta')
        decoder.feed(create_session_request('alpha') + second[:6])
        self.assertEqual(list(decoder.frames()), [Frame(ClientMessageTypes.CREATE_SESSION, b'alpha')])
        self.assertEqual(decoder.buffered, 6)

    def test_bad_signature_is_fatal(self):
        decoder = FrameDecoder()
        bad = encode_message(b'alpha', ClientMessageTypes.CREATE_SESSION, 0xDEADBEEF)
        decoder.feed(bad + create_join_request('alpha'))

        with self.assertRaises(ProtocolError):
            list(decoder.frames())
        self.assertTrue(decoder.failed)

        # Nothing after the violation is ever produced.
        decoder.feed(create_join_request('beta'))
        with self.assertRaises(ProtocolError):
            list(decoder.frames())

    def test_frames_before_bad_signature_are_delivered(self):
        decoder = FrameDecoder()
        decoder.feed(create_session_request('alpha') + b'\x00' * 12)
        frames = decoder.frames()
        self.assertEqual(next(frames), Frame(ClientMessageTypes.CREATE_SESSION, b'alpha'))
        with self.assertRaises(ProtocolError):
            next(frames)

    def test_signature_checked_once_header_is_complete(self):
        decoder = FrameDecoder()
        decoder.feed(b'\x00' * 11)
        self.assertEqual(list(decoder.frames()), [])
        self.assertFalse(decoder.failed)

    def test_payload_limit(self):
        decoder = FrameDecoder(max_payload_size=4)
        decoder.feed(create_broadcast_request(b'1234'))
        self.assertEqual(len(list(decoder.frames())), 1)

        decoder.feed(struct.pack('<III', CLIENT_MESSAGE_SIGNATURE, 5, ClientMessageTypes.BROADCAST))
        with self.assertRaises(ProtocolError):
            list(decoder.frames())

    def test_server_round_trip(self):
        payload = bytes(range(256)) * 3
        decoder = FrameDecoder(signature=SERVER_MESSAGE_SIGNATURE)
        decoder.feed(create_broadcast_command_message(payload))
        self.assertEqual(list(decoder.frames()), [Frame(ServerMessageTypes.BROADCAST_COMMAND, payload)])

    def test_server_frame_rejected_by_client_decoder(self):
        decoder = FrameDecoder()
        decoder.feed(create_broadcast_command_message(b'x'))
        with self.assertRaises(ProtocolError):
            list(decoder.frames())


if __name__ == "__main__":
    unittest.main()
