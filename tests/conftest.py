import asyncio

import pytest

from message import Message


def stream_of(*chunks: bytes, eof: bool = True) -> asyncio.StreamReader:
    """In-memory byte source already filled with the given chunks."""
    reader = asyncio.StreamReader()
    for chunk in chunks:
        reader.feed_data(chunk)
    if eof:
        reader.feed_eof()
    return reader


class XorTransform:
    """Reversible test transform: xor with a repeating key, position kept across calls."""
    name = "XOR"

    def __init__(self, key: bytes) -> None:
        self.key = key
        self.pos = 0

    def apply(self, buf: bytearray) -> None:
        for i in range(len(buf)):
            buf[i] ^= self.key[self.pos % len(self.key)]
            self.pos += 1


@pytest.fixture
def messages():
    return [
        Message(0, 0, b""),
        Message(1, 2, b"hello"),
        Message(2**40, 15, bytes(range(256)) * 3),
    ]
