import asyncio

import pytest

from conftest import stream_of
from crypto.stream import ChaCha20Transform
from message import Message
from reader import Reader
from writer import Writer

pytestmark = pytest.mark.asyncio

KEY = bytes(range(32))


class MemorySink:
    def __init__(self) -> None:
        self.data = bytearray()
        self.drains = 0
        self.closed = False

    def write(self, data: bytes) -> None:
        self.data += data

    async def drain(self) -> None:
        self.drains += 1

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass


async def test_send_writes_frames(messages):
    sink = MemorySink()
    writer = Writer(sink)
    for m in messages:
        await writer.send(m)
    assert bytes(sink.data) == b"".join(m.encode() for m in messages)
    assert sink.drains == len(messages)


async def test_send_message_builds_message():
    sink = MemorySink()
    await Writer(sink).send_message(0, 0)
    assert bytes(sink.data) == b"\x01\x00"


async def test_send_batch_drains_once(messages):
    sink = MemorySink()
    await Writer(sink).send_batch(messages)
    assert sink.drains == 1
    assert [m async for m in Reader(stream_of(bytes(sink.data)))] == messages


async def test_encrypted_round_trip(messages):
    sink = MemorySink()
    writer = Writer(sink, ChaCha20Transform(KEY))
    await writer.send_batch(messages[:1])
    for m in messages[1:]:
        await writer.send(m)
    assert bytes(sink.data) != b"".join(m.encode() for m in messages)

    reader = Reader.encrypted(stream_of(bytes(sink.data)), ChaCha20Transform(KEY))
    assert [m async for m in reader] == messages


async def test_rekey_on_both_sides():
    sink = MemorySink()
    tx = ChaCha20Transform(KEY)
    writer = Writer(sink, tx)
    new_key = bytes(32)

    await writer.send(Message(0, 1, b"rekey"))
    tx.rekey(new_key)
    await writer.send(Message(3, 2, b"after rekey"))

    def on_message(msg, transform):
        if msg.payload == b"rekey":
            transform.rekey(new_key)

    reader = Reader(stream_of(bytes(sink.data)), ChaCha20Transform(KEY), on_message)
    assert [m async for m in reader] == [Message(0, 1, b"rekey"), Message(3, 2, b"after rekey")]


async def test_concurrent_senders_do_not_interleave():
    sink = MemorySink()
    writer = Writer(sink, ChaCha20Transform(KEY))
    sent = [Message(i, i % 16, bytes([i]) * 50) for i in range(20)]
    await asyncio.gather(*(writer.send(m) for m in sent))
    received = [m async for m in Reader(stream_of(bytes(sink.data)), ChaCha20Transform(KEY))]
    assert sorted(received, key=lambda m: m.channel) == sent


async def test_close():
    sink = MemorySink()
    await Writer(sink).close()
    assert sink.closed
