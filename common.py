# smc/common.py
import asyncio
from typing import Protocol

from crypto.base import Transform
from message import Message, decode_message
from varint import MAX_VARINT_BYTES

MAX_MESSAGE_SIZE = 8 * 1024 * 1024


class MessageTooLong(ValueError):
    """Префикс длины превысил допустимый размер сообщения."""


class EndOfStream(EOFError):
    """Поток закончился ровно на границе кадра."""


class ByteSource(Protocol):
    async def readexactly(self, n: int) -> bytes: ...


async def read_length(reader: ByteSource, transform: Transform, max_message_size: int = MAX_MESSAGE_SIZE) -> int:
    """Читаем varint с длиной тела по одному байту.

    Размер проверяется до чтения каждого следующего байта, а не только в конце.
    """
    varint = 0
    factor = 1
    count = 0
    first = True
    while True:
        # следующий ненулевой байт уже не уместится в max_message_size
        if varint > max_message_size or factor > max_message_size or count >= MAX_VARINT_BYTES:
            raise MessageTooLong(f"Message too long: more than {max_message_size} bytes")
        try:
            buf = bytearray(await reader.readexactly(1))
        except asyncio.IncompleteReadError:
            if first:
                raise EndOfStream("End of stream") from None
            raise
        first = False
        count += 1
        transform.apply(buf)
        byte = buf[0]
        varint += (byte & 0x7F) * factor
        if byte < 0x80:
            break
        factor *= 128
    if varint > max_message_size:
        raise MessageTooLong(f"Message too long: {varint} > {max_message_size} bytes")
    return varint


async def read_frame(reader: ByteSource, transform: Transform, max_message_size: int = MAX_MESSAGE_SIZE) -> Message:
    size = await read_length(reader, transform, max_message_size)
    body = bytearray(await reader.readexactly(size))
    transform.apply(body)
    return decode_message(body)


async def write_frame(writer: asyncio.StreamWriter, message: Message, transform: Transform | None = None) -> None:
    data = bytearray(message.encode())
    if transform is not None:
        transform.apply(data)
    writer.write(bytes(data))
    await writer.drain() # flush


async def close_writer(writer: asyncio.StreamWriter) -> None:
    try:
        writer.close()
        await writer.wait_closed()
    except (ConnectionError, OSError):
        pass
