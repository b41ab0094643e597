# smc/writer.py
import asyncio
from typing import Iterable

from common import close_writer, write_frame
from crypto.base import Transform
from crypto.plain import PlainTransform
from message import Message


class Writer:
    """Отправка сообщений в поток. Преобразование (шифрование) применяется ко
    всему кадру целиком, вместе с префиксом длины."""

    def __init__(self, sink: asyncio.StreamWriter, transform: Transform | None = None) -> None:
        self.sink = sink
        self.transform: Transform = transform if transform is not None else PlainTransform()
        # кадры и гамма шифра не должны перемешиваться между отправителями
        self._lock = asyncio.Lock()

    def install(self, transform: Transform) -> None:
        self.transform = transform

    def _frame(self, message: Message) -> bytes:
        data = bytearray(message.encode())
        self.transform.apply(data)
        return bytes(data)

    async def send(self, message: Message) -> None:
        async with self._lock:
            await write_frame(self.sink, message, self.transform)

    async def send_message(self, channel: int, typ: int, payload: bytes = b"") -> None:
        await self.send(Message(channel, typ, payload))

    async def send_batch(self, messages: Iterable[Message]) -> None:
        async with self._lock:
            for message in messages:
                self.sink.write(self._frame(message))
            await self.sink.drain()

    async def close(self) -> None:
        await close_writer(self.sink)
