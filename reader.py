# smc/reader.py
import asyncio
import logging
from typing import Protocol

from common import MAX_MESSAGE_SIZE, ByteSource, EndOfStream, read_frame
from crypto.base import Transform
from crypto.shared import SharedTransform
from message import Message


class MessageHandler(Protocol):
    """Вызывается после разбора каждого сообщения, с эксклюзивным доступом к
    преобразованию (например, чтобы сменить ключ посреди потока)."""
    def __call__(self, message: Message, transform: Transform) -> None: ...


class _TrackedSource:
    """Запоминает, был ли прочитан хоть один байт текущего кадра."""

    def __init__(self, source: ByteSource) -> None:
        self.source = source
        self.dirty = False

    async def readexactly(self, n: int) -> bytes:
        data = await self.source.readexactly(n)
        self.dirty = True
        return data


class Reader:
    """Асинхронный итератор сообщений поверх потока байт.

    Пример::

        reader = Reader(stream_reader)
        async for msg in reader:
            print(msg.channel, msg.typ, msg.payload)

    Конец потока ровно на границе кадра завершает итерацию. Любая другая ошибка
    (обрыв кадра, ошибка сокета, слишком длинное или битое сообщение)
    выбрасывается один раз, после чего итератор всегда пуст.
    """

    def __init__(
        self,
        source: ByteSource,
        transform: Transform | SharedTransform | None = None,
        on_message: MessageHandler | None = None,
        *,
        max_message_size: int = MAX_MESSAGE_SIZE,
    ) -> None:
        self._source = _TrackedSource(source)
        self.transform = SharedTransform.wrap(transform)
        self._on_message = on_message
        self.max_message_size = max_message_size
        self._finished = False
        self._eof = False
        self._busy = False

    @classmethod
    def plain(cls, source: ByteSource) -> "Reader":
        return cls(source)

    @classmethod
    def encrypted(
        cls,
        source: ByteSource,
        transform: Transform | SharedTransform,
        on_message: MessageHandler | None = None,
    ) -> "Reader":
        return cls(source, transform, on_message)

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def eof(self) -> bool:
        """Поток закончился чисто, на границе кадра, а не из-за ошибки."""
        return self._eof

    def __aiter__(self) -> "Reader":
        return self

    async def __anext__(self) -> Message:
        if self._finished:
            raise StopAsyncIteration
        if self._busy:
            raise RuntimeError("Reader is already waiting for a message")
        self._busy = True
        self._source.dirty = False
        try:
            message = await read_frame(self._source, self.transform, self.max_message_size)
            if self._on_message is not None:
                with self.transform.exclusive() as transform:
                    self._on_message(message, transform)
        except EndOfStream:
            self._finished = True
            self._eof = True
            logging.debug("Поток сообщений закончился")
            raise StopAsyncIteration from None
        except asyncio.CancelledError:
            # недочитанный кадр не восстановить, дальше поток не разобрать
            if self._source.dirty:
                self._finished = True
            raise
        except Exception as e:
            self._finished = True
            logging.warning("Чтение сообщений остановлено: %r", e)
            raise
        finally:
            self._busy = False
        logging.debug("Получено сообщение: канал %d, тип %d, %d байт", message.channel, message.typ, len(message.payload))
        return message

    async def recv(self, timeout: float | None = None) -> Message | None:
        """Следующее сообщение или None, если поток закончился."""
        try:
            if timeout is None:
                return await self.__anext__()
            return await asyncio.wait_for(self.__anext__(), timeout=timeout)
        except StopAsyncIteration:
            return None
