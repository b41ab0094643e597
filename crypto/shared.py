# smc/crypto/shared.py
import threading
from contextlib import contextmanager
from typing import Iterator

from crypto.base import Transform
from crypto.plain import PlainTransform


class SharedTransform:
    """Владелец преобразования на одну сессию чтения.

    Reader применяет его к каждому прочитанному куску, обработчик on_message
    получает его под той же блокировкой. Блокировка берётся только на время
    одного apply или одного вызова обработчика и никогда не держится через await.
    """

    def __init__(self, transform: Transform | None = None) -> None:
        self._transform: Transform = transform if transform is not None else PlainTransform()
        self._lock = threading.RLock()

    @classmethod
    def wrap(cls, transform: "Transform | SharedTransform | None") -> "SharedTransform":
        if isinstance(transform, SharedTransform):
            return transform
        return cls(transform)

    @property
    def name(self) -> str:
        return self._transform.name

    def apply(self, buf: bytearray) -> None:
        with self._lock:
            self._transform.apply(buf)

    @contextmanager
    def exclusive(self) -> Iterator[Transform]:
        with self._lock:
            yield self._transform

    def install(self, transform: Transform) -> None:
        """Заменить преобразование, например plain -> шифр после рукопожатия."""
        with self._lock:
            self._transform = transform
