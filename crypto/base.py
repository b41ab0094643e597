# smc/crypto/base.py
from typing import Protocol


class Transform(Protocol):
    """Преобразование сырых байт потока на месте (например, расшифровка).

    Одно состояние на весь поток: каждый байт, прочитанный из сокета,
    проходит через apply ровно один раз и по порядку.
    """
    name: str
    def apply(self, buf: bytearray) -> None: ...
