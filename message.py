# smc/message.py
from dataclasses import dataclass

import varint

MAX_CHANNEL = 2**60 - 1
TYPE_MASK = 0b1111


class DecodeError(ValueError):
    """Тело кадра не содержит полного заголовка."""


@dataclass(frozen=True)
class Message:
    """Одно сообщение: номер канала, тип (4 бита) и полезная нагрузка.

    typ >= 16 не ошибка: при кодировании остаются только младшие 4 бита.
    """
    channel: int
    typ: int
    payload: bytes = b""

    def __post_init__(self) -> None:
        if not 0 <= self.channel <= MAX_CHANNEL:
            # channel << 4 должен помещаться в 64-битный заголовок
            raise ValueError(f"Channel out of range: {self.channel}")
        if self.typ < 0:
            raise ValueError(f"Invalid message type: {self.typ}")
        if not isinstance(self.payload, bytes):
            object.__setattr__(self, "payload", bytes(self.payload))

    @property
    def header(self) -> int:
        return (self.channel << 4) | (self.typ & TYPE_MASK)

    @classmethod
    def from_buf(cls, buf: bytes) -> "Message":
        return decode_message(buf)

    def encode(self) -> bytes:
        return encode_message(self)

    def __repr__(self) -> str:
        return f"Message(channel={self.channel}, typ={self.typ}, payload=<{len(self.payload)} bytes>)"


def encode_message(msg: Message) -> bytes:
    """Кадр: varint(длина тела) + varint(заголовок) + payload."""
    header = msg.header
    len_header = varint.encoded_length(header)
    len_body = len_header + len(msg.payload)
    len_prefix = varint.encoded_length(len_body)

    buf = bytearray(len_prefix + len_body)
    buf[:len_prefix] = varint.encode(len_body)
    end = len_prefix + len_header
    buf[len_prefix:end] = varint.encode(header)
    buf[end:] = msg.payload
    return bytes(buf)


def decode_message(buf: bytes) -> Message:
    """Разбор тела кадра. Префикс длины уже должен быть отрезан."""
    try:
        header, n = varint.decode(buf)
    except varint.VarintError as e:
        raise DecodeError(f"Invalid message header: {e}") from e
    if header > varint.MAX_VARINT:
        raise DecodeError("Message header does not fit into 64 bits")
    return Message(header >> 4, header & TYPE_MASK, bytes(buf[n:]))
