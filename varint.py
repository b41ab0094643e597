# smc/varint.py
"""Беззнаковые varint (LEB128): по 7 бит данных в байте, младшая группа первой,
старший бит байта = "дальше есть ещё байты"."""

MAX_VARINT = 2**64 - 1
MAX_VARINT_BYTES = 10


class VarintError(ValueError):
    """Буфер закончился раньше varint или varint длиннее 64 бит."""


def encode(value: int) -> bytes:
    if value < 0:
        raise ValueError("Varint must be non-negative")
    if value > MAX_VARINT:
        raise ValueError("Varint does not fit into 64 bits")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def encoded_length(value: int) -> int:
    """Сколько байт вернёт encode(value), без самого кодирования."""
    if value < 0:
        raise ValueError("Varint must be non-negative")
    n = 1
    while value >= 0x80:
        value >>= 7
        n += 1
    return n


def decode(buf: bytes, offset: int = 0) -> tuple[int, int]:
    """Возвращает (значение, сколько байт прочитано), начиная с offset."""
    value = 0
    shift = 0
    pos = offset
    while True:
        if pos >= len(buf):
            raise VarintError("Truncated varint")
        if pos - offset >= MAX_VARINT_BYTES:
            raise VarintError("Varint too long")
        byte = buf[pos]
        pos += 1
        value |= (byte & 0x7F) << shift
        if byte < 0x80:
            return value, pos - offset
        shift += 7
