# smc/crypto/plain.py
from crypto.base import Transform

class PlainTransform(Transform):
    name = "PLAIN"
    def apply(self, buf: bytearray) -> None:
        return None
