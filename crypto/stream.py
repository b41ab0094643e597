# smc/crypto/stream.py
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms
from crypto.base import Transform

KEY_LEN = 32
NONCE_LEN = 16 # 4 байта счётчика + 12 байт nonce, как ждёт cryptography
ZERO_NONCE = bytes(NONCE_LEN)

class ChaCha20Transform(Transform):
    """Потоковый шифр ChaCha20. Шифрование и расшифровка - одна и та же операция
    (XOR с гаммой), поэтому один класс годится и для Reader, и для Writer.

    Позиция в гамме сдвигается с каждым байтом, так что экземпляр должен видеть
    все байты потока по порядку, включая побайтовое чтение префикса длины.
    """
    name = "CHACHA20"

    def __init__(self, key: bytes, nonce: bytes = ZERO_NONCE):
        self.rekey(key, nonce)

    def rekey(self, key: bytes, nonce: bytes = ZERO_NONCE) -> None:
        """Начать гамму заново с новым ключом (смена ключа посреди потока)."""
        if len(key) != KEY_LEN:
            raise ValueError("ChaCha20 key must be 32 bytes")
        if len(nonce) != NONCE_LEN:
            raise ValueError("ChaCha20 nonce must be 16 bytes")
        self._ctx = Cipher(algorithms.ChaCha20(key, nonce), mode=None).encryptor()

    def apply(self, buf: bytearray) -> None:
        buf[:] = self._ctx.update(bytes(buf))
