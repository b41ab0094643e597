# smc/crypto/dh_modp.py
import secrets
from typing import NamedTuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from crypto.base import Transform
from crypto.stream import KEY_LEN, ChaCha20Transform

#Выбираем большой простой модуль для построения кольца (RFC 3526, группа 14)
P_HEX = (
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
    "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE65381"
    "FFFFFFFFFFFFFFFF"
)
P = int(P_HEX, 16)

G = 2 #генератор
BLEN = (P.bit_length() + 7) // 8 #размер в байтах округленный вверх для ключей
INFO = b"MODP-2048-CHACHA20-SMC"


class Session(NamedTuple):
    """Пара преобразований на соединение: rx для Reader, tx для Writer."""
    rx: Transform
    tx: Transform


def _i2b(x: int) -> bytes:
    return x.to_bytes(BLEN, "big")


def _hkdf(shared: bytes, info: bytes, length: int = 2 * KEY_LEN) -> bytes:
    """HKDF (extract-then-expand): из общего секрета DH получаем ключевой материал
    нужной длины. info - дополнительная открытая информация (алгоритм и публичные ключи)."""
    return HKDF(algorithm=hashes.SHA256(), length=length, salt=None, info=info).derive(shared)


def rand_secret() -> int:
    """Секретный показатель на своей стороне."""
    return secrets.randbelow(P - 2) + 2


def gen_pub(secret: int) -> bytes:
    """Публичный ключ: G^secret mod P."""
    return _i2b(pow(G, secret, P))


def _derive(secret: int, peer_pub_bytes: bytes, client_pub_bytes: bytes, server_pub_bytes: bytes) -> tuple[bytes, bytes]:
    peer = int.from_bytes(peer_pub_bytes, "big")
    if not (1 < peer < P - 1):
        raise ValueError("Invalid peer public")
    s = pow(peer, secret, P) # общий секрет
    material = _hkdf(_i2b(s), INFO + client_pub_bytes + server_pub_bytes)
    # первые 32 байта - ключ клиент->сервер, вторые - сервер->клиент
    return material[:KEY_LEN], material[KEY_LEN:]


def derive_as_client(a: int, server_pub_bytes: bytes, client_pub_bytes: bytes) -> Session:
    c2s, s2c = _derive(a, server_pub_bytes, client_pub_bytes, server_pub_bytes)
    return Session(rx=ChaCha20Transform(s2c), tx=ChaCha20Transform(c2s))


def derive_as_server(b: int, client_pub_bytes: bytes, server_pub_bytes: bytes) -> Session:
    c2s, s2c = _derive(b, client_pub_bytes, client_pub_bytes, server_pub_bytes)
    return Session(rx=ChaCha20Transform(c2s), tx=ChaCha20Transform(s2c))
