import logging

from crypto.dh_modp import BLEN as MODP14_BLEN, Session, derive_as_client, derive_as_server, gen_pub, rand_secret
from crypto.plain import PlainTransform
from message import Message
from reader import Reader
from writer import Writer

# рукопожатие идёт открытым текстом по каналу 0, тип 0
HANDSHAKE_CHANNEL = 0
HANDSHAKE_TYPE = 0

ALG_PLAIN = b"ALG:PLAIN"
ALG_DHMP14 = b"ALG:DHMP14"
ALG_DHMP14R = b"ALG:DHMP14R"


def plain_session() -> Session:
    return Session(PlainTransform(), PlainTransform())


async def _send(writer: Writer, payload: bytes) -> None:
    await writer.send(Message(HANDSHAKE_CHANNEL, HANDSHAKE_TYPE, payload))


async def _recv(reader: Reader) -> bytes:
    msg = await reader.recv()
    if msg is None:
        raise RuntimeError("Handshake failed: connection closed")
    if (msg.channel, msg.typ) != (HANDSHAKE_CHANNEL, HANDSHAKE_TYPE):
        raise RuntimeError("Handshake failed: unexpected message")
    return msg.payload


async def client_negotiate(reader: Reader, writer: Writer, alg: str = "plain") -> Session:
    a = alg.lower()
    if a == "plain":
        await _send(writer, ALG_PLAIN)
        return plain_session()

    if a in ("dh", "dh_modp", "modp14", "dh14"):
        x = rand_secret() #секретный ключ на стороне клиента
        A = gen_pub(x) #публичный ключ
        logging.info("Отправляем публичный ключ на сервер: %s", A.hex())
        await _send(writer, ALG_DHMP14 + A)

        logging.info("Ожидаем ответ сервера.")
        resp = await _recv(reader)
        logging.info("Ответ от сервера получен.")

        # ответ = правильный заголовок + публичный ключ сервера нужной длины
        if not (len(resp) == len(ALG_DHMP14R) + MODP14_BLEN and resp.startswith(ALG_DHMP14R)):
            raise RuntimeError("Handshake failed")
        B = resp[len(ALG_DHMP14R):]
        return derive_as_client(x, B, A)

    raise ValueError("Unknown algorithm")


async def server_negotiate(reader: Reader, writer: Writer) -> Session:
    hello = await _recv(reader)
    logging.info("Клиент начинает рукопожатие: %s", hello[:len(ALG_DHMP14)])

    if hello == ALG_PLAIN:
        return plain_session()

    if hello.startswith(ALG_DHMP14) and len(hello) == len(ALG_DHMP14) + MODP14_BLEN:
        client_pub = hello[len(ALG_DHMP14):] #Получаем публичный ключ клиента
        y = rand_secret() #секретный ключ на стороне сервера
        B = gen_pub(y)
        logging.info("Отправляем свой публичный ключ клиенту: %s", B.hex())
        await _send(writer, ALG_DHMP14R + B)
        return derive_as_server(y, client_pub, B)

    raise ValueError("Unknown algorithm")
