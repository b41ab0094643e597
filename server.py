# smc/server.py
import asyncio
import logging
from typing import Dict

from crypto.negotiation import server_negotiate
from message import Message
from reader import Reader
from writer import Writer

BROADCAST_TIMEOUT = 1.0
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 1234


class ChannelServer:
    """Ретранслятор: каждое сообщение клиента уходит всем остальным клиентам
    с тем же каналом и типом, нагрузка дополняется именем отправителя."""

    def __init__(self) -> None:
        self.clients: Dict[Writer, str] = {}
        self._server: asyncio.Server | None = None

    async def start(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> asyncio.Server:
        self._server = await asyncio.start_server(self._handle_client, host, port)
        return self._server

    async def _broadcast(self, message: Message, sender: Writer) -> None:
        """Рассылка сообщения всем клиентам, кроме отправителя.

        Клиенты, которым не удалось отправить за BROADCAST_TIMEOUT, отключаются.
        """
        targets = [w for w in list(self.clients.keys()) if w is not sender]
        async def send_one(w: Writer) -> bool:
            try:
                await asyncio.wait_for(w.send(message), timeout=BROADCAST_TIMEOUT)
                return True
            except (asyncio.TimeoutError, ConnectionError, OSError):
                return False
        results = await asyncio.gather(*(send_one(w) for w in targets)) # распараллеливаем отправку сообщений
        for w, ok in zip(targets, results):
            if not ok: #если кому-то отправка не удалась, то отключаем его
                logging.warning("Не удалось отправить сообщение клиенту %s, отключаем", self.clients.get(w))
                self.clients.pop(w, None)
                await w.close()

    async def _handle_client(self, stream_reader: asyncio.StreamReader, stream_writer: asyncio.StreamWriter) -> None:
        """Обработка подключения клиента: рукопожатие, имя, затем ретрансляция.

        Передается в asyncio.start_server в качестве callback метода.
        """
        reader = Reader(stream_reader)
        writer = Writer(stream_writer)

        try:
            session = await server_negotiate(reader, writer)
            reader.transform.install(session.rx)
            writer.install(session.tx)
            hello = await reader.recv()
            if hello is None:
                raise RuntimeError("Connection closed before username")
            username = hello.payload.decode("utf-8")
        except (ValueError, RuntimeError, OSError, asyncio.IncompleteReadError) as e:
            logging.error("ОШИБКА: рукопожатие не удалось: %r", e)
            await writer.close()
            return

        self.clients[writer] = username
        try:
            async for msg in reader:
                logging.info("Получено сообщение от %s: канал %d, тип %d", username, msg.channel, msg.typ)
                out = Message(msg.channel, msg.typ, f"{username} > ".encode("utf-8") + msg.payload)
                await self._broadcast(out, writer)
        except (asyncio.IncompleteReadError, ConnectionError, OSError):
            logging.error("ОШИБКА: Потеряно соединение с клиентом %s", username)
        except ValueError:
            logging.exception("Клиент %s прислал некорректное сообщение", username)
        except Exception:
            logging.exception("Произошла ошибка в обработке клиента %s. ", username)
        finally:
            self.clients.pop(writer, None)
            logging.info("Клиент %s отключился", username)
            await writer.close()


async def amain(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    server = ChannelServer()
    srv = await server.start(host, port)
    async with srv:
        await srv.serve_forever()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(amain())
