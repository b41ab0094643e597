import asyncio
import logging

from crypto.negotiation import client_negotiate
from message import Message
from reader import Reader
from server import DEFAULT_HOST, DEFAULT_PORT
from writer import Writer

DEFAULT_CHANNEL = 1


class AsyncChannelClient:
    def __init__(self) -> None:
        self.reader: Reader | None = None
        self.writer: Writer | None = None

    async def connect(self, host: str, port: int, username: str, alg: str = "plain") -> None:
        stream_reader, stream_writer = await asyncio.open_connection(host, port)
        self.reader = Reader(stream_reader)
        self.writer = Writer(stream_writer)
        session = await client_negotiate(self.reader, self.writer, alg=alg) #handshake, получаем пару шифров
        self.reader.transform.install(session.rx)
        self.writer.install(session.tx)
        await self.writer.send(Message(0, 0, username.encode("utf-8")))

    async def send(self, payload: bytes | str, channel: int = DEFAULT_CHANNEL, typ: int = 0) -> None:
        if not self.writer:
            raise RuntimeError("Not connected")
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        await self.writer.send(Message(channel, typ, payload))

    async def recv(self, timeout: float | None = None) -> Message:
        if not self.reader:
            raise RuntimeError("Not connected")
        msg = await self.reader.recv(timeout=timeout)
        if msg is None:
            raise ConnectionResetError("Connection closed by server")
        return msg

    async def close(self) -> None:
        if self.writer:
            await self.writer.close()
            self.writer = None
            self.reader = None

async def run_cli(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, username: str = "user", alg: str = "plain") -> None:
    client = AsyncChannelClient()
    await client.connect(host, port, username, alg=alg) #тут идет handshake при вызове connect

    async def reader_task():
        try:
            while True:
                msg = await client.recv()
                print(f"\n[{msg.channel}:{msg.typ}] {msg.payload.decode('utf-8', 'replace')}", flush=True)
        except (ConnectionError, asyncio.IncompleteReadError):
            logging.info("Соединение с сервером закрыто")

    async def writer_task():
        loop = asyncio.get_running_loop()
        channel = DEFAULT_CHANNEL
        while True:
            line = await loop.run_in_executor(None, input, f"{username}@{channel} > ") #ждем пока что-то напишет человек
            if line.strip() == "":
                continue
            if line.startswith("/channel "):
                try:
                    channel = int(line.split(" ", 1)[1])
                except ValueError:
                    print("Usage: /channel <number>")
                continue
            await client.send(line, channel=channel)

    t1 = asyncio.create_task(reader_task())
    t2 = asyncio.create_task(writer_task())
    done, pending = await asyncio.wait({t1, t2}, return_when=asyncio.FIRST_COMPLETED)
    for t in pending:
        t.cancel()
    await client.close()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    username = input("Enter your Username: ")
    asyncio.run(run_cli(username=username, alg="dh"))
