import asyncio
import inspect
import os
import sys
import threading
from typing import Any, Callable, Optional

import httpx

from services.discord.api.messages import DiscordMessagesClient
from shared.logging.logger import get_logger

log = get_logger("discord.send_worker")

DEFAULT_PROMPT = "Enter message: "


def console_readline(prompt: str) -> str:
    """
    Blocking line reader for the console.

    Terminals go through input() for line editing. Pipes and files are
    read byte by byte straight from the descriptor so a reader parked on
    a daemon thread never holds the stdin buffer lock at interpreter exit.
    """
    if sys.stdin is None:
        raise EOFError
    if sys.stdin.isatty():
        return input(prompt)

    sys.stdout.write(prompt)
    sys.stdout.flush()

    fd = sys.stdin.fileno()
    chunks = []
    while True:
        byte = os.read(fd, 1)
        if not byte:
            if not chunks:
                raise EOFError
            break
        if byte == b"\n":
            break
        chunks.append(byte)

    return b"".join(chunks).decode(sys.stdin.encoding or "utf-8", errors="replace")


async def read_console(read_line: Callable[[str], Any], prompt: str) -> str:
    """
    Read one line without blocking the event loop.

    Blocking readers run on a daemon thread so a pending input() never
    holds up interpreter exit. Coroutine readers are awaited directly.
    """
    if inspect.iscoroutinefunction(read_line):
        return await read_line(prompt)

    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def _resolve(result=None, error=None) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def _worker() -> None:
        try:
            result = read_line(prompt)
        except Exception as e:
            callback = (_resolve, None, e)
        else:
            callback = (_resolve, result, None)
        try:
            loop.call_soon_threadsafe(*callback)
        except RuntimeError:
            # loop already closed
            pass

    threading.Thread(target=_worker, name="console-reader", daemon=True).start()
    return await future


class MessageSender:
    """
    Reads one console line and posts it to the channel.

    Failed sends are reported and dropped.
    """

    def __init__(
        self,
        client: DiscordMessagesClient,
        *,
        read_line: Callable[[str], Any] = console_readline,
        out: Callable[[str], None] = print,
        prompt: str = DEFAULT_PROMPT,
    ):
        self.client = client
        self._read_line = read_line
        self._out = out
        self.prompt = prompt

    async def send_once(self) -> Optional[bool]:
        text = (await read_console(self._read_line, self.prompt)).strip()
        if not text:
            return None

        try:
            response = await self.client.create_message(text)
        except asyncio.CancelledError:
            raise
        except httpx.HTTPError as e:
            self._out(f"Error sending message: {e}")
            log.debug(f"[Discord][{self.client.channel_id}] send failed: {e}")
            return False

        if not response.is_success:
            self._out(f"Error: {response.status_code} {response.reason_phrase}")
            log.debug(
                f"[Discord][{self.client.channel_id}] Send failed [{response.status_code}]"
            )
            return False

        self._out("Message sent successfully!")
        return True
