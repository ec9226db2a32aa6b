import asyncio
import os
import signal
from typing import Any, Awaitable, Callable, Optional

import httpx
from dotenv import find_dotenv, load_dotenv

from core.context import ChatContext
from services.discord.api.messages import API_BASE, DiscordMessagesClient
from services.discord.workers.poll_worker import MessagePoller
from services.discord.workers.send_worker import (
    MessageSender,
    console_readline,
    read_console,
)
from shared.config.credentials import ConfigError, load_config
from shared.logging.logger import get_logger

log = get_logger("core.app")

CHANNEL_PROMPT = "Enter channel ID: "


def _env(key: str) -> str:
    return os.getenv(key, "").strip()


async def _until_stopped(awaitable: Awaitable, stop_event: asyncio.Event) -> bool:
    """
    Await `awaitable` unless `stop_event` fires first.

    Returns False when interrupted by the stop event. Exceptions from the
    awaitable propagate.
    """
    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(stop_event.wait())

    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if not task.done():
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return False

    task.result()
    return True


async def main(
    ctx: ChatContext,
    stop_event: Optional[asyncio.Event] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    read_line: Callable[[str], Any] = console_readline,
    out: Callable[[str], None] = print,
) -> int:
    stop_event = stop_event or asyncio.Event()

    # --------------------------------------------------
    # ENV + CREDENTIAL
    # --------------------------------------------------
    load_dotenv(find_dotenv(usecwd=True))

    try:
        config = load_config(ctx.config_path or _env("CHANNELCHAT_CONFIG") or None)
    except ConfigError as e:
        out(f"Error loading config: {e}")
        return 1

    # --------------------------------------------------
    # CHANNEL
    # --------------------------------------------------
    channel_id = ctx.channel_id or _env("DISCORD_CHANNEL_ID")
    if not channel_id:
        try:
            channel_id = (await read_console(read_line, CHANNEL_PROMPT)).strip()
        except EOFError:
            channel_id = ""

    if not channel_id:
        out("Error: a channel ID is required")
        return 1

    # --------------------------------------------------
    # WORKERS
    # --------------------------------------------------
    handoff = asyncio.Queue(maxsize=1) if ctx.lockstep else None

    async with DiscordMessagesClient(
        token=config.token,
        channel_id=channel_id,
        base_url=_env("CHANNELCHAT_API_BASE") or API_BASE,
        transport=transport,
    ) as client:
        poller = MessagePoller(
            client,
            poll_interval=ctx.poll_interval,
            signal=handoff,
            out=out,
        )
        sender = MessageSender(client, read_line=read_line, out=out)

        crashed = []

        def _on_poller_done(task: asyncio.Task) -> None:
            if task.cancelled():
                return
            error = task.exception()
            if error is not None:
                log.error(f"[Discord][{channel_id}] Poller crashed: {error!r}")
                crashed.append(error)
                stop_event.set()

        poll_task = asyncio.create_task(poller.run())
        poll_task.add_done_callback(_on_poller_done)

        log.info(
            f"[Discord][{channel_id}] Chat started "
            f"(lockstep={'on' if handoff else 'off'})"
        )

        # --------------------------------------------------
        # SEND LOOP
        # --------------------------------------------------
        try:
            while not stop_event.is_set():
                if not await _until_stopped(sender.send_once(), stop_event):
                    break
                if handoff is not None:
                    if not await _until_stopped(handoff.get(), stop_event):
                        break
        except EOFError:
            log.info("Console input closed, shutting down")
        finally:
            poller.stop()
            poll_task.cancel()
            await asyncio.gather(poll_task, return_exceptions=True)

    if crashed:
        log.error("Chat stopped after a poller failure")
        return 1

    log.info("Chat stopped")
    return 0


# ----------------------------------------------------------------------
# SIGNAL HANDLING (WINDOWS-SAFE)
# ----------------------------------------------------------------------

def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    stop_event: asyncio.Event,
):
    """
    Windows-safe Ctrl+C handler.
    Uses signal.signal + asyncio.Event to unwind cleanly.
    """

    def _handler(signum, frame):
        try:
            loop.call_soon_threadsafe(stop_event.set)
        except RuntimeError:
            stop_event.set()

    try:
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except (ValueError, OSError):
        log.debug("Signal handlers unavailable; relying on KeyboardInterrupt")


# ----------------------------------------------------------------------
# ENTRYPOINT
# ----------------------------------------------------------------------

def run(ctx: ChatContext) -> int:
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    stop_event = asyncio.Event()
    _install_signal_handlers(loop, stop_event)

    exit_code = 0
    try:
        exit_code = loop.run_until_complete(main(ctx, stop_event))

    except KeyboardInterrupt:
        log.info("KeyboardInterrupt received — shutdown initiated")

    finally:
        # --------------------------------------------------
        # CANCEL REMAINING TASKS (CLEANLY)
        # --------------------------------------------------
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()

        if pending:
            loop.run_until_complete(
                asyncio.gather(*pending, return_exceptions=True)
            )

        loop.run_until_complete(loop.shutdown_asyncgens())

        asyncio.set_event_loop(None)
        loop.close()

    return exit_code
