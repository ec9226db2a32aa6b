import asyncio
from typing import Callable, List, Optional

import httpx

from services.discord.api.messages import DiscordAPIError, DiscordMessagesClient
from services.discord.models.message import DiscordMessage, is_newer, snowflake_key
from shared.logging.logger import get_logger

log = get_logger("discord.poll_worker")


class MessagePoller:
    """
    Polling worker for a single Discord channel.

    Responsibilities:
    - Ask for messages newer than the last one seen
    - Print each new message once
    - Hand a signal to the send loop whenever something new arrived
    - Keep polling through errors at a fixed interval
    """

    def __init__(
        self,
        client: DiscordMessagesClient,
        *,
        poll_interval: float = 1.0,
        signal: Optional[asyncio.Queue] = None,
        last_seen_id: Optional[str] = None,
        out: Callable[[str], None] = print,
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self.client = client
        self.poll_interval = poll_interval
        self.last_seen_id = last_seen_id
        self._signal = signal
        self._out = out
        self._stop_event = asyncio.Event()

    # ------------------------------------------------------------------ #

    async def poll_once(self) -> List[DiscordMessage]:
        try:
            messages = await self.client.list_messages(after=self.last_seen_id)
        except asyncio.CancelledError:
            raise
        except (httpx.HTTPError, DiscordAPIError) as e:
            log.warning(
                f"[Discord][{self.client.channel_id}] Error retrieving messages: {e}"
            )
            return []

        fresh = sorted(
            (m for m in messages if is_newer(m.id, self.last_seen_id)),
            key=lambda m: snowflake_key(m.id),
        )

        for message in fresh:
            self._out(message.format_line())
            log.debug(f"[Discord] event: {message.to_event(self.client.channel_id)}")
            self.last_seen_id = message.id

        return fresh

    async def run(self) -> None:
        self._stop_event.clear()

        log.info(
            f"[Discord][{self.client.channel_id}] Polling started "
            f"(interval={self.poll_interval}s)"
        )

        while not self._stop_event.is_set():
            fresh = await self.poll_once()

            if fresh and self._signal is not None:
                await self._signal.put(None)

            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.poll_interval,
                )
            except asyncio.TimeoutError:
                pass

        log.info(f"[Discord][{self.client.channel_id}] Polling stopped")

    def stop(self) -> None:
        self._stop_event.set()
