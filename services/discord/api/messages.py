"""Discord channel messages REST client (list + create)."""

from __future__ import annotations

from typing import List, Optional

import httpx

from services.discord.models.message import DiscordMessage
from shared.logging.logger import get_logger

log = get_logger("discord.api.messages")

API_BASE = "https://discord.com/api/v9"


class DiscordAPIError(RuntimeError):
    """Raised for non-success responses from the messages endpoint."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"unexpected status code: {status_code} {reason}".rstrip())


class DiscordMessagesClient:
    """
    Thin async client over the two channel message endpoints.

    Responsibilities:
    - Attach the static credential to every request
    - List messages newer than a given id
    - Create a message from plain text
    """

    def __init__(
        self,
        *,
        token: str,
        channel_id: str,
        base_url: str = API_BASE,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not token:
            raise RuntimeError("Discord token is required")
        if not channel_id:
            raise RuntimeError("Discord channel_id is required")

        self.channel_id = channel_id
        self._path = f"/channels/{channel_id}/messages"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": token,
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DiscordMessagesClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #

    async def list_messages(
        self,
        *,
        after: Optional[str] = None,
        limit: int = 1,
    ) -> List[DiscordMessage]:
        params = {"limit": limit}
        if after:
            params["after"] = after

        response = await self._client.get(self._path, params=params)
        if not response.is_success:
            raise DiscordAPIError(response.status_code, response.reason_phrase)

        try:
            data = response.json()
        except ValueError as e:
            raise DiscordAPIError(response.status_code, f"invalid JSON body ({e})") from e

        if not isinstance(data, list):
            raise DiscordAPIError(response.status_code, "expected a JSON array")

        messages: List[DiscordMessage] = []
        for item in data:
            try:
                messages.append(DiscordMessage.from_payload(item))
            except ValueError as e:
                log.debug(f"[Discord][{self.channel_id}] skipping message: {e}")

        return messages

    async def create_message(self, content: str) -> httpx.Response:
        response = await self._client.post(self._path, json={"content": content})
        log.debug(
            f"[Discord][{self.channel_id}] create_message -> {response.status_code}"
        )
        return response
