from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


def snowflake_key(message_id: str) -> Tuple[int, int, str]:
    """
    Sort key for Discord message ids.

    Snowflakes are decimal strings; compare them numerically. Anything
    non-numeric sorts after every snowflake, by plain string order.
    """
    if message_id.isdigit():
        return (0, int(message_id), "")
    return (1, 0, message_id)


def is_newer(message_id: str, last_seen_id: Optional[str]) -> bool:
    if last_seen_id is None:
        return True
    return snowflake_key(message_id) > snowflake_key(last_seen_id)


@dataclass(frozen=True)
class DiscordAuthor:
    id: str
    username: str

    @classmethod
    def from_payload(cls, payload: Any) -> "DiscordAuthor":
        if not isinstance(payload, dict):
            return cls(id="", username="unknown")
        return cls(
            id=str(payload.get("id") or ""),
            username=payload.get("username") or "unknown",
        )


@dataclass(frozen=True)
class DiscordMessage:
    """
    A single message from the channel messages endpoint.

    Only the fields the client renders are lifted out of the payload;
    the decoded JSON is kept on `raw` for debug logging.
    """

    id: str
    content: str
    author: DiscordAuthor
    timestamp: str
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "DiscordMessage":
        if not isinstance(payload, dict):
            raise ValueError("message payload must be an object")

        message_id = payload.get("id")
        if message_id is None or message_id == "":
            raise ValueError("message payload is missing 'id'")

        return cls(
            id=str(message_id),
            content=payload.get("content") or "",
            author=DiscordAuthor.from_payload(payload.get("author")),
            timestamp=payload.get("timestamp") or "",
            raw=payload,
        )

    def format_line(self) -> str:
        return f"[{self.timestamp}] {self.author.username}: {self.content}"

    def to_event(self, channel_id: Optional[str] = None) -> Dict[str, Any]:
        return {
            "platform": "discord",
            "type": "chat_message",
            "channel_id": channel_id or self.raw.get("channel_id"),
            "user": {
                "id": self.author.id or None,
                "name": self.author.username,
            },
            "message_id": self.id,
            "text": self.content,
            "timestamp": self.timestamp or None,
            "raw": self.raw,
        }
