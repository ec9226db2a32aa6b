from dataclasses import dataclass
from typing import Optional


@dataclass
class ChatContext:
    # -------------------------------------------------
    # STARTUP INPUTS
    # -------------------------------------------------
    config_path: Optional[str] = None
    channel_id: Optional[str] = None

    # -------------------------------------------------
    # LOOP BEHAVIOR
    # -------------------------------------------------
    poll_interval: float = 1.0

    # Wait for an incoming message after every send
    lockstep: bool = False
