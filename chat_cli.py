"""
======================================================================
 ChannelChat — Version v0.1.0 (Build 2026.10)
 Owner: Daniel Clancy
 Copyright © 2026 Brainstream Media Group
======================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from dotenv import find_dotenv, load_dotenv

# .env must be applied before any module builds its logger
load_dotenv(find_dotenv(usecwd=True))

from core.app import run  # noqa: E402
from core.context import ChatContext  # noqa: E402
from runtime.version import as_string  # noqa: E402


def _positive_float(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {raw!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chat in a single Discord channel from the terminal"
    )
    parser.add_argument(
        "--config",
        help="Path to the credential file (default: config.json or $CHANNELCHAT_CONFIG)",
    )
    parser.add_argument(
        "--channel",
        help="Channel ID (default: $DISCORD_CHANNEL_ID, otherwise prompted)",
    )
    parser.add_argument(
        "--poll-interval",
        type=_positive_float,
        default=1.0,
        help="Seconds between polls (default: 1.0)",
    )
    parser.add_argument(
        "--lockstep",
        action="store_true",
        help="Wait for an incoming message after every send",
    )
    parser.add_argument("--version", action="version", version=as_string())
    return parser


def parse_context(argv: Optional[Sequence[str]] = None) -> ChatContext:
    args = build_parser().parse_args(argv)
    return ChatContext(
        config_path=args.config,
        channel_id=args.channel,
        poll_interval=args.poll_interval,
        lockstep=args.lockstep,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    return run(parse_context(argv))


if __name__ == "__main__":
    sys.exit(main())
