"""Unit tests for the message sender."""
import json
import os
import sys

import httpx
import pytest

from services.discord.api.messages import DiscordMessagesClient
from services.discord.workers.send_worker import (
    MessageSender,
    console_readline,
    read_console,
)


def _client(handler):
    return DiscordMessagesClient(
        token="secret-token",
        channel_id="42",
        transport=httpx.MockTransport(handler),
    )


class TestSendOnce:
    """Tests for MessageSender.send_once."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("line", ["", "   ", "\t\n"])
    async def test_blank_line_makes_no_request(self, make_handler, scripted_input, line):
        handler = make_handler()
        printed = []
        async with _client(handler) as client:
            sender = MessageSender(
                client, read_line=scripted_input([line]), out=printed.append
            )
            assert await sender.send_once() is None

        assert handler.requests == []
        assert printed == []

    @pytest.mark.asyncio
    async def test_success_is_reported(self, make_handler, scripted_input):
        handler = make_handler()
        read_line = scripted_input(["  hello there \n"])
        printed = []
        async with _client(handler) as client:
            sender = MessageSender(client, read_line=read_line, out=printed.append)
            assert await sender.send_once() is True

        assert json.loads(handler.posts[0].content) == {"content": "hello there"}
        assert printed == ["Message sent successfully!"]
        assert read_line.prompts == ["Enter message: "]

    @pytest.mark.asyncio
    async def test_non_success_status_is_reported(self, make_handler, scripted_input):
        handler = make_handler(post=lambda request: httpx.Response(403))
        printed = []
        async with _client(handler) as client:
            sender = MessageSender(
                client, read_line=scripted_input(["hello"]), out=printed.append
            )
            assert await sender.send_once() is False

        assert printed == ["Error: 403 Forbidden"]
        assert len(handler.posts) == 1

    @pytest.mark.asyncio
    async def test_transport_error_is_reported(self, scripted_input):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        printed = []
        async with _client(handler) as client:
            sender = MessageSender(
                client, read_line=scripted_input(["hello"]), out=printed.append
            )
            assert await sender.send_once() is False

        assert printed == ["Error sending message: connection refused"]

    @pytest.mark.asyncio
    async def test_eof_propagates(self, make_handler, scripted_input):
        async with _client(make_handler()) as client:
            sender = MessageSender(client, read_line=scripted_input([]))
            with pytest.raises(EOFError):
                await sender.send_once()


class TestReadConsole:
    """Tests for read_console with blocking readers."""

    @pytest.mark.asyncio
    async def test_blocking_reader(self):
        prompts = []

        def read_line(prompt):
            prompts.append(prompt)
            return "typed"

        assert await read_console(read_line, "> ") == "typed"
        assert prompts == ["> "]

    @pytest.mark.asyncio
    async def test_blocking_reader_eof(self):
        def read_line(prompt):
            raise EOFError

        with pytest.raises(EOFError):
            await read_console(read_line, "> ")


class TestConsoleReadline:
    """Tests for console_readline on piped stdin."""

    @pytest.fixture
    def piped_stdin(self, monkeypatch):
        read_fd, write_fd = os.pipe()
        stdin = open(read_fd, "r", encoding="utf-8")
        monkeypatch.setattr(sys, "stdin", stdin)
        try:
            yield write_fd
        finally:
            stdin.close()

    def test_reads_lines_from_descriptor(self, piped_stdin, capsys):
        os.write(piped_stdin, "héllo\nrest".encode("utf-8"))
        os.close(piped_stdin)

        assert console_readline("> ") == "héllo"
        assert console_readline("> ") == "rest"
        with pytest.raises(EOFError):
            console_readline("> ")

        assert capsys.readouterr().out == "> > > "

    def test_leaves_text_buffer_untouched(self, piped_stdin):
        os.write(piped_stdin, b"one\ntwo\n")
        os.close(piped_stdin)

        assert console_readline("") == "one"
        # the second line is still on the descriptor, not in a Python buffer
        assert console_readline("") == "two"

    def test_missing_stdin_is_eof(self, monkeypatch):
        monkeypatch.setattr(sys, "stdin", None)
        with pytest.raises(EOFError):
            console_readline("> ")
