from __future__ import annotations

import getpass
from collections.abc import Callable

from loguru import logger

from nebula_edge.commands.router import CommandRouter
from nebula_edge.errors import ValidationError
from nebula_edge.services.transcript_view import TranscriptView
from nebula_edge.session_store import SessionStore
from nebula_edge.spinner import BusyIndicator, Spinner


class ChatApp:
    """Terminal front end: a setup screen followed by the chat screen."""

    _LINE_PREFIX = "nebula> "
    _USER_PROMPT = "you> "
    _SECRET_PROMPT = "API key (sk-ant-...)> "

    def __init__(
        self,
        store: SessionStore,
        *,
        user_name: str = "there",
        prefill_credential: str | None = None,
        read_line: Callable[[str], str] = input,
        read_secret: Callable[[str], str] = getpass.getpass,
        write: Callable[[str], None] = print,
        spinner: Spinner | None = None,
    ):
        self._store = store
        self._user_name = user_name
        self._prefill_credential = prefill_credential
        self._read_line = read_line
        self._read_secret = read_secret
        self._write = write
        self._spinner = spinner or Spinner(prefix=self._LINE_PREFIX)

        self._view = TranscriptView(user_prefix=self._USER_PROMPT, assistant_prefix=self._LINE_PREFIX)
        self._command_router = CommandRouter(
            on_help=self._on_help,
            on_setup=self._on_setup,
            on_history=self._on_history,
            on_unknown=self._on_unknown_command,
        )

    async def run(self) -> None:
        unsubscribe = self._store.subscribe(BusyIndicator(self._spinner))
        try:
            await self._loop()
        finally:
            unsubscribe()
            self._spinner.stop()

    async def _loop(self) -> None:
        while True:
            if not self._store.is_setup_complete:
                if not self._run_setup():
                    return
                self._print_chat_header()

            try:
                user_input = self._read_line(self._USER_PROMPT)
            except (EOFError, KeyboardInterrupt):
                return

            trimmed = user_input.strip()

            if trimmed in ("exit", "quit"):
                return

            if not trimmed:
                continue

            if self._command_router.try_handle(trimmed):
                continue

            await self._send(trimmed)

    def _run_setup(self) -> bool:
        """Collect a credential. Returns False when input is closed."""
        if self._prefill_credential:
            credential, self._prefill_credential = self._prefill_credential, None
            self._store.commit_credential(credential)
            self._write(f"{self._LINE_PREFIX}Using API key from NEBULA_API_KEY")
            return True

        self._write("")
        self._write("NEBULA EDGE")
        self._write("Enter your Claude API Key")
        while True:
            try:
                value = self._read_secret(self._SECRET_PROMPT)
            except (EOFError, KeyboardInterrupt):
                return False
            try:
                self._store.commit_credential(value.strip())
                return True
            except ValidationError:
                self._write("Required: Please enter an API key")

    def _print_chat_header(self) -> None:
        self._write("")
        self._write("NEBULA (type 'exit' to quit, '/help' for commands)")
        if self._store.turns:
            for line in self._view.format_transcript(self._store.turns):
                self._write(line)
        else:
            for line in self._view.format_welcome_lines(self._user_name):
                self._write(line)
        self._write("")

    async def _send(self, text: str) -> None:
        try:
            await self._store.send(text)
        except ValidationError as ex:
            logger.debug(f"Send rejected: {ex}")
            self._write(f"{self._LINE_PREFIX}Cannot send: {ex}")
            return
        self._write(self._view.format_turn(self._store.turns[-1]))
        self._write("")

    def _on_help(self) -> None:
        self._write(f"{self._LINE_PREFIX}Commands:")
        self._write(f"{self._LINE_PREFIX}/help     show this help")
        self._write(f"{self._LINE_PREFIX}/setup    return to API key setup")
        self._write(f"{self._LINE_PREFIX}/history  show the conversation so far")
        self._write(f"{self._LINE_PREFIX}exit      quit")

    def _on_setup(self) -> None:
        self._store.reset_setup()

    def _on_history(self) -> None:
        turns = self._store.turns
        if not turns:
            self._write(f"{self._LINE_PREFIX}No messages yet.")
            return
        for line in self._view.format_transcript(turns):
            self._write(line)

    def _on_unknown_command(self, command: str) -> None:
        self._write(f"{self._LINE_PREFIX}Unknown command: {command}. Type /help for commands.")
