from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger

from nebula_edge.errors import ValidationError
from nebula_edge.inference_client import ENGINE_ERROR_TEXT
from nebula_edge.models import ConversationTurn, SessionSnapshot

Completer = Callable[[str, str], Awaitable[str]]
Listener = Callable[[SessionSnapshot], None]


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class SessionStore:
    """Owns the credential, setup flag, transcript and busy flag.

    All mutation goes through ``commit_credential``, ``reset_setup``,
    ``submit_user_message`` and ``record_assistant_reply``. A send is split in
    two phases: ``submit_user_message`` dispatches synchronously and returns a
    task; the task settles by recording exactly one assistant turn.
    """

    def __init__(self, complete: Completer):
        self._complete = complete
        self._credential = ""
        self._is_setup_complete = False
        self._turns: list[ConversationTurn] = []
        self._is_awaiting_response = False
        self._pending: asyncio.Task[str] | None = None
        self._listeners: list[Listener] = []

    @property
    def credential(self) -> str:
        return self._credential

    @property
    def is_setup_complete(self) -> bool:
        return self._is_setup_complete

    @property
    def turns(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    @property
    def is_awaiting_response(self) -> bool:
        return self._is_awaiting_response

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            is_setup_complete=self._is_setup_complete,
            turns=tuple(self._turns),
            is_awaiting_response=self._is_awaiting_response,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every transition.

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def commit_credential(self, value: str) -> None:
        if not value:
            raise ValidationError("credential required")
        self._credential = value
        self._is_setup_complete = True
        logger.info("Credential committed; setup complete")
        self._notify()

    def reset_setup(self) -> None:
        self._is_setup_complete = False
        logger.info("Setup reset")
        self._notify()

    def submit_user_message(self, text: str) -> asyncio.Task[str]:
        if not text:
            raise ValidationError("message required")
        if not self._is_setup_complete:
            raise ValidationError("setup is not complete")
        if self._is_awaiting_response:
            raise ValidationError("a response is already pending")

        loop = asyncio.get_running_loop()

        self._turns.append(ConversationTurn(role="user", content=text))
        self._is_awaiting_response = True
        logger.debug(f"User turn appended (turns={len(self._turns)})")
        self._notify()

        self._pending = loop.create_task(self._settle(text, self._credential))
        return self._pending

    def record_assistant_reply(self, content: str) -> None:
        """Settle the current cycle. A settle task still in flight for it is cancelled."""
        if not self._is_awaiting_response:
            raise ValidationError("no response is pending")
        pending, self._pending = self._pending, None
        if pending is not None and pending is not _current_task():
            pending.cancel()
        self._turns.append(ConversationTurn(role="assistant", content=content))
        self._is_awaiting_response = False
        logger.debug(f"Assistant turn appended (turns={len(self._turns)})")
        self._notify()

    async def send(self, text: str) -> str:
        return await self.submit_user_message(text)

    async def _settle(self, text: str, credential: str) -> str:
        try:
            reply = await self._complete(text, credential)
        except Exception as ex:
            logger.error(f"Completer raised instead of returning a reply: {type(ex).__name__}: {ex}")
            reply = ENGINE_ERROR_TEXT
        if self._pending is not asyncio.current_task():
            logger.warning("Dropping reply for a send cycle that was already settled")
            return reply
        self.record_assistant_reply(reply)
        return reply

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as ex:
                logger.warning(f"Session listener failed: {ex}")
