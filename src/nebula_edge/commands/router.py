from __future__ import annotations

from collections.abc import Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], None],
        on_setup: Callable[[], None],
        on_history: Callable[[], None],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_setup = on_setup
        self._on_history = on_history
        self._on_unknown = on_unknown

    def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        if trimmed == "/help":
            self._on_help()
            return True
        if trimmed == "/setup":
            self._on_setup()
            return True
        if trimmed == "/history":
            self._on_history()
            return True

        self._on_unknown(trimmed)
        return True
