from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session handed to subscribers. Never holds the credential."""

    is_setup_complete: bool
    turns: tuple[ConversationTurn, ...]
    is_awaiting_response: bool
