from __future__ import annotations

from nebula_edge.models import ConversationTurn

_FEATURES = ("Create Image", "Create Video", "Brainstorm")


class TranscriptView:
    """Formats transcript and welcome lines for the terminal front end."""

    def __init__(self, *, user_prefix: str, assistant_prefix: str):
        self._user_prefix = user_prefix
        self._assistant_prefix = assistant_prefix

    def prefix_for(self, turn: ConversationTurn) -> str:
        return self._user_prefix if turn.role == "user" else self._assistant_prefix

    def format_turn(self, turn: ConversationTurn) -> str:
        prefix = self.prefix_for(turn)
        indent = "\n" + " " * len(prefix)
        return prefix + indent.join(turn.content.splitlines() or [""])

    def format_transcript(self, turns: tuple[ConversationTurn, ...]) -> list[str]:
        return [self.format_turn(t) for t in turns]

    def format_welcome_lines(self, user_name: str) -> list[str]:
        lines = [f"{self._assistant_prefix}Hello, {user_name}"]
        for feature in _FEATURES:
            lines.append(f"{self._assistant_prefix}  > {feature}")
        return lines
