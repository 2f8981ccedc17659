"""Boundary for language-model integrations."""

from __future__ import annotations

from typing import Protocol, Sequence

from mc_mission.models import ConversationTurn


class LanguageModel(Protocol):
    """Interface to the chat model that proposes the agent's next command."""

    async def send_request(
        self,
        turns: Sequence[ConversationTurn],
        system_prompt: str,
        stop_seq: str = "***",
    ) -> str:
        """Return generated text for the given turns, or raise on transport failure."""


class EchoLanguageModel:
    """Fallback model used for local CLI demos and tests.

    Replies with a fixed response when one is configured, otherwise echoes the
    most recent turn.
    """

    def __init__(self, response: str | None = None) -> None:
        self._response = response
        self.requests: list[tuple[list[ConversationTurn], str]] = []

    async def send_request(
        self,
        turns: Sequence[ConversationTurn],
        system_prompt: str,
        stop_seq: str = "***",
    ) -> str:
        self.requests.append((list(turns), system_prompt))
        if self._response is not None:
            return self._response
        if not turns:
            return ""
        return turns[-1].content
