"""Repairs command syntax in model output so every invocation matches its schema."""

from __future__ import annotations

import logging
import re

from mc_mission.commands.parser import parse_invocations
from mc_mission.commands.schema import DEFAULT_REGISTRY, CommandRegistry, GameCommand

logger = logging.getLogger("mc_mission.commands")


class CommandNormalizer:
    """Rewrites recognized commands into canonical form and suppresses conversation starters."""

    def __init__(
        self,
        registry: CommandRegistry | None = None,
        *,
        start_conversation_command: str = "startConversation",
    ) -> None:
        self._registry = registry or DEFAULT_REGISTRY
        self._start_conversation_re = re.compile(r"!" + re.escape(start_conversation_command) + r"\b")

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    def parse(self, text: str) -> list[GameCommand]:
        """Return the recognized commands in ``text`` as typed, schema-conformant values."""
        commands: list[GameCommand] = []
        for invocation in parse_invocations(text, self._registry):
            spec = self._registry.get(invocation.name)
            if spec is not None:
                commands.append(invocation.to_command(spec))
        return commands

    def parse_one(self, text: str) -> GameCommand | None:
        commands = self.parse(text)
        return commands[0] if commands else None

    def normalize(self, text: str) -> str:
        if not text:
            return ""

        if self._start_conversation_re.search(text):
            logger.info("conversation_start_suppressed", extra={"chars": len(text)})
            return ""

        invocations = parse_invocations(text, self._registry)

        pieces: list[str] = []
        cursor = 0
        rewritten = 0
        for invocation in invocations:
            spec = self._registry.get(invocation.name)
            if spec is None:
                continue
            canonical = invocation.to_command(spec).render()
            original = text[invocation.start : invocation.end]
            pieces.append(text[cursor : invocation.start])
            pieces.append(canonical)
            cursor = invocation.end
            if canonical != original:
                rewritten += 1
        pieces.append(text[cursor:])

        if rewritten:
            logger.debug("commands_normalized", extra={"rewritten": rewritten})
        return "".join(pieces)
