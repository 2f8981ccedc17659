"""Classifies the latest user utterance into an intent via the language model."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence
from uuid import uuid4

from pydantic import BaseModel, ValidationError, field_validator

from mc_mission.adapters.language_model import LanguageModel
from mc_mission.models import ConversationTurn, Intent, IntentType

logger = logging.getLogger("mc_mission.planning.classifier")

CLASSIFIER_PROMPT = (
    "You are an intent analyzer for a Minecraft AI agent. Analyze the given input and determine "
    "the user's intent.\n"
    "Categorize the intent into one of these types: "
    + ", ".join(intent_type.value for intent_type in IntentType)
    + ".\nProvide JSON with fields: type, subtype. Only return JSON."
)

_DECODER = json.JSONDecoder()


class IntentPayload(BaseModel):
    type: IntentType
    subtype: str = "unknown"

    @field_validator("type", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("subtype", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        if value is None:
            return "unknown"
        return str(value).strip() or "unknown"


def extract_json_object(raw: str) -> dict[str, Any] | None:
    """Return the first well-formed JSON object embedded in ``raw``."""
    index = raw.find("{")
    while index != -1:
        try:
            value, _ = _DECODER.raw_decode(raw, index)
        except json.JSONDecodeError:
            index = raw.find("{", index + 1)
            continue
        if isinstance(value, dict):
            return value
        index = raw.find("{", index + 1)
    return None


def latest_user_message(turns: Sequence[ConversationTurn]) -> str | None:
    for turn in reversed(turns):
        if turn.role == "user" and turn.content and turn.content.strip():
            return turn.content
    return None


class IntentClassifier:
    """Single-shot intent classification with a GENERAL fallback."""

    def __init__(self, model: LanguageModel, *, stop_sequence: str = "***") -> None:
        self._model = model
        self._stop_sequence = stop_sequence

    async def classify(self, turns: Sequence[ConversationTurn], system_prompt: str = "") -> Intent | None:
        user_input = latest_user_message(turns)
        if user_input is None:
            return None

        payload = await self._analyze(user_input)
        intent = Intent(
            id=f"intent_{uuid4().hex}",
            source="user",
            input=user_input,
            type=payload.type,
            subtype=payload.subtype,
        )
        logger.info("intent_classified", extra={"intent_type": intent.type.value, "subtype": intent.subtype})
        return intent

    async def _analyze(self, user_input: str) -> IntentPayload:
        fallback = IntentPayload(type=IntentType.GENERAL, subtype="unknown")
        try:
            raw = await self._model.send_request(
                [ConversationTurn(role="user", content=user_input)],
                CLASSIFIER_PROMPT,
                self._stop_sequence,
            )
        except Exception:  # noqa: BLE001 - classification degrades to GENERAL.
            logger.warning("intent_request_failed", exc_info=True)
            return fallback

        data = extract_json_object(raw or "")
        if data is None:
            logger.warning("intent_unparseable", extra={"raw": (raw or "")[:200]})
            return fallback
        try:
            return IntentPayload.model_validate(data)
        except ValidationError as exc:
            logger.warning("intent_invalid", extra={"errors": exc.error_count()})
            return fallback
