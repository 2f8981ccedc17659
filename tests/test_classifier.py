from __future__ import annotations

import asyncio

import pytest

from mc_mission.adapters import EchoLanguageModel
from mc_mission.models import ConversationTurn, IntentType
from mc_mission.planning import IntentClassifier
from mc_mission.planning.classifier import CLASSIFIER_PROMPT, extract_json_object


class FailingModel:
    def __init__(self) -> None:
        self.calls = 0

    async def send_request(self, turns, system_prompt, stop_seq="***"):
        self.calls += 1
        raise ConnectionError("model offline")


def _turns(*contents: str) -> list[ConversationTurn]:
    return [ConversationTurn(role="user", content=content) for content in contents]


def test_classifier_reads_json_from_chatty_reply() -> None:
    model = EchoLanguageModel('Sure! ```json\n{"type": "craft", "subtype": "tools"}\n``` hope that helps')
    classifier = IntentClassifier(model)

    intent = asyncio.run(classifier.classify(_turns("make an iron axe"), "system"))

    assert intent is not None
    assert intent.type == IntentType.CRAFT
    assert intent.subtype == "tools"
    assert intent.input == "make an iron axe"
    assert intent.source == "user"
    assert intent.id.startswith("intent_")
    turns, prompt = model.requests[0]
    assert prompt == CLASSIFIER_PROMPT
    assert turns == [ConversationTurn(role="user", content="make an iron axe")]


def test_classifier_uses_latest_non_empty_user_turn() -> None:
    model = EchoLanguageModel('{"type": "BUILD"}')
    turns = [
        ConversationTurn(role="user", content="build a house"),
        ConversationTurn(role="user", content="   "),
        ConversationTurn(role="assistant", content="!inventory"),
    ]

    intent = asyncio.run(IntentClassifier(model).classify(turns))

    assert intent is not None
    assert intent.input == "build a house"
    assert intent.subtype == "unknown"


def test_classifier_without_user_turn_returns_none() -> None:
    model = EchoLanguageModel('{"type": "BUILD"}')
    turns = [ConversationTurn(role="system", content="boot")]

    assert asyncio.run(IntentClassifier(model).classify(turns)) is None
    assert model.requests == []


@pytest.mark.parametrize("reply", ["no json here", '{"type": "DANCE"}', '{"subtype": "x"}', "[1, 2]"])
def test_classifier_falls_back_to_general(reply: str) -> None:
    intent = asyncio.run(IntentClassifier(EchoLanguageModel(reply)).classify(_turns("hello")))

    assert intent is not None
    assert intent.type == IntentType.GENERAL
    assert intent.subtype == "unknown"


def test_classifier_makes_a_single_attempt_on_transport_failure() -> None:
    model = FailingModel()

    intent = asyncio.run(IntentClassifier(model).classify(_turns("cook some beef")))

    assert model.calls == 1
    assert intent is not None
    assert intent.type == IntentType.GENERAL


def test_extract_json_object_skips_broken_braces() -> None:
    assert extract_json_object('{broken {"type": "COOK"}') == {"type": "COOK"}
    assert extract_json_object("nothing") is None
