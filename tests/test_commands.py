from __future__ import annotations

from mc_mission.commands import DEFAULT_REGISTRY, CommandNormalizer, parse_invocations


def test_normalizer_repairs_space_separated_arguments() -> None:
    normalizer = CommandNormalizer()

    assert normalizer.normalize("!craftRecipe(stick 2)") == '!craftRecipe("stick", 2)'


def test_normalizer_fills_missing_arguments_with_defaults() -> None:
    normalizer = CommandNormalizer()

    assert normalizer.normalize('!collectBlocks("oak_log")') == '!collectBlocks("oak_log", 1)'
    assert normalizer.normalize("!searchForBlock('iron_ore')") == '!searchForBlock("iron_ore", 32)'
    assert normalizer.normalize('!useGuide("iron axe")') == '!useGuide("iron axe", true)'


def test_normalizer_replaces_malformed_values_and_drops_extra_args() -> None:
    normalizer = CommandNormalizer()

    assert normalizer.normalize('!collectBlocks("dirt", lots)') == '!collectBlocks("dirt", 1)'
    assert normalizer.normalize('!craftRecipe("stick", 2, "now")') == '!craftRecipe("stick", 2)'
    assert normalizer.normalize("!useGuide(\"bread\", FALSE)") == '!useGuide("bread", false)'


def test_normalizer_accepts_commands_without_parentheses() -> None:
    normalizer = CommandNormalizer()

    assert normalizer.normalize("ok !collectBlocks oak_log 5 then wait") == 'ok !collectBlocks("oak_log", 5) then wait'


def test_normalizer_keeps_surrounding_text_and_unknown_commands() -> None:
    normalizer = CommandNormalizer()
    text = 'Let me dance first. !dance(wildly) and then !craftRecipe("oak_planks",4)'

    assert normalizer.normalize(text) == 'Let me dance first. !dance(wildly) and then !craftRecipe("oak_planks", 4)'


def test_normalizer_gives_parameterless_commands_empty_parentheses() -> None:
    normalizer = CommandNormalizer()

    assert normalizer.normalize("Checking !inventory()") == "Checking !inventory()"
    assert normalizer.normalize("!stats") == "!stats()"
    assert normalizer.normalize("!stop now") == "!stop() now"


def test_normalizer_suppresses_conversation_starters() -> None:
    normalizer = CommandNormalizer()
    text = '!collectBlocks("dirt", 4) !startConversation("alex", "hi there")'

    assert normalizer.normalize(text) == ""
    assert normalizer.normalize("") == ""


def test_apostrophes_inside_words_do_not_hide_conversation_starters() -> None:
    normalizer = CommandNormalizer()

    assert normalizer.normalize("!newAction(build the player's house) !startConversation(\"bob\", \"hi\")") == ""
    assert normalizer.normalize("!wave(don't) then !startConversation(\"bob\", \"hi\")") == ""


def test_apostrophes_inside_words_stay_in_string_arguments() -> None:
    normalizer = CommandNormalizer()

    assert normalizer.normalize("!newAction(build the player's house)") == "!newAction(\"build the player's house\")"
    assert normalizer.normalize("!collectBlocks('oak_log', 2)") == '!collectBlocks("oak_log", 2)'


def test_normalizer_honours_custom_conversation_command() -> None:
    normalizer = CommandNormalizer(start_conversation_command="endConversation")

    assert normalizer.normalize('!endConversation("alex")') == ""
    assert normalizer.normalize('!startConversation("alex", "hi")') == '!startConversation("alex", "hi")'


def test_trailing_string_parameter_absorbs_unquoted_words() -> None:
    normalizer = CommandNormalizer()

    assert normalizer.normalize("!newAction(build a small house)") == '!newAction("build a small house")'


def test_parse_returns_typed_commands() -> None:
    command = CommandNormalizer().parse_one('!givePlayer("steve", "stick", 4)')

    assert command is not None
    assert command.name == "givePlayer"
    assert command.arg("num") == 4
    assert command.arg("item_name") == "stick"
    assert command.arg("missing") is None


def test_parse_invocations_reports_spans() -> None:
    text = 'first !stop then !collectBlocks("sand", 2)'
    invocations = parse_invocations(text, DEFAULT_REGISTRY)

    assert [invocation.name for invocation in invocations] == ["stop", "collectBlocks"]
    last = invocations[1]
    assert text[last.start : last.end] == '!collectBlocks("sand", 2)'


def test_unclosed_parenthesis_ends_at_line_break() -> None:
    normalizer = CommandNormalizer()

    assert normalizer.normalize('!placeHere("furnace"\nnext line') == '!placeHere("furnace")\nnext line'


def test_registry_builds_commands_from_typed_values() -> None:
    assert DEFAULT_REGISTRY.build("craftRecipe", "furnace", 1).render() == '!craftRecipe("furnace", 1)'
    assert DEFAULT_REGISTRY.build("placeHere", 'say "hi"').render() == "!placeHere(\"say 'hi'\")"
    assert "collectBlocks" in DEFAULT_REGISTRY
    assert "dance" not in DEFAULT_REGISTRY
