from __future__ import annotations

from mc_mission.adapters import StaticWorldQuery
from mc_mission.models import Override, PlanStep
from mc_mission.world import PreconditionEngine, WorldSnapshot, WorldStateUnknown, missing_preconditions


class BrokenWorld:
    """World whose every query fails, as when the bot is disconnected."""

    def inventory(self):
        raise RuntimeError("not connected")

    def find_block(self, matching, max_distance):
        raise RuntimeError("not connected")

    def recipe(self, item):
        raise RuntimeError("not connected")


def test_smelting_without_furnace_gathers_missing_cobblestone() -> None:
    engine = PreconditionEngine()
    world = StaticWorldQuery(items={"furnace": 0, "cobblestone": 5})

    override = engine.evaluate('!smeltItem("raw_iron", 3)', world)

    assert override is not None
    assert override.command == '!collectBlocks("cobblestone", 3)'
    assert override.rule == "smelt_requires_furnace"


def test_smelting_with_furnace_in_inventory_places_it() -> None:
    override = PreconditionEngine().evaluate('!smeltItem("raw_iron", 3)', StaticWorldQuery(items={"furnace": 1}))

    assert override is not None
    assert override.command == '!placeHere("furnace")'


def test_smelting_with_enough_cobblestone_crafts_furnace() -> None:
    override = PreconditionEngine(furnace_threshold=8).evaluate(
        '!smeltItem("raw_iron", 3)',
        StaticWorldQuery(items={"cobblestone": 8}),
    )

    assert override is not None
    assert override.command == '!craftRecipe("furnace", 1)'


def test_smelting_next_to_a_furnace_is_left_alone() -> None:
    world = StaticWorldQuery(items={"raw_iron": 3}, nearby={"furnace"})

    assert PreconditionEngine().evaluate('!smeltItem("raw_iron", 3)', world) is None


def test_attacking_a_block_becomes_collection() -> None:
    engine = PreconditionEngine()

    override = engine.evaluate('!attack("oak_log")', StaticWorldQuery())
    assert override is not None
    assert override.command == '!collectBlocks("oak_log", 1)'

    assert engine.evaluate('!attack("zombie")', StaticWorldQuery()) is None


def test_generic_resource_prefers_a_nearby_variant() -> None:
    engine = PreconditionEngine()

    nearby = engine.evaluate('!collectBlocks("wood", 5)', StaticWorldQuery(nearby={"birch_log"}))
    assert nearby is not None
    assert nearby.command == '!collectBlocks("birch_log", 5)'

    fallback = engine.evaluate('!searchForBlock("log", 16)', StaticWorldQuery())
    assert fallback is not None
    assert fallback.command == '!searchForBlock("oak_log", 16)'


def test_gathering_is_skipped_when_goal_materials_are_ready() -> None:
    world = StaticWorldQuery(items={"iron_ingot": 3, "stick": 2})

    override = PreconditionEngine().evaluate('!collectBlocks("oak_log", 3)', world, goal_item="iron_axe")

    assert override is not None
    assert override.command == '!craftRecipe("iron_axe", 1)'
    assert override.rule == "goal_materials_ready"


def test_mining_without_tool_crafts_the_tool_when_possible() -> None:
    world = StaticWorldQuery(items={"cobblestone": 3, "stick": 2})

    override = PreconditionEngine().evaluate('!collectBlocks("iron_ore", 3)', world)

    assert override is not None
    assert override.command == '!craftRecipe("stone_pickaxe", 1)'


def test_mining_without_tool_gathers_first_missing_ingredient() -> None:
    engine = PreconditionEngine()

    raw = engine.evaluate('!collectBlocks("iron_ore", 3)', StaticWorldQuery(items={"stick": 2}))
    assert raw is not None
    assert raw.command == '!collectBlocks("cobblestone", 3)'

    craftable = engine.evaluate('!collectBlocks("iron_ore", 3)', StaticWorldQuery(items={"cobblestone": 3}))
    assert craftable is not None
    assert craftable.command == '!craftRecipe("stick", 1)'


def test_better_tool_tier_satisfies_harvest_requirement() -> None:
    world = StaticWorldQuery(items={"iron_pickaxe": 1})

    assert PreconditionEngine().evaluate('!collectBlocks("iron_ore", 3)', world) is None


def test_unknown_world_state_never_overrides() -> None:
    engine = PreconditionEngine()

    assert engine.evaluate('!smeltItem("raw_iron", 3)', BrokenWorld()) is None
    assert engine.evaluate('!collectBlocks("iron_ore", 3)', BrokenWorld()) is None


def test_failing_rule_is_skipped() -> None:
    def exploding_rule(command, snapshot, ctx):
        raise ValueError("bad rule")

    def fallback_rule(command, snapshot, ctx):
        return Override(goal="wait", command="!stop", advice="stop", rule="fallback_rule")

    engine = PreconditionEngine(rules=(exploding_rule, fallback_rule))

    override = engine.evaluate('!collectBlocks("dirt", 1)', StaticWorldQuery())
    assert override is not None
    assert override.rule == "fallback_rule"


def test_no_command_or_unknown_command_yields_nothing() -> None:
    engine = PreconditionEngine()

    assert engine.evaluate(None, StaticWorldQuery()) is None
    assert engine.evaluate("just chatting", StaticWorldQuery()) is None


def test_snapshot_records_unknowns() -> None:
    snapshot = WorldSnapshot.capture(BrokenWorld(), blocks=["furnace"], recipes=["furnace"])

    assert snapshot.inventory is None
    for read in (lambda: snapshot.items(), lambda: snapshot.is_nearby("furnace"), lambda: snapshot.recipe("furnace")):
        try:
            read()
        except WorldStateUnknown:
            continue
        raise AssertionError("expected WorldStateUnknown")


def test_missing_preconditions_lists_unmet_items_and_tools() -> None:
    step = PlanStep(
        index=6,
        goal="Craft the iron axe",
        preconditions=("3x Iron Ingot", "2x Stick", "Stone Pickaxe in inventory", "crafting table"),
    )
    snapshot = WorldSnapshot(
        inventory={"iron_ingot": 1, "stick": 2},
        nearby=frozenset(),
        probed=frozenset({"crafting_table", "furnace"}),
    )

    missing = missing_preconditions(step, snapshot)

    assert [item.describe() for item in missing] == ["3x iron_ingot", "a pickaxe in inventory", "1x crafting_table"]


def test_check_step_reads_the_live_world() -> None:
    step = PlanStep(index=1, goal="Smelt", preconditions=("furnace",))

    assert PreconditionEngine().check_step(step, StaticWorldQuery(nearby={"furnace"})) == []
    assert PreconditionEngine().check_step(step, StaticWorldQuery())[0].name == "furnace"
