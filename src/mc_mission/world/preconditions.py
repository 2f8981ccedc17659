"""Precondition checks that rewrite a proposed command when prerequisites are unmet.

Rules are pure functions over a ``WorldSnapshot``. They run in a fixed order and
the first one that produces an ``Override`` wins; the order encodes priority.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Sequence

from mc_mission.adapters.world_query import WorldQuery
from mc_mission.commands import DEFAULT_REGISTRY, CommandNormalizer, CommandRegistry, GameCommand
from mc_mission.models import Override, PlanStep
from mc_mission.world.items import HARVEST_TOOLS, MINABLE_BLOCKS, ItemNormalizer, has_tool_at_least
from mc_mission.world.snapshot import WorldSnapshot

logger = logging.getLogger("mc_mission.world.preconditions")

GATHER_COMMANDS = frozenset({"collectBlocks", "searchForBlock"})


@dataclass(frozen=True, slots=True)
class RuleContext:
    goal_item: str | None
    furnace_threshold: int
    items: ItemNormalizer
    registry: CommandRegistry

    def command(self, name: str, *args: str | int | float | bool) -> str:
        return self.registry.build(name, *args).render()


OverrideRule = Callable[[GameCommand, WorldSnapshot, RuleContext], Override | None]


def _target(command: GameCommand, ctx: RuleContext) -> str:
    return ctx.items.canonical(str(command.arg("type") or ""))


def smelt_requires_furnace(command: GameCommand, world: WorldSnapshot, ctx: RuleContext) -> Override | None:
    if command.name != "smeltItem" or world.is_nearby("furnace"):
        return None

    if world.count("furnace") > 0:
        return Override(
            goal="place a furnace",
            command=ctx.command("placeHere", "furnace"),
            advice="You carry a furnace but none is placed nearby. Place it before smelting.",
            rule="smelt_requires_furnace",
        )

    cobblestone = world.count("cobblestone")
    if cobblestone < ctx.furnace_threshold:
        shortfall = ctx.furnace_threshold - cobblestone
        return Override(
            goal="gather cobblestone for a furnace",
            command=ctx.command("collectBlocks", "cobblestone", shortfall),
            advice=f"Smelting needs a furnace. You have {cobblestone} cobblestone; collect {shortfall} more.",
            rule="smelt_requires_furnace",
        )

    return Override(
        goal="craft a furnace",
        command=ctx.command("craftRecipe", "furnace", 1),
        advice="Smelting needs a furnace and you have enough cobblestone. Craft one now.",
        rule="smelt_requires_furnace",
    )


def attack_on_block(command: GameCommand, world: WorldSnapshot, ctx: RuleContext) -> Override | None:
    if command.name != "attack":
        return None
    target = _target(command, ctx)
    if target not in MINABLE_BLOCKS:
        return None
    return Override(
        goal=f"collect {target}",
        command=ctx.command("collectBlocks", target, 1),
        advice=f"{target} is a block, not a mob. Collect it instead of attacking it.",
        rule="attack_on_block",
    )


def generic_resource(command: GameCommand, world: WorldSnapshot, ctx: RuleContext) -> Override | None:
    if command.name not in GATHER_COMMANDS:
        return None
    raw_target = str(command.arg("type") or "")
    if not ctx.items.is_generic(raw_target):
        return None

    variant = ctx.items.best_variant(raw_target, world.nearby)
    rest = command.args[1:]
    return Override(
        goal=f"collect {variant}",
        command=ctx.command(command.name, variant, *rest),
        advice=f'"{raw_target}" is not a block id. Use a concrete variant such as {variant}.',
        rule="generic_resource",
    )


def goal_materials_ready(command: GameCommand, world: WorldSnapshot, ctx: RuleContext) -> Override | None:
    if command.name not in GATHER_COMMANDS or not ctx.goal_item:
        return None
    ingredients = world.recipe(ctx.goal_item)
    if not ingredients or world.shortfall(ingredients):
        return None
    return Override(
        goal=f"craft {ctx.goal_item}",
        command=ctx.command("craftRecipe", ctx.goal_item, 1),
        advice=f"You already hold every material for {ctx.goal_item}. Skip gathering and craft it.",
        rule="goal_materials_ready",
    )


def harvest_tool_missing(command: GameCommand, world: WorldSnapshot, ctx: RuleContext) -> Override | None:
    if command.name not in GATHER_COMMANDS:
        return None
    target = _target(command, ctx)
    tool = HARVEST_TOOLS.get(target)
    if tool is None or has_tool_at_least(world.items(), tool):
        return None

    ingredients = world.recipe(tool)
    if not ingredients:
        return None

    missing = world.shortfall(ingredients)
    if not missing:
        return Override(
            goal=f"craft {tool}",
            command=ctx.command("craftRecipe", tool, 1),
            advice=f"Mining {target} needs a {tool}. You have its materials, so craft it now.",
            rule="harvest_tool_missing",
        )

    first = missing[0]
    if world.has_recipe(first.name):
        replacement = ctx.command("craftRecipe", first.name, 1)
    else:
        replacement = ctx.command("collectBlocks", first.name, first.count)
    return Override(
        goal=f"gather {first.name} for {tool}",
        command=replacement,
        advice=f"Mining {target} needs a {tool}, which still needs {first.count} {first.name}.",
        rule="harvest_tool_missing",
    )


DEFAULT_RULES: tuple[OverrideRule, ...] = (
    smelt_requires_furnace,
    attack_on_block,
    generic_resource,
    goal_materials_ready,
    harvest_tool_missing,
)


@dataclass(frozen=True, slots=True)
class MissingPrecondition:
    kind: str
    name: str
    count: int = 1

    def describe(self) -> str:
        if self.kind == "tool":
            return f"a {self.name} in inventory"
        return f"{self.count}x {self.name}"


_COUNTED_ITEM_RE = re.compile(r"\b(\d+)\s*x?\s+([a-z][a-z_ ]*)")
_TOOL_RE = re.compile(r"(pickaxe|axe|shovel|sword|hoe)")


class PreconditionEngine:
    """Chooses at most one override for a proposed command from live world state."""

    def __init__(
        self,
        *,
        registry: CommandRegistry | None = None,
        items: ItemNormalizer | None = None,
        furnace_threshold: int = 8,
        search_radius: int = 32,
        rules: Sequence[OverrideRule] = DEFAULT_RULES,
    ) -> None:
        self._registry = registry or DEFAULT_REGISTRY
        self._normalizer = CommandNormalizer(self._registry)
        self._items = items or ItemNormalizer()
        self._furnace_threshold = furnace_threshold
        self._search_radius = search_radius
        self._rules = tuple(rules)

    def evaluate(self, command: str | None, world: WorldQuery, goal_item: str | None = None) -> Override | None:
        if not command:
            return None
        parsed = self._normalizer.parse_one(command)
        if parsed is None:
            return None
        snapshot = self.snapshot_for(parsed, world, goal_item)
        return self.apply(parsed, snapshot, goal_item)

    def apply(self, command: GameCommand, snapshot: WorldSnapshot, goal_item: str | None = None) -> Override | None:
        ctx = RuleContext(
            goal_item=goal_item,
            furnace_threshold=self._furnace_threshold,
            items=self._items,
            registry=self._registry,
        )
        for rule in self._rules:
            try:
                override = rule(command, snapshot, ctx)
            except Exception:  # noqa: BLE001 - a failing rule is treated as not matching.
                logger.debug("override_rule_skipped", extra={"rule": getattr(rule, "__name__", repr(rule))}, exc_info=True)
                continue
            if override is not None:
                logger.info(
                    "command_overridden",
                    extra={"rule": override.rule, "proposed": command.render(), "replacement": override.command},
                )
                return override
        return None

    def snapshot_for(self, command: GameCommand, world: WorldQuery, goal_item: str | None = None) -> WorldSnapshot:
        target = self._items.canonical(str(command.arg("type") or ""))
        blocks = ["furnace"]
        recipes = ["furnace"]
        if target:
            blocks.append(target)
            blocks.extend(self._items.variants(target))
            tool = HARVEST_TOOLS.get(target)
            if tool:
                recipes.append(tool)
        if goal_item:
            recipes.append(goal_item)
        return WorldSnapshot.capture(world, blocks=blocks, recipes=recipes, radius=self._search_radius)

    def check_step(self, step: PlanStep, world: WorldQuery) -> list[MissingPrecondition]:
        snapshot = WorldSnapshot.capture(
            world,
            blocks=("furnace", "crafting_table"),
            radius=self._search_radius,
            expand_ingredients=False,
        )
        return missing_preconditions(step, snapshot, self._items)


def missing_preconditions(
    step: PlanStep,
    world: WorldSnapshot,
    items: ItemNormalizer | None = None,
) -> list[MissingPrecondition]:
    """Free-text preconditions of ``step`` that the snapshot shows as unmet.

    Conditions the snapshot cannot answer are not reported.
    """
    items = items or ItemNormalizer()
    if world.inventory is None:
        return []
    inventory = world.inventory
    missing: list[MissingPrecondition] = []

    for condition in step.preconditions:
        lowered = condition.lower()

        counted = _COUNTED_ITEM_RE.search(lowered)
        if counted:
            count = int(counted.group(1))
            name = items.canonical(counted.group(2).replace("in inventory", "").strip())
            if inventory.get(name, 0) < count:
                missing.append(MissingPrecondition(kind="item", name=name, count=count))
            continue

        tool = _TOOL_RE.search(lowered)
        if tool and "in inventory" in lowered:
            kind = tool.group(1)
            if not any(count > 0 and name.endswith(f"_{kind}") for name, count in inventory.items()):
                missing.append(MissingPrecondition(kind="tool", name=kind))
            continue

        for station in ("furnace", "crafting_table"):
            if station.replace("_", " ") in lowered or station in lowered:
                if inventory.get(station, 0) > 0 or station in world.nearby:
                    continue
                if station not in world.probed:
                    continue
                missing.append(MissingPrecondition(kind="item", name=station, count=1))
    return missing
