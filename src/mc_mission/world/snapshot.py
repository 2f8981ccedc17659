"""Immutable capture of the world state an override decision depends on."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from mc_mission.adapters.world_query import Ingredient, WorldQuery

logger = logging.getLogger("mc_mission.world.snapshot")


class WorldStateUnknown(LookupError):
    """Raised when a rule reads world data that could not be captured."""


@dataclass(frozen=True, slots=True)
class WorldSnapshot:
    """Point-in-time view of inventory, nearby blocks and recipes.

    Every failed or skipped query is recorded as *unknown*: reading it raises
    ``WorldStateUnknown`` instead of silently reporting absence.
    """

    inventory: dict[str, int] | None = None
    nearby: frozenset[str] = frozenset()
    probed: frozenset[str] = frozenset()
    recipes: dict[str, tuple[Ingredient, ...] | None] = field(default_factory=dict)

    def items(self) -> dict[str, int]:
        if self.inventory is None:
            raise WorldStateUnknown("inventory")
        return self.inventory

    def count(self, item: str) -> int:
        return self.items().get(item, 0)

    def is_nearby(self, block: str) -> bool:
        if block not in self.probed:
            raise WorldStateUnknown(f"nearby:{block}")
        return block in self.nearby

    def recipe(self, item: str) -> tuple[Ingredient, ...] | None:
        if item not in self.recipes:
            raise WorldStateUnknown(f"recipe:{item}")
        return self.recipes[item]

    def has_recipe(self, item: str) -> bool:
        return self.recipes.get(item) is not None

    def shortfall(self, ingredients: Iterable[Ingredient]) -> list[Ingredient]:
        """Ingredients still missing from inventory, with the missing amount as count."""
        missing: list[Ingredient] = []
        for ingredient in ingredients:
            have = self.count(ingredient.name)
            if have < ingredient.count:
                missing.append(Ingredient(name=ingredient.name, count=ingredient.count - have))
        return missing

    @classmethod
    def capture(
        cls,
        world: WorldQuery,
        *,
        blocks: Iterable[str] = (),
        recipes: Iterable[str] = (),
        radius: int = 32,
        expand_ingredients: bool = True,
    ) -> WorldSnapshot:
        """Query ``world`` once for everything listed; failures become unknowns."""
        inventory: dict[str, int] | None
        try:
            inventory = {}
            for item in world.inventory():
                inventory[item.name] = inventory.get(item.name, 0) + item.count
        except Exception:  # noqa: BLE001 - world queries degrade to unknown.
            logger.debug("world_inventory_unavailable", exc_info=True)
            inventory = None

        nearby: set[str] = set()
        probed: set[str] = set()
        for block in dict.fromkeys(blocks):
            try:
                found = world.find_block(lambda candidate, target=block: candidate == target, radius)
            except Exception:  # noqa: BLE001
                logger.debug("world_block_search_failed", extra={"block": block}, exc_info=True)
                continue
            probed.add(block)
            if found is not None:
                nearby.add(block)

        looked_up: dict[str, tuple[Ingredient, ...] | None] = {}
        pending = list(dict.fromkeys(recipes))
        for item in pending:
            cls._lookup_recipe(world, item, looked_up)
        if expand_ingredients:
            # One level of dependencies so rules can tell craftable ingredients from raw ones.
            for item in pending:
                for ingredient in looked_up.get(item) or ():
                    if ingredient.name not in looked_up:
                        cls._lookup_recipe(world, ingredient.name, looked_up)

        return cls(
            inventory=inventory,
            nearby=frozenset(nearby),
            probed=frozenset(probed),
            recipes=looked_up,
        )

    @staticmethod
    def _lookup_recipe(world: WorldQuery, item: str, into: dict[str, tuple[Ingredient, ...] | None]) -> None:
        try:
            ingredients = world.recipe(item)
        except Exception:  # noqa: BLE001
            logger.debug("world_recipe_lookup_failed", extra={"item": item}, exc_info=True)
            return
        into[item] = tuple(ingredients) if ingredients else None
