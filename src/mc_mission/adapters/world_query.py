"""World-query collaborator contract and an in-memory implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Protocol


@dataclass(frozen=True, slots=True)
class InventoryItem:
    name: str
    count: int


@dataclass(frozen=True, slots=True)
class Ingredient:
    """One recipe delta: ``count`` of ``name`` consumed per craft."""

    name: str
    count: int


@dataclass(frozen=True, slots=True)
class BlockRef:
    name: str


class WorldQuery(Protocol):
    """Read-only queries against the live game world. Any call may raise."""

    def inventory(self) -> list[InventoryItem]:
        """Return the bot's current inventory."""

    def find_block(self, matching: Callable[[str], bool], max_distance: int) -> object | None:
        """Return the nearest block whose name satisfies ``matching``, if any."""

    def recipe(self, item: str) -> list[Ingredient] | None:
        """Return the ingredients needed to craft one ``item``, or None when uncraftable."""


DEFAULT_RECIPES: dict[str, tuple[Ingredient, ...]] = {
    "oak_planks": (Ingredient("oak_log", 1),),
    "stick": (Ingredient("oak_planks", 2),),
    "crafting_table": (Ingredient("oak_planks", 4),),
    "furnace": (Ingredient("cobblestone", 8),),
    "wooden_pickaxe": (Ingredient("oak_planks", 3), Ingredient("stick", 2)),
    "stone_pickaxe": (Ingredient("cobblestone", 3), Ingredient("stick", 2)),
    "iron_pickaxe": (Ingredient("iron_ingot", 3), Ingredient("stick", 2)),
    "diamond_pickaxe": (Ingredient("diamond", 3), Ingredient("stick", 2)),
    "wooden_axe": (Ingredient("oak_planks", 3), Ingredient("stick", 2)),
    "stone_axe": (Ingredient("cobblestone", 3), Ingredient("stick", 2)),
    "iron_axe": (Ingredient("iron_ingot", 3), Ingredient("stick", 2)),
    "diamond_axe": (Ingredient("diamond", 3), Ingredient("stick", 2)),
    "stone_sword": (Ingredient("cobblestone", 2), Ingredient("stick", 1)),
    "iron_sword": (Ingredient("iron_ingot", 2), Ingredient("stick", 1)),
    "iron_shovel": (Ingredient("iron_ingot", 1), Ingredient("stick", 2)),
    "torch": (Ingredient("coal", 1), Ingredient("stick", 1)),
    "chest": (Ingredient("oak_planks", 8),),
}


@dataclass(slots=True)
class StaticWorldQuery:
    """Dictionary-backed world used by the CLI and tests."""

    items: dict[str, int] = field(default_factory=dict)
    nearby: set[str] = field(default_factory=set)
    recipes: dict[str, tuple[Ingredient, ...]] = field(default_factory=lambda: dict(DEFAULT_RECIPES))

    def inventory(self) -> list[InventoryItem]:
        return [InventoryItem(name=name, count=count) for name, count in self.items.items() if count > 0]

    def find_block(self, matching: Callable[[str], bool], max_distance: int) -> object | None:
        for name in sorted(self.nearby):
            if matching(name):
                return BlockRef(name=name)
        return None

    def recipe(self, item: str) -> list[Ingredient] | None:
        ingredients = self.recipes.get(item)
        return list(ingredients) if ingredients is not None else None
