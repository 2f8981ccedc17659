"""Item naming and harvesting knowledge used by the override rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger("mc_mission.world.items")

TOOL_TIERS: tuple[str, ...] = ("wooden", "stone", "iron", "diamond", "netherite")
_TIER_ALIASES = {"golden": "wooden", "wood": "wooden"}

# Block -> cheapest pickaxe that drops it.
HARVEST_TOOLS: dict[str, str] = {
    "stone": "wooden_pickaxe",
    "cobblestone": "wooden_pickaxe",
    "coal_ore": "wooden_pickaxe",
    "deepslate_coal_ore": "wooden_pickaxe",
    "andesite": "wooden_pickaxe",
    "diorite": "wooden_pickaxe",
    "granite": "wooden_pickaxe",
    "sandstone": "wooden_pickaxe",
    "iron_ore": "stone_pickaxe",
    "deepslate_iron_ore": "stone_pickaxe",
    "copper_ore": "stone_pickaxe",
    "lapis_ore": "stone_pickaxe",
    "gold_ore": "iron_pickaxe",
    "deepslate_gold_ore": "iron_pickaxe",
    "redstone_ore": "iron_pickaxe",
    "diamond_ore": "iron_pickaxe",
    "deepslate_diamond_ore": "iron_pickaxe",
    "emerald_ore": "iron_pickaxe",
    "obsidian": "diamond_pickaxe",
    "ancient_debris": "diamond_pickaxe",
}

_HAND_MINABLE = frozenset(
    {
        "oak_log",
        "birch_log",
        "spruce_log",
        "jungle_log",
        "acacia_log",
        "dark_oak_log",
        "mangrove_log",
        "cherry_log",
        "dirt",
        "grass_block",
        "sand",
        "gravel",
        "clay",
        "oak_leaves",
        "pumpkin",
        "melon",
        "sugar_cane",
        "crafting_table",
        "furnace",
    }
)

MINABLE_BLOCKS = frozenset(HARVEST_TOOLS) | _HAND_MINABLE


def tool_tier(tool: str) -> tuple[int, str] | None:
    """Return (tier index, tool kind) for names like ``stone_pickaxe``."""
    material, _, kind = tool.partition("_")
    material = _TIER_ALIASES.get(material, material)
    if not kind or material not in TOOL_TIERS:
        return None
    return TOOL_TIERS.index(material), kind


def has_tool_at_least(inventory: dict[str, int], required_tool: str) -> bool:
    required = tool_tier(required_tool)
    if required is None:
        return inventory.get(required_tool, 0) > 0
    required_level, required_kind = required
    for name, count in inventory.items():
        if count <= 0:
            continue
        owned = tool_tier(name)
        if owned and owned[1] == required_kind and owned[0] >= required_level:
            return True
    return False


@dataclass(slots=True)
class ItemNormalizer:
    """Maps colloquial and generic item names onto concrete Minecraft ids."""

    colloquial: dict[str, str] = field(
        default_factory=lambda: {
            "wood": "log",
            "logs": "log",
            "tree": "log",
            "trees": "log",
            "planks": "plank",
            "wooden planks": "plank",
            "rock": "stone",
            "sticks": "stick",
            "workbench": "crafting_table",
            "crafting table": "crafting_table",
            "iron": "iron_ore",
            "coal": "coal_ore",
        }
    )
    generic_to_specific: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: {
            "log": ("oak_log", "birch_log", "spruce_log", "acacia_log", "dark_oak_log", "jungle_log"),
            "plank": ("oak_planks", "birch_planks", "spruce_planks", "acacia_planks", "dark_oak_planks", "jungle_planks"),
            "ore": ("iron_ore", "coal_ore", "gold_ore", "diamond_ore", "copper_ore"),
        }
    )
    defaults: dict[str, str] = field(
        default_factory=lambda: {
            "log": "oak_log",
            "plank": "oak_planks",
            "ore": "iron_ore",
        }
    )

    def canonical(self, item_name: str) -> str:
        lowered = " ".join(item_name.lower().split())
        return self.colloquial.get(lowered, lowered.replace(" ", "_"))

    def is_generic(self, item_name: str) -> bool:
        return self.canonical(item_name) in self.generic_to_specific

    def variants(self, item_name: str) -> tuple[str, ...]:
        return self.generic_to_specific.get(self.canonical(item_name), ())

    def normalize(self, item_name: str) -> str:
        """Resolve a generic category to its default variant; concrete names pass through."""
        canonical = self.canonical(item_name)
        if canonical in self.generic_to_specific:
            resolved = self.defaults.get(canonical, self.generic_to_specific[canonical][0])
            logger.debug("item_normalized", extra={"item": item_name, "resolved": resolved})
            return resolved
        return canonical

    def best_variant(self, item_name: str, nearby: frozenset[str] | set[str]) -> str:
        """Prefer a variant already seen nearby, else the category default."""
        for variant in self.variants(item_name):
            if variant in nearby:
                return variant
        return self.normalize(item_name)
