"""Pulls material, tool and action keywords out of a user request."""

from __future__ import annotations

from dataclasses import dataclass

# Rarest first so "diamond pickaxe with a stone handle" resolves to diamond.
MATERIALS: tuple[str, ...] = ("netherite", "diamond", "gold", "iron", "stone", "wood")

# Longer names first; "pickaxe" would otherwise match "axe".
TOOLS: tuple[str, ...] = ("pickaxe", "chestplate", "leggings", "axe", "shovel", "hoe", "sword", "helmet", "boots")

ACTIONS: dict[str, tuple[str, ...]] = {
    "craft": ("craft", "make", "build", "create"),
    "collect": ("collect", "gather", "mine", "chop", "harvest"),
    "smelt": ("smelt", "melt", "cook", "furnace"),
}

# Item ids spell some materials differently from how players say them.
_ITEM_PREFIX = {"wood": "wooden", "gold": "golden"}


@dataclass(frozen=True, slots=True)
class Keywords:
    raw: str
    material: str | None = None
    tool: str | None = None
    action: str | None = None

    @property
    def target(self) -> str | None:
        if self.material and self.tool:
            return f"{_ITEM_PREFIX.get(self.material, self.material)}_{self.tool}"
        return self.tool or self.material

    @property
    def item(self) -> str | None:
        """Concrete item id, only when both material and tool were named."""
        if self.material and self.tool:
            return self.target
        return None


class KeywordExtractor:
    def extract(self, text: str) -> Keywords:
        lowered = text.lower()
        action = next(
            (name for name, words in ACTIONS.items() if any(word in lowered for word in words)),
            None,
        )
        material = next((name for name in MATERIALS if name in lowered), None)
        tool = next((name for name in TOOLS if name in lowered), None)
        return Keywords(raw=text, material=material, tool=tool, action=action)
