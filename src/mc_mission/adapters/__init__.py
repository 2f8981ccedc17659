"""Collaborator adapters: the chat model and live world queries."""

from .language_model import EchoLanguageModel, LanguageModel
from .world_query import BlockRef, Ingredient, InventoryItem, StaticWorldQuery, WorldQuery

__all__ = [
    "BlockRef",
    "EchoLanguageModel",
    "Ingredient",
    "InventoryItem",
    "LanguageModel",
    "StaticWorldQuery",
    "WorldQuery",
]
