"""World-state knowledge and the precondition/override engine."""

from .items import HARVEST_TOOLS, MINABLE_BLOCKS, ItemNormalizer
from .preconditions import DEFAULT_RULES, MissingPrecondition, PreconditionEngine, missing_preconditions
from .snapshot import WorldSnapshot, WorldStateUnknown

__all__ = [
    "DEFAULT_RULES",
    "HARVEST_TOOLS",
    "MINABLE_BLOCKS",
    "ItemNormalizer",
    "MissingPrecondition",
    "PreconditionEngine",
    "WorldSnapshot",
    "WorldStateUnknown",
    "missing_preconditions",
]
