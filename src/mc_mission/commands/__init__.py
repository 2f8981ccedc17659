"""Command grammar: typed schemas, parsing and normalization."""

from .normalizer import CommandNormalizer
from .parser import Invocation, parse_invocations
from .schema import (
    DEFAULT_REGISTRY,
    CommandParam,
    CommandRegistry,
    CommandSpec,
    GameCommand,
    ParamType,
    RawArg,
)

__all__ = [
    "DEFAULT_REGISTRY",
    "CommandNormalizer",
    "CommandParam",
    "CommandRegistry",
    "CommandSpec",
    "GameCommand",
    "Invocation",
    "ParamType",
    "RawArg",
    "parse_invocations",
]
