"""Typed command representation and the agent's command schema."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

ArgValue = str | int | float | bool

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")
_DISTANCE_HINTS = ("range", "distance", "dist")
DISTANCE_DEFAULT = 32


class ParamType(str, Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOLEAN = "boolean"


@dataclass(frozen=True, slots=True)
class RawArg:
    """Argument text exactly as the model wrote it, minus surrounding quotes."""

    text: str
    quoted: bool = False


@dataclass(frozen=True, slots=True)
class CommandParam:
    name: str
    type: ParamType

    def default(self) -> ArgValue:
        if self.type in (ParamType.INT, ParamType.FLOAT):
            lowered = self.name.lower()
            return DISTANCE_DEFAULT if any(hint in lowered for hint in _DISTANCE_HINTS) else 1
        if self.type == ParamType.BOOLEAN:
            return True
        return ""

    def coerce(self, raw: RawArg | None) -> ArgValue:
        """Return the canonical value for ``raw``, or the default when absent or malformed."""
        if raw is None:
            return self.default()

        text = raw.text.strip()
        if self.type == ParamType.STRING:
            return text if (text or raw.quoted) else self.default()
        if self.type == ParamType.INT:
            return int(text) if _INT_RE.match(text) else self.default()
        if self.type == ParamType.FLOAT:
            if not _FLOAT_RE.match(text):
                return self.default()
            value = float(text)
            return int(value) if value.is_integer() else value
        lowered = text.lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        return self.default()


@dataclass(frozen=True, slots=True)
class CommandSpec:
    name: str
    params: tuple[CommandParam, ...] = ()
    description: str = ""

    def build(self, raw_args: tuple[RawArg, ...]) -> GameCommand:
        args = tuple(
            param.coerce(raw_args[index] if index < len(raw_args) else None)
            for index, param in enumerate(self.params)
        )
        return GameCommand(spec=self, args=args)


def render_value(value: ArgValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return '"' + value.replace('"', "'") + '"'


@dataclass(frozen=True, slots=True)
class GameCommand:
    """A schema-conformant command invocation."""

    spec: CommandSpec
    args: tuple[ArgValue, ...]

    @property
    def name(self) -> str:
        return self.spec.name

    def arg(self, name: str) -> ArgValue | None:
        for param, value in zip(self.spec.params, self.args):
            if param.name == name:
                return value
        return None

    def render(self) -> str:
        return f"!{self.name}(" + ", ".join(render_value(value) for value in self.args) + ")"


def _spec(name: str, *params: tuple[str, ParamType], description: str = "") -> CommandSpec:
    return CommandSpec(
        name=name,
        params=tuple(CommandParam(name=param_name, type=param_type) for param_name, param_type in params),
        description=description,
    )


_STR, _INT, _FLOAT, _BOOL = ParamType.STRING, ParamType.INT, ParamType.FLOAT, ParamType.BOOLEAN

DEFAULT_COMMAND_SPECS: tuple[CommandSpec, ...] = (
    _spec("collectBlocks", ("type", _STR), ("num", _INT), description="Collect the nearest blocks of a type."),
    _spec("craftRecipe", ("recipe_name", _STR), ("num", _INT), description="Craft an item a number of times."),
    _spec("smeltItem", ("item_name", _STR), ("num", _INT), description="Smelt an item in a nearby furnace."),
    _spec("placeHere", ("type", _STR), description="Place a block at the bot's position."),
    _spec("attack", ("type", _STR), description="Attack the nearest entity of a type."),
    _spec("searchForBlock", ("type", _STR), ("search_range", _FLOAT), description="Walk to the nearest block of a type."),
    _spec("goToPlayer", ("player_name", _STR), ("closeness", _FLOAT)),
    _spec("followPlayer", ("player_name", _STR), ("follow_dist", _FLOAT)),
    _spec("goToCoordinates", ("x", _FLOAT), ("y", _FLOAT), ("z", _FLOAT), ("closeness", _FLOAT)),
    _spec("moveAway", ("distance", _FLOAT)),
    _spec("givePlayer", ("player_name", _STR), ("item_name", _STR), ("num", _INT)),
    _spec("consume", ("item_name", _STR)),
    _spec("equip", ("item_name", _STR)),
    _spec("discard", ("item_name", _STR), ("num", _INT)),
    _spec("putInChest", ("item_name", _STR), ("num", _INT)),
    _spec("takeFromChest", ("item_name", _STR), ("num", _INT)),
    _spec("activate", ("type", _STR)),
    _spec("newAction", ("prompt", _STR)),
    _spec("startConversation", ("player_name", _STR), ("message", _STR)),
    _spec("endConversation", ("player_name", _STR)),
    _spec("useGuide", ("query", _STR), ("alternate", _BOOL), description="Inject a guide for a goal into context."),
    _spec("searchGuide", ("query", _STR), description="Search the online guide database."),
    _spec("inventory"),
    _spec("stats"),
    _spec("stop"),
    _spec("clearFurnace"),
)


class CommandRegistry:
    """Name-indexed command schemas."""

    def __init__(self, specs: tuple[CommandSpec, ...] | list[CommandSpec] = DEFAULT_COMMAND_SPECS) -> None:
        self._specs = {spec.name: spec for spec in specs}

    def get(self, name: str) -> CommandSpec | None:
        return self._specs.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def names(self) -> list[str]:
        return sorted(self._specs)

    def build(self, name: str, *args: ArgValue) -> GameCommand:
        """Build a command from already-typed values, e.g. when synthesizing overrides."""
        spec = self._specs[name]
        raw = tuple(RawArg(text=render_value(value).strip('"'), quoted=isinstance(value, str)) for value in args)
        return spec.build(raw)


DEFAULT_REGISTRY = CommandRegistry()
