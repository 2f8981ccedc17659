"""Locates ``!command(...)`` invocations inside free-form model output.

The grammar is deliberately loose: parentheses are optional, arguments may be
separated by commas or whitespace, and string arguments may use single or
double quotes. Parsing never fails; text that does not look like an invocation
is simply not reported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mc_mission.commands.schema import CommandRegistry, CommandSpec, GameCommand, ParamType, RawArg

_NAME_RE = re.compile(r"!([A-Za-z_][A-Za-z0-9_]*)")
_TOKEN_RE = re.compile(r"\"([^\"]*)\"|'([^']*)'|((?:[^\s,()\"']|(?<=\w)'(?=\w))+)")
_QUOTES = ("\"", "'")


@dataclass(frozen=True, slots=True)
class Invocation:
    """One command occurrence and the span of text it covers."""

    name: str
    args: tuple[RawArg, ...]
    start: int
    end: int

    def to_command(self, spec: CommandSpec) -> GameCommand:
        return spec.build(self.args)


def _opens_quote(text: str, index: int) -> bool:
    """A double quote always opens; an apostrophe only at the start of an argument."""
    char = text[index]
    if char == "\"":
        return True
    return char == "'" and (index == 0 or text[index - 1] in " \t,(")


def _argument_span(text: str, open_index: int) -> tuple[int, int]:
    """Return (body_stop, end) for the parenthesized arguments opened at ``open_index``.

    A missing ``)`` closes the arguments at the end of the line.
    """
    quote: str | None = None
    for index in range(open_index + 1, len(text)):
        char = text[index]
        if char == "\n":
            return index, index
        if quote:
            if char == quote:
                quote = None
        elif _opens_quote(text, index):
            quote = char
        elif char == ")":
            return index, index + 1
    return len(text), len(text)


def _split_top_level_commas(body: str) -> list[str] | None:
    segments: list[str] = []
    quote: str | None = None
    current: list[str] = []
    for index, char in enumerate(body):
        if quote:
            if char == quote:
                quote = None
        elif _opens_quote(body, index):
            quote = char
        elif char == ",":
            segments.append("".join(current))
            current = []
            continue
        current.append(char)
    if not segments:
        return None
    segments.append("".join(current))
    return segments


def _raw_arg(segment: str) -> RawArg | None:
    stripped = segment.strip()
    if not stripped:
        return None
    if len(stripped) >= 2 and stripped[0] in _QUOTES and stripped[-1] == stripped[0]:
        return RawArg(text=stripped[1:-1], quoted=True)
    return RawArg(text=stripped.strip("\"'"))


def _tokens(text: str) -> list[RawArg]:
    tokens: list[RawArg] = []
    for match in _TOKEN_RE.finditer(text):
        if match.group(1) is not None:
            tokens.append(RawArg(text=match.group(1), quoted=True))
        elif match.group(2) is not None:
            tokens.append(RawArg(text=match.group(2), quoted=True))
        else:
            tokens.append(RawArg(text=match.group(3)))
    return tokens


def _fit_to_spec(args: list[RawArg | None], spec: CommandSpec | None) -> tuple[RawArg, ...]:
    """Merge surplus unquoted words into a trailing string parameter."""
    if spec and spec.params and len(args) > len(spec.params):
        last = spec.params[-1]
        keep = len(spec.params) - 1
        surplus = [arg for arg in args[keep:] if arg is not None]
        if last.type == ParamType.STRING and surplus and not any(arg.quoted for arg in surplus):
            merged = RawArg(text=" ".join(arg.text for arg in surplus))
            args = [*args[:keep], merged]
        else:
            args = args[: len(spec.params)]
    # Absent positional args become empty unquoted text, which coerces to the default.
    return tuple(arg if arg is not None else RawArg(text="") for arg in args)


def parse_invocations(text: str, registry: CommandRegistry) -> list[Invocation]:
    invocations: list[Invocation] = []
    position = 0
    while True:
        match = _NAME_RE.search(text, position)
        if not match:
            break

        name = match.group(1)
        spec = registry.get(name)
        cursor = match.end()
        lookahead = cursor
        while lookahead < len(text) and text[lookahead] in " \t":
            lookahead += 1

        if lookahead < len(text) and text[lookahead] == "(":
            body_stop, end = _argument_span(text, lookahead)
            body = text[lookahead + 1 : body_stop]
            segments = _split_top_level_commas(body)
            if segments is not None:
                args: list[RawArg | None] = [_raw_arg(segment) for segment in segments]
            else:
                args = list(_tokens(body))
        elif spec is not None and spec.params:
            line_end = text.find("\n", cursor)
            line_end = len(text) if line_end == -1 else line_end
            args = []
            end = cursor
            for token_match in _TOKEN_RE.finditer(text, cursor, line_end):
                if len(args) == len(spec.params) or token_match.group(0).startswith("!"):
                    break
                args.extend(_tokens(token_match.group(0)))
                end = token_match.end()
        else:
            args = []
            end = cursor

        invocations.append(Invocation(name=name, args=_fit_to_spec(args, spec), start=match.start(), end=end))
        position = max(end, match.end())
    return invocations
