"""The SGR (Select Graphic Rendition) interpreter.

SGR parameters are matched against an ordered table of rules. Each rule has a
predicate, which looks at the parameters that remain, the number of parameters
it consumes, and an effect which updates the graphics state. The first rule to
match wins.
"""

from __future__ import annotations

from typing import Callable, NamedTuple, Sequence

from sgrflow.errors import DiagnosticKind, MalformedParameter, ReportDiagnostic
from sgrflow.graphics import Attribute, GraphicsState, Indexed, Truecolor

type Predicate = Callable[[Sequence[int]], bool]
type Effect = Callable[[GraphicsState, Sequence[int]], str | None]
"""Updates state, and returns an error message if the parameters were invalid."""

MAX_ARITY = 5

# Codes we recognize but don't render.
UNSUPPORTED_CODES = {
    5: "slow blink",
    6: "rapid blink",
    8: "conceal",
    21: "double underline",
    25: "not blinking",
    26: "proportional spacing",
    28: "reveal",
    52: "encircle",
}


def parse_parameters(parameters: str) -> list[int]:
    """Parse CSI parameter characters in to a list of integers.

    An empty field is zero, so an empty string is `[0]`.

    Args:
        parameters: Characters between the CSI introducer and the terminator.

    Raises:
        MalformedParameter: If a character other than a digit or `;` is found.

    Returns:
        Integer parameters.
    """
    values: list[int] = []
    value = 0
    for character in parameters:
        if "0" <= character <= "9":
            value = value * 10 + (ord(character) - 48)
        elif character == ";":
            values.append(value)
            value = 0
        else:
            raise MalformedParameter(
                f"Unexpected character {character!r} in parameters {parameters!r}"
            )
    values.append(value)
    return values


class SGRRule(NamedTuple):
    """A single entry in the SGR table."""

    predicate: Predicate
    """Does this rule match the remaining parameters?"""
    arity: int
    """Number of parameters consumed."""
    effect: Effect
    """Update graphics state."""
    truecolor: bool = False
    """Does this rule require truecolor support?"""


def code(*codes: int) -> Predicate:
    code_set = frozenset(codes)
    return lambda parameters: parameters[0] in code_set


def code_range(first: int, last: int) -> Predicate:
    return lambda parameters: first <= parameters[0] <= last


def extended(lead: int, mode: int, arity: int) -> Predicate:
    """Match an extended color (`38;5;N`, `48;2;R;G;B` etc)."""

    def predicate(parameters: Sequence[int]) -> bool:
        return (
            len(parameters) >= arity
            and parameters[0] == lead
            and parameters[1] == mode
        )

    return predicate


def reset(state: GraphicsState, parameters: Sequence[int]) -> None:
    state.reset()


def set_attribute(attribute: Attribute) -> Effect:
    def effect(state: GraphicsState, parameters: Sequence[int]) -> None:
        state.set(attribute)

    return effect


def clear_attribute(attribute: Attribute) -> Effect:
    def effect(state: GraphicsState, parameters: Sequence[int]) -> None:
        state.clear(attribute)

    return effect


def foreground_offset(offset: int) -> Effect:
    def effect(state: GraphicsState, parameters: Sequence[int]) -> None:
        state.foreground = Indexed(parameters[0] - offset)

    return effect


def background_offset(offset: int) -> Effect:
    def effect(state: GraphicsState, parameters: Sequence[int]) -> None:
        state.background = Indexed(parameters[0] - offset)

    return effect


def clear_foreground(state: GraphicsState, parameters: Sequence[int]) -> None:
    state.foreground = None


def clear_background(state: GraphicsState, parameters: Sequence[int]) -> None:
    state.background = None


def _indexed(parameters: Sequence[int]) -> Indexed | str:
    _lead, _mode, index = parameters[:3]
    if index > 255:
        return f"Color index {index} out of range in {_describe(parameters[:3])}"
    return Indexed(index)


def _truecolor(parameters: Sequence[int]) -> Truecolor | str:
    red, green, blue = channels = parameters[2:5]
    if max(channels) > 255:
        return f"Color component out of range in {_describe(parameters[:5])}"
    return Truecolor(red, green, blue)


def foreground_indexed(state: GraphicsState, parameters: Sequence[int]) -> str | None:
    color = _indexed(parameters)
    if isinstance(color, str):
        return color
    state.foreground = color
    return None


def background_indexed(state: GraphicsState, parameters: Sequence[int]) -> str | None:
    color = _indexed(parameters)
    if isinstance(color, str):
        return color
    state.background = color
    return None


def foreground_truecolor(
    state: GraphicsState, parameters: Sequence[int]
) -> str | None:
    color = _truecolor(parameters)
    if isinstance(color, str):
        return color
    state.foreground = color
    return None


def background_truecolor(
    state: GraphicsState, parameters: Sequence[int]
) -> str | None:
    color = _truecolor(parameters)
    if isinstance(color, str):
        return color
    state.background = color
    return None


def unsupported(state: GraphicsState, parameters: Sequence[int]) -> str:
    sgr_code = parameters[0]
    if (name := UNSUPPORTED_CODES.get(sgr_code)) is not None:
        return f"Unsupported SGR code {sgr_code} ({name})"
    return f"Unknown SGR code {sgr_code}"


def _describe(parameters: Sequence[int]) -> str:
    return ";".join(map(str, parameters))


SGR_RULES: Sequence[SGRRule] = [
    SGRRule(code(0), 1, reset),
    SGRRule(code(1), 1, set_attribute(Attribute.BRIGHT)),
    SGRRule(code(22), 1, clear_attribute(Attribute.BRIGHT)),
    # Faint is rendered as normal intensity
    SGRRule(code(2), 1, clear_attribute(Attribute.BRIGHT)),
    SGRRule(code(3), 1, set_attribute(Attribute.ITALIC)),
    SGRRule(code(23), 1, clear_attribute(Attribute.ITALIC)),
    SGRRule(code(4), 1, set_attribute(Attribute.UNDERLINE)),
    SGRRule(code(24), 1, clear_attribute(Attribute.UNDERLINE)),
    SGRRule(code(7), 1, set_attribute(Attribute.NEGATIVE)),
    SGRRule(code(27), 1, clear_attribute(Attribute.NEGATIVE)),
    SGRRule(code(9), 1, set_attribute(Attribute.STRIKE)),
    SGRRule(code(29), 1, clear_attribute(Attribute.STRIKE)),
    SGRRule(code(51), 1, set_attribute(Attribute.FRAME)),
    SGRRule(code(54), 1, clear_attribute(Attribute.FRAME)),
    SGRRule(code(53), 1, set_attribute(Attribute.OVERLINE)),
    SGRRule(code(55), 1, clear_attribute(Attribute.OVERLINE)),
    SGRRule(code_range(30, 37), 1, foreground_offset(30)),
    SGRRule(code_range(40, 47), 1, background_offset(40)),
    SGRRule(code(39), 1, clear_foreground),
    SGRRule(code(49), 1, clear_background),
    # AIXTERM colors select 8-15 and leave the bright attribute alone
    SGRRule(code_range(90, 97), 1, foreground_offset(82)),
    SGRRule(code_range(100, 107), 1, background_offset(92)),
    SGRRule(extended(38, 5, 3), 3, foreground_indexed),
    SGRRule(extended(48, 5, 3), 3, background_indexed),
    SGRRule(extended(38, 2, 5), 5, foreground_truecolor, truecolor=True),
    SGRRule(extended(48, 2, 5), 5, background_truecolor, truecolor=True),
]

UNSUPPORTED_RULE = SGRRule(lambda parameters: True, 1, unsupported)


def match_rule(parameters: Sequence[int]) -> SGRRule:
    """Get the first rule matching the start of the given parameters."""
    for rule in SGR_RULES:
        if rule.predicate(parameters):
            return rule
    return UNSUPPORTED_RULE


def apply_sgr(
    state: GraphicsState,
    parameters: Sequence[int],
    *,
    truecolor: bool = True,
    report: ReportDiagnostic | None = None,
) -> GraphicsState:
    """Apply SGR parameters to a graphics state.

    Invalid parameters are skipped (and reported), never raised.

    Args:
        state: Graphics state, updated in place.
        parameters: SGR parameters.
        truecolor: Allow 24-bit colors. If `False`, 24-bit colors are consumed
            but have no effect.
        report: Callable to report diagnostics.

    Returns:
        The updated state.
    """
    position = 0
    parameter_count = len(parameters)
    while position < parameter_count:
        window = parameters[position : position + MAX_ARITY]
        rule = match_rule(window)
        position += rule.arity
        if rule.truecolor and not truecolor:
            if report is not None:
                report(
                    DiagnosticKind.TRUECOLOR_UNAVAILABLE,
                    f"Truecolor is disabled; ignoring {_describe(window)}",
                )
            continue
        error = rule.effect(state, window)
        if error is not None and report is not None:
            report(
                (
                    DiagnosticKind.UNSUPPORTED_SGR_CODE
                    if rule is UNSUPPORTED_RULE
                    else DiagnosticKind.OUT_OF_RANGE_COLOR_COMPONENT
                ),
                error,
            )
    return state
