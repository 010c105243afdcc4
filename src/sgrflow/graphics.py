from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import NamedTuple

import rich.repr


class Indexed(NamedTuple):
    """A color from the 256 color table."""

    index: int
    """Color index (0-255)."""


class Truecolor(NamedTuple):
    """A 24-bit color."""

    red: int
    green: int
    blue: int


type ColorRef = Indexed | Truecolor
"""A color set by SGR. `None` is used for the terminal's default color."""


class Attribute(IntFlag):
    """Text attributes set by SGR."""

    NONE = 0
    BRIGHT = 1 << 0
    ITALIC = 1 << 1
    UNDERLINE = 1 << 2
    STRIKE = 1 << 3
    NEGATIVE = 1 << 4
    FRAME = 1 << 5
    OVERLINE = 1 << 6


ATTRIBUTE_BITS = 7


@rich.repr.auto
@dataclass
class GraphicsState:
    """The colors and attributes applied to plain text.

    One instance lives for the lifetime of a stream, and is updated in place by
    every SGR sequence.
    """

    foreground: ColorRef | None = None
    """Foreground color, or `None` for default."""
    background: ColorRef | None = None
    """Background color, or `None` for default."""
    attributes: Attribute = Attribute.NONE
    """Attribute flags."""

    def __rich_repr__(self) -> rich.repr.Result:
        yield "foreground", self.foreground, None
        yield "background", self.background, None
        yield "attributes", self.attributes, Attribute.NONE

    @property
    def is_default(self) -> bool:
        """Is this the initial state (no colors or attributes)?"""
        return (
            self.foreground is None
            and self.background is None
            and not self.attributes
        )

    def reset(self) -> None:
        """Reset to the initial state."""
        self.foreground = None
        self.background = None
        self.attributes = Attribute.NONE

    def set(self, attribute: Attribute) -> None:
        self.attributes |= attribute

    def clear(self, attribute: Attribute) -> None:
        self.attributes &= ~attribute
