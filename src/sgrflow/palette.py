from __future__ import annotations

from typing import Iterable, NamedTuple, Sequence

from textual.color import Color, ColorParseError

from sgrflow.errors import PaletteError
from sgrflow.graphics import ColorRef, Indexed, Truecolor

CUBE_STEPS: Sequence[int] = (0, 95, 135, 175, 215, 255)
"""Channel values for each of the 6 steps in the 6x6x6 color cube."""

# Standard xterm colors.
DEFAULT_BASE_COLORS: Sequence[str] = [
    "#000000",
    "#cd0000",
    "#00cd00",
    "#cdcd00",
    "#0000ee",
    "#cd00cd",
    "#00cdcd",
    "#e5e5e5",
]
DEFAULT_BRIGHT_COLORS: Sequence[str] = [
    "#7f7f7f",
    "#ff0000",
    "#00ff00",
    "#ffff00",
    "#5c5cff",
    "#ff00ff",
    "#00ffff",
    "#ffffff",
]


def _parse_colors(names: Iterable[str], group: str) -> tuple[Color, ...]:
    try:
        colors = tuple(Color.parse(name) for name in names)
    except ColorParseError as error:
        raise PaletteError(f"Invalid color in {group} palette; {error}") from None
    if len(colors) != 8:
        raise PaletteError(
            f"The {group} palette requires 8 colors; found {len(colors)}"
        )
    return colors


class Palette(NamedTuple):
    """The colors used for the first 16 entries of the color table."""

    base: tuple[Color, ...]
    """Colors 0-7 (SGR 30-37 and 40-47)."""
    bright: tuple[Color, ...]
    """Colors 8-15 (SGR 90-97, 100-107, and bright 30-37)."""

    @classmethod
    def from_names(cls, base: Iterable[str], bright: Iterable[str]) -> Palette:
        """Build a palette from color names.

        Args:
            base: Eight color strings for the base colors.
            bright: Eight color strings for the bright colors.

        Raises:
            PaletteError: If a color can't be parsed, or there aren't exactly 8.

        Returns:
            A new palette.
        """
        return cls(_parse_colors(base, "base"), _parse_colors(bright, "bright"))


DEFAULT_PALETTE = Palette.from_names(DEFAULT_BASE_COLORS, DEFAULT_BRIGHT_COLORS)


def resolve_color(
    color: int | ColorRef, palette: Palette = DEFAULT_PALETTE
) -> Color:
    """Get the concrete color for a color index or a color reference.

    Only the first 16 indices depend on the palette.

    Args:
        color: A color index (0-255), or a color reference.
        palette: Palette for the first 16 colors.

    Returns:
        An RGB color.

    Raises:
        ValueError: If the color index is outside 0-255.
    """
    match color:
        case Truecolor(red, green, blue):
            return Color(red, green, blue)
        case Indexed(index):
            pass
        case _:
            index = color

    if not 0 <= index <= 255:
        raise ValueError(f"color index must be in range 0-255; got {index}")
    if index < 8:
        return palette.base[index]
    if index < 16:
        return palette.bright[index - 8]
    if index < 232:
        index -= 16
        return Color(
            CUBE_STEPS[index // 36],
            CUBE_STEPS[(index % 36) // 6],
            CUBE_STEPS[index % 6],
        )
    grey = 8 + 10 * (index - 232)
    return Color(grey, grey, grey)
