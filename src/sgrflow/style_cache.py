from __future__ import annotations

import threading

from rich.style import Style

from sgrflow.graphics import (
    ATTRIBUTE_BITS,
    Attribute,
    ColorRef,
    GraphicsState,
    Indexed,
    Truecolor,
)
from sgrflow.palette import DEFAULT_PALETTE, Palette, resolve_color

# Indexed keys: attributes | background slot | foreground slot, 9 bits per slot.
INDEXED_SLOT_BITS = 9
INDEXED_NONE = 1 << 8

# Truecolor keys: a 2-bit tag above a 24-bit payload per slot.
WIDE_SLOT_BITS = 26
WIDE_TAG_INDEXED = 1 << 24
WIDE_TAG_TRUECOLOR = 2 << 24
WIDE_KEY_FLAG = 1 << (ATTRIBUTE_BITS + 2 * WIDE_SLOT_BITS + 3)


def _indexed_slot(color: Indexed | None) -> int:
    return INDEXED_NONE if color is None else color.index


def _wide_slot(color: ColorRef | None) -> int:
    match color:
        case None:
            return 0
        case Indexed(index):
            return WIDE_TAG_INDEXED | index
        case Truecolor(red, green, blue):
            return WIDE_TAG_TRUECOLOR | red << 16 | green << 8 | blue
    raise AssertionError(f"not a color reference: {color!r}")


def pack_key(
    attributes: Attribute,
    foreground: ColorRef | None,
    background: ColorRef | None,
) -> int:
    """Pack attributes and colors in to an integer cache key.

    Args:
        attributes: Attribute flags.
        foreground: Foreground color.
        background: Background color.

    Returns:
        A key unique to the combination.
    """
    if isinstance(foreground, Truecolor) or isinstance(background, Truecolor):
        return (
            WIDE_KEY_FLAG
            | int(attributes) << (2 * WIDE_SLOT_BITS)
            | _wide_slot(background) << WIDE_SLOT_BITS
            | _wide_slot(foreground)
        )
    return (
        int(attributes) << (2 * INDEXED_SLOT_BITS)
        | _indexed_slot(background) << INDEXED_SLOT_BITS
        | _indexed_slot(foreground)
    )


class StyleCache:
    """Caches the Rich style for each combination of colors and attributes.

    A cache may be shared by streams with the same palette. Entries are only
    removed by `clear`, which is called when the palette changes.
    """

    def __init__(
        self, palette: Palette = DEFAULT_PALETTE, bright_as_bold: bool = False
    ) -> None:
        self._palette = palette
        self._bright_as_bold = bright_as_bold
        self._styles: dict[int, Style] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._styles)

    def __contains__(self, state: object) -> bool:
        if not isinstance(state, GraphicsState):
            return False
        key = pack_key(state.attributes, state.foreground, state.background)
        return key in self._styles

    @property
    def palette(self) -> Palette:
        return self._palette

    @property
    def bright_as_bold(self) -> bool:
        return self._bright_as_bold

    def clear(self) -> None:
        """Remove all cached styles."""
        with self._lock:
            self._styles.clear()
            self._generation += 1

    def configure(
        self, palette: Palette | None = None, bright_as_bold: bool | None = None
    ) -> None:
        """Update the configuration, which invalidates the cache.

        Args:
            palette: New palette, or `None` to keep the current palette.
            bright_as_bold: Render the bright attribute as bold, or `None` for no change.
        """
        with self._lock:
            if palette is not None:
                self._palette = palette
            if bright_as_bold is not None:
                self._bright_as_bold = bright_as_bold
            self._styles.clear()
            self._generation += 1

    def get(self, state: GraphicsState) -> Style:
        """Get the style for a graphics state.

        Args:
            state: Graphics state.

        Returns:
            A Rich style.
        """
        key = pack_key(state.attributes, state.foreground, state.background)
        if (style := self._styles.get(key)) is not None:
            return style
        generation = self._generation
        style = self.build_style(state.attributes, state.foreground, state.background)
        with self._lock:
            if generation != self._generation:
                # Invalidated while building, so the style may be stale
                return style
            return self._styles.setdefault(key, style)

    def build_style(
        self,
        attributes: Attribute,
        foreground: ColorRef | None,
        background: ColorRef | None,
    ) -> Style:
        """Build a style (without caching)."""
        bright = Attribute.BRIGHT in attributes
        if bright and isinstance(foreground, Indexed) and foreground.index < 8:
            foreground = Indexed(foreground.index + 8)
        palette = self._palette
        return Style(
            color=(
                None
                if foreground is None
                else resolve_color(foreground, palette).rich_color
            ),
            bgcolor=(
                None
                if background is None
                else resolve_color(background, palette).rich_color
            ),
            bold=True if bright and self._bright_as_bold else None,
            italic=True if Attribute.ITALIC in attributes else None,
            underline=True if Attribute.UNDERLINE in attributes else None,
            strike=True if Attribute.STRIKE in attributes else None,
            reverse=True if Attribute.NEGATIVE in attributes else None,
            frame=True if Attribute.FRAME in attributes else None,
            overline=True if Attribute.OVERLINE in attributes else None,
        )
