from __future__ import annotations

from dataclasses import dataclass

from sgrflow.palette import DEFAULT_PALETTE, Palette
from sgrflow.settings import Settings


@dataclass(frozen=True)
class FilterConfig:
    """Configuration for an ANSI stream."""

    palette: Palette = DEFAULT_PALETTE
    """Colors for the first 16 indices."""
    bright_as_bold: bool = False
    """Render the bright attribute (SGR 1) as bold, as well as a bright color."""
    preserve_styles: bool = False
    """Keep the style already applied to input text (when given rich `Text`)."""
    diagnostics: bool = False
    """Report problems found in the input."""
    truecolor: bool = True
    """Support 24-bit colors (SGR 38;2 and 48;2)."""

    @classmethod
    def from_settings(cls, settings: Settings) -> FilterConfig:
        """Build a config from settings.

        Args:
            settings: Settings built from `sgrflow.settings_schema.SCHEMA`.

        Raises:
            PaletteError: If the palette colors are invalid.
            InvalidValue: If a setting has the wrong type.

        Returns:
            Filter configuration.
        """
        return cls(
            palette=Palette.from_names(
                settings.get("palette.base", list),
                settings.get("palette.bright", list),
            ),
            bright_as_bold=settings.get("filter.bright_as_bold", bool),
            preserve_styles=settings.get("filter.preserve_styles", bool),
            diagnostics=settings.get("filter.diagnostics", bool),
            truecolor=settings.get("filter.truecolor", bool),
        )
