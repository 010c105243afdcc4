from __future__ import annotations

from sgrflow.ansi import (
    ANSIStream,
    ansi_filter,
    clear_style_cache,
    colorize,
    segments_to_content,
)
from sgrflow.config import FilterConfig
from sgrflow.errors import (
    Diagnostic,
    DiagnosticKind,
    MalformedParameter,
    PaletteError,
    SGRFlowError,
)
from sgrflow.graphics import Attribute, ColorRef, GraphicsState, Indexed, Truecolor
from sgrflow.palette import DEFAULT_PALETTE, Palette, resolve_color
from sgrflow.style_cache import StyleCache
from sgrflow.tokenizer import ParserMode

__all__ = [
    "ANSIStream",
    "Attribute",
    "ColorRef",
    "DEFAULT_PALETTE",
    "Diagnostic",
    "DiagnosticKind",
    "FilterConfig",
    "GraphicsState",
    "Indexed",
    "MalformedParameter",
    "Palette",
    "PaletteError",
    "ParserMode",
    "SGRFlowError",
    "StyleCache",
    "Truecolor",
    "ansi_filter",
    "clear_style_cache",
    "colorize",
    "resolve_color",
    "segments_to_content",
]
