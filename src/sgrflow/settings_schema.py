from __future__ import annotations

from sgrflow.palette import DEFAULT_BASE_COLORS, DEFAULT_BRIGHT_COLORS
from sgrflow.settings import SchemaDict

SCHEMA: list[SchemaDict] = [
    {
        "key": "palette",
        "title": "Palette",
        "type": "object",
        "help": "Colors used for the first 16 entries of the color table.",
        "fields": [
            {
                "key": "base",
                "title": "Base colors",
                "type": "string_list",
                "help": "Colors 0-7 (black, red, green, yellow, blue, magenta, cyan, white).",
                "default": list(DEFAULT_BASE_COLORS),
            },
            {
                "key": "bright",
                "title": "Bright colors",
                "type": "string_list",
                "help": "Colors 8-15, used by AIXTERM codes and the bright attribute.",
                "default": list(DEFAULT_BRIGHT_COLORS),
            },
        ],
    },
    {
        "key": "filter",
        "title": "Filter",
        "type": "object",
        "fields": [
            {
                "key": "bright_as_bold",
                "title": "Render bright as bold",
                "type": "boolean",
                "default": False,
            },
            {
                "key": "preserve_styles",
                "title": "Preserve existing styles",
                "type": "boolean",
                "help": "Keep styles already applied to text that contains no escape sequences.",
                "default": False,
            },
            {
                "key": "diagnostics",
                "title": "Report diagnostics",
                "type": "boolean",
                "default": False,
            },
            {
                "key": "truecolor",
                "title": "24-bit color",
                "type": "boolean",
                "default": True,
            },
        ],
    },
]
