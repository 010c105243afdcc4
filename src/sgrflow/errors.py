from __future__ import annotations

from enum import Enum
from typing import Callable, NamedTuple

import rich.repr


class SGRFlowError(Exception):
    """Base class for sgrflow errors."""


class MalformedParameter(SGRFlowError):
    """A CSI parameter contained a character other than a digit or `;`."""


class PaletteError(SGRFlowError):
    """A palette could not be built from its color names."""


class DiagnosticKind(Enum):
    """Non-fatal conditions reported while filtering a stream."""

    MALFORMED_PARAMETER = "malformed-parameter"
    UNSUPPORTED_SGR_CODE = "unsupported-sgr-code"
    OUT_OF_RANGE_COLOR_COMPONENT = "out-of-range-color-component"
    UNSUPPORTED_CSI_TERMINATOR = "unsupported-csi-terminator"
    TRUECOLOR_UNAVAILABLE = "truecolor-unavailable"


@rich.repr.auto
class Diagnostic(NamedTuple):
    """A recoverable problem found in the input.

    The stream has already recovered by the time a diagnostic is reported.
    """

    kind: DiagnosticKind
    """The kind of problem."""
    message: str
    """Human readable description."""

    def __rich_repr__(self) -> rich.repr.Result:
        yield self.kind.value
        yield self.message


type ReportDiagnostic = Callable[[DiagnosticKind, str], None]
