from __future__ import annotations

from enum import Enum, auto
from typing import Callable

from sgrflow.errors import DiagnosticKind, MalformedParameter, ReportDiagnostic
from sgrflow.sgr import parse_parameters

ESCAPE = "\x1b"
BELL = "\x07"
CSI_FINAL = frozenset(map(chr, range(0x40, 0x7E + 1)))


class ParserMode(Enum):
    """Where the tokenizer is within an escape sequence."""

    PLAIN = auto()
    ESCAPE = auto()
    CSI = auto()
    OSC = auto()
    OSC_ESCAPE = auto()


class Tokenizer:
    """Splits a stream of text in to plain text and SGR sequences.

    Any sequence may be split over calls to `feed`; the tokenizer resumes where
    it left off.

    Args:
        on_text: Called with plain text, and the offset of the text within the
            chunk (or `None` for an escape character at the end of a previous chunk).
        on_flush: Called when pending text should be emitted.
        on_sgr: Called with the parameters of an SGR sequence.
        report: Called to report diagnostics.
    """

    def __init__(
        self,
        on_text: Callable[[str, int | None], None],
        on_flush: Callable[[], None],
        on_sgr: Callable[[list[int]], None],
        report: ReportDiagnostic,
    ) -> None:
        self.on_text = on_text
        self.on_flush = on_flush
        self.on_sgr = on_sgr
        self.report = report
        self.mode = ParserMode.PLAIN
        self._parameters: list[str] = []

    def reset(self) -> None:
        self.mode = ParserMode.PLAIN
        self._parameters.clear()

    def feed(self, text: str) -> None:
        """Feed a chunk of text.

        Args:
            text: Text, which may contain partial escape sequences.
        """
        position = 0
        length = len(text)
        find = text.find
        escape_offset: int | None = None

        while position < length:
            if self.mode is ParserMode.PLAIN:
                escape_position = find(ESCAPE, position)
                if escape_position == -1:
                    self.on_text(text[position:], position)
                    break
                if escape_position > position:
                    self.on_text(text[position:escape_position], position)
                self.on_flush()
                self.mode = ParserMode.ESCAPE
                escape_offset = escape_position
                position = escape_position + 1
                continue

            character = text[position]
            match self.mode:
                case ParserMode.ESCAPE:
                    if character == "[":
                        self.mode = ParserMode.CSI
                    elif character == "]":
                        self.mode = ParserMode.OSC
                    else:
                        # Not a sequence we know; the escape is plain text
                        self.on_text(ESCAPE, escape_offset)
                        self.on_text(character, position)
                        self.mode = ParserMode.PLAIN

                case ParserMode.CSI:
                    if character in CSI_FINAL:
                        self._dispatch_csi(character)
                        self.mode = ParserMode.PLAIN
                    else:
                        self._parameters.append(character)

                case ParserMode.OSC:
                    if character == BELL:
                        self.mode = ParserMode.PLAIN
                    elif character == ESCAPE:
                        self.mode = ParserMode.OSC_ESCAPE

                case ParserMode.OSC_ESCAPE:
                    self.mode = (
                        ParserMode.PLAIN if character == "\\" else ParserMode.OSC
                    )

            position += 1

        if self.mode is ParserMode.PLAIN:
            self.on_flush()

    def _dispatch_csi(self, final: str) -> None:
        parameters = "".join(self._parameters)
        self._parameters.clear()
        if final != "m":
            self.report(
                DiagnosticKind.UNSUPPORTED_CSI_TERMINATOR,
                f"Ignoring CSI sequence {parameters + final!r}",
            )
            return
        try:
            sgr_parameters = parse_parameters(parameters)
        except MalformedParameter as error:
            self.report(DiagnosticKind.MALFORMED_PARAMETER, str(error))
            sgr_parameters = [0]
        self.on_sgr(sgr_parameters)
