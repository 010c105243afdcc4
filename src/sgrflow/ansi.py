from __future__ import annotations

from dataclasses import replace
from itertools import groupby
from operator import itemgetter
from typing import Callable, Iterable

from rich.segment import Segment
from rich.style import Style
from rich.text import Text
from textual import log
from textual.content import Content

from sgrflow.config import FilterConfig
from sgrflow.errors import Diagnostic, DiagnosticKind
from sgrflow.graphics import GraphicsState
from sgrflow.palette import Palette
from sgrflow.sgr import apply_sgr
from sgrflow.style_cache import StyleCache
from sgrflow.tokenizer import ParserMode, Tokenizer


def character_styles(text: Text) -> list[Style | None]:
    """Get the style for each character in a Rich Text.

    Args:
        text: Rich Text.

    Returns:
        A list with a Style (or `None` if unstyled) per character.
    """

    def get_style(style: str | Style) -> Style:
        return Style.parse(style) if isinstance(style, str) else style

    base_style = get_style(text.style)
    styles: list[Style | None] = [base_style or None] * len(text)
    for start, end, span_style in text.spans:
        span_style = get_style(span_style)
        for offset in range(start, min(end, len(styles))):
            style = styles[offset]
            styles[offset] = span_style if style is None else style + span_style
    return styles


class ANSIStream:
    """Converts a stream of text containing SGR escape sequences in to segments.

    Text may be fed in chunks of any size. The result of filtering a number of
    chunks is the same as filtering their concatenation.

    Args:
        config: Filter configuration.
        style_cache: A style cache to share with other streams, or `None` to
            create one from the configuration.
        on_diagnostic: Callable to receive diagnostics (if enabled in the config),
            or `None` to log them.
    """

    def __init__(
        self,
        config: FilterConfig | None = None,
        style_cache: StyleCache | None = None,
        on_diagnostic: Callable[[Diagnostic], None] | None = None,
    ) -> None:
        self.config = config = config or FilterConfig()
        self.style_cache = (
            StyleCache(config.palette, config.bright_as_bold)
            if style_cache is None
            else style_cache
        )
        self.on_diagnostic = on_diagnostic
        self.state = GraphicsState()
        self._tokenizer = Tokenizer(
            self._on_text, self._flush, self._on_sgr, self._report
        )
        self._pending: list[tuple[str, Style | None]] = []
        self._existing_styles: list[Style | None] | None = None
        self._escape_style: Style | None = None
        self._segments: list[Segment] = []

    @property
    def mode(self) -> ParserMode:
        """The current tokenizer mode."""
        return self._tokenizer.mode

    def reset(self) -> None:
        """Reset the stream to its initial state."""
        self.state.reset()
        self._tokenizer.reset()
        self._pending.clear()
        self._escape_style = None

    def configure(
        self, palette: Palette | None = None, bright_as_bold: bool | None = None
    ) -> None:
        """Change the palette or the rendering of bright text.

        This clears the style cache. A shared cache is reconfigured for every
        stream using it, although their `config` attributes are unchanged.
        """
        if palette is not None:
            self.config = replace(self.config, palette=palette)
        if bright_as_bold is not None:
            self.config = replace(self.config, bright_as_bold=bright_as_bold)
        self.style_cache.configure(palette, bright_as_bold)

    def filter(self, chunk: str | Text) -> list[Segment]:
        """Filter a chunk of text.

        Args:
            chunk: Text which may contain (partial) escape sequences. If this is a
                Rich Text and `preserve_styles` is enabled, its styles are kept.

        Returns:
            Styled segments, in the order of the source text.
        """
        if isinstance(chunk, Text):
            if self.config.preserve_styles:
                self._existing_styles = character_styles(chunk)
            chunk = chunk.plain
        self._segments = segments = []
        try:
            self._tokenizer.feed(chunk)
            if chunk and self.mode is ParserMode.ESCAPE:
                # The chunk ended with an escape, which may turn out to be text
                existing_styles = self._existing_styles
                self._escape_style = existing_styles[-1] if existing_styles else None
        finally:
            self._existing_styles = None
            self._segments = []
        return segments

    def _on_text(self, text: str, offset: int | None) -> None:
        if offset is None:
            self._pending.append((text, self._escape_style))
            return
        existing_styles = self._existing_styles
        if existing_styles is None:
            self._pending.append((text, None))
            return
        styles = existing_styles[offset : offset + len(text)]
        position = 0
        for style, run in groupby(styles):
            run_length = sum(1 for _ in run)
            self._pending.append((text[position : position + run_length], style))
            position += run_length

    def _flush(self) -> None:
        if not self._pending:
            return
        state = self.state
        sgr_style = None if state.is_default else self.style_cache.get(state)
        for existing_style, pieces in groupby(self._pending, key=itemgetter(1)):
            text = "".join(piece for piece, _ in pieces)
            if existing_style is None:
                style = sgr_style
            elif sgr_style is None:
                style = existing_style
            else:
                style = existing_style + sgr_style
            self._segments.append(Segment(text, style))
        self._pending.clear()

    def _on_sgr(self, parameters: list[int]) -> None:
        apply_sgr(
            self.state,
            parameters,
            truecolor=self.config.truecolor,
            report=self._report,
        )

    def _report(self, kind: DiagnosticKind, message: str) -> None:
        if not self.config.diagnostics:
            return
        diagnostic = Diagnostic(kind, message)
        if self.on_diagnostic is not None:
            self.on_diagnostic(diagnostic)
        else:
            log.warning(f"{kind.value}: {message}")


def ansi_filter(stream: ANSIStream, chunk: str | Text) -> list[Segment]:
    """Filter a chunk of text through a stream.

    Args:
        stream: The stream the chunk belongs to.
        chunk: Text containing SGR escape sequences.

    Returns:
        Styled segments.
    """
    return stream.filter(chunk)


def clear_style_cache(target: ANSIStream | StyleCache) -> None:
    """Clear the style cache of a stream (or a shared style cache).

    Args:
        target: A stream, or a style cache.
    """
    style_cache = target.style_cache if isinstance(target, ANSIStream) else target
    style_cache.clear()


def segments_to_content(segments: Iterable[Segment]) -> Content:
    """Assemble segments in to Textual content.

    Args:
        segments: Segments from `ANSIStream.filter`.

    Returns:
        Content.
    """
    text = Text.assemble(
        *[
            (segment.text, segment.style) if segment.style else segment.text
            for segment in segments
        ],
        end="",
    )
    return Content.from_rich_text(text)


def colorize(text: str | Text, config: FilterConfig | None = None) -> Content:
    """Convert a complete text containing SGR escape sequences in to content.

    Args:
        text: Text to convert.
        config: Filter configuration, or `None` for defaults.

    Returns:
        Textual content.
    """
    return segments_to_content(ANSIStream(config).filter(text))
