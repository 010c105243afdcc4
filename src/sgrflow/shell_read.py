from __future__ import annotations

import asyncio
import codecs
from time import monotonic
from typing import AsyncIterator


async def shell_read(
    reader: asyncio.StreamReader,
    buffer_size: int,
    max_buffer_duration: float,
) -> bytes:
    """Read data from a stream reader, with buffer logic to reduce the number of chunks.

    Args:
        reader: A reader instance.
        buffer_size: Maximum buffer size.
        max_buffer_duration: Maximum time in seconds to buffer data.

    Returns:
        Bytes read. May be empty on the last read.
    """
    data = await reader.read(buffer_size)
    if data:
        buffer_time = monotonic() + max_buffer_duration
        # Accumulate data for a short period of time, or until we have enough data
        try:
            while len(data) < buffer_size and (time := monotonic()) < buffer_time:
                async with asyncio.timeout(buffer_time - time):
                    if not (more_data := await reader.read(buffer_size - len(data))):
                        break
                    data += more_data
        except asyncio.TimeoutError:
            pass
    return data


async def read_chunks(
    reader: asyncio.StreamReader,
    buffer_size: int = 16 * 1024,
    max_buffer_duration: float = 1 / 60,
) -> AsyncIterator[str]:
    """Read text chunks from a process, ready to be filtered.

    Multi-byte characters split across reads are decoded whole. Escape sequences
    may still be split, which `ANSIStream` handles.

    Args:
        reader: A reader instance.
        buffer_size: Maximum buffer size.
        max_buffer_duration: Maximum time in seconds to buffer data.

    Yields:
        Decoded text.
    """
    unicode_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while data := await shell_read(reader, buffer_size, max_buffer_duration):
        if text := unicode_decoder.decode(data):
            yield text
    if text := unicode_decoder.decode(b"", final=True):
        yield text
