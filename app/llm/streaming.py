"""
Streaming Module

Adapts the Workers AI Server-Sent Events stream into the line-delimited JSON
stream served to the browser.

Upstream framing (one event per line, blank line between events):
    data: {"response": "Hello", "p": "abc"}
    data: {"response": " world"}
    data: [DONE]

Outward framing (one JSON object per line):
    {"response": "Hello"}
    {"response": " world"}
"""

import codecs
import json
from typing import AsyncIterable, AsyncIterator, List, Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

DONE_SENTINEL = "[DONE]"
DATA_PREFIX = "data:"


class LineSplitter:
    """
    Incremental bytes -> lines decoder.

    Holds the UTF-8 decoder state and the unterminated tail between chunks,
    so a multi-byte character or a line split across chunk boundaries is
    reassembled before it is handed out.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)()
        self._tail = ""

    def feed(self, chunk: bytes) -> List[str]:
        """Decode a chunk and return every line completed by it."""
        text = self._tail + self._decoder.decode(chunk)
        *lines, self._tail = text.split("\n")
        return [line.rstrip("\r") for line in lines]

    def close(self) -> str:
        """Flush the decoder and return whatever unterminated text is left."""
        rest = self._tail + self._decoder.decode(b"", final=True)
        self._tail = ""
        return rest


def parse_event_line(line: str, field: str = settings.STREAM_PAYLOAD_FIELD) -> Optional[bytes]:
    """
    Turn one SSE line into one NDJSON line.

    Args:
        line: A single line without its line feed
        field: Payload field to extract

    Returns:
        Encoded output line, or None when the line carries nothing to emit
    """
    data = line.strip()
    if not data:
        return None
    if data.startswith(DATA_PREFIX):
        data = data[len(DATA_PREFIX):].strip()
    if not data or data == DONE_SENTINEL:
        return None

    try:
        event = json.loads(data)
    except json.JSONDecodeError:
        logger.debug(f"Skipping non-JSON stream line: {data[:80]}")
        return None

    if not isinstance(event, dict) or field not in event:
        return None

    line = json.dumps({field: event[field]}, separators=(",", ":"), ensure_ascii=False)
    return (line + "\n").encode("utf-8")


async def translate_event_stream(
    chunks: AsyncIterable[bytes],
    field: str = settings.STREAM_PAYLOAD_FIELD,
) -> AsyncIterator[bytes]:
    """
    Re-frame an SSE byte stream as NDJSON.

    The next upstream chunk is only pulled after every line completed by the
    previous one has been yielded. Read errors from ``chunks`` propagate to
    the caller so the outward stream ends abruptly instead of cleanly.

    Args:
        chunks: Raw upstream byte chunks, arbitrary boundaries
        field: Payload field to extract from each event

    Yields:
        One encoded JSON line per usable event
    """
    splitter = LineSplitter()
    emitted = 0
    try:
        async for chunk in chunks:
            for line in splitter.feed(chunk):
                out = parse_event_line(line, field)
                if out is not None:
                    emitted += 1
                    yield out
    except Exception as e:
        logger.error(f"Error reading upstream stream after {emitted} events: {e}")
        raise

    leftover = splitter.close()
    if leftover.strip():
        logger.debug(f"Dropping unterminated trailing data: {leftover[:80]}")

    logger.debug(f"Stream translation finished ({emitted} events)")


async def relay_upstream(
    response: httpx.Response,
    translate: bool = True,
    field: str = settings.STREAM_PAYLOAD_FIELD,
) -> AsyncIterator[bytes]:
    """
    Own an open upstream response for the lifetime of the outward stream.

    The response is closed on every exit path: clean end, upstream read
    error, and downstream disconnect (the server closes this generator).

    Args:
        response: Upstream response opened with ``stream=True``
        translate: Re-frame SSE into NDJSON, or pass raw bytes through
        field: Payload field used when translating

    Yields:
        Bytes for the outward response body
    """
    try:
        if translate:
            async for line in translate_event_stream(response.aiter_bytes(), field):
                yield line
        else:
            async for chunk in response.aiter_bytes():
                yield chunk
    finally:
        await response.aclose()
        logger.debug("Upstream response closed")
