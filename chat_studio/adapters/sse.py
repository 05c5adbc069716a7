"""
Line scanning and parsing for OpenAI-style server-sent event streams.

Kept independent of the HTTP transport so fragmentation can be tested
with synthetic byte chunks.
"""

import codecs
import json
import logging
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSELineScanner:
    """
    Splits an incrementally received body into complete lines.

    The text after the last newline is held back until a later feed()
    terminates it. Bytes are decoded incrementally so a multibyte
    character split across reads is reassembled.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> str:
        """Unterminated text waiting for its newline."""
        return self._pending

    def feed(self, data: Union[bytes, str]) -> Iterator[str]:
        """Add received data and yield every line it completes."""
        if isinstance(data, bytes):
            data = self._decoder.decode(data)
        buffer = self._pending + data
        *lines, self._pending = buffer.split("\n")
        yield from lines


def is_done_line(line: str) -> bool:
    return line.strip() == DATA_PREFIX + DONE_SENTINEL


def parse_sse_line(line: str) -> Optional[str]:
    """
    Extract the delta content from one complete stream line.

    Returns None for lines that carry no text: blank lines, comments and
    other fields, the [DONE] sentinel, malformed JSON, and payloads without
    choices[0].delta.content.
    """
    trimmed = line.strip()
    if not trimmed.startswith(DATA_PREFIX):
        return None
    data = trimmed[len(DATA_PREFIX):]
    if data == DONE_SENTINEL:
        return None
    try:
        chunk = json.loads(data)
    except json.JSONDecodeError:
        logger.debug(f"Skipping malformed stream line: {trimmed[:200]}")
        return None

    try:
        content = chunk["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    if not isinstance(content, str) or not content:
        return None
    return content
