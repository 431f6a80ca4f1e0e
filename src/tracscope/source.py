"""Sidechannel message source - newline-delimited JSON from a bridge process."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import stat
import sys
from typing import IO, Any, AsyncIterator, Callable, Protocol

log = logging.getLogger(__name__)

# Lines read from a regular file between event loop yields
_YIELD_EVERY = 256


class LineReader(Protocol):
    async def readline(self) -> bytes:
        ...


def decode_message(raw: Any) -> dict | None:
    """Decode a raw transport message (dict, JSON str or bytes) into a dict.

    Returns None for malformed JSON or non-object payloads.
    """
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            log.debug("Ignoring non-UTF-8 message")
            return None
    if not isinstance(raw, str):
        return None
    raw = raw.strip()
    if not raw:
        return None
    try:
        msg = json.loads(raw)
    except json.JSONDecodeError:
        log.debug("Ignoring malformed message: %.80s", raw)
        return None
    return msg if isinstance(msg, dict) else None


class _FileLineReader:
    """Regular files never block on read, so they are read inline.

    Hands control back to the event loop every ``_YIELD_EVERY`` lines so a
    large capture does not starve the server or delay a stop request.
    """

    def __init__(self, f: IO[bytes]) -> None:
        self._f = f
        self._lines = 0

    async def readline(self) -> bytes:
        self._lines += 1
        if self._lines % _YIELD_EVERY == 0:
            await asyncio.sleep(0)
        return self._f.readline()


class JsonLinesSource:
    """Async iterator of decoded messages read line by line. Ends at EOF."""

    def __init__(
        self,
        reader: LineReader,
        name: str = "<stream>",
        on_close: Callable[[], None] | None = None,
        reopenable: bool = False,
    ) -> None:
        self._reader = reader
        self._on_close = on_close
        self.reopenable = reopenable  # a FIFO gets new writers after EOF
        self.name = name
        self.lines_read = 0

    def __aiter__(self) -> AsyncIterator[dict]:
        return self._messages()

    async def _messages(self) -> AsyncIterator[dict]:
        while True:
            line = await self._reader.readline()
            if not line:
                log.info("Source %s reached EOF after %d lines", self.name, self.lines_read)
                return
            self.lines_read += 1
            msg = decode_message(line)
            if msg is not None:
                yield msg

    def close(self) -> None:
        if self._on_close is not None:
            self._on_close()
            self._on_close = None


async def open_source(path: str) -> JsonLinesSource:
    """Open ``"-"`` (stdin), a FIFO or a regular JSON-lines file."""
    if path == "-":
        f: IO[bytes] = sys.stdin.buffer
        name = "stdin"
    else:
        # Non-blocking so opening a FIFO does not wait for a writer
        f = os.fdopen(os.open(path, os.O_RDONLY | os.O_NONBLOCK), "rb")
        name = path

    mode = os.fstat(f.fileno()).st_mode
    if stat.S_ISREG(mode):
        close = None if f is sys.stdin.buffer else f.close
        return JsonLinesSource(_FileLineReader(f), name=name, on_close=close)

    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    transport, _ = await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), f)
    reopenable = stat.S_ISFIFO(mode) and f is not sys.stdin.buffer
    return JsonLinesSource(reader, name=name, on_close=transport.close, reopenable=reopenable)
