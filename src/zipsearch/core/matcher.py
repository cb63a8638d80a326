"""
Line-oriented literal substring matching over byte streams.

Lines are reconstructed across arbitrary read-chunk boundaries, so a line
split between two reads is still tested as one logical line.
"""

import lzma
import threading
import zipfile
import zlib
from dataclasses import dataclass
from typing import IO, Iterator, Optional, Union

from .exceptions import (
    ConfigurationError,
    EmptyQueryError,
    ReadFailureError,
    SearchCancelledError,
)
from .models import MatchLine


LINE_TERMINATOR = b"\n"


def normalize_needle(needle: str) -> str:
    """
    Trim the search fragment once, before any scanning.

    Raises:
        EmptyQueryError: nothing is left after trimming
    """
    trimmed = (needle or "").strip()
    if not trimmed:
        raise EmptyQueryError("Search text is empty after trimming whitespace")
    return trimmed


def encode_needle(needle: str, encoding: str = "utf-8") -> bytes:
    """
    Trim and encode the search fragment into the bytes matched against lines.

    Raises:
        EmptyQueryError: nothing is left after trimming
        ConfigurationError: the configured encoding cannot represent it
    """
    trimmed = normalize_needle(needle)
    try:
        return trimmed.encode(encoding)
    except UnicodeEncodeError as e:
        raise ConfigurationError(
            f"Search text cannot be encoded as {encoding}",
            config_key="encoding",
            details={"error": str(e)}
        ) from e


@dataclass(frozen=True)
class LineMatch:
    """Outcome for one logical line."""
    line_number: int
    text: str
    is_match: bool

    def to_match_line(self) -> MatchLine:
        return MatchLine(line_number=self.line_number, text=self.text)


class LineMatcher:
    """
    Scans a byte stream line by line for a literal fragment.

    Matching is byte-for-byte and case-sensitive against the untrimmed line;
    only the reported text is trimmed.
    """

    def __init__(
        self,
        chunk_size: int = 64 * 1024,
        encoding: str = "utf-8",
        decode_errors: str = "replace"
    ):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size
        self.encoding = encoding
        self.decode_errors = decode_errors

    def scan(
        self,
        stream: IO[bytes],
        needle: Union[str, bytes],
        cancel_event: Optional[threading.Event] = None,
        entry_name: Optional[str] = None
    ) -> Iterator[LineMatch]:
        """
        Lazily yield a LineMatch for every logical line of the stream.

        Args:
            stream: Binary stream with a read(size) method
            needle: Already trimmed, non-empty search fragment; text is
                encoded with the matcher's encoding, bytes are used as-is
            cancel_event: Checked before every read
            entry_name: Used in error messages only

        Yields:
            LineMatch per line, line numbers starting at 1

        Raises:
            EmptyQueryError: needle is empty
            ConfigurationError: needle cannot be encoded
            ReadFailureError: the stream errored mid-read
            SearchCancelledError: cancel_event was set
        """
        if not needle:
            raise EmptyQueryError("Refusing to scan with an empty search text")
        pattern = needle if isinstance(needle, bytes) else encode_needle(needle, self.encoding)

        line_number = 1
        pending = bytearray()
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise SearchCancelledError(f"Search cancelled while reading {entry_name or 'stream'}")
            chunk = self._read_chunk(stream, entry_name)
            if not chunk:
                break

            pieces = chunk.split(LINE_TERMINATOR)
            if len(pieces) == 1:
                pending.extend(chunk)
                continue

            # First piece completes the buffered partial line
            pending.extend(pieces[0])
            yield self._evaluate(line_number, bytes(pending), pattern, entry_name)
            line_number += 1
            for raw in pieces[1:-1]:
                yield self._evaluate(line_number, raw, pattern, entry_name)
                line_number += 1
            pending = bytearray(pieces[-1])

        # Final line without a trailing terminator
        if pending:
            yield self._evaluate(line_number, bytes(pending), pattern, entry_name)

    def find_matches(
        self,
        stream: IO[bytes],
        needle: Union[str, bytes],
        cancel_event: Optional[threading.Event] = None,
        entry_name: Optional[str] = None
    ) -> Iterator[MatchLine]:
        """Yield only the matching lines of the stream."""
        for line in self.scan(stream, needle, cancel_event, entry_name):
            if line.is_match:
                yield line.to_match_line()

    def _read_chunk(self, stream: IO[bytes], entry_name: Optional[str]) -> bytes:
        try:
            return stream.read(self.chunk_size)
        except (zipfile.BadZipFile, zlib.error, lzma.LZMAError, OSError, EOFError) as e:
            raise ReadFailureError(
                f"Error reading entry: {entry_name or 'stream'}",
                entry_name=entry_name,
                details={"error": str(e)}
            ) from e

    def _evaluate(
        self,
        line_number: int,
        raw: bytes,
        pattern: bytes,
        entry_name: Optional[str] = None
    ) -> LineMatch:
        try:
            text = raw.decode(self.encoding, errors=self.decode_errors).strip()
        except UnicodeDecodeError as e:
            raise ReadFailureError(
                f"Line {line_number} of {entry_name or 'stream'} is not valid {self.encoding}",
                entry_name=entry_name,
                details={"error": str(e)}
            ) from e
        return LineMatch(line_number=line_number, text=text, is_match=pattern in raw)
