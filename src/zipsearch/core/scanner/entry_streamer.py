"""
Per-entry decompression streams.
"""

import logging
import lzma
import zipfile
import zlib
from contextlib import contextmanager
from typing import IO, Iterator

from ..exceptions import StreamUnavailableError
from ..models import EntryInfo
from .archive_scanner import Archive

logger = logging.getLogger(__name__)


class EntryStreamer:
    """Opens decompressed byte streams for archive entries."""

    def open_stream(self, archive: Archive, entry: EntryInfo) -> IO[bytes]:
        """
        Open a decompressed stream for one entry.

        The caller owns the returned stream and must close it; prefer
        ``stream(archive, entry)`` which does that on every exit path.

        Raises:
            StreamUnavailableError: the member cannot be opened (bad local
                header, encryption, unsupported compression method)
        """
        try:
            return archive.handle.open(self._member(archive, entry), 'r')
        except (zipfile.BadZipFile, RuntimeError, NotImplementedError,
                KeyError, OSError, EOFError, zlib.error, lzma.LZMAError) as e:
            raise StreamUnavailableError(
                f"Cannot open stream for entry: {entry.name}",
                entry_name=entry.name,
                details={"error": str(e)}
            ) from e

    def _member(self, archive: Archive, entry: EntryInfo) -> zipfile.ZipInfo:
        # Resolve by directory position; names may repeat within one archive
        members = archive.handle.infolist()
        if not 0 <= entry.index < len(members) or members[entry.index].filename != entry.name:
            raise KeyError(f"No member {entry.name!r} at index {entry.index}")
        return members[entry.index]

    @contextmanager
    def stream(self, archive: Archive, entry: EntryInfo) -> Iterator[IO[bytes]]:
        """Context manager around open_stream that always closes the stream."""
        handle = self.open_stream(archive, entry)
        try:
            yield handle
        finally:
            handle.close()
            logger.debug(f"Closed stream for entry {entry.name}")
