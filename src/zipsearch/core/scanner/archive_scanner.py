"""
Archive reader and scanner for zip archives.

Entries are listed from the central directory without decompressing them.
"""

import logging
import os
import zipfile
from pathlib import Path
from typing import List, Dict, Iterator, Any, Optional, Union

from ..base import Scanner
from ..exceptions import (
    ArchiveError,
    ArchiveNotFoundError,
    ArchiveNotReadableError,
    CorruptArchiveError,
)
from ..models import EntryInfo

logger = logging.getLogger(__name__)


class Archive:
    """An opened archive: path, byte size and the underlying zip handle."""

    def __init__(self, path: Path, size_bytes: int, handle: zipfile.ZipFile):
        self.path = path
        self.size_bytes = size_bytes
        self._handle: Optional[zipfile.ZipFile] = handle

    @property
    def closed(self) -> bool:
        return self._handle is None

    @property
    def readable(self) -> bool:
        return not self.closed

    @property
    def handle(self) -> zipfile.ZipFile:
        if self._handle is None:
            raise ArchiveError(f"Archive is closed: {self.path}", archive_path=str(self.path))
        return self._handle

    def close(self) -> None:
        """Release the file handle. Safe to call more than once."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            logger.debug(f"Closed archive {self.path}")

    def __enter__(self) -> "Archive":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"Archive(path={str(self.path)!r}, size_bytes={self.size_bytes}, {state})"


class ArchiveReader:
    """Opens and validates archives and lists their entries."""

    def open(self, path: Union[str, Path]) -> Archive:
        """
        Open an archive for reading.

        Args:
            path: Path to the zip file

        Returns:
            An open Archive; use it as a context manager or call close()

        Raises:
            ArchiveNotFoundError: path does not exist
            ArchiveNotReadableError: path is not a readable file
            CorruptArchiveError: central directory cannot be parsed
        """
        archive_path = Path(path)
        if not archive_path.exists():
            raise ArchiveNotFoundError(
                f"The archive path is invalid or the file does not exist: {archive_path}",
                archive_path=str(archive_path)
            )
        if not archive_path.is_file() or not os.access(archive_path, os.R_OK):
            raise ArchiveNotReadableError(
                f"The archive is not a readable file: {archive_path}",
                archive_path=str(archive_path)
            )

        try:
            size_bytes = archive_path.stat().st_size
            handle = zipfile.ZipFile(archive_path)
        except PermissionError as e:
            raise ArchiveNotReadableError(
                f"Permission denied reading archive: {archive_path}",
                archive_path=str(archive_path),
                details={"error": str(e)}
            ) from e
        except (zipfile.BadZipFile, EOFError, ValueError) as e:
            raise CorruptArchiveError(
                f"Cannot parse archive directory: {archive_path}",
                archive_path=str(archive_path),
                details={"error": str(e)}
            ) from e
        except OSError as e:
            raise ArchiveNotReadableError(
                f"Error opening archive: {archive_path}",
                archive_path=str(archive_path),
                details={"error": str(e)}
            ) from e

        logger.debug(f"Opened archive {archive_path} ({size_bytes} bytes)")
        return Archive(archive_path, size_bytes, handle)

    def list_entries(self, archive: Archive) -> List[EntryInfo]:
        """
        List entries in the archive's native directory order.

        Args:
            archive: An open archive

        Returns:
            List of EntryInfo objects
        """
        return [
            EntryInfo(
                name=info.filename,
                index=index,
                compressed_size=info.compress_size,
                file_size=info.file_size
            )
            for index, info in enumerate(archive.handle.infolist())
        ]

    def close(self, archive: Archive) -> None:
        """Release the archive's file handle. Idempotent."""
        archive.close()


class ArchiveScanner(Scanner[EntryInfo]):
    """Scanner for zip archives that lists members without extraction."""

    def __init__(self, config=None, reader: Optional[ArchiveReader] = None):
        super().__init__(config)
        self.reader = reader or ArchiveReader()

    def scan_iterator(self, target: Any) -> Iterator[EntryInfo]:
        """
        Scan entries within an archive without extraction.

        Args:
            target: Path to a zip archive

        Yields:
            EntryInfo objects for each member in directory order
        """
        with self.reader.open(target) as archive:
            for entry in self.reader.list_entries(archive):
                yield entry

    def scan(self, target: Any) -> List[EntryInfo]:
        """
        Scan and return list of entries from archive.

        Args:
            target: Path to archive file

        Returns:
            List of EntryInfo objects
        """
        return list(self.scan_iterator(target))

    def get_statistics(self, results: List[EntryInfo]) -> Dict:
        """
        Get statistics about listed entries.

        Args:
            results: List of EntryInfo objects

        Returns:
            Dictionary with statistics
        """
        files = [e for e in results if not e.is_dir]
        return {
            'total_entries': len(results),
            'total_files': len(files),
            'total_directories': len(results) - len(files),
            'total_compressed_bytes': sum(e.compressed_size or 0 for e in files),
            'total_uncompressed_bytes': sum(e.file_size or 0 for e in files),
            'scanner_type': self.__class__.__name__
        }
