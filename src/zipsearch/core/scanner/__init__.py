"""
Scanner package for archive searching.

This package provides:
- ArchiveReader / ArchiveScanner: open zip archives and list their entries
- EntryStreamer: open decompressed streams for single entries
- FolderScanner: list candidate archives in a directory
"""

# Import base classes
from ..base import (
    Scanner,
    SearchConfig,
)

# Import concrete scanner implementations
from .archive_scanner import Archive, ArchiveReader, ArchiveScanner
from .entry_streamer import EntryStreamer
from .folder_scanner import FolderScanner, find_archives

__all__ = [
    # Base classes
    'Scanner',
    'SearchConfig',

    # Archive access
    'Archive',
    'ArchiveReader',
    'ArchiveScanner',
    'EntryStreamer',

    # Candidate listing
    'FolderScanner',
    'find_archives',
]
