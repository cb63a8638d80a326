"""
Core module for zipsearch archive searching.
"""

from .base import Scanner, SearchConfig
from .exceptions import (
    ZipSearchError,
    ArchiveError,
    ArchiveNotFoundError,
    ArchiveNotReadableError,
    CorruptArchiveError,
    EmptyQueryError,
    EntryError,
    StreamUnavailableError,
    ReadFailureError,
    SearchCancelledError,
    ConfigurationError,
)
from .models import EntryInfo, MatchLine, SearchResult, SearchStats
from .matcher import LineMatcher, LineMatch, encode_needle, normalize_needle
from .engine import SearchEngine, search_archive

# Import scanner functionality
from .scanner import (
    Archive,
    ArchiveReader,
    ArchiveScanner,
    EntryStreamer,
    FolderScanner,
    find_archives,
)

__all__ = [
    # Configuration
    'Scanner',
    'SearchConfig',
    # Errors
    'ZipSearchError',
    'ArchiveError',
    'ArchiveNotFoundError',
    'ArchiveNotReadableError',
    'CorruptArchiveError',
    'EmptyQueryError',
    'EntryError',
    'StreamUnavailableError',
    'ReadFailureError',
    'SearchCancelledError',
    'ConfigurationError',
    # Models
    'EntryInfo',
    'MatchLine',
    'SearchResult',
    'SearchStats',
    # Search
    'LineMatcher',
    'LineMatch',
    'normalize_needle',
    'encode_needle',
    'SearchEngine',
    'search_archive',
    # Scanner functionality
    'Archive',
    'ArchiveReader',
    'ArchiveScanner',
    'EntryStreamer',
    'FolderScanner',
    'find_archives',
]
