"""zipsearch - Search for literal text inside every entry of a zip archive without extracting it"""

from .core import *
from .report import SearchReport, print_report

__version__ = "0.1.0"

__all__ = [
    # Search
    "SearchEngine",
    "search_archive",
    "SearchConfig",
    # Archive access
    "ArchiveReader",
    "ArchiveScanner",
    "EntryStreamer",
    "LineMatcher",
    "FolderScanner",
    "find_archives",
    # Models
    "EntryInfo",
    "MatchLine",
    "SearchResult",
    "SearchStats",
    # Errors
    "ZipSearchError",
    "ArchiveNotFoundError",
    "ArchiveNotReadableError",
    "CorruptArchiveError",
    "EmptyQueryError",
    "SearchCancelledError",
    # Reporting
    "SearchReport",
    "print_report",
]
