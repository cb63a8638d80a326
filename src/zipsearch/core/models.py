"""
Core data models for archive searching.

These are the read-only views of archive members and the result/statistics
records that a search builds fresh on every invocation.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Iterator, Iterable, Tuple


@dataclass(frozen=True)
class EntryInfo:
    """One member of an archive, as listed in its central directory."""

    name: str
    index: int
    compressed_size: Optional[int] = None
    file_size: Optional[int] = None

    @property
    def is_dir(self) -> bool:
        """Directory members are stored with a trailing slash."""
        return self.name.endswith('/')

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "index": self.index,
            "compressed_size": self.compressed_size,
            "file_size": self.file_size,
        }


@dataclass(frozen=True)
class MatchLine:
    """A single matching line: 1-based line number and trimmed text."""

    line_number: int
    text: str

    def __str__(self) -> str:
        return f"Line {self.line_number}: {self.text}"


@dataclass
class SearchResult:
    """
    Ordered mapping of entry name to its matching lines.

    Keys keep archive directory order, lines keep ascending line order.
    An entry is only ever present with at least one match.
    """

    entries: Dict[str, List[MatchLine]] = field(default_factory=dict)

    def add_entry(self, entry_name: str, matches: Iterable[MatchLine]) -> bool:
        """
        Record all matches of one entry.

        A name repeated within the archive shares one bucket; later
        members' lines are appended after the earlier ones.

        Returns:
            True if a new entry name was added, False otherwise
        """
        lines = list(matches)
        if not lines:
            return False
        if entry_name in self.entries:
            self.entries[entry_name].extend(lines)
            return False
        self.entries[entry_name] = lines
        return True

    def __contains__(self, entry_name: object) -> bool:
        return entry_name in self.entries

    def __getitem__(self, entry_name: str) -> List[MatchLine]:
        return self.entries[entry_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def items(self) -> Iterator[Tuple[str, List[MatchLine]]]:
        return iter(self.entries.items())

    @property
    def total_matches(self) -> int:
        return sum(len(lines) for lines in self.entries.values())

    def to_dict(self) -> Dict[str, List[str]]:
        """Entry name to "Line {n}: {text}" records."""
        return {
            name: [str(line) for line in lines]
            for name, lines in self.entries.items()
        }


@dataclass
class SearchStats:
    """Aggregate counters and timing for one search."""

    entries_scanned: int = 0
    entries_matched: int = 0
    archive_size_bytes: int = 0
    elapsed_seconds: float = 0.0
    skipped_entries: List[str] = field(default_factory=list)

    @property
    def entries_skipped(self) -> int:
        return len(self.skipped_entries)

    @property
    def archive_size_kb(self) -> float:
        return self.archive_size_bytes / 1024

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "entries_scanned": self.entries_scanned,
            "entries_matched": self.entries_matched,
            "entries_skipped": self.entries_skipped,
            "archive_size_bytes": self.archive_size_bytes,
            "elapsed_seconds": self.elapsed_seconds,
            "skipped_entries": list(self.skipped_entries),
        }
