"""
Search engine that ties the archive reader, entry streamer and line matcher
together and aggregates results and statistics.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .base import SearchConfig
from .exceptions import EntryError, SearchCancelledError
from .matcher import LineMatcher, encode_needle, normalize_needle
from .models import EntryInfo, MatchLine, SearchResult, SearchStats
from .scanner.archive_scanner import Archive, ArchiveReader
from .scanner.entry_streamer import EntryStreamer

logger = logging.getLogger(__name__)


class EntryStatus(str, Enum):
    """What happened to one entry during a search."""
    SCANNED = "scanned"          # Stream read to the end
    SKIPPED = "skipped"          # Stream could not be opened or read
    CANCELLED = "cancelled"      # Started, then aborted; matches discarded
    NOT_STARTED = "not_started"  # Cancelled before it was attempted


@dataclass
class EntryOutcome:
    """Per-entry partial result, merged by the engine in directory order."""
    entry: EntryInfo
    status: EntryStatus
    matches: List[MatchLine] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def attempted(self) -> bool:
        return self.status is not EntryStatus.NOT_STARTED


class CancelToken(threading.Event):
    """
    Search-scoped cancellation flag.

    Reads as set when either this token or the caller's event is set.
    Setting the token never touches the caller's event.
    """

    def __init__(self, parent: Optional[threading.Event] = None):
        super().__init__()
        self._parent = parent

    def is_set(self) -> bool:
        return super().is_set() or (self._parent is not None and self._parent.is_set())


class SearchEngine:
    """
    Searches every entry of an archive for a literal text fragment.

    Entries are scanned one by one, or by a thread pool when
    ``config.max_workers > 1``. Each worker owns its own entry stream and
    returns a per-entry outcome; outcomes are merged in directory order so
    the result and the counters do not depend on worker interleaving.

    A failing entry is logged and skipped; it never aborts the search.
    """

    def __init__(
        self,
        config: Optional[SearchConfig] = None,
        reader: Optional[ArchiveReader] = None,
        streamer: Optional[EntryStreamer] = None
    ):
        self.config = (config or SearchConfig()).validate()
        self.reader = reader or ArchiveReader()
        self.streamer = streamer or EntryStreamer()
        self.matcher = LineMatcher(
            chunk_size=self.config.chunk_size,
            encoding=self.config.encoding,
            decode_errors=self.config.decode_errors
        )

    def search(
        self,
        archive: Archive,
        needle: str,
        cancel_event: Optional[threading.Event] = None
    ) -> Tuple[SearchResult, SearchStats]:
        """
        Search an open archive.

        Args:
            archive: Archive returned by ArchiveReader.open
            needle: Search text; trimmed once before scanning
            cancel_event: Set it from another thread to abort the search

        Returns:
            (SearchResult, SearchStats)

        Raises:
            EmptyQueryError: needle is empty after trimming
            ConfigurationError: needle cannot be encoded with config.encoding
            SearchCancelledError: cancelled or timed out; carries the results
                of entries that completed
        """
        query = normalize_needle(needle)
        pattern = encode_needle(query, self.config.encoding)
        start_time = time.perf_counter()

        cancel_event = CancelToken(cancel_event)
        timer = self._start_timeout(cancel_event)
        entries = self.reader.list_entries(archive)
        logger.info(f"Searching {len(entries)} entries of {archive.path} for {query!r}")

        try:
            if self.config.max_workers > 1 and len(entries) > 1:
                outcomes = self._scan_parallel(archive, entries, pattern, cancel_event)
            else:
                outcomes = self._scan_sequential(archive, entries, pattern, cancel_event)
        finally:
            if timer is not None:
                timer.cancel()

        result, stats = self._aggregate(outcomes, archive)
        stats.elapsed_seconds = time.perf_counter() - start_time

        if any(o.status in (EntryStatus.CANCELLED, EntryStatus.NOT_STARTED) for o in outcomes):
            logger.info(f"Search cancelled after {stats.entries_scanned} of {len(entries)} entries")
            raise SearchCancelledError(
                f"Search of {archive.path} was cancelled",
                result=result,
                stats=stats,
                details={"entries_scanned": stats.entries_scanned, "total_entries": len(entries)}
            )

        logger.info(
            f"Search finished: {stats.entries_matched}/{stats.entries_scanned} entries matched "
            f"in {stats.elapsed_seconds:.4f}s"
        )
        return result, stats

    def search_path(
        self,
        path: Union[str, Path],
        needle: str,
        cancel_event: Optional[threading.Event] = None
    ) -> Tuple[SearchResult, SearchStats]:
        """Open the archive at path, search it and close it again."""
        encode_needle(needle, self.config.encoding)
        with self.reader.open(path) as archive:
            return self.search(archive, needle, cancel_event)

    def _scan_sequential(
        self,
        archive: Archive,
        entries: List[EntryInfo],
        pattern: bytes,
        cancel_event: threading.Event
    ) -> List[EntryOutcome]:
        outcomes = []
        for entry in entries:
            outcomes.append(self._scan_entry(archive, entry, pattern, cancel_event))
        return outcomes

    def _scan_parallel(
        self,
        archive: Archive,
        entries: List[EntryInfo],
        pattern: bytes,
        cancel_event: threading.Event
    ) -> List[EntryOutcome]:
        with ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="zipsearch"
        ) as executor:
            futures = [
                executor.submit(self._scan_entry, archive, entry, pattern, cancel_event)
                for entry in entries
            ]
            try:
                return [future.result() for future in futures]
            except BaseException:
                # Stop the remaining workers before the executor joins them
                cancel_event.set()
                for future in futures:
                    future.cancel()
                raise

    def _scan_entry(
        self,
        archive: Archive,
        entry: EntryInfo,
        pattern: bytes,
        cancel_event: threading.Event
    ) -> EntryOutcome:
        if cancel_event.is_set():
            return EntryOutcome(entry, EntryStatus.NOT_STARTED)

        try:
            with self.streamer.stream(archive, entry) as stream:
                matches = list(self.matcher.find_matches(stream, pattern, cancel_event, entry.name))
        except EntryError as e:
            logger.warning(f"Skipping entry {entry.name}: {e}")
            return EntryOutcome(entry, EntryStatus.SKIPPED, error=str(e))
        except SearchCancelledError:
            logger.debug(f"Entry {entry.name} cancelled mid-scan")
            return EntryOutcome(entry, EntryStatus.CANCELLED)

        logger.debug(f"Scanned {entry.name}: {len(matches)} matching lines")
        return EntryOutcome(entry, EntryStatus.SCANNED, matches=matches)

    def _aggregate(
        self,
        outcomes: List[EntryOutcome],
        archive: Archive
    ) -> Tuple[SearchResult, SearchStats]:
        result = SearchResult()
        stats = SearchStats(archive_size_bytes=archive.size_bytes)
        for outcome in outcomes:
            if not outcome.attempted:
                continue
            stats.entries_scanned += 1
            if outcome.status is EntryStatus.SKIPPED:
                stats.skipped_entries.append(outcome.entry.name)
            elif outcome.status is EntryStatus.SCANNED:
                if result.add_entry(outcome.entry.name, outcome.matches):
                    stats.entries_matched += 1
        return result, stats

    def _start_timeout(self, cancel_event: threading.Event) -> Optional[threading.Timer]:
        if self.config.timeout_seconds is None:
            return None
        timer = threading.Timer(self.config.timeout_seconds, cancel_event.set)
        timer.daemon = True
        timer.start()
        return timer


# Convenience function
def search_archive(
    path: Union[str, Path],
    needle: str,
    config: Optional[SearchConfig] = None,
    cancel_event: Optional[threading.Event] = None
) -> Tuple[SearchResult, SearchStats]:
    """
    Convenience function to search one archive.

    Args:
        path: Path to the zip archive
        needle: Search text
        config: Optional search configuration
        cancel_event: Optional event used to abort the search

    Returns:
        (SearchResult, SearchStats)
    """
    return SearchEngine(config).search_path(path, needle, cancel_event)
