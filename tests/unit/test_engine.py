"""
Unit tests for the search engine.
"""

import struct
import threading
import time
import zipfile

import pytest
from zipsearch.core import (
    ArchiveReader,
    EntryStreamer,
    MatchLine,
    SearchConfig,
    SearchEngine,
    search_archive,
)
from zipsearch.core.exceptions import (
    ArchiveNotFoundError,
    CorruptArchiveError,
    ConfigurationError,
    EmptyQueryError,
    SearchCancelledError,
    StreamUnavailableError,
)


class CountingStreamer(EntryStreamer):
    """EntryStreamer that records which entries were opened."""

    def __init__(self, fail_on=()):
        self.opened = []
        self.fail_on = set(fail_on)

    def open_stream(self, archive, entry):
        self.opened.append(entry.name)
        if entry.name in self.fail_on:
            raise StreamUnavailableError(f"Cannot open {entry.name}", entry_name=entry.name)
        return super().open_stream(archive, entry)


class EndlessStream:
    """Stream that never reaches end-of-stream; only cancellation stops it."""

    def __init__(self, on_read=None, delay=0.0):
        self.closed = False
        self.on_read = on_read
        self.delay = delay

    def read(self, size):
        if self.on_read:
            self.on_read()
        if self.delay:
            time.sleep(self.delay)
        return b"needle\n"

    def close(self):
        self.closed = True


class EndlessStreamer(EntryStreamer):
    """EntryStreamer handing out EndlessStream objects."""

    def __init__(self, **stream_kwargs):
        self.stream_kwargs = stream_kwargs
        self.streams = []

    def open_stream(self, archive, entry):
        stream = EndlessStream(**self.stream_kwargs)
        self.streams.append(stream)
        return stream


def search(path, needle, **config_kwargs):
    return SearchEngine(SearchConfig(**config_kwargs)).search_path(path, needle)


class TestSearchEngine:
    """Tests for SearchEngine.search."""

    def test_basic_search(self, sample_zip):
        """Test matches are grouped per entry in directory order."""
        result, stats = search(sample_zip, "search")

        assert list(result) == ["docs/readme.txt", "src/main.py"]
        assert result["docs/readme.txt"] == [MatchLine(2, "search me please")]
        assert result["src/main.py"] == [
            MatchLine(3, "def search():"),
            MatchLine(4, "return 'search'"),
        ]
        assert stats.entries_scanned == 5
        assert stats.entries_matched == 2
        assert stats.archive_size_bytes == sample_zip.stat().st_size
        assert stats.elapsed_seconds >= 0
        assert stats.skipped_entries == []

    def test_needle_is_trimmed(self, sample_zip):
        """Test surrounding whitespace on the needle is ignored."""
        assert search(sample_zip, "  hello world \n")[0].to_dict() == {
            "docs/readme.txt": ["Line 1: hello world"]
        }

    def test_no_matches(self, sample_zip):
        """Test a successful scan with no matches returns an empty result."""
        result, stats = search(sample_zip, "absent-token")
        assert len(result) == 0
        assert stats.entries_matched == 0
        assert stats.entries_scanned == 5

    def test_line_numbering_example(self, make_zip):
        """Test 'a\\nab\\nabc' with needle 'ab' matches lines 2 and 3."""
        path = make_zip({"x.txt": "a\nab\nabc"})
        result, _ = search(path, "ab")
        assert [m.line_number for m in result["x.txt"]] == [2, 3]

    def test_zero_byte_entry(self, make_zip):
        """Test an empty entry is scanned but never matched."""
        path = make_zip({"empty.txt": b""})
        result, stats = search(path, "x")
        assert "empty.txt" not in result
        assert stats.entries_scanned == 1
        assert stats.entries_matched == 0

    def test_entry_keys_never_map_to_empty_lists(self, sample_zip):
        """Test every key in the result has at least one match."""
        for needle in ["search", "e", "bye", "zzz"]:
            result, stats = search(sample_zip, needle)
            assert all(len(lines) > 0 for _, lines in result.items())
            assert stats.entries_matched == len(result)
            assert stats.entries_matched <= stats.entries_scanned <= 5

    def test_idempotent(self, sample_zip):
        """Test repeated searches give identical results."""
        first_result, first_stats = search(sample_zip, "e")
        second_result, second_stats = search(sample_zip, "e")
        assert first_result == second_result
        assert first_stats.entries_scanned == second_stats.entries_scanned
        assert first_stats.entries_matched == second_stats.entries_matched

    def test_cross_chunk_search(self, make_zip):
        """Test a line straddling read chunks is still matched."""
        path = make_zip({"long.txt": "x" * 50 + "\n" + "y" * 13 + "target" + "z" * 13 + "\n"})
        result, _ = search(path, "target", chunk_size=3)
        assert [m.line_number for m in result["long.txt"]] == [2]

    def test_empty_query(self, sample_zip):
        """Test an empty needle fails before any stream is opened."""
        streamer = CountingStreamer()
        engine = SearchEngine(streamer=streamer)
        reader = ArchiveReader()
        with reader.open(sample_zip) as archive:
            with pytest.raises(EmptyQueryError):
                engine.search(archive, "   ")
        assert streamer.opened == []

    def test_empty_query_checked_before_opening(self, tmp_path):
        """Test the query is validated before the archive path."""
        with pytest.raises(EmptyQueryError):
            search(tmp_path / "missing.zip", "")

    def test_unencodable_needle(self, sample_zip):
        """Test a needle the configured encoding cannot represent fails up front."""
        streamer = CountingStreamer()
        engine = SearchEngine(SearchConfig(encoding="ascii"), streamer=streamer)
        with pytest.raises(ConfigurationError) as exc_info:
            engine.search_path(sample_zip, "café")
        assert exc_info.value.config_key == "encoding"
        assert streamer.opened == []

        with ArchiveReader().open(sample_zip) as archive:
            with pytest.raises(ConfigurationError):
                engine.search(archive, "café")
        assert streamer.opened == []

    def test_archive_errors_propagate(self, tmp_path):
        """Test archive-level errors abort the search."""
        with pytest.raises(ArchiveNotFoundError):
            search(tmp_path / "missing.zip", "x")

        bogus = tmp_path / "bogus.zip"
        bogus.write_bytes(b"garbage" * 20)
        with pytest.raises(CorruptArchiveError):
            search(bogus, "x")

    def test_invalid_config(self):
        """Test the engine validates its configuration."""
        with pytest.raises(ConfigurationError):
            SearchEngine(SearchConfig(max_workers=0))

    def test_search_archive_function(self, sample_zip):
        """Test the convenience function."""
        result, stats = search_archive(sample_zip, "bye")
        assert result.to_dict() == {"docs/readme.txt": ["Line 3: bye"]}
        assert stats.entries_matched == 1


class TestEntryResilience:
    """Tests for per-entry failure handling."""

    def test_unopenable_entry_is_skipped(self, make_zip):
        """Test a stream that cannot be opened does not abort the scan."""
        path = make_zip({"broken.txt": "needle\n", "good.txt": "a needle here\n"})
        streamer = CountingStreamer(fail_on={"broken.txt"})
        result, stats = SearchEngine(streamer=streamer).search_path(path, "needle")

        assert list(result) == ["good.txt"]
        assert stats.entries_scanned == 2
        assert stats.entries_matched == 1
        assert stats.skipped_entries == ["broken.txt"]
        assert streamer.opened == ["broken.txt", "good.txt"]

    def test_damaged_local_header(self, make_zip):
        """Test a real archive with a damaged local header is still searched."""
        path = make_zip({"first.txt": "needle one\n", "second.txt": "needle two\n"},
                        compression=zipfile.ZIP_STORED)
        data = bytearray(path.read_bytes())
        data[0:4] = b"XXXX"
        path.write_bytes(bytes(data))

        result, stats = search(path, "needle")
        assert result.to_dict() == {"second.txt": ["Line 1: needle two"]}
        assert stats.skipped_entries == ["first.txt"]
        assert stats.entries_scanned == 2

    def test_read_failure_discards_partial_matches(self, make_zip):
        """Test an entry failing its CRC check contributes no matches."""
        path = make_zip({"bad.txt": "needle here\nmore\n", "ok.txt": "needle\n"},
                        compression=zipfile.ZIP_STORED)
        data = path.read_bytes()
        path.write_bytes(data.replace(b"needle here", b"needle HERE", 1))

        result, stats = search(path, "needle")
        assert list(result) == ["ok.txt"]
        assert stats.skipped_entries == ["bad.txt"]
        assert stats.entries_matched == 1

    def test_damaged_lzma_member(self, make_zip):
        """Test corrupt LZMA data in one member does not abort the scan."""
        path = make_zip({"bad.txt": "needle in a haystack\n" * 200, "good.txt": "a needle here\n"},
                        compression=zipfile.ZIP_LZMA)
        with zipfile.ZipFile(path) as zf:
            info = zf.getinfo("bad.txt")
        data = bytearray(path.read_bytes())
        offset = info.header_offset
        name_len, extra_len = struct.unpack("<HH", data[offset + 26:offset + 30])
        # Skip the local header and the 9-byte LZMA properties block
        start = offset + 30 + name_len + extra_len + 9
        end = min(start + 60, offset + 30 + name_len + extra_len + info.compress_size)
        for i in range(start, end):
            data[i] ^= 0xFF
        path.write_bytes(bytes(data))

        result, stats = search(path, "needle")
        assert result.to_dict() == {"good.txt": ["Line 1: a needle here"]}
        assert stats.skipped_entries == ["bad.txt"]
        assert stats.entries_scanned == 2

    def test_duplicate_member_names(self, tmp_path):
        """Test repeated member names share one bucket and count once."""
        path = tmp_path / "dupes.zip"
        with pytest.warns(UserWarning, match="Duplicate name"):
            with zipfile.ZipFile(path, 'w') as zf:
                zf.writestr("a.txt", "needle one\n")
                zf.writestr("a.txt", "x\nneedle two\n")
                zf.writestr("b.txt", "needle three\n")

        result, stats = search(path, "needle")
        assert list(result) == ["a.txt", "b.txt"]
        assert result["a.txt"] == [MatchLine(1, "needle one"), MatchLine(2, "needle two")]
        assert stats.entries_scanned == 3
        assert stats.entries_matched == 2
        assert stats.skipped_entries == []


class TestParallelSearch:
    """Tests for the worker-pool mode."""

    @pytest.fixture
    def many_entries_zip(self, make_zip):
        entries = {
            f"file_{i:03d}.txt": "\n".join(
                f"row {j} {'needle' if (i + j) % 5 == 0 else 'hay'}" for j in range(30)
            )
            for i in range(40)
        }
        entries["file_000.txt"] = "no match at all"
        return make_zip(entries)

    @pytest.mark.parametrize("workers", [2, 4, 8])
    def test_parallel_matches_sequential(self, many_entries_zip, workers):
        """Test results and counters do not depend on worker interleaving."""
        seq_result, seq_stats = search(many_entries_zip, "needle")
        par_result, par_stats = search(many_entries_zip, "needle", max_workers=workers, chunk_size=16)

        assert par_result == seq_result
        assert list(par_result) == list(seq_result)
        assert par_stats.entries_scanned == seq_stats.entries_scanned == 40
        assert par_stats.entries_matched == seq_stats.entries_matched == 39

    def test_parallel_skips_failing_entry(self, make_zip):
        """Test per-entry failures are isolated in parallel mode too."""
        path = make_zip({f"f{i}.txt": "needle\n" for i in range(6)})
        streamer = CountingStreamer(fail_on={"f2.txt"})
        engine = SearchEngine(SearchConfig(max_workers=3), streamer=streamer)
        result, stats = engine.search_path(path, "needle")

        assert list(result) == ["f0.txt", "f1.txt", "f3.txt", "f4.txt", "f5.txt"]
        assert stats.entries_scanned == 6
        assert stats.entries_matched == 5
        assert stats.skipped_entries == ["f2.txt"]


class TestCancellation:
    """Tests for cancellation and timeouts."""

    def test_cancelled_before_start(self, sample_zip):
        """Test a pre-set cancel event scans nothing."""
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(SearchCancelledError) as exc_info:
            SearchEngine().search_path(sample_zip, "search", cancel_event=cancel)
        assert exc_info.value.stats.entries_scanned == 0
        assert len(exc_info.value.result) == 0

    def test_cancel_mid_entry_discards_entry(self, make_zip):
        """Test an entry cancelled mid-scan emits no matches and its stream is closed."""
        path = make_zip({"a.txt": "x", "b.txt": "needle\n"})
        cancel = threading.Event()
        streamer = EndlessStreamer(on_read=cancel.set)
        engine = SearchEngine(SearchConfig(chunk_size=4), streamer=streamer)

        with pytest.raises(SearchCancelledError) as exc_info:
            engine.search_path(path, "needle", cancel_event=cancel)

        assert len(exc_info.value.result) == 0
        assert exc_info.value.stats.entries_scanned == 1
        assert len(streamer.streams) == 1
        assert streamer.streams[0].closed

    def test_timeout_cancels_search(self, make_zip):
        """Test the configured timeout stops an endless entry."""
        path = make_zip({"a.txt": "x"})
        streamer = EndlessStreamer(delay=0.001)
        engine = SearchEngine(SearchConfig(timeout_seconds=0.05), streamer=streamer)

        with pytest.raises(SearchCancelledError):
            engine.search_path(path, "needle")
        assert all(s.closed for s in streamer.streams)

    def test_parallel_cancellation_closes_streams(self, make_zip):
        """Test in-flight worker streams are closed when the search times out."""
        path = make_zip({f"f{i}.txt": "x" for i in range(6)})
        streamer = EndlessStreamer(delay=0.001)
        engine = SearchEngine(SearchConfig(max_workers=3, timeout_seconds=0.05), streamer=streamer)

        with pytest.raises(SearchCancelledError) as exc_info:
            engine.search_path(path, "needle")
        assert len(exc_info.value.result) == 0
        assert 1 <= exc_info.value.stats.entries_scanned <= 6
        assert all(s.closed for s in streamer.streams)

    def test_timeout_leaves_caller_event_untouched(self, make_zip):
        """Test the timeout cancels the search without setting the caller's event."""
        path = make_zip({"a.txt": "x"})
        cancel = threading.Event()
        engine = SearchEngine(SearchConfig(timeout_seconds=0.05), streamer=EndlessStreamer(delay=0.001))

        with pytest.raises(SearchCancelledError):
            engine.search_path(path, "needle", cancel_event=cancel)
        assert not cancel.is_set()

    def test_worker_error_leaves_caller_event_untouched(self, make_zip):
        """Test an unexpected worker error stops the pool but not the caller's event."""

        class FailingStreamer(EndlessStreamer):
            def open_stream(self, archive, entry):
                if entry.name == "f0.txt":
                    raise RuntimeError("worker blew up")
                return super().open_stream(archive, entry)

        path = make_zip({f"f{i}.txt": "x" for i in range(6)})
        cancel = threading.Event()
        streamer = FailingStreamer(delay=0.001)
        engine = SearchEngine(SearchConfig(max_workers=3), streamer=streamer)

        with pytest.raises(RuntimeError, match="worker blew up"):
            engine.search_path(path, "needle", cancel_event=cancel)
        assert not cancel.is_set()
        assert all(s.closed for s in streamer.streams)
