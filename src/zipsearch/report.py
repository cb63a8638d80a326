"""
Search report built from a SearchResult and SearchStats.

The engine never renders anything itself; this module turns its output into
a serialisable model, a plain-text summary, or rich console output.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from rich.console import Console
from rich.markup import escape

from .core.models import SearchResult, SearchStats


class SearchReport(BaseModel):
    """Presentation-ready summary of one archive search."""

    archive_path: str = Field(description="Path of the searched archive")
    search_text: str = Field(description="Trimmed search text")
    results: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Entry name to 'Line {n}: {text}' records, in archive order"
    )
    archive_size_bytes: int = 0
    entries_scanned: int = 0
    entries_matched: int = 0
    skipped_entries: List[str] = Field(default_factory=list)
    elapsed_seconds: float = 0.0

    @classmethod
    def from_search(
        cls,
        archive_path: str,
        search_text: str,
        result: SearchResult,
        stats: SearchStats
    ) -> "SearchReport":
        return cls(
            archive_path=str(archive_path),
            search_text=search_text.strip(),
            results=result.to_dict(),
            archive_size_bytes=stats.archive_size_bytes,
            entries_scanned=stats.entries_scanned,
            entries_matched=stats.entries_matched,
            skipped_entries=list(stats.skipped_entries),
            elapsed_seconds=stats.elapsed_seconds,
        )

    @property
    def archive_size_kb(self) -> float:
        return round(self.archive_size_bytes / 1024, 2)

    @property
    def search_time(self) -> float:
        return round(self.elapsed_seconds, 4)

    @property
    def has_matches(self) -> bool:
        return bool(self.results)

    def summary_lines(self) -> List[str]:
        lines = [
            f"Archive Path: {self.archive_path}",
            f"Archive Size: {self.archive_size_kb} KB",
            f"Total Entries Searched: {self.entries_scanned}",
            f"Entries with Matches: {self.entries_matched}",
        ]
        if self.skipped_entries:
            lines.append(f"Entries Skipped: {len(self.skipped_entries)}")
        lines.append(f"Search Time: {self.search_time} seconds")
        return lines

    def to_text(self) -> str:
        """Plain-text rendering: matches per entry followed by the summary."""
        out = []
        if self.results:
            out.append("Search Results:")
            for entry_name, lines in self.results.items():
                out.append(f"- {entry_name}:")
                out.extend(f"    {line}" for line in lines)
        else:
            out.append(f"No matches found for '{self.search_text}' in the selected archive.")
        out.append("")
        out.append("Search Report")
        out.extend(self.summary_lines())
        return "\n".join(out)


def print_report(report: SearchReport, console: Optional[Console] = None) -> None:
    """Render a report to the console with rich."""
    console = console or Console()

    if report.has_matches:
        console.print("[bold blue]Search Results:[/bold blue]")
        for entry_name, lines in report.results.items():
            console.print(f"[bold]- {escape(entry_name)}:[/bold]")
            for line in lines:
                console.print(f"    {escape(line)}")
    else:
        console.print(
            f"[yellow]No matches found for '{escape(report.search_text)}' "
            f"in the selected archive.[/yellow]"
        )

    console.print()
    console.print("[bold]Search Report[/bold]")
    for line in report.summary_lines():
        console.print(f"  {escape(line)}")
    for entry_name in report.skipped_entries:
        console.print(f"  [red]✗[/red] skipped {escape(entry_name)}")
