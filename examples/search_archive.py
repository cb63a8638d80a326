"""
Example script: search for text inside zip archives without extracting them.

Usage:
    python examples/search_archive.py <archive.zip | directory> <search text> [config.yaml]

When a directory is given, every candidate archive directly inside it is
searched in turn.
"""

import logging
from pathlib import Path
import sys
from rich.console import Console

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from zipsearch import (
    SearchConfig,
    SearchEngine,
    SearchReport,
    ZipSearchError,
    find_archives,
    print_report,
)


def main():
    """Main function to run a search from the command line."""
    console = Console()
    logging.basicConfig(
        level=logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if len(sys.argv) < 3:
        console.print("[bold red]Usage:[/bold red] search_archive.py <archive.zip | directory> <search text> [config.yaml]")
        return 2

    target = Path(sys.argv[1])
    search_text = sys.argv[2]
    config = SearchConfig.from_yaml(Path(sys.argv[3])) if len(sys.argv) > 3 else SearchConfig()

    if target.is_dir():
        archives = find_archives(target, config)
        if not archives:
            console.print(f"[yellow]![/yellow] No archives found in {target}")
            return 1
        console.print(f"[bold blue]Found {len(archives)} archive(s) in[/bold blue] {target}")
    else:
        archives = [target]

    engine = SearchEngine(config)
    exit_code = 0
    for archive_path in archives:
        console.rule(str(archive_path))
        try:
            result, stats = engine.search_path(archive_path, search_text)
        except ZipSearchError as e:
            console.print(f"[red]✗[/red] Error: {e}")
            exit_code = 1
            continue
        print_report(SearchReport.from_search(str(archive_path), search_text, result, stats), console)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
