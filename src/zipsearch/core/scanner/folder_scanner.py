"""
Folder scanner that lists candidate archives in a local directory.
"""

import fnmatch
from pathlib import Path
from typing import List, Dict, Optional, Iterator, Any

from ..base import Scanner, SearchConfig


class FolderScanner(Scanner[Path]):
    """
    Scanner that collects the archives sitting directly inside a directory.

    Files are kept when their name matches one of ``config.archive_patterns``
    and none of ``config.ignore_patterns``. Subdirectories are not visited.
    """

    def should_ignore(self, path: Path) -> bool:
        """Check a file name against the configured ignore patterns."""
        return any(fnmatch.fnmatch(path.name, pattern) for pattern in self.config.ignore_patterns)

    def is_candidate(self, path: Path) -> bool:
        """Check a file name against the configured archive patterns."""
        name = path.name.lower()
        return any(fnmatch.fnmatch(name, pattern.lower()) for pattern in self.config.archive_patterns)

    def scan_iterator(self, target: Any) -> Iterator[Path]:
        """
        List candidate archives in a directory.

        Args:
            target: Directory to look in

        Yields:
            Archive paths sorted by file name
        """
        root_path = Path(target)
        if not root_path.is_dir():
            return

        for path in sorted(root_path.iterdir(), key=lambda p: p.name):
            if not path.is_file():
                continue
            if self.should_ignore(path) or not self.is_candidate(path):
                continue
            yield path

    def scan(self, target: Any) -> List[Path]:
        """
        List candidate archives in a directory.

        Args:
            target: Directory to look in

        Returns:
            List of archive paths
        """
        return list(self.scan_iterator(target))

    def get_statistics(self, results: List[Path]) -> Dict:
        """
        Get statistics about the listed archives.

        Args:
            results: List of archive paths

        Returns:
            Dictionary with statistics
        """
        sizes = []
        for path in results:
            try:
                sizes.append(path.stat().st_size)
            except OSError:
                sizes.append(0)
        return {
            'total_archives': len(results),
            'total_size_bytes': sum(sizes),
            'scanner_type': self.__class__.__name__
        }


# Convenience function
def find_archives(
    directory: Path,
    config: Optional[SearchConfig] = None,
    config_path: Optional[Path] = None
) -> List[Path]:
    """
    Convenience function to list candidate archives in a directory.

    Args:
        directory: Directory to look in
        config: Optional search configuration
        config_path: Optional YAML file to load the configuration from

    Returns:
        List of archive paths
    """
    if config is None and config_path:
        config = SearchConfig.from_yaml(config_path)
    return FolderScanner(config).scan(Path(directory))
