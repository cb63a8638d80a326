"""
Configuration and abstract base classes for scanner implementations.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Dict, Optional, Iterator, Any, Generic, TypeVar
from dataclasses import dataclass, field
import yaml

from .exceptions import ConfigurationError


T = TypeVar('T')  # Generic type for scan results


@dataclass
class SearchConfig:
    """Configuration shared by the archive scanners and the search engine."""
    chunk_size: int = 64 * 1024
    encoding: str = "utf-8"
    decode_errors: str = "replace"
    max_workers: int = 1
    timeout_seconds: Optional[float] = None
    archive_patterns: List[str] = field(default_factory=lambda: ["*.zip"])
    ignore_patterns: List[str] = field(default_factory=lambda: [
        ".*", "~$*", "*.part"
    ])

    @classmethod
    def from_yaml(cls, config_path: Path) -> "SearchConfig":
        """Load configuration from YAML file."""
        if config_path.exists():
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
                search_config = config_data.get('search', {}) or {}
                # Get default values from class
                default_config = cls()
                return cls(
                    chunk_size=search_config.get('chunk_size', default_config.chunk_size),
                    encoding=search_config.get('encoding', default_config.encoding),
                    decode_errors=search_config.get('decode_errors', default_config.decode_errors),
                    max_workers=search_config.get('max_workers', default_config.max_workers),
                    timeout_seconds=search_config.get('timeout_seconds', default_config.timeout_seconds),
                    archive_patterns=search_config.get('archive_patterns', default_config.archive_patterns),
                    ignore_patterns=search_config.get('ignore_patterns', default_config.ignore_patterns)
                )
        return cls()

    def validate(self) -> "SearchConfig":
        """Raise ConfigurationError for values the engine cannot work with."""
        if not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise ConfigurationError(
                f"chunk_size must be a positive integer, got {self.chunk_size!r}",
                config_key="chunk_size"
            )
        if not isinstance(self.max_workers, int) or self.max_workers < 1:
            raise ConfigurationError(
                f"max_workers must be at least 1, got {self.max_workers!r}",
                config_key="max_workers"
            )
        if self.timeout_seconds is not None and self.timeout_seconds < 0:
            raise ConfigurationError(
                f"timeout_seconds cannot be negative, got {self.timeout_seconds!r}",
                config_key="timeout_seconds"
            )
        try:
            "".encode(self.encoding)
        except LookupError:
            raise ConfigurationError(
                f"Unknown encoding: {self.encoding}",
                config_key="encoding"
            )
        return self


class Scanner(ABC, Generic[T]):
    """Abstract base class for all scanner types."""

    def __init__(self, config: Optional[SearchConfig] = None):
        """
        Initialize the scanner.

        Args:
            config: Search configuration. If None, uses default configuration.
        """
        self.config = config or SearchConfig()

    @abstractmethod
    def scan(self, target: Any) -> List[T]:
        """
        Perform a scan operation.

        Args:
            target: The target to scan (a directory or an archive path)

        Returns:
            List of scan results
        """
        pass

    @abstractmethod
    def scan_iterator(self, target: Any) -> Iterator[T]:
        """
        Perform a scan operation with iterator.

        Args:
            target: The target to scan

        Yields:
            Scan results one by one
        """
        pass

    def get_statistics(self, results: List[T]) -> Dict:
        """
        Get statistics about scan results.
        Default implementation returns basic count.

        Args:
            results: List of scan results

        Returns:
            Dictionary with statistics
        """
        return {
            'total_items': len(results),
            'scanner_type': self.__class__.__name__
        }
