# src/zipsearch/core/exceptions.py
"""Custom exceptions for archive searching"""

from typing import Optional, Dict, Any


class ZipSearchError(Exception):
    """Base exception for all zipsearch errors"""
    
    def __init__(
        self, 
        message: str, 
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.details = details or {}
        
    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.details:
            base_msg += f" (Details: {self.details})"
        return base_msg


class ArchiveError(ZipSearchError):
    """Archive-level failures; fatal to the whole search"""
    
    def __init__(
        self,
        message: str,
        archive_path: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.archive_path = archive_path


class ArchiveNotFoundError(ArchiveError):
    """Archive path does not exist"""


class ArchiveNotReadableError(ArchiveError):
    """Archive exists but the filesystem denies reading it"""


class CorruptArchiveError(ArchiveError):
    """Central directory could not be parsed"""


class EmptyQueryError(ZipSearchError):
    """Search fragment is empty after trimming"""


class EntryError(ZipSearchError):
    """Per-entry failures; the entry is skipped and the scan continues"""
    
    def __init__(
        self,
        message: str,
        entry_name: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.entry_name = entry_name


class StreamUnavailableError(EntryError):
    """Decompression stream for an entry could not be opened"""


class ReadFailureError(EntryError):
    """Entry stream failed part way through reading"""


class SearchCancelledError(ZipSearchError):
    """Search aborted by the caller or by the configured timeout"""
    
    def __init__(
        self,
        message: str,
        result: Optional[Any] = None,
        stats: Optional[Any] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.result = result
        self.stats = stats


class ConfigurationError(ZipSearchError):
    """Errors in configuration"""
    
    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key
