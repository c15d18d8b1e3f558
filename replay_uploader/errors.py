"""Error taxonomy for replay-uploader.

Every failure the watcher can hit is a subclass of ReplayUploaderError,
so the CLI can log it with context and exit non-zero.
"""

from __future__ import annotations


class ReplayUploaderError(Exception):
    """Base class for all replay-uploader failures."""


class ConfigError(ReplayUploaderError):
    """Configuration is missing, unreadable, or malformed."""


class StorageError(ReplayUploaderError):
    """The replay ledger could not be used."""


class StorageInitError(StorageError):
    """The ledger database or its schema could not be created."""


class StorageQueryError(StorageError):
    """The ledger could not answer whether a replay was uploaded."""


class StorageWriteError(StorageError):
    """An uploaded replay could not be recorded in the ledger."""


class ScanError(ReplayUploaderError):
    """The watched replay directory could not be listed."""


class UploadError(ReplayUploaderError):
    """A replay upload failed at the transport, HTTP, or API level."""

    def __init__(self, filename: str, reason: str, transient: bool = False) -> None:
        self.filename = filename
        self.reason = reason
        self.transient = transient
        super().__init__(f"Error uploading replay '{filename}': {reason}")
