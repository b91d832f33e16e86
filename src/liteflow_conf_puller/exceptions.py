"""Puller-specific exceptions.

Per IMPLEMENTATION_PHILOSOPHY: Clear, actionable error messages.
Each exception class maps to exactly one ErrorKind so the orchestrator can
report a single classified outcome.
"""

from typing import ClassVar

from .schema import ErrorKind


class PullError(Exception):
    """Base exception for fetch/install operations."""

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (paths, urls, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class PullConfigError(PullError):
    """Missing or invalid required parameter."""

    kind = ErrorKind.CONFIG_ERROR


class SourceUnavailableError(PullError):
    """Clone, fetch or download failed, or the payload was empty."""

    kind = ErrorKind.SOURCE_UNAVAILABLE


class SourceNotFoundError(PullError):
    """Remote reachable, but the requested file is not in it."""

    kind = ErrorKind.SOURCE_NOT_FOUND


class CacheCorruptError(PullError):
    """Working cache could not be brought to a clean checkout."""

    kind = ErrorKind.CACHE_CORRUPT


class DestExistsError(PullError):
    """Overwrite blocked: neither force nor backup requested."""

    kind = ErrorKind.DEST_EXISTS


class DestUnwritableError(PullError):
    """Destination directory or file could not be written."""

    kind = ErrorKind.DEST_UNWRITABLE


class BackupFailedError(PullError):
    """Backup copy could not be made before a requested overwrite."""

    kind = ErrorKind.BACKUP_FAILED
