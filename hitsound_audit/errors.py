"""
Error taxonomy for hit sound analysis.

Every audio error carries a ``reason`` phrased as a predicate about the
file ("could not be found", "is truncated mid-header") so callers can embed
it in their own message, and a ``kind`` for programmatic handling.
"""

from enum import Enum


class ErrorKind(Enum):
    NOT_FOUND = 'not_found'
    MALFORMED = 'malformed'
    UNSUPPORTED_ENCODING = 'unsupported_encoding'
    IO_FAILURE = 'io_failure'


class AuditError(Exception):
    """Base class for errors raised while locating or decoding a hit sound."""

    kind = ErrorKind.MALFORMED

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AssetNotFoundError(AuditError, FileNotFoundError):
    kind = ErrorKind.NOT_FOUND


class MalformedAudioError(AuditError, ValueError):
    kind = ErrorKind.MALFORMED


class TruncatedAudioError(MalformedAudioError):
    pass


class UnsupportedEncodingError(AuditError, ValueError):
    kind = ErrorKind.UNSUPPORTED_ENCODING


class AudioReadError(AuditError, OSError):
    kind = ErrorKind.IO_FAILURE


class ManifestError(ValueError):
    """Raised when a mapset manifest cannot be loaded."""
