"""Error types raised while rebuilding an archive."""


class RebuildError(Exception):
    """Base class for fatal rebuild failures.

    Args:
        message: Human-readable description of what went wrong
        hint: Optional remediation shown to the operator
    """

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.hint = hint


class ManifestFetchError(RebuildError):
    """The manifest could not be downloaded."""


class ManifestParseError(RebuildError):
    """The manifest body is malformed or missing required fields."""


class CorruptTailError(RebuildError):
    """The last line of the local archive is not a parseable record."""


class GapError(RebuildError):
    """Two adjacent manifest chunks do not share a boundary."""

    def __init__(self, previous_end: int, start: int):
        super().__init__(f"Gap detected between entries {previous_end} and {start}.")
        self.previous_end = previous_end
        self.start = start


class DownloadError(RebuildError):
    """A chunk could not be downloaded within the retry budget."""


class DecompressionError(RebuildError):
    """A chunk failed to decompress."""


class OffsetSearchError(RebuildError):
    """The resume record could not be located inside a chunk file."""
