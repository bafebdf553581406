"""
Exception taxonomy for the dataset loader.

Every failure on the network path is recovered by the fallback to the
last-known-good cache. Only NoDataAvailableError reaches callers of
DatasetLoader.load().
"""


class RevoptError(Exception):
    """Base class for all loader errors."""


class FetchError(RevoptError):
    """A remote resource answered with a non-success HTTP status."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP {status_code} for {url}")


class ChecksumMismatchError(RevoptError):
    """The payload digest differs from the one published in the manifest."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Checksum mismatch. Expected {expected} got {actual}")


class SchemaValidationError(RevoptError):
    """Base class for structural dataset validation failures."""


class EmptyDatasetError(SchemaValidationError):
    """The decoded payload contains no rows."""

    def __init__(self) -> None:
        super().__init__("empty dataset")


class MissingColumnsError(SchemaValidationError):
    """Required columns are absent from the first row."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__("missing columns: " + ", ".join(self.missing))


class DecoderUnavailableError(RevoptError):
    """No CSV decoder is available to turn the payload into rows."""

    def __init__(self, reason: str = "CSV decoder not available") -> None:
        super().__init__(reason)


class NoDataAvailableError(RevoptError):
    """Both the network path and the last-known-good cache came up empty."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"No data available (network failed and no LKG). {reason}")


class DataNotReadyError(RevoptError):
    """A snapshot was read before the dataset finished loading."""

    def __init__(self) -> None:
        super().__init__("Dataset has not been loaded yet; await DataContext.rows() first")
