"""
CSV decoding capability.

The orchestrator never parses CSV itself; it is handed an object that
satisfies CsvDecoder. PandasCsvDecoder is the production implementation.
"""

import io
import warnings
from typing import Protocol

from revopt.errors import DecoderUnavailableError
from revopt.schemas.dataset import Row
from revopt.utils.logging import get_logger

log = get_logger(__name__)


class CsvDecoder(Protocol):
    """Header-aware CSV-to-rows decoder."""

    def decode(self, text: str) -> list[Row]:
        """Decode CSV text into one mapping per data row."""
        ...


class PandasCsvDecoder:
    """
    Decode CSV text with pandas.

    Every cell is kept as text (no type inference), header names are
    stripped of surrounding whitespace and rows whose cells are all blank
    are dropped.
    """

    def __init__(self) -> None:
        try:
            import pandas as pd
        except ImportError as e:
            raise DecoderUnavailableError(f"pandas is not installed: {e}") from e
        self._pd = pd

    def decode(self, text: str) -> list[Row]:
        """
        Decode CSV text into rows.

        Rows with more fields than the header keep their leading fields and
        drop the rest; short rows are padded with empty cells.

        Args:
            text: CSV payload with a header row.

        Returns:
            Rows in payload order, keyed by trimmed header name.

        Raises:
            pandas.errors.ParserError: If the payload is malformed.
        """
        if not text.strip():
            return []

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", self._pd.errors.ParserWarning)
            # index_col=False stops pandas from turning a surplus first
            # column into the index
            df = self._pd.read_csv(
                io.StringIO(text),
                engine="python",
                dtype=object,
                index_col=False,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        for warning in caught:
            if issubclass(warning.category, self._pd.errors.ParserWarning):
                log.warning("Ragged CSV rows truncated", detail=str(warning.message))

        if df.empty:
            return []

        df.columns = [str(c).strip() for c in df.columns]
        # Short rows leave missing cells behind even with keep_default_na=False
        df = df.fillna("")

        blank = df.apply(lambda col: col.str.strip() == "").all(axis=1)
        if blank.any():
            log.debug("Dropping blank rows", count=int(blank.sum()))
            df = df[~blank]

        return df.to_dict(orient="records")


def default_decoder() -> CsvDecoder:
    """
    Build the default decoder.

    Raises:
        DecoderUnavailableError: If the CSV backend cannot be imported.
    """
    return PandasCsvDecoder()
