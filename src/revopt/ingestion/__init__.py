"""
Remote ingestion: HTTP fetching and CSV decoding.
"""

from revopt.ingestion.decoder import CsvDecoder, PandasCsvDecoder, default_decoder
from revopt.ingestion.fetcher import RemoteFetcher, resolve_url, with_version

__all__ = [
    "CsvDecoder",
    "PandasCsvDecoder",
    "RemoteFetcher",
    "default_decoder",
    "resolve_url",
    "with_version",
]
