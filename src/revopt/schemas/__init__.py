"""
Data contracts for the loader.

Remote resources (manifest, dataset schema) and load provenance are
pydantic models so they are validated where they cross the system boundary.
"""

from revopt.schemas.dataset import DatasetSchema, Manifest, Row
from revopt.schemas.provenance import DataSource, LoadResult, Provenance

__all__ = [
    "DataSource",
    "DatasetSchema",
    "LoadResult",
    "Manifest",
    "Provenance",
    "Row",
]
