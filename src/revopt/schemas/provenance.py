"""Load results and their provenance metadata."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from revopt.schemas.dataset import Manifest, Row


class DataSource(str, Enum):
    """Where a dataset was served from."""

    NETWORK = "network"
    CACHE = "cache"


class Provenance(BaseModel):
    """Metadata describing where a set of rows came from."""

    model_config = ConfigDict(frozen=True)

    source: DataSource
    manifest: Manifest | None = Field(
        default=None, description="Manifest used for the network load"
    )
    loaded_at: datetime | None = Field(
        default=None, description="When the network load completed (UTC)"
    )

    def as_cached(self) -> "Provenance":
        """Return a copy marked as served from the last-known-good cache."""
        return self.model_copy(update={"source": DataSource.CACHE})


class LoadResult(BaseModel):
    """Rows plus provenance, as returned by a load."""

    model_config = ConfigDict(frozen=True)

    rows: list[Row]
    meta: Provenance

    @property
    def row_count(self) -> int:
        """Number of rows in the dataset."""
        return len(self.rows)
