"""
Application-level handle on the loaded dataset.

A DataContext runs the load at most once and shares the result with every
consumer. Consumers that arrive before the load finishes await rows();
later ones may read the snapshots synchronously.
"""

import asyncio
from types import MappingProxyType
from typing import TYPE_CHECKING

from revopt.errors import DataNotReadyError, DecoderUnavailableError
from revopt.ingestion.decoder import CsvDecoder, default_decoder
from revopt.ingestion.fetcher import RemoteFetcher
from revopt.loading.orchestrator import DatasetLoader
from revopt.schemas.dataset import Row
from revopt.schemas.provenance import LoadResult, Provenance
from revopt.utils.cache import FileStorage, LastKnownGoodStore
from revopt.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from revopt.config.settings import LoaderConfig

log = get_logger(__name__)


class DataContext:
    """Memoized, single-initialization handle on a DatasetLoader result."""

    def __init__(self, loader: DatasetLoader) -> None:
        """
        Initialize context.

        Args:
            loader: Loader to run on first access.
        """
        self.loader = loader
        self._task: asyncio.Task[LoadResult] | None = None
        self._result: LoadResult | None = None
        self._rows: tuple["Mapping[str, str]", ...] | None = None

    @classmethod
    def from_config(
        cls,
        config: "LoaderConfig",
        decoder: CsvDecoder | None = None,
    ) -> "DataContext":
        """
        Build a context with the default collaborators.

        Args:
            config: Loader configuration.
            decoder: CSV decoder (pandas-backed by default).

        Returns:
            A context whose load has not started yet.
        """
        fetcher = RemoteFetcher(
            timeout_seconds=config.transport.timeout_seconds,
            user_agent=config.transport.user_agent,
        )
        store = LastKnownGoodStore(
            FileStorage(config.cache.directory),
            data_key=config.cache.data_key,
            meta_key=config.cache.meta_key,
        )
        if decoder is None:
            try:
                decoder = default_decoder()
            except DecoderUnavailableError as e:
                # Network loads will fail; the cache can still serve
                log.warning("CSV decoder unavailable", error=str(e))

        loader = DatasetLoader(
            fetcher=fetcher,
            store=store,
            decoder=decoder,
            manifest_url=config.manifest_url,
            schema_url=config.schema_url,
            base_url=config.source.base_url,
            numeric_sample_size=config.validation.numeric_sample_size,
        )
        return cls(loader)

    async def result(self) -> LoadResult:
        """
        Return the load result, starting the load on first call.

        Raises:
            NoDataAvailableError: If neither network nor cache had data.
        """
        if self._task is None:
            log.debug("Starting dataset load")
            self._task = asyncio.ensure_future(self._run())
        return await asyncio.shield(self._task)

    async def rows(self) -> list[Row]:
        """Return the loaded rows."""
        return (await self.result()).rows

    async def _run(self) -> LoadResult:
        result = await self.loader.load()
        self._result = result
        self._rows = tuple(MappingProxyType(row) for row in result.rows)
        return result

    @property
    def ready(self) -> bool:
        """Whether the load has completed successfully."""
        return self._result is not None

    @property
    def snapshot_rows(self) -> tuple["Mapping[str, str]", ...]:
        """
        Read-only rows, available once the load has completed.

        Raises:
            DataNotReadyError: If the load has not completed.
        """
        if self._rows is None:
            raise DataNotReadyError
        return self._rows

    @property
    def snapshot_meta(self) -> Provenance:
        """
        Provenance of the loaded rows, available once the load has completed.

        Raises:
            DataNotReadyError: If the load has not completed.
        """
        if self._result is None:
            raise DataNotReadyError
        return self._result.meta
