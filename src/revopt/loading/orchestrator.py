"""
Two-path dataset loading: network first, last-known-good cache second.

The network path fetches manifest, schema and payload in sequence, verifies
the payload digest, decodes and validates it, and refreshes the cache. Any
failure on that path falls back to the cache. Only when both paths come up
empty does the caller see an error.
"""

import asyncio
from datetime import datetime, timezone

from revopt.errors import (
    ChecksumMismatchError,
    DecoderUnavailableError,
    NoDataAvailableError,
)
from revopt.ingestion.decoder import CsvDecoder
from revopt.ingestion.fetcher import RemoteFetcher, resolve_url
from revopt.schemas.dataset import DatasetSchema, Manifest
from revopt.schemas.provenance import DataSource, LoadResult, Provenance
from revopt.utils.cache import LastKnownGoodStore
from revopt.utils.hashing import content_hash, digests_match
from revopt.utils.logging import get_logger, log_context
from revopt.validation.core import DEFAULT_SAMPLE_SIZE, validate_rows

log = get_logger(__name__)


class DatasetLoader:
    """
    Load a dataset with network-first, cache-fallback semantics.

    Each call to load() makes exactly one attempt at the network path.
    """

    def __init__(
        self,
        fetcher: RemoteFetcher,
        store: LastKnownGoodStore,
        decoder: CsvDecoder | None,
        manifest_url: str,
        schema_url: str,
        base_url: str,
        numeric_sample_size: int = DEFAULT_SAMPLE_SIZE,
    ) -> None:
        """
        Initialize loader.

        Args:
            fetcher: Fetcher for manifest, schema and payload.
            store: Last-known-good cache.
            decoder: CSV decoder. None makes every network load fail with
                DecoderUnavailableError (the cache can still serve).
            manifest_url: Absolute manifest URL.
            schema_url: Absolute schema URL.
            base_url: Site root that relative payload URLs in the manifest
                are resolved against, like the manifest and schema paths.
            numeric_sample_size: Rows sampled per numeric column.
        """
        self.fetcher = fetcher
        self.store = store
        self.decoder = decoder
        self.manifest_url = manifest_url
        self.schema_url = schema_url
        self.base_url = base_url
        self.numeric_sample_size = numeric_sample_size

    async def load(self) -> LoadResult:
        """
        Load the dataset.

        Returns:
            Rows and provenance, from the network or the cache.

        Raises:
            NoDataAvailableError: If the network path failed and the cache
                is empty.
        """
        try:
            return await self.load_network()
        except Exception as e:
            log.warning(
                "Network path failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            cached = self.store.load()
            if cached is not None:
                log.info("Serving last known good dataset", rows=cached.row_count)
                return LoadResult(rows=cached.rows, meta=cached.meta.as_cached())
            raise NoDataAvailableError(str(e)) from e

    async def load_network(self) -> LoadResult:
        """
        Run the network path once.

        Returns:
            Validated rows with network provenance.

        Raises:
            Exception: Any fetch, parse, checksum, decode or validation error.
        """
        with log_context(manifest_url=self.manifest_url):
            manifest_text = await self.fetcher.fetch_text(self.manifest_url)
            manifest = Manifest.model_validate_json(manifest_text)

            schema_text = await self.fetcher.fetch_text(
                self.schema_url, manifest.schema_version
            )
            schema = DatasetSchema.model_validate_json(schema_text)

            payload_url = resolve_url(self.base_url, manifest.url)
            payload = await self.fetcher.fetch_text(payload_url, manifest.version)

            digest = await asyncio.to_thread(content_hash, payload)
            if manifest.sha256 and not digests_match(manifest.sha256, digest):
                raise ChecksumMismatchError(manifest.sha256, digest)

            if self.decoder is None:
                raise DecoderUnavailableError
            rows = self.decoder.decode(payload)

            flagged = validate_rows(rows, schema, self.numeric_sample_size)

            meta = Provenance(
                source=DataSource.NETWORK,
                manifest=manifest,
                loaded_at=datetime.now(timezone.utc),
            )
            self.store.save(meta, rows)

            log.info(
                "Loaded dataset from network",
                url=payload_url,
                version=manifest.version,
                rows=len(rows),
                numeric_warnings=flagged,
            )
            return LoadResult(rows=rows, meta=meta)
