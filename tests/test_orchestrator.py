"""Tests for the network-first, cache-fallback dataset loader."""

import asyncio
import json
from collections.abc import Callable

import pytest
import requests
from conftest import BASE_URL, MANIFEST_URL, SCHEMA_URL, SITE_URL, FakeRemote, sha256_hex
from structlog.testing import capture_logs

from revopt.errors import (
    ChecksumMismatchError,
    DecoderUnavailableError,
    FetchError,
    MissingColumnsError,
    NoDataAvailableError,
)
from revopt.loading.orchestrator import DatasetLoader
from revopt.schemas import DataSource, Manifest, Provenance
from revopt.utils.cache import LastKnownGoodStore, MemoryStorage

LoaderFactory = Callable[..., DatasetLoader]


def seed_cache(store: LastKnownGoodStore, rows: list[dict[str, str]]) -> Provenance:
    """Store a previously validated dataset."""
    meta = Provenance(source=DataSource.NETWORK, manifest=Manifest(url="old.csv", version="0"))
    assert store.save(meta, rows).ok
    return meta


class TestNetworkPath:
    """Tests for successful network loads."""

    def test_example_dataset(self, remote: FakeRemote, make_loader: LoaderFactory) -> None:
        """Test the reference example: a,b with two rows."""
        remote.publish("a,b\n1,2\n3,4")
        result = asyncio.run(make_loader().load())

        assert result.rows == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]
        assert result.meta.source == DataSource.NETWORK
        assert result.meta.manifest is not None
        assert result.meta.manifest.url == "data/d.csv"
        assert result.meta.loaded_at is not None

    def test_fetch_sequence(self, remote: FakeRemote, make_loader: LoaderFactory) -> None:
        """Test manifest, schema and payload are fetched in order with tokens."""
        remote.publish(version="2024-06", schema_version="7")
        asyncio.run(make_loader().load())

        assert remote.requested == [
            MANIFEST_URL,
            f"{SCHEMA_URL}?v=7",
            f"{BASE_URL}d.csv?v=2024-06",
        ]

    def test_unversioned_schema(self, remote: FakeRemote, make_loader: LoaderFactory) -> None:
        """Test a manifest without schema_version fetches the plain schema URL."""
        remote.serve(MANIFEST_URL, json.dumps({"url": "data/d.csv"}))
        remote.serve(SCHEMA_URL, json.dumps({"required_columns": ["a"]}))
        remote.serve(BASE_URL + "d.csv", "a\n1\n")

        result = asyncio.run(make_loader().load())
        assert result.rows == [{"a": "1"}]
        assert remote.requested[1] == SCHEMA_URL

    def test_payload_url_relative_to_site_root(
        self, remote: FakeRemote, make_loader: LoaderFactory
    ) -> None:
        """Test relative payload URLs resolve like the manifest and schema paths."""
        remote.serve(MANIFEST_URL, json.dumps({"url": "exports/d.csv"}))
        remote.serve(SCHEMA_URL, json.dumps({"required_columns": ["a"]}))
        remote.serve(SITE_URL + "exports/d.csv", "a\n1\n")

        result = asyncio.run(make_loader().load())
        assert result.meta.source == DataSource.NETWORK
        assert remote.requested[-1] == SITE_URL + "exports/d.csv"

    def test_absolute_payload_url(self, remote: FakeRemote, make_loader: LoaderFactory) -> None:
        """Test absolute payload URLs are fetched as published."""
        manifest = {"url": "https://cdn.example.org/d.csv", "version": "3"}
        remote.serve(MANIFEST_URL, json.dumps(manifest))
        remote.serve(SCHEMA_URL, json.dumps({"required_columns": ["a"]}))
        remote.serve("https://cdn.example.org/d.csv?v=3", "a\n1\n")

        result = asyncio.run(make_loader().load())
        assert result.rows == [{"a": "1"}]

    def test_numeric_warnings_logged(
        self, remote: FakeRemote, make_loader: LoaderFactory
    ) -> None:
        """Test flagged numeric columns are reported on the load event."""
        remote.publish("a,b\n1,lots\n", numeric=["a", "b"])
        with capture_logs() as logs:
            asyncio.run(make_loader().load())

        loaded = [e for e in logs if e["event"] == "Loaded dataset from network"]
        assert loaded[0]["numeric_warnings"] == ["b"]

    def test_checksum_optional(self, remote: FakeRemote, make_loader: LoaderFactory) -> None:
        """Test manifests without sha256 skip the integrity check."""
        remote.publish(sha256=None)
        result = asyncio.run(make_loader().load())
        assert result.meta.source == DataSource.NETWORK

    def test_checksum_case_insensitive(
        self, remote: FakeRemote, make_loader: LoaderFactory
    ) -> None:
        """Test upper-case published digests are accepted."""
        remote.publish(sha256=sha256_hex("a,b\n1,2\n3,4").upper())
        result = asyncio.run(make_loader().load())
        assert result.meta.source == DataSource.NETWORK

    def test_updates_cache(
        self, remote: FakeRemote, make_loader: LoaderFactory, store: LastKnownGoodStore
    ) -> None:
        """Test a successful load is cached with network provenance."""
        remote.publish()
        result = asyncio.run(make_loader().load())

        cached = store.load()
        assert cached is not None
        assert cached.rows == result.rows
        assert cached.meta == result.meta

    def test_successive_loads_overwrite_cache(
        self, remote: FakeRemote, make_loader: LoaderFactory, store: LastKnownGoodStore
    ) -> None:
        """Test the cache reflects the most recent successful load."""
        loader = make_loader()
        remote.publish("a,b\n1,2\n", version="1")
        asyncio.run(loader.load())
        remote.publish("a,b\n5,6\n7,8\n", version="2")
        asyncio.run(loader.load())

        cached = store.load()
        assert cached is not None
        assert cached.rows == [{"a": "5", "b": "6"}, {"a": "7", "b": "8"}]
        assert cached.meta.manifest is not None
        assert cached.meta.manifest.version == "2"

    def test_non_numeric_does_not_block(
        self, remote: FakeRemote, make_loader: LoaderFactory
    ) -> None:
        """Test non-numeric values in numeric columns only warn."""
        remote.publish("a,b\n1,lots\n3,4\n", numeric=["a", "b"])
        with capture_logs() as logs:
            result = asyncio.run(make_loader().load())

        assert result.meta.source == DataSource.NETWORK
        assert len(result.rows) == 2
        warnings = [e for e in logs if e["event"] == "Non-numeric sample"]
        assert [w["column"] for w in warnings] == ["b"]

    def test_cache_write_failure_does_not_block(
        self, remote: FakeRemote, make_loader: LoaderFactory
    ) -> None:
        """Test a failing cache never aborts a successful load."""

        class FullStorage(MemoryStorage):
            def set(self, key: str, value: str) -> None:
                raise OSError("quota exceeded")

        remote.publish()
        loader = make_loader(store=LastKnownGoodStore(FullStorage()))
        result = asyncio.run(loader.load())
        assert result.meta.source == DataSource.NETWORK


class TestNetworkFailures:
    """Tests for network path failures surfaced by load_network."""

    def test_checksum_mismatch(self, remote: FakeRemote, make_loader: LoaderFactory) -> None:
        """Test digest mismatch raises with expected and actual digests."""
        remote.publish(sha256="0" * 64)
        with pytest.raises(ChecksumMismatchError) as exc_info:
            asyncio.run(make_loader().load_network())
        assert exc_info.value.expected == "0" * 64
        assert exc_info.value.actual == sha256_hex("a,b\n1,2\n3,4")

    def test_manifest_http_error(self, remote: FakeRemote, make_loader: LoaderFactory) -> None:
        """Test a missing manifest stops the network path immediately."""
        with pytest.raises(FetchError):
            asyncio.run(make_loader().load_network())
        assert remote.requested == [MANIFEST_URL]

    def test_missing_columns(self, remote: FakeRemote, make_loader: LoaderFactory) -> None:
        """Test schema violations fail the network path."""
        remote.publish(required=["a", "b", "c", "d"])
        with pytest.raises(MissingColumnsError, match="missing columns: c, d"):
            asyncio.run(make_loader().load_network())

    def test_no_decoder(self, remote: FakeRemote, make_loader: LoaderFactory) -> None:
        """Test a loader without decoder cannot complete the network path."""
        remote.publish()
        with pytest.raises(DecoderUnavailableError):
            asyncio.run(make_loader(decoder=None).load_network())


class TestFallback:
    """Tests for the last-known-good fallback."""

    @pytest.mark.parametrize(
        "break_network",
        [
            pytest.param(lambda r: None, id="manifest-404"),
            pytest.param(
                lambda r: r.fail(MANIFEST_URL, requests.ConnectionError("offline")),
                id="connection-error",
            ),
            pytest.param(lambda r: r.publish(sha256="f" * 64), id="checksum-mismatch"),
            pytest.param(lambda r: r.publish(required=["zzz"]), id="missing-columns"),
            pytest.param(lambda r: r.publish("a,b\n"), id="empty-dataset"),
            pytest.param(
                lambda r: r.serve(MANIFEST_URL, "<html>maintenance</html>"),
                id="bad-manifest",
            ),
        ],
    )
    def test_serves_cache_on_any_failure(
        self,
        remote: FakeRemote,
        make_loader: LoaderFactory,
        store: LastKnownGoodStore,
        break_network: Callable[[FakeRemote], None],
    ) -> None:
        """Test cached rows are served whatever broke the network path."""
        cached_rows = [{"a": "old", "b": "rows"}]
        seeded = seed_cache(store, cached_rows)
        break_network(remote)

        result = asyncio.run(make_loader().load())

        assert result.rows == cached_rows
        assert result.meta.source == DataSource.CACHE
        assert result.meta.manifest == seeded.manifest

    def test_failed_load_leaves_cache_untouched(
        self, remote: FakeRemote, make_loader: LoaderFactory, store: LastKnownGoodStore
    ) -> None:
        """Test a checksum mismatch never overwrites the cache."""
        cached_rows = [{"a": "old", "b": "rows"}]
        seeded = seed_cache(store, cached_rows)
        remote.publish("a,b\n9,9\n", sha256="f" * 64)

        asyncio.run(make_loader().load())

        cached = store.load()
        assert cached is not None
        assert cached.rows == cached_rows
        assert cached.meta == seeded

    def test_cache_not_revalidated(
        self, make_loader: LoaderFactory, store: LastKnownGoodStore
    ) -> None:
        """Test cached data is served as-is on fallback."""
        seed_cache(store, [{"unrelated": "column"}])
        result = asyncio.run(make_loader().load())
        assert result.rows == [{"unrelated": "column"}]

    def test_warning_logged(self, make_loader: LoaderFactory, store: LastKnownGoodStore) -> None:
        """Test the network failure is logged before falling back."""
        seed_cache(store, [{"a": "1"}])
        with capture_logs() as logs:
            asyncio.run(make_loader().load())

        failures = [e for e in logs if e["event"] == "Network path failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "warning"
        assert failures[0]["error"] == f"HTTP 404 for {MANIFEST_URL}"

    def test_no_data_available(self, remote: FakeRemote, make_loader: LoaderFactory) -> None:
        """Test the terminal error embeds the network failure's message."""
        remote.fail(MANIFEST_URL, requests.ConnectionError("name resolution failed"))

        with pytest.raises(NoDataAvailableError) as exc_info:
            asyncio.run(make_loader().load())

        assert "name resolution failed" in str(exc_info.value)
        assert str(exc_info.value).startswith("No data available")
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_no_data_available_checksum(
        self, remote: FakeRemote, make_loader: LoaderFactory
    ) -> None:
        """Test the embedded message names the checksum failure."""
        remote.publish(sha256="f" * 64)
        with pytest.raises(NoDataAvailableError, match="Checksum mismatch"):
            asyncio.run(make_loader().load())

    def test_only_terminal_error_escapes(
        self, remote: FakeRemote, make_loader: LoaderFactory
    ) -> None:
        """Test network errors never reach the caller directly."""
        remote.publish(required=["missing"])
        with pytest.raises(NoDataAvailableError) as exc_info:
            asyncio.run(make_loader().load())
        assert isinstance(exc_info.value.__cause__, MissingColumnsError)

    def test_recovers_after_fallback(
        self, remote: FakeRemote, make_loader: LoaderFactory, store: LastKnownGoodStore
    ) -> None:
        """Test a later successful load replaces the fallback data."""
        seed_cache(store, [{"a": "old", "b": "x"}])
        loader = make_loader()
        assert asyncio.run(loader.load()).meta.source == DataSource.CACHE

        remote.publish()
        result = asyncio.run(loader.load())
        assert result.meta.source == DataSource.NETWORK
        cached = store.load()
        assert cached is not None
        assert cached.rows == result.rows
