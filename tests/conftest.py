"""Pytest configuration and shared fixtures."""

import hashlib
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from revopt.ingestion.decoder import PandasCsvDecoder
from revopt.ingestion.fetcher import RemoteFetcher
from revopt.loading.orchestrator import DatasetLoader
from revopt.utils.cache import LastKnownGoodStore, MemoryStorage

SITE_URL = "https://data.example.org/"
BASE_URL = SITE_URL + "data/"
MANIFEST_URL = BASE_URL + "manifest.json"
SCHEMA_URL = BASE_URL + "schema_v1.json"

SAMPLE_CSV = "a,b\n1,2\n3,4"


def sha256_hex(text: str) -> str:
    """SHA-256 of UTF-8 text, computed independently of revopt."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def make_response(status_code: int, body: str | bytes = "") -> MagicMock:
    """Create a fake requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.content = body.encode("utf-8") if isinstance(body, str) else body
    return response


class FakeRemote:
    """
    In-memory HTTP server for a requests session mock.

    Routes map a full URL (including any ?v= token) to (status, body) or to an
    exception instance to raise.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.requested: list[str] = []
        self.session = MagicMock(spec=requests.Session)
        self.session.headers = {}
        self.session.get.side_effect = self._get

    def serve(self, url: str, body: str, status: int = 200) -> None:
        self.routes[url] = (status, body)

    def fail(self, url: str, exc: Exception) -> None:
        self.routes[url] = exc

    def publish(
        self,
        payload: str = SAMPLE_CSV,
        *,
        version: str = "1",
        schema_version: str = "s1",
        required: list[str] | None = None,
        numeric: list[str] | None = None,
        sha256: str | None = "auto",
    ) -> dict[str, Any]:
        """Serve a consistent manifest, schema and payload triple."""
        manifest: dict[str, Any] = {
            "url": "data/d.csv",
            "version": version,
            "schema_version": schema_version,
        }
        if sha256 == "auto":
            manifest["sha256"] = sha256_hex(payload)
        elif sha256 is not None:
            manifest["sha256"] = sha256
        schema = {
            "required_columns": required if required is not None else ["a", "b"],
            "numeric_columns": numeric if numeric is not None else [],
        }
        self.serve(MANIFEST_URL, json.dumps(manifest))
        self.serve(f"{SCHEMA_URL}?v={schema_version}", json.dumps(schema))
        self.serve(f"{BASE_URL}d.csv?v={version}", payload)
        return manifest

    def _get(self, url: str, **kwargs: Any) -> MagicMock:
        self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            return make_response(404, "not found")
        if isinstance(route, Exception):
            raise route
        status, body = route
        return make_response(status, body)


@pytest.fixture
def remote() -> FakeRemote:
    """Fake remote source with nothing published."""
    return FakeRemote()


@pytest.fixture
def fetcher(remote: FakeRemote) -> RemoteFetcher:
    """Fetcher talking to the fake remote."""
    return RemoteFetcher(session=remote.session, timeout_seconds=5)


@pytest.fixture
def storage() -> MemoryStorage:
    """Empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage) -> LastKnownGoodStore:
    """Last-known-good store over in-memory storage."""
    return LastKnownGoodStore(storage)


@pytest.fixture
def make_loader(
    fetcher: RemoteFetcher, store: LastKnownGoodStore
) -> Callable[..., DatasetLoader]:
    """Factory for loaders wired to the fake remote and memory store."""

    def factory(**overrides: Any) -> DatasetLoader:
        kwargs: dict[str, Any] = {
            "fetcher": fetcher,
            "store": store,
            "decoder": PandasCsvDecoder(),
            "manifest_url": MANIFEST_URL,
            "schema_url": SCHEMA_URL,
            "base_url": SITE_URL,
        }
        kwargs.update(overrides)
        return DatasetLoader(**kwargs)

    return factory


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a minimal configuration file."""
    path = tmp_path / "revopt.yaml"
    path.write_text(
        """
source:
  base_url: "https://data.example.org/"

cache:
  directory: cache
""",
        encoding="utf-8",
    )
    return path
