"""
HTTP fetching of manifest, schema and payload resources.

Thin wrapper around a requests session. It knows about URLs, cache-busting
and status codes; it does not know what the resources mean.
"""

import asyncio
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import requests

from revopt.errors import FetchError
from revopt.utils.logging import get_logger

log = get_logger(__name__)

VERSION_PARAM = "v"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


def with_version(url: str, version: str | None) -> str:
    """
    Append a cache-busting version token to a URL.

    Args:
        url: Resource URL, may already carry a query string.
        version: Token to append as ``v=<token>``. Empty or None leaves the
            URL untouched.

    Returns:
        The versioned URL.
    """
    if not version:
        return url
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append((VERSION_PARAM, version))
    return urlunsplit(parts._replace(query=urlencode(query)))


def resolve_url(base: str, ref: str) -> str:
    """Resolve a possibly relative resource reference against a base URL."""
    return urljoin(base, ref)


class RemoteFetcher:
    """
    Fetch text resources over HTTP, one attempt per call.

    Requests run on a worker thread so callers can await them without
    blocking the event loop.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout_seconds: float | None = 30.0,
        user_agent: str | None = None,
    ) -> None:
        """
        Initialize fetcher.

        Args:
            session: Session to issue requests with (a new one by default).
            timeout_seconds: Transport timeout handed to requests.
            user_agent: Optional User-Agent header.
        """
        self.session = session if session is not None else requests.Session()
        self.timeout_seconds = timeout_seconds
        if user_agent:
            self.session.headers["User-Agent"] = user_agent

    async def fetch_text(self, url: str, version: str | None = None) -> str:
        """
        Fetch a resource and return its body as text.

        Args:
            url: Resource URL.
            version: Optional cache-busting token.

        Returns:
            Response body decoded as UTF-8.

        Raises:
            FetchError: If the server answers with a non-2xx status.
            requests.RequestException: On transport failure.
        """
        final_url = with_version(url, version)
        return await asyncio.to_thread(self._get, final_url)

    def _get(self, url: str) -> str:
        log.debug("Fetching resource", url=url)
        response = self.session.get(
            url,
            headers=NO_CACHE_HEADERS,
            timeout=self.timeout_seconds,
        )
        if not 200 <= response.status_code < 300:
            log.debug("Fetch failed", url=url, status=response.status_code)
            raise FetchError(response.status_code, url)

        # Decode explicitly: requests assumes ISO-8859-1 for text/* without a charset
        text = response.content.decode("utf-8-sig", errors="replace")
        log.debug("Fetched resource", url=url, chars=len(text))
        return text

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()
