"""HTTP client wrappers for the researchmap WebAPI."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
import orjson

LOGGER = logging.getLogger("researchmap.client")

STATUS_EXCERPT_CHARS = 400
PARSE_EXCERPT_CHARS = 200


class ResearchmapError(RuntimeError):
    """Base class for failures talking to the researchmap API."""


class RemoteFetchError(ResearchmapError):
    """Raised when the API answers with a non-success status."""

    def __init__(self, status_code: int, url: str, excerpt: str = "") -> None:
        self.status_code = status_code
        self.url = url
        self.excerpt = excerpt
        super().__init__(f"HTTP {status_code} for {url}\n{excerpt}")


class MalformedResponseError(ResearchmapError):
    """Raised when a response body is not JSON."""

    def __init__(self, url: str, excerpt: str = "") -> None:
        self.url = url
        self.excerpt = excerpt
        super().__init__(f"Non-JSON response for {url}: {excerpt}")


@dataclass(slots=True)
class ResearchmapClientConfig:
    base_url: str = "https://api.researchmap.jp"
    page_size: int = 1000
    max_items: int = 5000
    start_offsets: tuple[int, ...] = (1, 0)
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {self.page_size}")
        if self.max_items < 1:
            raise ValueError(f"max_items must be at least 1, got {self.max_items}")


def build_url(base_url: str, permalink: str, record_type: str) -> str:
    return f"{base_url.rstrip('/')}/{quote(permalink, safe='')}/{quote(record_type, safe='')}"


def build_params(start: int, limit: int) -> dict[str, str]:
    return {
        "format": "json",
        "limit": str(limit),
        "start": str(start),
        # cache-busting nonce
        "_": str(int(time.time() * 1000)),
    }


def decode_response(response: httpx.Response) -> Any:
    url = str(response.url)
    text = response.text
    if not response.is_success:
        raise RemoteFetchError(response.status_code, url, text[:STATUS_EXCERPT_CHARS])
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError as exc:
        raise MalformedResponseError(url, text[:PARSE_EXCERPT_CHARS]) from exc


def extract_page_items(payload: Any) -> list[Any] | None:
    """Return the item array from any known envelope, or None if there is none."""
    candidate: Any = None
    if isinstance(payload, dict):
        for key in ("items", "@graph"):
            if payload.get(key) is not None:
                candidate = payload[key]
                break
        else:
            candidate = payload
    elif payload is not None:
        candidate = payload
    if isinstance(candidate, list):
        return candidate
    if isinstance(candidate, dict):
        inner = candidate.get("items")
        return inner if isinstance(inner, list) else None
    return None


class _Pagination:
    """Bookkeeping for one paginated pass starting at a given offset."""

    def __init__(self, start: int, config: ResearchmapClientConfig) -> None:
        self.start = start
        self.config = config
        self.items: list[Any] = []
        self.done = False

    def add_page(self, payload: Any) -> None:
        page = extract_page_items(payload)
        if not page:
            self.done = True
            return
        self.items.extend(page)
        if len(page) < self.config.page_size:
            self.done = True
            return
        self.start += self.config.page_size
        if len(self.items) > self.config.max_items:
            LOGGER.warning("Stopping pagination at safety ceiling (%s items)", len(self.items))
            self.done = True


class ResearchmapClient:
    """Blocking client used by the cache refresher."""

    def __init__(
        self,
        *,
        config: ResearchmapClientConfig | None = None,
        session: httpx.Client | None = None,
    ) -> None:
        self.config = config or ResearchmapClientConfig()
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> httpx.Client:
        if self._session is None:
            timeout = httpx.Timeout(self.config.request_timeout)
            self._session = httpx.Client(timeout=timeout, follow_redirects=True)
        return self._session

    def close(self) -> None:
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "ResearchmapClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    # -- Public API -----------------------------------------------------

    def fetch_all_items(self, permalink: str, record_type: str) -> list[Any]:
        """Fetch every page of one achievement type.

        The API disagrees with itself about whether `start` is 0- or 1-based,
        so each configured start offset is tried in turn and the last error is
        raised when all of them fail.
        """
        url = build_url(self.config.base_url, permalink, record_type)
        last_exc: Exception | None = None
        for start in self.config.start_offsets:
            try:
                return self._paginate(url, start)
            except (ResearchmapError, httpx.HTTPError) as exc:
                LOGGER.warning("Fetching %s with start=%s failed: %s", record_type, start, exc)
                last_exc = exc
        if last_exc is None:
            raise ResearchmapError(f"Failed to fetch {record_type}")
        raise last_exc

    # -- Internal helpers ------------------------------------------------

    def _paginate(self, url: str, start: int) -> list[Any]:
        pagination = _Pagination(start, self.config)
        while not pagination.done:
            params = build_params(pagination.start, self.config.page_size)
            response = self.session.get(url, params=params, headers={"Accept": "application/json"})
            pagination.add_page(decode_response(response))
        return pagination.items


class AsyncResearchmapClient:
    """Non-blocking client used for in-page live fetches."""

    def __init__(
        self,
        *,
        config: ResearchmapClientConfig | None = None,
        session: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or ResearchmapClientConfig()
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> httpx.AsyncClient:
        if self._session is None:
            timeout = httpx.Timeout(self.config.request_timeout)
            self._session = httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        return self._session

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.aclose()
            self._session = None

    async def __aenter__(self) -> "AsyncResearchmapClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def fetch_all_items(self, permalink: str, record_type: str) -> list[Any]:
        url = build_url(self.config.base_url, permalink, record_type)
        last_exc: Exception | None = None
        for start in self.config.start_offsets:
            try:
                return await self._paginate(url, start)
            except (ResearchmapError, httpx.HTTPError) as exc:
                LOGGER.warning("Live fetch of %s with start=%s failed: %s", record_type, start, exc)
                last_exc = exc
        if last_exc is None:
            raise ResearchmapError(f"Failed to fetch {record_type}")
        raise last_exc

    async def _paginate(self, url: str, start: int) -> list[Any]:
        pagination = _Pagination(start, self.config)
        while not pagination.done:
            params = build_params(pagination.start, self.config.page_size)
            response = await self.session.get(url, params=params, headers={"Accept": "application/json"})
            pagination.add_page(decode_response(response))
        return pagination.items
