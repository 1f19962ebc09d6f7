"""
Graph Fetcher

Loads the network graph (and optionally its metering points) from the
dashboard backend over HTTP.

PRINCIPLES:
===========
1. One read-only request per resource; no retries (the caller owns retry policy)
2. Transport failures become FetchError, undecodable bodies PayloadError
3. Every load produces a whole new GraphSnapshot
4. Strict loading raises GraphIntegrityError; lenient loading leaves
   integrity problems to the composer's diagnostics
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from ..contracts.base import FetchError, PayloadError
from ..contracts.graph import GraphSnapshot, StatusUpdate


@dataclass
class FetcherConfig:
    """Configuration for the graph fetcher."""
    base_url: str = "http://localhost:8000"
    graph_path: str = "/api/network"
    meters_path: str = "/api/network/meters"
    status_path: str = "/api/network/status"
    timeout: float = 10.0
    user_agent: str = "Gridview/0.1"
    include_meters: bool = True


class GraphFetcher:
    """
    Fetches the network graph.

    GUARANTEES:
    ===========
    1. `fetch` and `fetch_sync` decode the same payloads identically
    2. A failed meter request fails the whole load; snapshots are never partial
    3. `transport` lets tests and embedders swap the network out
    """

    def __init__(
        self,
        config: Optional[FetcherConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config or FetcherConfig()
        self._transport = transport
        self._async_transport = async_transport

    @property
    def config(self) -> FetcherConfig:
        return self._config

    # -------------------------------------------------------------------------
    # Async
    # -------------------------------------------------------------------------

    async def fetch(self) -> GraphSnapshot:
        """Fetch the graph without integrity checks."""
        async with self._async_client() as client:
            graph = await self._get_json(client, self._config.graph_path)
            meters = None
            if self._config.include_meters:
                meters = await self._get_json(client, self._config.meters_path)
        return self._decode(graph, meters)

    async def load_graph(self, strict: bool = True) -> GraphSnapshot:
        """
        Fetch the graph. With `strict`, any dangling endpoint, self-loop,
        duplicate id or non-finite position raises GraphIntegrityError.
        """
        snapshot = await self.fetch()
        return snapshot.validate() if strict else snapshot

    async def fetch_status(self) -> Tuple[StatusUpdate, ...]:
        """Fetch the optional live status feed."""
        async with self._async_client() as client:
            payload = await self._get_json(client, self._config.status_path)
        return self._decode_status(payload)

    async def _get_json(self, client: httpx.AsyncClient, path: str) -> Any:
        url = self._url(path)
        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError(f"Timed out fetching {url}", url=url) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Network error fetching {url}: {e}", url=url) from e
        return self._parse_response(response, url)

    def _async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._config.timeout,
            headers={'User-Agent': self._config.user_agent},
            follow_redirects=True,
            transport=self._async_transport,
        )

    # -------------------------------------------------------------------------
    # Sync
    # -------------------------------------------------------------------------

    def fetch_sync(self) -> GraphSnapshot:
        """Synchronous version of fetch."""
        with self._sync_client() as client:
            graph = self._get_json_sync(client, self._config.graph_path)
            meters = None
            if self._config.include_meters:
                meters = self._get_json_sync(client, self._config.meters_path)
        return self._decode(graph, meters)

    def load_graph_sync(self, strict: bool = True) -> GraphSnapshot:
        snapshot = self.fetch_sync()
        return snapshot.validate() if strict else snapshot

    def fetch_status_sync(self) -> Tuple[StatusUpdate, ...]:
        with self._sync_client() as client:
            payload = self._get_json_sync(client, self._config.status_path)
        return self._decode_status(payload)

    def _get_json_sync(self, client: httpx.Client, path: str) -> Any:
        url = self._url(path)
        try:
            response = client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError(f"Timed out fetching {url}", url=url) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Network error fetching {url}: {e}", url=url) from e
        return self._parse_response(response, url)

    def _sync_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._config.timeout,
            headers={'User-Agent': self._config.user_agent},
            follow_redirects=True,
            transport=self._transport,
        )

    # -------------------------------------------------------------------------
    # Decoding
    # -------------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return self._config.base_url.rstrip("/") + "/" + path.lstrip("/")

    def _parse_response(self, response: httpx.Response, url: str) -> Any:
        if response.status_code != 200:
            raise FetchError(f"HTTP {response.status_code} from {url}", url=url, status_code=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise PayloadError(f"Invalid JSON from {url}", url=url, status_code=response.status_code) from e

    def _decode(self, graph: Any, meters: Any) -> GraphSnapshot:
        if not isinstance(graph, Mapping):
            raise PayloadError("Graph payload must be an object with nodes and connections")
        meter_records = _unwrap_list(meters, "meters") if meters is not None else None
        try:
            return GraphSnapshot.from_payload(
                graph, meter_records, fetched_at=datetime.now(timezone.utc),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PayloadError(f"Malformed graph payload: {e}") from e

    def _decode_status(self, payload: Any) -> Tuple[StatusUpdate, ...]:
        records = _unwrap_list(payload, "updates")
        try:
            return tuple(StatusUpdate.from_dict(r) for r in records)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PayloadError(f"Malformed status payload: {e}") from e


def _unwrap_list(payload: Any, key: str) -> List[Dict[str, Any]]:
    """Accept either a bare list or `{key: [...]}`."""
    if isinstance(payload, Mapping):
        payload = payload.get(key)
    if not isinstance(payload, list):
        raise PayloadError(f"Expected a list of {key}")
    return payload
