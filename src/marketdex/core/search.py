"""
Elasticsearch projection of listings for full-text search.

[SearchClient][marketdex.core.search.SearchClient] writes listing documents
to an Elasticsearch index over its REST API with aiohttp. It is a
best-effort secondary view: every transport or HTTP failure surfaces as a
[SearchIndexError][marketdex.core.exceptions.SearchIndexError], which the
indexer logs without rolling back the relational write.

Index settings, mappings and analyzers are managed outside this package.

Examples:
    ```python
    search = SearchClient(SearchConfig(url="http://localhost:9200"))

    async with search:
        await search.index("1-000-42", "0xa1", "0xabc", listing.to_dict())
    ```
"""

from __future__ import annotations

import os
from typing import Any
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, Field

from .exceptions import SearchIndexError
from .logger import Logger


class SearchConfig(BaseModel):
    """Connection settings for the Elasticsearch cluster.

    When ``username`` is set, the password is read from the environment
    variable named by ``password_env``.
    """

    url: str = Field(default="http://localhost:9200", min_length=1, description="Cluster URL")
    index: str = Field(default="listings", min_length=1, description="Listing index name")
    timeout: float = Field(default=10.0, ge=0.1, description="Per-request timeout (seconds)")
    username: str | None = Field(default=None, description="Basic auth user")
    password_env: str = Field(
        default="ELASTICSEARCH_PASSWORD",  # pragma: allowlist secret
        min_length=1,
        description="Environment variable holding the basic auth password",
    )


class SearchClient:
    """Async Elasticsearch client implementing the ``SearchIndex`` protocol."""

    def __init__(
        self,
        config: SearchConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Cluster settings. Uses defaults if not provided.
            session: Pre-built session (mainly for tests). When omitted, a
                session is created by [connect()][marketdex.core.search.SearchClient.connect]
                and owned by this client.
        """
        self._config = config or SearchConfig()
        self._session = session
        self._owns_session = session is None
        self._logger = Logger("search")

    @property
    def config(self) -> SearchConfig:
        return self._config

    def _auth(self) -> aiohttp.BasicAuth | None:
        if self._config.username is None:
            return None
        return aiohttp.BasicAuth(self._config.username, os.getenv(self._config.password_env, ""))

    def document_url(self, doc_id: str) -> str:
        base = self._config.url.rstrip("/")
        return f"{base}/{quote(self._config.index, safe='')}/_doc/{quote(doc_id, safe='')}"

    @staticmethod
    def build_document(
        owner_address: str, content_ref: str | None, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Return the searchable document: the full listing plus owner and content hash."""
        return {
            **payload,
            "ownerAddress": owner_address,
            "ipfsHash": content_ref,
        }

    async def index(
        self,
        doc_id: str,
        owner_address: str,
        content_ref: str | None,
        payload: dict[str, Any],
    ) -> None:
        """Create or replace the document for ``doc_id``.

        Raises:
            SearchIndexError: On connection errors, timeouts or non-2xx replies.
        """
        if self._session is None:
            raise SearchIndexError("Search client not connected. Call connect() first.")

        document = self.build_document(owner_address, content_ref, payload)
        try:
            async with self._session.put(
                self.document_url(doc_id),
                json=document,
                auth=self._auth(),
                timeout=aiohttp.ClientTimeout(total=self._config.timeout),
            ) as response:
                response.raise_for_status()
        except (aiohttp.ClientError, TimeoutError) as e:
            raise SearchIndexError(f"Failed to index document {doc_id}: {e}") from e

        self._logger.debug("document_indexed", index=self._config.index, id=doc_id)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> SearchClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"SearchClient(url={self._config.url}, index={self._config.index})"
