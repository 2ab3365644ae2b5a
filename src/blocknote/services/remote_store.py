"""Remote block store: protocol, record encoding and an HTTP implementation.

Records are flat rows keyed by ``id`` with snake_case columns, ISO-8601
timestamps, a ``sort_order`` column holding the block's position in the
working set, and ``properties`` stored as the camelCase JSON list that only
this package interprets.
"""

from typing import Any, Optional, Protocol, Sequence

import httpx

from blocknote.models.block import Block
from blocknote.models.config import RemoteConfig
from blocknote.services.exceptions import RemoteStoreError
from blocknote.utils.logging import get_logger


logger = get_logger(__name__)


class RemoteStore(Protocol):
    """Remote backend consumed by the sync engine.

    Every method except ``probe`` raises RemoteStoreError on failure.
    """

    @property
    def is_configured(self) -> bool:
        ...

    async def probe(self) -> bool:
        ...

    async def fetch_all(self) -> list[dict[str, Any]]:
        ...

    async def upsert_batch(self, records: Sequence[dict[str, Any]]) -> None:
        ...

    async def delete_batch(self, ids: Sequence[str]) -> None:
        ...


def block_to_record(block: Block, sort_order: int) -> dict[str, Any]:
    """
    Encode a block as a remote record.

    Args:
        block: Block to encode
        sort_order: Position of the block in the working set

    Returns:
        JSON-safe dict keyed by remote column names
    """
    return {
        "id": block.id,
        "name": block.name,
        "content": block.content,
        "indent": block.indent,
        "is_collapsed": block.is_collapsed,
        "is_pinned": block.is_pinned,
        "column": block.column.value,
        "properties": [
            prop.model_dump(mode="json", by_alias=True, exclude_none=True)
            for prop in block.properties
        ],
        "sort_order": sort_order,
        "created_at": block.created_at.isoformat(),
        "updated_at": block.updated_at.isoformat(),
    }


def record_to_block(row: dict[str, Any]) -> Block:
    """
    Decode a remote record, tolerating null or missing optional columns.

    Raises:
        pydantic.ValidationError: If required fields are missing or malformed
    """
    data: dict[str, Any] = {
        "id": row["id"],
        "name": row.get("name") or "",
        "content": row.get("content") or "",
        "indent": row.get("indent") or 0,
        "is_collapsed": bool(row.get("is_collapsed")),
        "is_pinned": bool(row.get("is_pinned")),
        "column": row.get("column") or "inbox",
        "properties": row.get("properties") or [],
        "is_deleted": bool(row.get("is_deleted")),
    }
    for key in ("created_at", "updated_at", "deleted_at"):
        if row.get(key):
            data[key] = row[key]
    return Block.model_validate(data)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text or response.reason_phrase or f"HTTP {response.status_code}"


class RestRemoteStore:
    """
    RemoteStore over a PostgREST-style table API (e.g. Supabase).

    Example:
        >>> store = RestRemoteStore(config.remote)
        >>> await store.probe()
        True
        >>> await store.upsert_batch([block_to_record(block, 0)])
    """

    def __init__(
        self,
        config: RemoteConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize remote store client.

        Args:
            config: Remote configuration (URL, API key, table)
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.table_url = f"{str(config.url).rstrip('/')}/rest/v1/{config.table}"
        self.timeout = httpx.Timeout(config.timeout)
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _headers(self, extra: Optional[dict[str, str]] = None) -> dict[str, str]:
        headers = {
            "apikey": self.config.api_key,
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        operation: str,
        method: str,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        logger.debug("remote_request", operation=operation, method=method, params=params)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    self.table_url,
                    params=params,
                    json=json,
                    headers=self._headers(headers),
                )
        except httpx.HTTPError as e:
            raise RemoteStoreError(operation, str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            raise RemoteStoreError(
                operation,
                _error_message(response),
                status_code=response.status_code,
            )
        return response

    async def probe(self) -> bool:
        """Cheap reachability check: select one id."""
        try:
            await self._request("probe", "GET", params={"select": "id", "limit": "1"})
            return True
        except RemoteStoreError as e:
            logger.debug("remote_probe_failed", error=str(e))
            return False

    async def fetch_all(self) -> list[dict[str, Any]]:
        """Fetch every record ordered by sort_order."""
        response = await self._request(
            "fetch", "GET", params={"select": "*", "order": "sort_order.asc"}
        )
        try:
            rows = response.json()
        except ValueError as e:
            raise RemoteStoreError("fetch", f"Invalid JSON response: {e}") from e

        if not isinstance(rows, list):
            raise RemoteStoreError("fetch", "Expected a JSON array of records")
        return rows

    async def upsert_batch(self, records: Sequence[dict[str, Any]]) -> None:
        """Insert or overwrite records keyed by id (no version check)."""
        await self._request(
            "upsert",
            "POST",
            params={"on_conflict": "id"},
            json=list(records),
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def delete_batch(self, ids: Sequence[str]) -> None:
        """Delete records whose id is in ``ids``."""
        await self._request(
            "delete",
            "DELETE",
            params={"id": f"in.({','.join(ids)})"},
        )
