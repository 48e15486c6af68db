"""
Generic resource service - Paginated lists, status tab counts and CRUD over /api/<resource>.
"""
from typing import Any, Optional, Union
import logging

from ..models.common import ListResult
from .api_client import BackendClient
from .uploads import MultipartPayload

logger = logging.getLogger(__name__)

# Fetch size used to count items per status tab
COUNT_FETCH_LIMIT = 1000

Body = Union[MultipartPayload, dict, None]


class ResourceService:
    """CRUD access to one backend collection."""

    def __init__(self, client: BackendClient, resource: str):
        self.client = client
        self.path = f"/api/{resource.strip('/')}"

    async def list_page(
        self,
        token: str,
        page: int = 1,
        limit: int = 10,
        filters: Optional[dict[str, Any]] = None
    ) -> ListResult:
        """Fetch one page. Filters that are 'all' or blank are not sent."""
        params: dict[str, Any] = {"page": page, "limit": limit}
        for key, value in (filters or {}).items():
            if value in (None, "", "all"):
                continue
            params[key] = value

        body = await self.client.get(self.path, token, params=params)
        items = body.get("data") or []
        pagination = body.get("pagination") or {}
        return ListResult(
            items=items,
            total=pagination.get("total", len(items)),
            page=page,
            limit=limit
        )

    async def status_counts(self, token: str, statuses: list[str], field: str = "status") -> dict[str, int]:
        """Count items per status tab, including 'all'."""
        body = await self.client.get(self.path, token, params={"limit": COUNT_FETCH_LIMIT})
        items = body.get("data") or []
        counts = {status: 0 for status in statuses}
        counts["all"] = len(items)
        for item in items:
            status = item.get(field)
            if status in counts and status != "all":
                counts[status] += 1
        return counts

    async def get(self, token: str, item_id: Union[int, str]) -> dict:
        body = await self.client.get(f"{self.path}/{item_id}", token)
        return body.get("data") or {}

    async def create(self, token: str, body: Body, path: Optional[str] = None) -> dict:
        """POST a JSON or multipart body; returns the envelope."""
        return await self._send("POST", path or self.path, token, body)

    async def update(self, token: str, item_id: Union[int, str], body: Body) -> dict:
        return await self._send("PUT", f"{self.path}/{item_id}", token, body)

    async def delete(self, token: str, item_id: Union[int, str]) -> dict:
        logger.info(f"Deleting {self.path}/{item_id}")
        return await self.client.delete(f"{self.path}/{item_id}", token)

    async def _send(self, method: str, path: str, token: str, body: Body) -> dict:
        if isinstance(body, MultipartPayload):
            return await self.client.request(method, path, token, payload=body)
        return await self.client.request(method, path, token, json=body)
