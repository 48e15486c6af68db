"""
Backend API client.
Sends bearer-authenticated requests and unwraps the {success, message, data, pagination} envelope.
"""
import httpx
import re
import logging
from typing import Any, Optional

from ..config import get_backend_config
from .errors import AuthenticationRequired, BackendError
from .uploads import MultipartPayload

logger = logging.getLogger(__name__)

FILENAME_PATTERN = re.compile(r'filename="(.+)"')


class Download:
    """Binary response with the filename the backend suggested."""

    def __init__(self, content: bytes, content_type: str, filename: Optional[str]):
        self.content = content
        self.content_type = content_type
        self.filename = filename


class BackendClient:
    """Async client for the platform REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        config = get_backend_config()
        self.base_url = (base_url or config["base_url"]).rstrip("/")
        self.timeout = timeout or config["timeout"]
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport
        )

    def _headers(self, token: Optional[str], auth: bool) -> dict:
        headers = {"Accept": "application/json"}
        if auth:
            if not token:
                raise AuthenticationRequired()
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        payload: Optional[MultipartPayload] = None,
        auth: bool = True
    ) -> dict:
        """
        Send a request and return the decoded envelope.
        Raises BackendError for transport failures, non-2xx statuses and success=false bodies.
        """
        headers = self._headers(token, auth)
        kwargs: dict[str, Any] = {"params": _clean_params(params), "headers": headers}
        if payload is not None:
            kwargs["files"] = payload.to_httpx()
        elif json is not None:
            kwargs["json"] = json

        async with self._client() as client:
            try:
                response = await client.request(method, path, **kwargs)
            except httpx.TimeoutException as e:
                logger.error(f"Backend timeout on {method} {path}: {e}")
                raise BackendError(504, "Request timed out. Please try again.")
            except httpx.HTTPError as e:
                logger.error(f"Backend unreachable on {method} {path}: {e}")
                raise BackendError(502, "Network error. Please check your connection.")

        return _unwrap(response, method, path)

    async def get(self, path: str, token: Optional[str] = None, **kwargs) -> dict:
        return await self.request("GET", path, token, **kwargs)

    async def post(self, path: str, token: Optional[str] = None, **kwargs) -> dict:
        return await self.request("POST", path, token, **kwargs)

    async def put(self, path: str, token: Optional[str] = None, **kwargs) -> dict:
        return await self.request("PUT", path, token, **kwargs)

    async def delete(self, path: str, token: Optional[str] = None, **kwargs) -> dict:
        return await self.request("DELETE", path, token, **kwargs)

    async def download(self, path: str, token: Optional[str], params: Optional[dict] = None) -> Download:
        """Fetch a binary file such as a generated report."""
        headers = self._headers(token, True)
        async with self._client() as client:
            try:
                response = await client.get(path, params=_clean_params(params), headers=headers)
            except httpx.TimeoutException as e:
                logger.error(f"Backend download timed out for {path}: {e}")
                raise BackendError(504, "Request timed out. Please try again.")
            except httpx.HTTPError as e:
                logger.error(f"Backend download failed for {path}: {e}")
                raise BackendError(502, "Network error. Please check your connection.")

        if response.status_code >= 400:
            _unwrap(response, "GET", path)

        disposition = response.headers.get("content-disposition", "")
        match = FILENAME_PATTERN.search(disposition)
        return Download(
            content=response.content,
            content_type=response.headers.get("content-type", "application/octet-stream"),
            filename=match.group(1) if match else None
        )


def _clean_params(params: Optional[dict]) -> Optional[dict]:
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None and v != ""}


def _unwrap(response: httpx.Response, method: str, path: str) -> dict:
    try:
        body = response.json()
    except ValueError:
        body = None

    if not isinstance(body, dict):
        if response.is_success:
            logger.error(f"Backend returned a non-JSON body for {method} {path}")
            raise BackendError(502, "Invalid response from server")
        body = {}

    message = body.get("message") or body.get("error")
    if not response.is_success:
        logger.warning(f"Backend {response.status_code} on {method} {path}: {message}")
        raise BackendError(
            response.status_code,
            message or f"Request failed with status {response.status_code}",
            body
        )
    if body.get("success") is False:
        logger.warning(f"Backend rejected {method} {path}: {message}")
        raise BackendError(400, message or "Request failed", body)
    return body


# Global client instance
_backend_client: Optional[BackendClient] = None


def get_backend_client() -> BackendClient:
    """Get or create the backend client."""
    global _backend_client
    if _backend_client is None:
        _backend_client = BackendClient()
    return _backend_client


def set_backend_client(client: Optional[BackendClient]):
    """Replace the global client (tests inject a mock transport here)."""
    global _backend_client
    _backend_client = client
