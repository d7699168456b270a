"""
Module: connectors.api_gateway

Single entry point for all HTTP calls to the inventory API. Every outcome,
including transport failures and malformed bodies, is returned as an
ApiResponse; nothing is raised to the caller.
"""

import json
import logging
from typing import Any

import httpx

from config.config import ApiClientConfig
from models.api import ApiResponse

logger = logging.getLogger(__name__)


class ApiGateway:
    """
    Async HTTP gateway normalizing JSON, text and binary responses into one envelope.
    """

    def __init__(
        self,
        config: ApiClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or ApiClientConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            headers=self.config.headers,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self.config.base_url

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ApiGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        json_body: Any = None,
        params: dict[str, str] | None = None,
        files: dict[str, Any] | None = None,
        expect_blob: bool = False,
    ) -> ApiResponse:
        """
        Perform one HTTP call and normalize the result.

        Args:
            endpoint: Path relative to the base URL, e.g. ``/products``.
            method: HTTP method.
            json_body: Optional JSON-serializable request body.
            params: Optional query parameters.
            files: Optional multipart files mapping (httpx ``files=`` format).
            expect_blob: Treat a successful body as raw bytes regardless of content type.
        """
        url = f"{self.base_url}{endpoint}"
        headers = {} if expect_blob or files else {"Accept": "application/json"}
        logger.debug(f"{method} {url} params={params}")

        try:
            response = await self._client.request(
                method, url, json=json_body, params=params, files=files, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {endpoint} timed out: {e}")
            return ApiResponse.fail(f"Request timed out: {method} {endpoint}")
        except httpx.RequestError as e:
            logger.warning(f"{method} {endpoint} failed: {e}")
            return ApiResponse.fail(f"Network error occurred: {e}" if str(e) else "Network error occurred")

        try:
            data = self._parse_body(response, expect_blob and response.is_success)
        except ValueError as e:
            logger.warning(f"{method} {endpoint} returned a malformed body: {e}")
            if not response.is_success:
                return ApiResponse.fail(f"HTTP error! status: {response.status_code}")
            return ApiResponse.fail(f"Malformed response body: {e}")

        if not response.is_success:
            error = _error_message(data) or f"HTTP error! status: {response.status_code}"
            logger.warning(f"{method} {endpoint} -> {response.status_code}: {error}")
            return ApiResponse.fail(error)

        message = data.get("message") if isinstance(data, dict) else None
        if _is_envelope(data):
            if not data["success"]:
                return ApiResponse.fail(_error_message(data) or "Request failed")
            data = data.get("data")
        return ApiResponse.ok(data, message=message if isinstance(message, str) else None)

    @staticmethod
    def _parse_body(response: httpx.Response, as_blob: bool) -> Any:
        if as_blob:
            return response.content
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type or content_type.endswith("+json"):
            if not response.content:
                return None
            return response.json()  # raises json.JSONDecodeError, a ValueError
        if content_type.startswith("text/"):
            return {"message": response.text}
        return response.content


def _is_envelope(data: Any) -> bool:
    return isinstance(data, dict) and isinstance(data.get("success"), bool) and ("data" in data or "error" in data)


def _error_message(data: Any) -> str | None:
    if isinstance(data, dict):
        for key in ("message", "error", "detail"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
            if value:
                return json.dumps(value, default=str)
    return None
