"""Thin HTTP wrapper around the /api/drawings endpoints."""
import logging
from typing import List, Optional

import httpx

from sketchpad.core.errors import DrawingValidationError, TransportError
from sketchpad.models.drawing import DrawingCreate, DrawingRead, DrawingUpdate

logger = logging.getLogger(__name__)


class DrawingsClient:
    """
    Client for the drawing record API with the same verbs as DrawingStore.

    Missing records come back as None (get/update) or False (delete); a 400
    raises DrawingValidationError; anything else that is not a success,
    including network failures, raises TransportError. Nothing is retried.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
        prefix: str = "/api/drawings",
    ):
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"User-Agent": "sketchpad-studio/0.3"},
        )
        self.prefix = prefix.rstrip("/")

    def __enter__(self) -> "DrawingsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _request(self, method: str, path: str = "", **kwargs) -> httpx.Response:
        url = f"{self.prefix}{path}"
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            # Surface network-level failures distinctly from HTTP error statuses.
            logger.warning("Drawings request failed", extra={"method": method, "url": url, "error": str(e)})
            raise TransportError(f"Could not reach drawings API: {e}") from e

        if response.status_code == 400:
            body = _json_or_empty(response)
            raise DrawingValidationError(body.get("detail", "Invalid drawing data"), body.get("errors"))
        if response.status_code != 404 and response.is_error:
            raise TransportError(f"Drawings API error {response.status_code}: {response.text}")
        return response

    def list(self) -> List[DrawingRead]:
        response = self._request("GET")
        return [DrawingRead.model_validate(item) for item in response.json()]

    def get(self, drawing_id: str) -> Optional[DrawingRead]:
        response = self._request("GET", f"/{drawing_id}")
        if response.status_code == 404:
            return None
        return DrawingRead.model_validate(response.json())

    def create(self, data: DrawingCreate) -> DrawingRead:
        response = self._request("POST", json=data.model_dump(mode="json", by_alias=True, exclude_unset=True))
        if response.status_code == 404:
            raise TransportError("Drawings API not found")
        return DrawingRead.model_validate(response.json())

    def update(self, drawing_id: str, changes: DrawingUpdate) -> Optional[DrawingRead]:
        # exclude_unset keeps the omitted / explicit-null distinction on the wire.
        payload = changes.model_dump(mode="json", by_alias=True, exclude_unset=True)
        response = self._request("PATCH", f"/{drawing_id}", json=payload)
        if response.status_code == 404:
            return None
        return DrawingRead.model_validate(response.json())

    def delete(self, drawing_id: str) -> bool:
        response = self._request("DELETE", f"/{drawing_id}")
        return response.status_code != 404


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
