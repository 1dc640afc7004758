"""Gemini API client (text, image and Veo video endpoints)."""

from typing import Any, Dict, Optional
import httpx

from .base import BaseProvider
from ..utils.logger import get_logger
from ..utils.errors import ProviderError, CredentialError

logger = get_logger(__name__)

PROVIDER = "gemini"

INVALID_KEY_MARKERS = ("API_KEY_INVALID", "API key not valid", "API key expired")


class GeminiClient(BaseProvider):
    """Thin REST client for the generative backend.

    Every call takes the API key explicitly so a newly selected key is
    used from the next request on.
    """

    def __init__(
        self,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)

    def _get_default_headers(self) -> dict:
        return {"Content-Type": "application/json"}

    async def generate_content(
        self,
        model: str,
        payload: Dict[str, Any],
        api_key: str,
    ) -> Dict[str, Any]:
        """POST models/{model}:generateContent."""
        return await self._request("POST", f"models/{model}:generateContent", api_key, payload)

    async def start_video_generation(
        self,
        model: str,
        payload: Dict[str, Any],
        api_key: str,
    ) -> Dict[str, Any]:
        """POST models/{model}:predictLongRunning; returns the operation JSON."""
        return await self._request("POST", f"models/{model}:predictLongRunning", api_key, payload)

    async def get_operation(self, name: str, api_key: str) -> Dict[str, Any]:
        """GET the current state of a long-running operation."""
        return await self._request("GET", name, api_key)

    async def _request(
        self,
        method: str,
        path: str,
        api_key: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        self._ensure_client()

        url = f"{self.base_url}/{path.lstrip('/')}"

        try:
            response = await self.client.request(
                method,
                url,
                json=payload,
                headers={"x-goog-api-key": api_key},
            )
        except httpx.RequestError as e:
            logger.error(
                f"Gemini request failed: {type(e).__name__}",
                extra={"path": path, "error": str(e)}
            )
            raise ProviderError(PROVIDER, f"Request failed: {e}")

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error(
                f"Gemini HTTP error {response.status_code}",
                extra={
                    "path": path,
                    "status": response.status_code,
                    "response": message,
                }
            )
            if self._is_credential_failure(response.status_code, message):
                raise CredentialError(PROVIDER, message, response.status_code)
            raise ProviderError(PROVIDER, message, response.status_code)

        try:
            return response.json()
        except ValueError:
            raise ProviderError(PROVIDER, "Response body is not JSON", response.status_code)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:500] or f"HTTP {response.status_code}"

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            reasons = [
                detail.get("reason")
                for detail in error.get("details") or []
                if isinstance(detail, dict) and detail.get("reason")
            ]
            message = error.get("message") or error.get("status") or ""
            if reasons:
                message = f"{message} [{', '.join(reasons)}]"
            return message or f"HTTP {response.status_code}"
        return str(body)[:500]

    @staticmethod
    def _is_credential_failure(status_code: int, message: str) -> bool:
        if status_code in (401, 403):
            return True
        return status_code == 400 and any(marker in message for marker in INVALID_KEY_MARKERS)
