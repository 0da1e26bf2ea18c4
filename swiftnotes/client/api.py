"""
Async HTTP client for the profile and preference endpoints.

The client owns the session (base URL and bearer token). It knows nothing
about what is currently displayed; that belongs to the sync controller.
"""
from typing import Any, Dict, Mapping, Optional

import httpx

from swiftnotes.client.errors import (
    AuthenticationError,
    PreferenceSyncError,
    PreferenceValidationError,
    ProfileMissingError,
    RetryableSyncError,
)
from swiftnotes.config import settings
from swiftnotes.logging_config import get_logger
from swiftnotes.services.preference_rules import normalize_stored

logger = get_logger(__name__)


class SwiftNotesClient:
    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS,
            headers={"Authorization": f"Bearer {access_token}"},
            transport=transport,
        )

    async def __aenter__(self) -> "SwiftNotesClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_profile(self) -> Dict[str, Any]:
        """GET /user/profile. Returns the ``user`` object with parsed preferences."""
        payload = await self._request("GET", "/user/profile")
        user = dict(payload.get("user") or {})
        user["preferences"] = normalize_stored(user.get("preferences"))
        return user

    async def fetch_preferences(self) -> Dict[str, Any]:
        payload = await self._request("GET", "/user/preferences")
        return normalize_stored(payload.get("preferences"))

    async def update_preferences(self, patch: Mapping[str, Any]) -> Dict[str, Any]:
        """PUT /user/preferences with a partial document; returns the merged document."""
        payload = await self._request("PUT", "/user/preferences", json=dict(patch))
        return normalize_stored(payload.get("preferences"))

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out: {e}")
            raise RetryableSyncError("Request timed out")
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise RetryableSyncError("Server unreachable")

        payload = self._decode(response)
        if response.is_success and payload.get("success", True):
            return payload

        error = payload.get("error") or payload.get("detail") or response.reason_phrase
        status_code = response.status_code
        logger.info(f"{method} {path} returned {status_code}: {error}")

        if status_code in (400, 422):
            raise PreferenceValidationError(error, fields=payload.get("fields"), status_code=status_code)
        if status_code in (401, 403):
            raise AuthenticationError(error, status_code)
        if status_code == 404:
            raise ProfileMissingError(error, status_code)
        if status_code >= 500 or status_code == 429:
            raise RetryableSyncError(error, status_code)
        raise PreferenceSyncError(error, status_code)

    @staticmethod
    def _decode(response: httpx.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}
