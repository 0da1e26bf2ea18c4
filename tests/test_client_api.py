import json

import httpx
import pytest

from swiftnotes.client import (
    AuthenticationError,
    PreferenceValidationError,
    ProfileMissingError,
    RetryableSyncError,
    SwiftNotesClient,
)

BASE_URL = "http://swiftnotes.test/api/v1"


def make_client(handler) -> SwiftNotesClient:
    return SwiftNotesClient("token-123", base_url=BASE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_profile_parses_string_preferences():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/user/profile"
        assert request.headers["Authorization"] == "Bearer token-123"
        return httpx.Response(
            200,
            json={"success": True, "user": {"id": "u1", "preferences": json.dumps({"defaultToneLevel": 25})}},
        )

    async with make_client(handler) as client:
        user = await client.fetch_profile()

    assert user["id"] == "u1"
    assert user["preferences"] == {"defaultToneLevel": 25}


@pytest.mark.asyncio
async def test_update_preferences_sends_partial_document():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"success": True, "preferences": {"defaultToneLevel": 40, "weeklyReports": True}},
        )

    async with make_client(handler) as client:
        document = await client.update_preferences({"defaultToneLevel": 40})

    assert seen == {"method": "PUT", "body": {"defaultToneLevel": 40}}
    assert document == {"defaultToneLevel": 40, "weeklyReports": True}


@pytest.mark.asyncio
async def test_validation_failure_carries_field_names():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "success": False,
                "error": "Invalid preference value(s): defaultToneLevel",
                "fields": {"defaultToneLevel": "must be an integer between 0 and 100"},
            },
        )

    async with make_client(handler) as client:
        with pytest.raises(PreferenceValidationError) as exc_info:
            await client.update_preferences({"defaultToneLevel": 150})

    assert exc_info.value.retryable is False
    assert list(exc_info.value.fields) == ["defaultToneLevel"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, error_type",
    [(503, RetryableSyncError), (500, RetryableSyncError), (404, ProfileMissingError), (401, AuthenticationError)],
)
async def test_error_statuses_map_to_client_errors(status_code, error_type):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"success": False, "error": "nope"})

    async with make_client(handler) as client:
        with pytest.raises(error_type) as exc_info:
            await client.fetch_preferences()

    assert exc_info.value.status_code == status_code
    assert exc_info.value.message == "nope"


@pytest.mark.asyncio
async def test_network_failure_is_retryable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(RetryableSyncError) as exc_info:
            await client.update_preferences({"weeklyReports": True})

    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_timeout_is_retryable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    async with make_client(handler) as client:
        with pytest.raises(RetryableSyncError):
            await client.update_preferences({"weeklyReports": True})
