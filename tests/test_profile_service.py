import uuid

import pytest

from swiftnotes.exceptions import ConflictError, NotFoundError
from swiftnotes.services.profile_service import (
    create_profile,
    delete_profile,
    get_profile,
    serialize_profile,
    update_profile,
)


@pytest.mark.asyncio
async def test_new_profile_starts_with_empty_preferences(db, stored_text):
    user_id = str(uuid.uuid4())

    profile = await create_profile(db, user_id, email="new@example.com", first_name="Nia")

    assert profile.preferences == {}
    assert stored_text(user_id) == "{}"
    assert profile.tier == "free"
    assert profile.credits == 100


@pytest.mark.asyncio
async def test_creating_an_existing_profile_conflicts(db, seed_profile):
    user_id = seed_profile({})

    with pytest.raises(ConflictError):
        await create_profile(db, user_id)


@pytest.mark.asyncio
async def test_update_profile_ignores_non_editable_fields(db, seed_profile):
    user_id = seed_profile({}, first_name="Old")

    profile = await update_profile(db, user_id, {"firstName": "New", "credits": 9999, "lastName": "Name"})

    assert profile.first_name == "New"
    assert profile.last_name == "Name"
    assert profile.credits == 100


@pytest.mark.asyncio
async def test_delete_profile(db, seed_profile, stored_profile):
    user_id = seed_profile({"weeklyReports": True})

    await delete_profile(db, user_id)

    assert stored_profile(user_id) is None
    with pytest.raises(NotFoundError):
        await get_profile(db, user_id)


@pytest.mark.asyncio
async def test_serialized_profile_has_parsed_preferences(db, seed_profile):
    user_id = seed_profile('{"defaultDetailLevel": "brief"}', last_name="Lee")

    data = serialize_profile(await get_profile(db, user_id))

    assert data["id"] == user_id
    assert data["lastName"] == "Lee"
    assert data["preferences"]["defaultDetailLevel"] == "brief"
    assert data["preferences"]["defaultToneLevel"] == 50
