from datetime import datetime, timezone

import pytest

from vidguard.exceptions import ValidationException
from vidguard.models import AssignmentMode, SafetyStatus, VideoStatus
from vidguard.providers import InMemoryVideoStore


async def _create(store, tenant_id="acme", **overrides):
    fields = dict(
        title="Clip",
        original_filename="clip.mp4",
        storage_path=f"{tenant_id}/clip.mp4",
        mime_type="video/mp4",
        size=10,
    )
    fields.update(overrides)
    return await store.create(tenant_id, **fields)


async def test_create_starts_uploaded_and_unknown():
    store = InMemoryVideoStore()

    video = await _create(store, status=VideoStatus.PROCESSED, safety_status=SafetyStatus.SAFE)

    assert video.id
    assert video.status == VideoStatus.UPLOADED
    assert video.safety_status == SafetyStatus.UNKNOWN
    assert video.duration is None


async def test_records_are_tenant_scoped():
    store = InMemoryVideoStore()
    video = await _create(store, "acme")

    assert await store.get(video.id, "globex") is None
    assert await store.update_status(video.id, "globex", {"status": VideoStatus.FAILED}) is None
    assert not await store.delete(video.id, "globex")
    assert await store.list("globex") == []
    assert (await store.get(video.id, "acme")).status == VideoStatus.UPLOADED


async def test_update_status_and_filters():
    store = InMemoryVideoStore()
    first = await _create(store, title="First")
    second = await _create(store, title="Second")

    updated = await store.update_status(
        first.id, "acme",
        {"status": VideoStatus.PROCESSED, "safety_status": SafetyStatus.FLAGGED, "duration": 42},
    )

    assert updated.duration == 42
    assert updated.updated_at >= first.updated_at
    flagged = await store.list("acme", safety_status=SafetyStatus.FLAGGED)
    assert [v.id for v in flagged] == [first.id]
    uploaded = await store.list("acme", status=VideoStatus.UPLOADED)
    assert [v.id for v in uploaded] == [second.id]


async def test_returned_records_are_copies():
    store = InMemoryVideoStore()
    video = await _create(store)

    video.title = "changed"

    assert (await store.get(video.id, "acme")).title == "Clip"


@pytest.mark.parametrize("fields", [{"tenant_id": "other"}, {"id": "x"}, {"assigned_to": ["u1"]}, {"colour": "red"}, {"duration": -1}])
async def test_update_status_rejects_bad_fields(fields):
    store = InMemoryVideoStore()
    video = await _create(store)

    with pytest.raises(ValidationException):
        await store.update_status(video.id, "acme", fields)


async def test_create_rejects_invalid_record():
    store = InMemoryVideoStore()

    with pytest.raises(ValidationException):
        await store.create("acme", title="No file")


async def test_create_ignores_assignees():
    store = InMemoryVideoStore()

    video = await _create(store, assigned_to=["intruder"])

    assert video.assigned_to == []


@pytest.mark.parametrize(
    "mode,user_ids,expected",
    [
        (AssignmentMode.REPLACE, ["carol", "carol", "dave"], ["carol", "dave"]),
        (AssignmentMode.ADD, ["bob", "carol"], ["alice", "bob", "carol"]),
        (AssignmentMode.REMOVE, ["alice", "zed"], ["bob"]),
        (AssignmentMode.REPLACE, [], []),
    ],
)
async def test_update_assignees(mode, user_ids, expected):
    store = InMemoryVideoStore()
    video = await _create(store)
    await store.update_assignees(video.id, "acme", ["alice", "bob"], AssignmentMode.REPLACE)

    updated = await store.update_assignees(video.id, "acme", user_ids, mode)

    assert updated.assigned_to == expected
    assert (await store.get(video.id, "acme")).assigned_to == expected


async def test_update_assignees_is_tenant_scoped_and_copied():
    store = InMemoryVideoStore()
    video = await _create(store)

    assert await store.update_assignees(video.id, "globex", ["alice"], AssignmentMode.ADD) is None
    assert await store.update_assignees("missing", "acme", ["alice"], AssignmentMode.ADD) is None

    updated = await store.update_assignees(video.id, "acme", ["alice"], AssignmentMode.ADD)
    updated.assigned_to.append("mallory")

    assert (await store.get(video.id, "acme")).assigned_to == ["alice"]


async def test_list_by_owner_and_search():
    store = InMemoryVideoStore()
    mine = await _create(store, title="Beach Day", owner_id="alice")
    await _create(store, title="Office tour", description="A walk on the BEACH front", owner_id="bob")
    await _create(store, title="Kitchen", owner_id="alice")

    assert {v.id for v in await store.list("acme", owner_id="alice", search="beach")} == {mine.id}
    assert len(await store.list("acme", search="  beach ")) == 2
    assert len(await store.list("acme", search="")) == 3
    assert await store.list("acme", search="mountain") == []


async def test_list_date_bounds_are_inclusive():
    store = InMemoryVideoStore()
    jan = await _create(store, created_at=datetime(2024, 1, 10, tzinfo=timezone.utc))
    feb = await _create(store, created_at=datetime(2024, 2, 10, tzinfo=timezone.utc))
    mar = await _create(store, created_at=datetime(2024, 3, 10, tzinfo=timezone.utc))

    in_range = await store.list(
        "acme",
        from_date=datetime(2024, 1, 10, tzinfo=timezone.utc),
        to_date=datetime(2024, 2, 10, tzinfo=timezone.utc),
    )
    assert [v.id for v in in_range] == [feb.id, jan.id]
    # naive bounds are read as UTC
    assert [v.id for v in await store.list("acme", from_date=datetime(2024, 2, 11))] == [mar.id]
    assert [v.id for v in await store.list("acme", to_date=datetime(2024, 1, 31))] == [jan.id]
