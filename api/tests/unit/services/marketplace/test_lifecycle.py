"""
Unit tests for PublicationLifecycleManager.

Uses the in-memory application store, which enforces the same version check
as the database-backed repository.
"""

import base64
import logging
from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from src.core.exceptions import (
    NotFoundError,
    PublishedApplicationLockedError,
    ValidationError,
    VersionConflictError,
)
from src.services.marketplace.lifecycle import (
    PublicationLifecycleManager,
    changed_frozen_fields,
)
from tests.helpers.factories import (
    FIXED_NOW,
    draft_from_application,
    make_application,
    make_draft,
    make_identity_data,
)
from tests.helpers.marketplace import InMemoryApplicationStore, RecordingPluginRegistrar

LATER = FIXED_NOW + timedelta(hours=1)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def registrar():
    return RecordingPluginRegistrar()


def make_manager(store, registrar=None, now=LATER):
    return PublicationLifecycleManager(store, registrar, clock=FakeClock(now))


class TestCreate:
    """Tests for PublicationLifecycleManager.create."""

    async def test_minimal_create(self):
        """A minimal draft gets forced defaults and a fresh key."""
        store = InMemoryApplicationStore()
        manager = make_manager(store, now=FIXED_NOW)
        draft = make_draft(identity={"name": "Foo"}, publication={"requested": False})

        application = await manager.create(draft)

        assert application.is_default is False
        assert application.published is False
        assert application.version == 0
        assert application.private_key
        assert application.created_at == FIXED_NOW
        assert application.updated_at == FIXED_NOW
        assert application.id in store.rows

    async def test_trusted_fields_from_draft_are_ignored(self):
        store = InMemoryApplicationStore()
        manager = make_manager(store, now=FIXED_NOW)
        draft = make_draft(
            is_default=True,
            publication={"published": True, "requested": True},
            api={"hooks_url": "https://h", "allowed_ips": "*", "private_key": "chosen-by-caller"},
            stats={"created_at": "2000-01-01T00:00:00Z", "updated_at": None, "version": 42},
        )

        application = await manager.create(draft)

        assert application.is_default is False
        assert application.published is False
        assert application.requested is True
        assert application.private_key != "chosen-by-caller"
        assert application.version == 0
        assert application.created_at == FIXED_NOW

    async def test_private_key_is_32_random_bytes(self):
        manager = make_manager(InMemoryApplicationStore())

        first = await manager.create(make_draft())
        second = await manager.create(make_draft())

        assert len(base64.b64decode(first.private_key)) == 32
        assert first.private_key != second.private_key

    async def test_requires_company(self):
        manager = make_manager(InMemoryApplicationStore())

        with pytest.raises(ValidationError):
            await manager.create(make_draft(company_id=None))

    async def test_schedules_plugin_registration_when_repository_set(self, registrar):
        manager = make_manager(InMemoryApplicationStore(), registrar)
        draft = make_draft(identity=make_identity_data(repository="https://git.example.com/foo"))

        application = await manager.create(draft)

        assert registrar.calls == [
            ("https://git.example.com/foo", application.id, application.private_key)
        ]

    async def test_no_plugin_registration_without_repository(self, registrar):
        manager = make_manager(InMemoryApplicationStore(), registrar)

        await manager.create(make_draft())

        assert registrar.calls == []


class TestUpdate:
    """Tests for PublicationLifecycleManager.update."""

    async def test_unknown_application(self):
        manager = make_manager(InMemoryApplicationStore())

        with pytest.raises(NotFoundError):
            await manager.update(uuid4(), make_draft())

    async def test_bumps_version_by_one(self):
        stored = make_application(version=3)
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)

        updated = await manager.update(stored.id, draft_from_application(stored))

        assert updated.version == 4
        assert updated.updated_at == LATER
        assert store.stored(stored.id)["version"] == 4
        assert store.stored(stored.id)["created_at"] == FIXED_NOW

    async def test_sequential_updates_are_monotonic(self):
        stored = make_application(version=0)
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)

        versions = []
        for _ in range(3):
            updated = await manager.update(stored.id, draft_from_application(stored))
            versions.append(updated.version)

        assert versions == [1, 2, 3]

    async def test_applies_editable_fields(self):
        stored = make_application()
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)
        draft = draft_from_application(
            stored,
            identity=make_identity_data(name="Renamed"),
            api={"hooks_url": "https://new/hooks", "allowed_ips": "1.2.3.4"},
            access={"read": ["a"], "write": [], "delete": [], "hooks": []},
            display={"twake": {"tab": None}},
        )

        updated = await manager.update(stored.id, draft)

        assert updated.identity["name"] == "Renamed"
        assert updated.hooks_url == "https://new/hooks"
        assert updated.allowed_ips == "1.2.3.4"
        assert updated.access["read"] == ["a"]
        assert updated.display == {"twake": {"tab": None}}

    async def test_private_key_and_ownership_never_change(self):
        stored = make_application(is_default=True)
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)
        draft = draft_from_application(
            stored,
            company_id=str(uuid4()),
            is_default=False,
            api={"hooks_url": None, "allowed_ips": None, "private_key": "attacker"},
        )

        updated = await manager.update(stored.id, draft)

        assert updated.private_key == stored.private_key
        assert updated.company_id == stored.company_id
        assert updated.is_default is True
        assert updated.id == stored.id

    async def test_published_identity_change_is_rejected(self):
        stored = make_application(published=True, requested=True, version=5)
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)
        draft = draft_from_application(stored, identity=make_identity_data(name="Bar"))

        with pytest.raises(PublishedApplicationLockedError) as exc_info:
            await manager.update(stored.id, draft)

        assert exc_info.value.fields == ["identity"]
        assert store.stored(stored.id)["version"] == 5
        assert store.stored(stored.id)["identity"]["name"] == "Foo"
        assert store.saved == []

    async def test_rename_unpublished_application(self):
        stored = make_application(version=0)
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)

        updated = await manager.update(
            stored.id, draft_from_application(stored, identity=make_identity_data(name="Bar"))
        )

        assert updated.identity["name"] == "Bar"
        assert updated.version == 1

    async def test_published_access_write_change_is_rejected(self):
        stored = make_application(published=True, requested=True)
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)
        access = dict(stored.access, write=["messages", "files"])

        with pytest.raises(ValidationError):
            await manager.update(stored.id, draft_from_application(stored, access=access))

        assert store.stored(stored.id)["access"]["write"] == ["messages"]

    async def test_private_key_survives_many_updates(self):
        manager = make_manager(InMemoryApplicationStore())
        created = await manager.create(make_draft())

        for _ in range(5):
            updated = await manager.update(created.id, draft_from_application(created))

        assert updated.private_key == created.private_key
        assert updated.version == 5

    async def test_published_lock_is_a_validation_error(self):
        stored = make_application(published=True, requested=True)
        manager = make_manager(InMemoryApplicationStore([stored]))
        draft = draft_from_application(
            stored, access={"read": [], "write": [], "delete": [], "hooks": []}
        )

        with pytest.raises(ValidationError):
            await manager.update(stored.id, draft)

    @pytest.mark.parametrize(
        "overrides,expected",
        [
            ({"api": {"hooks_url": "https://other", "allowed_ips": "*"}}, ["api.hooks_url"]),
            ({"api": {"hooks_url": "https://foo.example.com/hooks", "allowed_ips": "10.0.0.0/8"}}, ["api.allowed_ips"]),
            ({"display": {}}, ["display"]),
        ],
    )
    async def test_each_frozen_field_is_guarded(self, overrides, expected):
        stored = make_application(published=True, requested=True)
        manager = make_manager(InMemoryApplicationStore([stored]))

        with pytest.raises(PublishedApplicationLockedError) as exc_info:
            await manager.update(stored.id, draft_from_application(stored, **overrides))

        assert exc_info.value.fields == expected

    async def test_published_noop_update_succeeds(self):
        stored = make_application(published=True, requested=True, version=2)
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)

        updated = await manager.update(stored.id, draft_from_application(stored))

        assert updated.version == 3
        assert updated.published is True

    async def test_published_private_key_in_draft_is_not_a_change(self):
        stored = make_application(published=True, requested=True)
        manager = make_manager(InMemoryApplicationStore([stored]))
        draft = draft_from_application(
            stored,
            api={
                "hooks_url": stored.hooks_url,
                "allowed_ips": stored.allowed_ips,
                "private_key": "something-else",
            },
        )

        updated = await manager.update(stored.id, draft)

        assert updated.private_key == stored.private_key

    async def test_published_category_order_is_not_a_change(self):
        stored = make_application(published=True, requested=True)
        manager = make_manager(InMemoryApplicationStore([stored]))
        identity = make_identity_data(categories=["chat", "productivity"])

        updated = await manager.update(stored.id, draft_from_application(stored, identity=identity))

        assert updated.version == 1
        assert updated.identity["categories"] == ["productivity", "chat"]

    async def test_reordered_update_keeps_stored_lists(self):
        stored = make_application(
            published=True,
            requested=True,
            identity=make_identity_data(compatibility=["twake", "mobile"]),
        )
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)
        identity = make_identity_data(
            categories=["chat", "productivity"],
            compatibility=["mobile", "twake"],
        )

        await manager.update(stored.id, draft_from_application(stored, identity=identity))

        assert store.stored(stored.id)["identity"]["categories"] == stored.identity["categories"]
        assert (
            store.stored(stored.id)["identity"]["compatibility"] == stored.identity["compatibility"]
        )

    async def test_changed_categories_take_draft_order(self):
        stored = make_application()
        manager = make_manager(InMemoryApplicationStore([stored]))
        identity = make_identity_data(categories=["tasks", "chat"])

        updated = await manager.update(stored.id, draft_from_application(stored, identity=identity))

        assert updated.identity["categories"] == ["tasks", "chat"]

    async def test_withdrawing_request_unpublishes(self):
        stored = make_application(published=True, requested=True, version=7)
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)
        draft = draft_from_application(
            stored, publication={"published": True, "requested": False}
        )

        updated = await manager.update(stored.id, draft)

        assert updated.requested is False
        assert updated.published is False
        assert updated.version == 8

    async def test_requesting_does_not_publish(self):
        stored = make_application(published=False, requested=False)
        manager = make_manager(InMemoryApplicationStore([stored]))
        draft = draft_from_application(
            stored, publication={"published": True, "requested": True}
        )

        updated = await manager.update(stored.id, draft)

        assert updated.requested is True
        assert updated.published is False

    async def test_concurrent_update_raises_version_conflict(self):
        stored = make_application(version=1)
        store = InMemoryApplicationStore([stored])
        manager = make_manager(store)

        # Both readers see version 1
        first = await store.get_by_id(stored.id)
        second = await store.get_by_id(stored.id)

        first.version = 2
        await store.save(first)

        second.version = 2
        with pytest.raises(VersionConflictError):
            await store.save(second)

        # The manager itself goes through the same check
        store.get_by_id = AsyncMock(return_value=second)
        with pytest.raises(VersionConflictError):
            await manager.update(stored.id, draft_from_application(stored))
        assert store.stored(stored.id)["version"] == 2

    async def test_update_schedules_plugin_registration(self, registrar):
        stored = make_application(identity=make_identity_data(repository="https://git/foo"))
        manager = make_manager(InMemoryApplicationStore([stored]), registrar)

        await manager.update(stored.id, draft_from_application(stored))

        assert registrar.calls == [("https://git/foo", stored.id, stored.private_key)]

    async def test_unexpected_errors_are_logged_and_reraised(self, caplog):
        stored = make_application()
        store = InMemoryApplicationStore([stored])
        store.save = AsyncMock(side_effect=RuntimeError("connection lost"))
        manager = make_manager(store)

        with caplog.at_level(logging.ERROR, logger="src.services.marketplace.lifecycle"):
            with pytest.raises(RuntimeError):
                await manager.update(stored.id, draft_from_application(stored))

        assert f"Failed to update application {stored.id}" in caplog.text


class TestChangedFrozenFields:
    def test_no_changes(self):
        application = make_application()

        assert changed_frozen_fields(application, draft_from_application(application)) == []

    def test_reports_every_changed_field_in_order(self):
        application = make_application()
        draft = draft_from_application(
            application,
            identity=make_identity_data(code="other"),
            display={},
            access={"read": [], "write": [], "delete": [], "hooks": []},
        )

        assert changed_frozen_fields(application, draft) == ["identity", "access", "display"]

    def test_access_order_matters(self):
        application = make_application(
            access={"read": ["a", "b"], "write": [], "delete": [], "hooks": []}
        )
        draft = draft_from_application(
            application, access={"read": ["b", "a"], "write": [], "delete": [], "hooks": []}
        )

        assert changed_frozen_fields(application, draft) == ["access"]

    def test_missing_identity_keys_equal_defaults(self):
        application = make_application(identity={"name": "Foo"})
        draft = draft_from_application(
            application, identity={"name": "Foo", "categories": [], "repository": None}
        )

        assert changed_frozen_fields(application, draft) == []
