"""Tests for the generic SQLAlchemy repository: CRUD, soft delete, filters and conflicts."""

import uuid

import pytest
from sqlalchemy import text

from identity_service.shared.core.exceptions import BadRequestError, ConflictError, NotFoundError
from identity_service.shared.domain.entity import SYSTEM_ACTOR
from identity_service.shared.domain.query import Filter, Operator, all_of


class TestAddAndRead:

    @pytest.mark.asyncio
    async def test_add_then_get_by_id_populates_audit_fields(self, repository, user_factory):
        user = user_factory(first_name="Alice")
        added = await repository.add(user, actor="admin-1")

        fetched = await repository.get_by_id(added.id)

        assert fetched.id == added.id
        assert fetched.username == "alice"
        assert fetched.email == "alice@example.com"
        assert fetched.first_name == "Alice"
        assert fetched.created_at is not None
        assert fetched.created_by == "admin-1"
        assert fetched.modified_at is None
        assert fetched.modified_by is None
        assert fetched.is_deleted is False

    @pytest.mark.asyncio
    async def test_add_keeps_caller_assigned_id(self, repository, user_factory):
        user_id = uuid.uuid4()
        added = await repository.add(user_factory(id=user_id))
        assert added.id == user_id

    @pytest.mark.asyncio
    async def test_add_without_actor_records_system(self, repository, user_factory):
        added = await repository.add(user_factory())
        assert added.created_by == SYSTEM_ACTOR

    @pytest.mark.asyncio
    async def test_get_all_empty_is_not_an_error(self, repository):
        assert await repository.get_all() == []

    @pytest.mark.asyncio
    async def test_get_by_id_unknown_raises_not_found(self, repository):
        with pytest.raises(NotFoundError) as exc_info:
            await repository.get_by_id(uuid.uuid4())
        assert exc_info.value.status_code == 404
        assert exc_info.value.details["resource_type"] == "User"


class TestSoftDelete:

    @pytest.mark.asyncio
    async def test_deleted_row_hidden_from_every_read(self, repository, user_factory):
        kept = await repository.add(user_factory(username="kept", email="kept@example.com"))
        gone = await repository.add(user_factory(username="gone", email="gone@example.com"))

        await repository.delete(gone, actor="admin-1")

        assert [u.id for u in await repository.get_all()] == [kept.id]
        assert await repository.get(Filter.eq("username", "gone")) == []
        with pytest.raises(NotFoundError):
            await repository.get_by_id(gone.id)

    @pytest.mark.asyncio
    async def test_deleted_row_still_exists_in_store(self, session, repository, user_factory, engine):
        user = await repository.add(user_factory())
        await repository.delete(user, actor="admin-1")
        await session.commit()

        async with engine.connect() as conn:
            row = (await conn.execute(
                text("SELECT is_deleted, modified_by FROM users WHERE username = 'alice'")
            )).one()

        assert bool(row.is_deleted) is True
        assert row.modified_by == "admin-1"

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, repository, user_factory):
        user = await repository.add(user_factory())
        await repository.delete(user)
        await repository.delete(user)

        assert await repository.get_all() == []

    @pytest.mark.asyncio
    async def test_soft_deleted_username_can_be_reused(self, repository, user_factory):
        first = await repository.add(user_factory())
        await repository.delete(first)

        second = await repository.add(user_factory())

        assert second.id != first.id
        assert [u.id for u in await repository.get_all()] == [second.id]


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_stamps_modification_and_keeps_creation(self, repository, user_factory):
        user = await repository.add(user_factory(), actor="creator")
        created_at = user.created_at

        user.first_name = "Alicia"
        updated = await repository.update(user, actor="editor")

        assert updated.first_name == "Alicia"
        assert updated.created_at == created_at
        assert updated.created_by == "creator"
        assert updated.modified_at is not None
        assert updated.modified_by == "editor"

    @pytest.mark.asyncio
    async def test_update_without_changes_still_stamps(self, repository, user_factory):
        user = await repository.add(user_factory())
        updated = await repository.update(user, actor="editor")
        assert updated.modified_by == "editor"

    @pytest.mark.asyncio
    async def test_update_unknown_entity_raises_not_found(self, repository, user_factory):
        with pytest.raises(NotFoundError):
            await repository.update(user_factory(id=uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_update_deleted_entity_raises_not_found(self, repository, user_factory):
        user = await repository.add(user_factory())
        await repository.delete(user)

        with pytest.raises(NotFoundError):
            await repository.update(user)


class TestConflicts:

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected_by_store(self, repository, user_factory):
        await repository.add(user_factory(username="alice"))

        with pytest.raises(ConflictError) as exc_info:
            await repository.add(user_factory(username="alice2"))

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_duplicate_username_rejected_by_store(self, repository, user_factory):
        await repository.add(user_factory(email="one@example.com"))

        with pytest.raises(ConflictError):
            await repository.add(user_factory(email="two@example.com"))

    @pytest.mark.asyncio
    async def test_session_usable_after_conflict(self, repository, user_factory):
        await repository.add(user_factory())
        with pytest.raises(ConflictError):
            await repository.add(user_factory(username="other"))

        added = await repository.add(user_factory(username="bob", email="bob@example.com"))
        assert (await repository.get_by_id(added.id)).username == "bob"


class TestFiltering:

    @pytest.mark.asyncio
    async def test_or_filter(self, repository, user_factory):
        await repository.add(user_factory(username="ann", email="ann@example.com"))
        await repository.add(user_factory(username="ben", email="ben@example.com"))
        await repository.add(user_factory(username="cat", email="cat@example.com"))

        spec = Filter.eq("email", "ann@example.com") | Filter.eq("username", "cat")
        found = await repository.get(spec, order_by=["username"])

        assert [u.username for u in found] == ["ann", "cat"]

    @pytest.mark.asyncio
    async def test_and_in_like_and_descending_order(self, repository, user_factory):
        for name in ("ann", "ben", "cat"):
            await repository.add(user_factory(username=name, email=f"{name}@example.com"))

        spec = all_of(
            Filter.in_("username", ["ann", "ben", "cat"]),
            Filter("email", Operator.LIKE, "%n@example.com"),
        )
        found = await repository.get(spec, order_by=["-username"])

        assert [u.username for u in found] == ["ben", "ann"]

    @pytest.mark.asyncio
    async def test_get_all_ordering(self, repository, user_factory):
        for name, last in (("ann", "Zed"), ("ben", "Young")):
            await repository.add(user_factory(username=name, email=f"{name}@example.com", last_name=last))

        found = await repository.get_all(order_by=["last_name"])

        assert [u.username for u in found] == ["ben", "ann"]

    @pytest.mark.asyncio
    async def test_unknown_filter_field_is_bad_request(self, repository):
        with pytest.raises(BadRequestError):
            await repository.get(Filter.eq("favourite_colour", "blue"))

    @pytest.mark.asyncio
    async def test_unknown_order_field_is_bad_request(self, repository):
        with pytest.raises(BadRequestError):
            await repository.get_all(order_by=["-shoe_size"])

    @pytest.mark.asyncio
    async def test_filter_cannot_reveal_deleted_rows(self, repository, user_factory):
        user = await repository.add(user_factory())
        await repository.delete(user)

        assert await repository.get(Filter.eq("is_deleted", True)) == []
