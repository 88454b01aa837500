"""
Postboard Backend — Post Service Unit Tests
=============================================

What:  Post CRUD, view counting and recent tags against a real SQLite file.

Test Strategy:
    ✅ Tags split literally on ","
    ✅ create → update → get_one reflects the update and counts one view
    ✅ get_one on a missing id → NotFoundError, nothing counted
    ✅ N concurrent get_one calls (separate sessions) → exactly N views
    ✅ Last tags: 5 tags total from the 5 newest posts, newest first
    ✅ update by another user succeeds and reassigns the owner
    ✅ update of a missing id still acknowledges success
    ✅ remove of a missing id → NotFoundError
    ✅ create/update naming a user that is not stored → NotFoundError
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from postboard.exceptions import NotFoundError
from postboard.models.post import Post
from postboard.models.user import User
from postboard.services.post_service import collect_last_tags, split_tags


class TestTagHelpers:

    def test_split_tags_is_literal(self):
        assert split_tags("a,b,c") == ["a", "b", "c"]
        assert split_tags("a, b") == ["a", " b"]
        assert split_tags("a,,a") == ["a", "", "a"]

    def test_split_tags_empty_string(self):
        assert split_tags("") == [""]

    def test_collect_last_tags_keeps_first_five_overall(self):
        assert collect_last_tags([["a", "b", "c"], ["d", "e"], ["f"]]) == ["a", "b", "c", "d", "e"]

    def test_collect_last_tags_fewer_than_limit(self):
        assert collect_last_tags([["a"], [], ["b"]]) == ["a", "b"]

    def test_collect_last_tags_no_posts(self):
        assert collect_last_tags([]) == []


class TestCreateAndRead:

    @pytest.mark.asyncio
    async def test_create_returns_post_with_owner(self, db_session, post_service, make_user):
        author = await make_user()

        post = await post_service.create(
            db=db_session,
            author_id=author.id,
            title="Hello",
            text="First post",
            image_url="/uploads/cat.png",
            tags_csv="python,fastapi",
        )

        assert post.title == "Hello"
        assert post.tags == ["python", "fastapi"]
        assert post.views_count == 0
        assert post.image_url == "/uploads/cat.png"
        assert post.user.id == author.id
        assert post.user.login == "alice"

    @pytest.mark.asyncio
    async def test_update_then_get_one(self, db_session, post_service, make_user):
        author = await make_user()
        created = await post_service.create(db_session, author.id, "Draft", "Body", None, "a")

        ack = await post_service.update(
            db=db_session,
            post_id=created.id,
            author_id=author.id,
            title="Final",
            text="New body",
            image_url="/uploads/new.png",
            tags_csv="x,y",
        )
        fetched = await post_service.get_one(db_session, created.id)

        assert ack.success is True
        assert fetched.title == "Final"
        assert fetched.text == "New body"
        assert fetched.image_url == "/uploads/new.png"
        assert fetched.tags == ["x", "y"]
        assert fetched.views_count == 1

    @pytest.mark.asyncio
    async def test_each_get_one_counts_a_view(self, db_session, post_service, make_user):
        author = await make_user()
        created = await post_service.create(db_session, author.id, "T", "B", None, "a")

        counts = [(await post_service.get_one(db_session, created.id)).views_count for _ in range(3)]

        assert counts == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_get_one_missing(self, db_session, post_service):
        with pytest.raises(NotFoundError):
            await post_service.get_one(db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_get_all_oldest_first(self, db_session, post_service, make_user):
        author = await make_user()
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, title in enumerate(["first", "second", "third"]):
            db_session.add(Post(
                title=title, text="t", tags=[], user_id=author.id,
                created_at=base + timedelta(minutes=i),
            ))
        await db_session.flush()

        posts = await post_service.get_all(db_session)

        assert [p.title for p in posts] == ["first", "second", "third"]
        assert all(p.user.login == "alice" for p in posts)

    @pytest.mark.asyncio
    async def test_get_all_does_not_count_views(self, db_session, post_service, make_user):
        author = await make_user()
        await post_service.create(db_session, author.id, "T", "B", None, "a")

        await post_service.get_all(db_session)
        posts = await post_service.get_all(db_session)

        assert posts[0].views_count == 0


class TestConcurrentViews:

    @pytest.mark.asyncio
    async def test_concurrent_fetches_lose_no_views(self, database, post_service):
        """Ten simultaneous reads, each in its own session, add exactly ten views."""
        async with database.session() as db:
            author = User(login="alice", full_name="Alice", password_hash="x")
            db.add(author)
            await db.flush()
            created = await post_service.create(db, author.id, "Hot", "Body", None, "a")

        async def fetch():
            async with database.session() as db:
                await post_service.get_one(db, created.id)

        await asyncio.gather(*(fetch() for _ in range(10)))

        async with database.session() as db:
            final = await post_service.get_one(db, created.id)
        assert final.views_count == 11


class TestLastTags:

    async def _add_posts(self, db_session, author, tag_lists):
        """Insert posts oldest → newest with the given tag lists."""
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, tags in enumerate(tag_lists):
            db_session.add(Post(
                title=f"post {i}", text="t", tags=tags, user_id=author.id,
                created_at=base + timedelta(minutes=i),
            ))
        await db_session.flush()

    @pytest.mark.asyncio
    async def test_newest_posts_first_and_capped_at_five(self, db_session, post_service, make_user):
        author = await make_user()
        await self._add_posts(db_session, author, [["f"], ["d", "e"], ["a", "b", "c"]])

        assert await post_service.get_last_tags(db_session) == ["a", "b", "c", "d", "e"]

    @pytest.mark.asyncio
    async def test_only_five_newest_posts_are_considered(self, db_session, post_service, make_user):
        author = await make_user()
        await self._add_posts(db_session, author, [["old"], ["1"], [], ["2"], [], ["3"]])

        assert await post_service.get_last_tags(db_session) == ["3", "2", "1"]

    @pytest.mark.asyncio
    async def test_no_posts(self, db_session, post_service):
        assert await post_service.get_last_tags(db_session) == []


class TestUpdateAndRemove:

    @pytest.mark.asyncio
    async def test_update_by_other_user_reassigns_owner(self, db_session, post_service, make_user):
        alice = await make_user("alice", "Alice")
        bob = await make_user("bob", "Bob")
        created = await post_service.create(db_session, alice.id, "Mine", "Body", None, "a")

        ack = await post_service.update(db_session, created.id, bob.id, "Yours", "Body", None, "b")
        fetched = await post_service.get_one(db_session, created.id)

        assert ack.success is True
        assert fetched.title == "Yours"
        assert fetched.user.id == bob.id

    @pytest.mark.asyncio
    async def test_update_missing_post_still_succeeds(self, db_session, post_service, make_user):
        author = await make_user()

        ack = await post_service.update(db_session, uuid.uuid4(), author.id, "T", "B", None, "a")

        assert ack.success is True
        assert await post_service.get_all(db_session) == []

    @pytest.mark.asyncio
    async def test_remove(self, db_session, post_service, make_user):
        author = await make_user()
        created = await post_service.create(db_session, author.id, "T", "B", None, "a")

        ack = await post_service.remove(db_session, created.id)

        assert ack.success is True
        with pytest.raises(NotFoundError):
            await post_service.get_one(db_session, created.id)

    @pytest.mark.asyncio
    async def test_remove_missing_post(self, db_session, post_service):
        with pytest.raises(NotFoundError):
            await post_service.remove(db_session, uuid.uuid4())


class TestUnknownAuthor:
    """posts.user_id must reference a stored user, on SQLite as on PostgreSQL."""

    @pytest.mark.asyncio
    async def test_foreign_keys_enforced_on_sqlite(self, database):
        async with database.engine.connect() as conn:
            result = await conn.exec_driver_sql("PRAGMA foreign_keys")
            assert result.scalar() == 1

    @pytest.mark.asyncio
    async def test_create_with_unknown_author(self, database, post_service):
        with pytest.raises(NotFoundError):
            async with database.session() as db:
                await post_service.create(db, uuid.uuid4(), "T", "B", None, "a")

        async with database.session() as db:
            assert await post_service.get_all(db) == []

    @pytest.mark.asyncio
    async def test_update_with_unknown_author_leaves_post(self, database, post_service):
        async with database.session() as db:
            author = User(login="alice", full_name="Alice", password_hash="x")
            db.add(author)
            await db.flush()
            created = await post_service.create(db, author.id, "Mine", "Body", None, "a")

        with pytest.raises(NotFoundError):
            async with database.session() as db:
                await post_service.update(db, created.id, uuid.uuid4(), "Stolen", "B", None, "b")

        async with database.session() as db:
            posts = await post_service.get_all(db)
        assert [p.title for p in posts] == ["Mine"]
        assert posts[0].user.login == "alice"
