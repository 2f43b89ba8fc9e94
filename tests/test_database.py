"""Tests for the models and the typed query layer.

Covers CRUD through the repositories, constraint error translation,
relation filters and includes, cascades, and the migration file.
"""

import ast
from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy import select

from blogauth.models import Account, Post, Session, User
from blogauth.models.auth import utcnow
from blogauth.repositories import (
    ForeignKeyConstraintError,
    NullConstraintError,
    PostRepository,
    RecordNotFoundError,
    SessionRepository,
    UniqueConstraintError,
    UserRepository,
)
from blogauth.repositories.auth import AccountRepository, VerificationRepository
from blogauth.repositories.filters import build_order_by, build_where

VERSIONS_DIR = Path(__file__).resolve().parent.parent / "alembic" / "versions"


# =============================================================================
# User CRUD
# =============================================================================


class TestUserRepository:
    """Tests for create/find/update/delete on users."""

    @pytest.mark.asyncio
    async def test_create_user_assigns_defaults(self, db_session):
        """New users get an id, timestamps and an unverified email."""
        user = await UserRepository(db_session).create({"name": "Test User", "email": "test-create@example.com"})

        assert user.id
        assert user.emailVerified is False
        assert user.image is None
        assert user.createdAt is not None
        assert user.updatedAt is not None

    @pytest.mark.asyncio
    async def test_find_unique_by_email(self, db_session):
        users = UserRepository(db_session)
        created = await users.create({"name": "Find Me", "email": "test-find@example.com"})

        found = await users.find_unique({"email": "test-find@example.com"})

        assert found is not None
        assert found.id == created.id

    @pytest.mark.asyncio
    async def test_find_unique_missing_returns_none(self, db_session):
        assert await UserRepository(db_session).find_unique({"email": "nobody@example.com"}) is None

    @pytest.mark.asyncio
    async def test_find_unique_requires_unique_field(self, db_session):
        with pytest.raises(ValueError, match="requires one of"):
            await UserRepository(db_session).find_unique({"name": "Test User"})

    @pytest.mark.asyncio
    async def test_duplicate_email_raises_unique_error(self, db_session):
        """A second user with the same email fails with P2002 naming the field."""
        users = UserRepository(db_session)
        await users.create({"name": "First", "email": "test-dupe@example.com"})
        await db_session.commit()

        with pytest.raises(UniqueConstraintError) as exc_info:
            await users.create({"name": "Second", "email": "test-dupe@example.com"})

        assert exc_info.value.code == "P2002"
        assert "email" in exc_info.value.target
        assert await users.count({"email": "test-dupe@example.com"}) == 1

    @pytest.mark.asyncio
    async def test_session_usable_after_constraint_error(self, db_session):
        users = UserRepository(db_session)
        await users.create({"name": "First", "email": "test-reuse@example.com"})
        await db_session.commit()

        with pytest.raises(UniqueConstraintError):
            await users.create({"name": "Second", "email": "test-reuse@example.com"})

        other = await users.create({"name": "Third", "email": "test-other@example.com"})
        assert other.id

    @pytest.mark.asyncio
    async def test_missing_required_field_raises_null_error(self, db_session):
        with pytest.raises(NullConstraintError) as exc_info:
            await UserRepository(db_session).create({"email": "test-noname@example.com"})

        assert exc_info.value.code == "P2011"

    @pytest.mark.asyncio
    async def test_update_user(self, db_session):
        users = UserRepository(db_session)
        await users.create({"name": "Before", "email": "test-update@example.com"})

        updated = await users.update({"email": "test-update@example.com"}, {"name": "After", "emailVerified": True})

        assert updated.name == "After"
        assert updated.emailVerified is True

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, db_session):
        with pytest.raises(RecordNotFoundError) as exc_info:
            await UserRepository(db_session).update({"email": "ghost@example.com"}, {"name": "X"})

        assert exc_info.value.code == "P2025"

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self, db_session):
        with pytest.raises(RecordNotFoundError):
            await UserRepository(db_session).delete({"id": "does-not-exist"})

    @pytest.mark.asyncio
    async def test_count_and_delete_many(self, db_session):
        users = UserRepository(db_session)
        for i in range(3):
            await users.create({"name": f"Bulk {i}", "email": f"test-bulk-{i}@example.com"})
        await users.create({"name": "Keep", "email": "keep@example.com"})

        assert await users.count({"email": {"startsWith": "test-bulk-"}}) == 3

        deleted = await users.delete_many({"email": {"startsWith": "test-bulk-"}})

        assert deleted == 3
        assert await users.count() == 1


# =============================================================================
# Sessions and Accounts
# =============================================================================


class TestSessionAndAccount:
    """Tests for the session and account tables and their relations."""

    @pytest.mark.asyncio
    async def test_session_find_unique_with_user(self, db_session):
        user = await UserRepository(db_session).create({"name": "Session User", "email": "test-sess@example.com"})
        await SessionRepository(db_session).create(
            {"token": "tok-123", "userId": user.id, "expiresAt": utcnow() + timedelta(days=1)}
        )
        await db_session.commit()

        found = await SessionRepository(db_session).find_unique({"token": "tok-123"}, include={"user": True})

        assert found is not None
        assert found.user.email == "test-sess@example.com"

    @pytest.mark.asyncio
    async def test_session_for_missing_user_raises_fk_error(self, db_session):
        with pytest.raises(ForeignKeyConstraintError) as exc_info:
            await SessionRepository(db_session).create(
                {"token": "orphan", "userId": "missing-user", "expiresAt": utcnow()}
            )

        assert exc_info.value.code == "P2003"

    @pytest.mark.asyncio
    async def test_duplicate_session_token_rejected(self, db_session):
        user = await UserRepository(db_session).create({"name": "Tok", "email": "test-tok@example.com"})
        sessions = SessionRepository(db_session)
        await sessions.create({"token": "same", "userId": user.id, "expiresAt": utcnow()})
        await db_session.commit()

        with pytest.raises(UniqueConstraintError):
            await sessions.create({"token": "same", "userId": user.id, "expiresAt": utcnow()})

    def test_is_active(self):
        now = utcnow()
        assert Session(expiresAt=now + timedelta(seconds=1)).is_active(now)
        assert not Session(expiresAt=now).is_active(now)

    @pytest.mark.asyncio
    async def test_credential_account_lookup(self, db_session):
        user = await UserRepository(db_session).create({"name": "Acct", "email": "test-acct@example.com"})
        accounts = AccountRepository(db_session)
        await accounts.create({"accountId": "gh-1", "providerId": "github", "userId": user.id})
        await accounts.create(
            {"accountId": user.id, "providerId": "credential", "userId": user.id, "password": "salt:key"}
        )

        account = await accounts.get_credential_account(user.id)

        assert account is not None
        assert account.password == "salt:key"

    @pytest.mark.asyncio
    async def test_latest_verification_wins(self, db_session):
        verifications = VerificationRepository(db_session)
        now = utcnow()
        await verifications.create(
            {"identifier": "a@example.com", "value": "first", "expiresAt": now, "createdAt": now - timedelta(minutes=5)}
        )
        await verifications.create({"identifier": "a@example.com", "value": "second", "expiresAt": now, "createdAt": now})

        latest = await verifications.get_latest("a@example.com")

        assert latest.value == "second"


# =============================================================================
# Posts
# =============================================================================


class TestPosts:
    """Tests for posts and the user -> posts relation."""

    @pytest.mark.asyncio
    async def test_user_with_posts_ordered_by_creation(self, db_session):
        user = await UserRepository(db_session).create({"name": "Author", "email": "test-author@example.com"})
        posts = PostRepository(db_session)
        now = utcnow()
        await posts.create({"title": "First Post", "authorId": user.id, "createdAt": now - timedelta(minutes=1)})
        await posts.create({"title": "Second Post", "authorId": user.id, "createdAt": now})
        await db_session.commit()

        found = await UserRepository(db_session).find_unique({"id": user.id}, include={"posts": True})

        assert [p.title for p in found.posts] == ["First Post", "Second Post"]
        assert all(p.published is False for p in found.posts)

    @pytest.mark.asyncio
    async def test_published_filter_for_author(self, db_session):
        users = UserRepository(db_session)
        user = await users.create({"name": "Pub", "email": "a@x.com"})
        other = await users.create({"name": "Other", "email": "b@x.com"})
        posts = PostRepository(db_session)
        await posts.create({"title": "Draft", "authorId": user.id})
        await posts.create({"title": "Live", "content": "Hello", "published": True, "authorId": user.id})
        await posts.create({"title": "Elsewhere", "published": True, "authorId": other.id})

        published = await posts.find_many({"authorId": user.id, "published": True})

        assert [p.title for p in published] == ["Live"]

    @pytest.mark.asyncio
    async def test_post_for_missing_author_raises_fk_error(self, db_session):
        with pytest.raises(ForeignKeyConstraintError):
            await PostRepository(db_session).create({"title": "Orphan", "authorId": "missing-user"})

    @pytest.mark.asyncio
    async def test_post_without_title_raises_null_error(self, db_session):
        user = await UserRepository(db_session).create({"name": "NoTitle", "email": "test-notitle@example.com"})

        with pytest.raises(NullConstraintError):
            await PostRepository(db_session).create({"authorId": user.id})

    @pytest.mark.asyncio
    async def test_relation_filters(self, db_session):
        users = UserRepository(db_session)
        posts = PostRepository(db_session)
        alice = await users.create({"name": "Alice", "email": "test-alice@example.com"})
        bob = await users.create({"name": "Bob", "email": "test-bob@example.com"})
        await users.create({"name": "Carol", "email": "test-carol@example.com"})
        await posts.create({"title": "A1", "published": True, "authorId": alice.id})
        await posts.create({"title": "B1", "published": False, "authorId": bob.id})

        with_published = await users.find_many({"posts": {"some": {"published": True}}})
        without_posts = await users.find_many({"posts": {"none": {}}}, order_by={"name": "asc"})
        by_author = await posts.find_many({"author": {"email": "test-bob@example.com"}})

        assert [u.name for u in with_published] == ["Alice"]
        assert [u.name for u in without_posts] == ["Carol"]
        assert [p.title for p in by_author] == ["B1"]

    @pytest.mark.asyncio
    async def test_delete_many_by_relation(self, db_session):
        users = UserRepository(db_session)
        posts = PostRepository(db_session)
        test_user = await users.create({"name": "Temp", "email": "test-temp@example.com"})
        keeper = await users.create({"name": "Keeper", "email": "keeper@example.com"})
        await posts.create({"title": "Temp post", "authorId": test_user.id})
        await posts.create({"title": "Kept post", "authorId": keeper.id})

        deleted = await posts.delete_many({"author": {"email": {"startsWith": "test-"}}})

        assert deleted == 1
        assert [p.title for p in await posts.find_many()] == ["Kept post"]

    @pytest.mark.asyncio
    async def test_list_posts_newest_first_with_author(self, db_session):
        user = await UserRepository(db_session).create({"name": "Lister", "email": "test-list@example.com"})
        posts = PostRepository(db_session)
        now = utcnow()
        for i in range(3):
            await posts.create({"title": f"P{i}", "authorId": user.id, "createdAt": now + timedelta(seconds=i)})
        await db_session.commit()

        listed = await PostRepository(db_session).list_posts(limit=2)

        assert [p.title for p in listed] == ["P2", "P1"]
        assert listed[0].author.email == "test-list@example.com"


# =============================================================================
# Cascades
# =============================================================================


class TestCascade:
    """Deleting a user removes their sessions, accounts and posts."""

    @pytest.mark.asyncio
    async def test_delete_user_cascades(self, db_session):
        user = await UserRepository(db_session).create({"name": "Doomed", "email": "test-doomed@example.com"})
        await SessionRepository(db_session).create(
            {"token": "doomed-token", "userId": user.id, "expiresAt": utcnow() + timedelta(days=1)}
        )
        await AccountRepository(db_session).create(
            {"accountId": user.id, "providerId": "credential", "userId": user.id}
        )
        await PostRepository(db_session).create({"title": "Doomed post", "authorId": user.id})
        await db_session.commit()
        db_session.expunge_all()

        await UserRepository(db_session).delete({"id": user.id})
        await db_session.commit()

        for model in (Session, Account, Post):
            result = await db_session.execute(select(model))
            assert result.scalars().all() == []
        assert (await db_session.execute(select(User))).scalars().all() == []


# =============================================================================
# Filter builder
# =============================================================================


class TestFilterBuilder:
    """Tests for validation in the mapping-style filter builder."""

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="Unknown field"):
            build_where(User, {"nickname": "x"})

    def test_unknown_operator_rejected(self):
        with pytest.raises(ValueError, match="Unknown filter operator"):
            build_where(User, {"email": {"like": "%x%"}})

    def test_unknown_relation_operator_rejected(self):
        with pytest.raises(ValueError, match="Unknown relation operator"):
            build_where(User, {"posts": {"all": {}}})

    def test_unknown_sort_direction_rejected(self):
        with pytest.raises(ValueError, match="Unknown sort direction"):
            build_order_by(User, {"name": "up"})


# =============================================================================
# Migrations
# =============================================================================


class TestMigrationFile:
    """Structural checks for the Alembic revisions."""

    def test_versions_present(self):
        assert list(VERSIONS_DIR.glob("*.py"))

    @pytest.mark.parametrize("path", sorted(VERSIONS_DIR.glob("*.py")), ids=lambda p: p.name)
    def test_has_upgrade_and_downgrade(self, path):
        tree = ast.parse(path.read_text())
        functions = {node.name for node in tree.body if isinstance(node, ast.FunctionDef)}
        assert {"upgrade", "downgrade"} <= functions

    def test_creates_every_table(self):
        source = "".join(p.read_text() for p in VERSIONS_DIR.glob("*.py"))
        for table in ("user", "session", "account", "verification", "post"):
            assert f'op.create_table(\n        "{table}"' in source
