"""Tests for storage-level constraints and cascades in the repositories."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from gatehouse.database import utcnow
from gatehouse.exceptions import ConstraintViolationError
from gatehouse.models import Account, Session, User, Verification
from gatehouse.repositories import (
    AccountRepository,
    SessionRepository,
    UserRepository,
    VerificationRepository,
)


def _user(user_id: str = "user-1", email: str = "ada@example.com") -> User:
    return User(id=user_id, name="Ada", email=email)


def _session(session_id: str, user_id: str, token: str) -> Session:
    return Session(id=session_id, user_id=user_id, token=token, expires_at=utcnow() + timedelta(days=1))


class TestUserRepository:
    async def test_email_uniqueness_is_enforced_by_the_database(self, db_session):
        users = UserRepository(db_session)
        await users.create(_user("user-1", "ada@example.com"))
        with pytest.raises(ConstraintViolationError):
            await users.create(_user("user-2", "Ada@Example.com"))

    async def test_get_by_email_normalizes(self, db_session):
        users = UserRepository(db_session)
        await users.create(_user())
        assert (await users.get_by_email(" ADA@example.com")).id == "user-1"

    async def test_set_email_verified(self, db_session):
        users = UserRepository(db_session)
        user = await users.create(_user())
        await users.set_email_verified(user.id)
        assert (await users.get_by_id(user.id)).email_verified is True

    async def test_update_profile(self, db_session):
        users = UserRepository(db_session)
        user = await users.create(_user())
        await users.update_profile(user, name="Ada King", image="https://img/ada.png")
        fetched = await users.get_by_id(user.id)
        assert (fetched.name, fetched.image) == ("Ada King", "https://img/ada.png")

    async def test_delete_cascades_to_sessions_and_accounts(self, db_session):
        users = UserRepository(db_session)
        sessions = SessionRepository(db_session)
        accounts = AccountRepository(db_session)
        await users.create(_user("user-1", "ada@example.com"))
        await users.create(_user("user-2", "grace@example.com"))
        await sessions.create(_session("s1", "user-1", "token-1"))
        await sessions.create(_session("s2", "user-1", "token-2"))
        await sessions.create(_session("s3", "user-2", "token-3"))
        await accounts.create(Account(id="a1", user_id="user-1", account_id="user-1", provider_id="credential"))
        await accounts.create(Account(id="a2", user_id="user-1", account_id="gh-1", provider_id="github"))

        assert await users.delete("user-1") is True

        assert await users.get_by_id("user-1") is None
        assert await sessions.list_for_user("user-1") == []
        assert await accounts.list_for_user("user-1") == []
        assert [s.id for s in await sessions.list_for_user("user-2")] == ["s3"]

    async def test_delete_missing_user(self, db_session):
        assert await UserRepository(db_session).delete("nobody") is False


class TestSessionRepository:
    async def test_token_uniqueness(self, db_session):
        await UserRepository(db_session).create(_user())
        sessions = SessionRepository(db_session)
        await sessions.create(_session("s1", "user-1", "same-token"))
        with pytest.raises(ConstraintViolationError):
            await sessions.create(_session("s2", "user-1", "same-token"))

    async def test_session_requires_existing_user(self, db_session):
        with pytest.raises(ConstraintViolationError):
            await SessionRepository(db_session).create(_session("s1", "ghost", "token-1"))


class TestAccountRepository:
    async def test_provider_identity_links_to_one_user(self, db_session):
        users = UserRepository(db_session)
        accounts = AccountRepository(db_session)
        await users.create(_user("user-1", "ada@example.com"))
        await users.create(_user("user-2", "grace@example.com"))
        await accounts.create(Account(id="a1", user_id="user-1", account_id="gh-1", provider_id="github"))

        with pytest.raises(ConstraintViolationError):
            await accounts.create(Account(id="a2", user_id="user-2", account_id="gh-1", provider_id="github"))

    async def test_same_account_id_on_different_providers(self, db_session):
        users = UserRepository(db_session)
        accounts = AccountRepository(db_session)
        await users.create(_user())
        await accounts.create(Account(id="a1", user_id="user-1", account_id="42", provider_id="github"))
        await accounts.create(Account(id="a2", user_id="user-1", account_id="42", provider_id="gitlab"))
        assert len(await accounts.list_for_user("user-1")) == 2

    async def test_get_credential(self, db_session):
        accounts = AccountRepository(db_session)
        await UserRepository(db_session).create(_user())
        await accounts.create(Account(id="a1", user_id="user-1", account_id="gh-1", provider_id="github"))
        assert await accounts.get_credential("user-1") is None
        await accounts.create(
            Account(id="a2", user_id="user-1", account_id="user-1", provider_id="credential", password="x:y")
        )
        assert (await accounts.get_credential("user-1")).id == "a2"


class TestVerificationRepository:
    async def test_identifier_value_pair_is_unique(self, db_session):
        verifications = VerificationRepository(db_session)
        expires = utcnow() + timedelta(hours=1)
        await verifications.create(Verification(id="v1", identifier="ada@example.com", value="abc", expires_at=expires))
        await verifications.create(Verification(id="v2", identifier="ada@example.com", value="def", expires_at=expires))
        with pytest.raises(ConstraintViolationError):
            await verifications.create(
                Verification(id="v3", identifier="ada@example.com", value="abc", expires_at=expires)
            )

    async def test_delete_expired(self, db_session):
        verifications = VerificationRepository(db_session)
        now = utcnow()
        await verifications.create(Verification(id="v1", identifier="a", value="1", expires_at=now - timedelta(minutes=1)))
        await verifications.create(Verification(id="v2", identifier="a", value="2", expires_at=now + timedelta(minutes=1)))

        assert await verifications.delete_expired(utcnow()) == 1
        remaining = (await db_session.execute(select(Verification))).scalars().all()
        assert [v.id for v in remaining] == ["v2"]
