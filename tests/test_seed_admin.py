"""Tests for the admin seed script."""

import pytest
from sqlalchemy import select

from gatehouse.config import settings
from gatehouse.models import Account, User
from gatehouse.scripts.seed_admin import seed_admin
from gatehouse.security import PasswordHasher


@pytest.fixture
def admin_env(monkeypatch):
    monkeypatch.setattr(settings, "admin_email", "Admin@Example.com")
    monkeypatch.setattr(settings, "admin_password", "admin-password")
    monkeypatch.setattr(settings, "admin_name", "Site Admin")


async def test_creates_verified_admin_with_credential(admin_env, session_maker, auth_config):
    user_id = await seed_admin(session_maker, auth_config)
    assert user_id is not None

    async with session_maker() as db:
        user = await db.get(User, user_id)
        account = (await db.execute(select(Account).where(Account.user_id == user_id))).scalar_one()

    assert user.email == "admin@example.com"
    assert user.name == "Site Admin"
    assert user.email_verified is True
    assert account.provider_id == "credential"
    hasher = PasswordHasher(auth_config.scrypt_n, auth_config.scrypt_r, auth_config.scrypt_p)
    assert hasher.compare("admin-password", account.password)


async def test_second_run_is_a_no_op(admin_env, session_maker, auth_config):
    assert await seed_admin(session_maker, auth_config) is not None
    assert await seed_admin(session_maker, auth_config) is None

    async with session_maker() as db:
        users = (await db.execute(select(User))).scalars().all()
    assert len(users) == 1


async def test_missing_credentials_skip(monkeypatch, session_maker, auth_config, capsys):
    monkeypatch.setattr(settings, "admin_email", "")
    monkeypatch.setattr(settings, "admin_password", "")

    assert await seed_admin(session_maker, auth_config) is None
    assert "ADMIN_EMAIL and ADMIN_PASSWORD must be set" in capsys.readouterr().out


async def test_weak_password_is_reported(monkeypatch, session_maker, auth_config, capsys):
    monkeypatch.setattr(settings, "admin_email", "admin@example.com")
    monkeypatch.setattr(settings, "admin_password", "short")

    assert await seed_admin(session_maker, auth_config) is None
    assert "ERROR" in capsys.readouterr().out
