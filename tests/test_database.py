"""Tests for database setup and model metadata."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import UniqueConstraint

from gatehouse.database import Base, UTCDateTime, async_session_maker
from gatehouse.models import Account, Session, User, Verification


def _unique_sets(model) -> set[tuple[str, ...]]:
    table = model.__table__
    sets = {
        tuple(sorted(c.name for c in constraint.columns))
        for constraint in table.constraints
        if isinstance(constraint, UniqueConstraint)
    }
    sets |= {(c.name,) for c in table.columns if c.unique}
    return sets


class TestTables:
    def test_tablenames(self):
        assert User.__tablename__ == "users"
        assert Session.__tablename__ == "sessions"
        assert Account.__tablename__ == "accounts"
        assert Verification.__tablename__ == "verifications"

    def test_base_metadata_has_all_tables(self):
        assert {"users", "sessions", "accounts", "verifications"} <= set(Base.metadata.tables)

    def test_user_columns(self):
        column_names = {c.name for c in User.__table__.columns}
        assert column_names == {
            "id", "name", "email", "email_verified", "image", "created_at", "updated_at",
        }

    def test_session_columns(self):
        column_names = {c.name for c in Session.__table__.columns}
        assert column_names == {
            "id", "user_id", "token", "expires_at", "ip_address", "user_agent",
            "created_at", "updated_at",
        }

    def test_account_columns(self):
        column_names = {c.name for c in Account.__table__.columns}
        assert column_names == {
            "id", "user_id", "account_id", "provider_id", "access_token", "refresh_token",
            "access_token_expires_at", "refresh_token_expires_at", "scope", "password",
            "created_at", "updated_at",
        }


class TestConstraints:
    def test_user_email_is_unique(self):
        assert ("email",) in _unique_sets(User)

    def test_session_token_is_unique(self):
        assert ("token",) in _unique_sets(Session)

    def test_account_provider_pair_is_unique(self):
        assert ("account_id", "provider_id") in _unique_sets(Account)

    def test_verification_identifier_value_is_unique(self):
        assert ("identifier", "value") in _unique_sets(Verification)

    def test_sessions_and_accounts_cascade_from_users(self):
        for model in (Session, Account):
            (fk,) = model.__table__.c.user_id.foreign_keys
            assert fk.column.table.name == "users"
            assert fk.ondelete == "CASCADE"
            assert model.__table__.c.user_id.nullable is False

    def test_session_repr_hides_token(self):
        session = Session(id="s1", user_id="u1", token="secret-token", expires_at=datetime.now(timezone.utc))
        assert "secret-token" not in repr(session)


class TestUTCDateTime:
    def test_naive_values_are_treated_as_utc(self):
        decorator = UTCDateTime(timezone=True)
        bound = decorator.process_bind_param(datetime(2026, 1, 1, 12, 0), None)
        assert bound.tzinfo == timezone.utc
        assert bound.hour == 12

    def test_aware_values_are_converted_to_utc(self):
        decorator = UTCDateTime(timezone=True)
        plus_two = timezone(timedelta(hours=2))
        bound = decorator.process_bind_param(datetime(2026, 1, 1, 12, 0, tzinfo=plus_two), None)
        assert bound.hour == 10
        assert bound.tzinfo == timezone.utc

    def test_results_come_back_aware(self):
        decorator = UTCDateTime(timezone=True)
        result = decorator.process_result_value(datetime(2026, 1, 1, 12, 0), None)
        assert result.tzinfo == timezone.utc


class TestDatabaseSetup:
    def test_async_session_maker_configured(self):
        assert async_session_maker is not None
