"""Tests for the auth error taxonomy and its HTTP mapping."""

import pytest

from gatehouse.exceptions import (
    AuthError,
    ConstraintViolationError,
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidVerificationError,
    NoSuchSessionError,
    OAuthExchangeFailedError,
    SessionExpiredError,
    UnsupportedProviderError,
    WeakPasswordError,
)


@pytest.mark.parametrize(
    "error, status_code",
    [
        (DuplicateEmailError, 422),
        (WeakPasswordError, 400),
        (InvalidCredentialsError, 401),
        (NoSuchSessionError, 401),
        (SessionExpiredError, 401),
        (OAuthExchangeFailedError, 400),
        (UnsupportedProviderError, 404),
        (InvalidVerificationError, 400),
        (ConstraintViolationError, 409),
    ],
)
def test_status_codes(error, status_code):
    assert error.status_code == status_code
    assert isinstance(error.status_code, int)
    assert issubclass(error, AuthError)


def test_message_defaults_and_overrides():
    assert DuplicateEmailError().message == "User already exists"
    assert OAuthExchangeFailedError("Invalid OAuth state").message == "Invalid OAuth state"
    assert str(InvalidCredentialsError()) == "Invalid email or password"


def test_expired_session_is_a_missing_session():
    with pytest.raises(NoSuchSessionError):
        raise SessionExpiredError()
