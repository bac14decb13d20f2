"""Session token authentication for protected routes.

The token is read from ``Authorization: Bearer`` first, then from the
session cookie.
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.config import AuthConfig, get_auth_config, settings
from gatehouse.database import get_db
from gatehouse.exceptions import NoSuchSessionError
from gatehouse.models.auth import Session, User
from gatehouse.services.providers import OAuthProvider, build_providers
from gatehouse.services.sessions import SessionManager
from gatehouse.services.verifications import DeliveryHook, log_delivery

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentSession:
    token: str
    session: Session
    user: User


def get_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


def get_oauth_providers(config: AuthConfig = Depends(get_auth_config)) -> dict[str, OAuthProvider]:
    return build_providers(config)


def get_delivery_hook() -> DeliveryHook:
    return log_delivery


async def optional_session(
    token: str | None = Depends(get_session_token),
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> CurrentSession | None:
    """Resolve the current session, or None when absent, unknown or expired."""
    if not token:
        return None
    try:
        session, user = await SessionManager(db, config).validate(token)
    except NoSuchSessionError:
        return None
    return CurrentSession(token=token, session=session, user=user)


async def require_session(
    current: CurrentSession | None = Depends(optional_session),
) -> CurrentSession:
    """Validate the session token.

    Returns:
        The authenticated session and user.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or expired.
    """
    if current is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current
