"""Auth API routes.

Sign-up, sign-in (email and social), sign-out and session endpoints. Each
successful sign-in sets the session cookie and also returns the token for
bearer use.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.auth import (
    CurrentSession,
    get_delivery_hook,
    get_oauth_providers,
    get_session_token,
    optional_session,
    require_session,
)
from gatehouse.config import AuthConfig, get_auth_config, settings
from gatehouse.database import get_db
from gatehouse.models.auth import Session, User
from gatehouse.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    CurrentSessionResponse,
    EmailRequest,
    ResetPasswordRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    SocialSignInRequest,
    SocialSignInResponse,
    StatusResponse,
    UserResponse,
    VerifyEmailRequest,
)
from gatehouse.services.credentials import CredentialVerifier
from gatehouse.services.oauth import OAuthLinker
from gatehouse.services.providers import OAuthProvider
from gatehouse.services.sessions import SessionManager
from gatehouse.services.verifications import DeliveryHook, VerificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _client_info(request: Request) -> tuple[str, str]:
    ip_address = request.client.host if request.client else ""
    return ip_address, request.headers.get("user-agent", "")


def _set_session_cookie(response: Response, token: str, expires_at: datetime) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        expires=expires_at,
        path="/",
    )


def _auth_response(response: Response, session: Session, user: User) -> AuthResponse:
    _set_session_cookie(response, session.token, session.expires_at)
    return AuthResponse(
        token=session.token,
        session=SessionResponse.model_validate(session),
        user=UserResponse.model_validate(user),
    )


@router.post("/sign-up/email", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def sign_up_email(
    body: SignUpRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> AuthResponse:
    """Register with email + password and sign in immediately.

    Raises:
        422 if the email is already registered, 400 for a weak password.
    """
    user = await CredentialVerifier(db, config).register(body.name, body.email, body.password)
    session = await SessionManager(db, config).issue(user.id, *_client_info(request))
    return _auth_response(response, session, user)


@router.post("/sign-in/email", response_model=AuthResponse)
async def sign_in_email(
    body: SignInRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> AuthResponse:
    """Sign in with email + password.

    Raises:
        401 with a generic message for unknown email or wrong password.
    """
    user = await CredentialVerifier(db, config).verify(body.email, body.password)
    session = await SessionManager(db, config).issue(user.id, *_client_info(request))
    logger.info("User %s signed in with email", user.id)
    return _auth_response(response, session, user)


@router.post("/sign-in/social", response_model=SocialSignInResponse)
async def sign_in_social(
    body: SocialSignInRequest,
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
    providers: dict[str, OAuthProvider] = Depends(get_oauth_providers),
) -> SocialSignInResponse:
    """Start an OAuth sign-in and return the provider's authorization URL."""
    url = await OAuthLinker(db, config, providers).begin(body.provider)
    return SocialSignInResponse(url=url)


@router.get("/callback/{provider}", response_model=AuthResponse)
async def oauth_callback(
    provider: str,
    request: Request,
    response: Response,
    code: str = Query(..., min_length=1),
    state: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
    providers: dict[str, OAuthProvider] = Depends(get_oauth_providers),
) -> AuthResponse:
    """Complete an OAuth sign-in.

    Responds with the new session; where the client navigates next is up
    to the client.
    """
    linker = OAuthLinker(db, config, providers)
    linker.get_provider(provider)
    await linker.consume_state(provider, state)
    session, user = await linker.complete_handshake(provider, code, *_client_info(request))
    logger.info("User %s signed in with %s", user.id, provider)
    return _auth_response(response, session, user)


@router.post("/sign-out", response_model=StatusResponse)
async def sign_out(
    response: Response,
    token: str | None = Depends(get_session_token),
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> StatusResponse:
    """Revoke the current session. Signing out twice is not an error."""
    if token:
        await SessionManager(db, config).revoke(token)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return StatusResponse()


@router.get("/get-session", response_model=CurrentSessionResponse | None)
async def get_session(
    current: CurrentSession | None = Depends(optional_session),
) -> CurrentSessionResponse | None:
    """Return the current session and user, or null when signed out."""
    if current is None:
        return None
    return CurrentSessionResponse(
        session=SessionResponse.model_validate(current.session),
        user=UserResponse.model_validate(current.user),
    )


@router.get("/list-sessions", response_model=list[SessionResponse])
async def list_sessions(
    current: CurrentSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> list[SessionResponse]:
    sessions = await SessionManager(db, config).list_for_user(current.user.id)
    return [SessionResponse.model_validate(s) for s in sessions]


@router.post("/revoke-sessions", response_model=StatusResponse)
async def revoke_sessions(
    response: Response,
    current: CurrentSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> StatusResponse:
    """Revoke every session of the current user, this one included."""
    await SessionManager(db, config).revoke_all(current.user.id)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return StatusResponse()


@router.post("/change-password", response_model=StatusResponse)
async def change_password(
    body: ChangePasswordRequest,
    current: CurrentSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> StatusResponse:
    await CredentialVerifier(db, config).change_password(
        current.user, body.current_password, body.new_password
    )
    if body.revoke_other_sessions:
        await SessionManager(db, config).revoke_all(current.user.id, except_token=current.token)
    return StatusResponse()


@router.post("/send-verification-email", response_model=StatusResponse, status_code=status.HTTP_202_ACCEPTED)
async def send_verification_email(
    body: EmailRequest,
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
    deliver: DeliveryHook = Depends(get_delivery_hook),
) -> StatusResponse:
    """Issue an email verification token. Always 202, registered or not."""
    await VerificationService(db, config, deliver).request_email_verification(body.email)
    return StatusResponse()


@router.post("/verify-email", response_model=StatusResponse)
async def verify_email(
    body: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> StatusResponse:
    await VerificationService(db, config).verify_email(body.email, body.token)
    return StatusResponse()


@router.post("/request-password-reset", response_model=StatusResponse, status_code=status.HTTP_202_ACCEPTED)
async def request_password_reset(
    body: EmailRequest,
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
    deliver: DeliveryHook = Depends(get_delivery_hook),
) -> StatusResponse:
    """Issue a password reset token. Always 202, registered or not."""
    await VerificationService(db, config, deliver).request_password_reset(body.email)
    return StatusResponse()


@router.post("/reset-password", response_model=StatusResponse)
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    config: AuthConfig = Depends(get_auth_config),
) -> StatusResponse:
    """Set a new password with a reset token. All sessions are revoked."""
    await VerificationService(db, config).reset_password(body.email, body.token, body.new_password)
    return StatusResponse()
