"""Protected dashboard route."""

from fastapi import APIRouter, Depends

from gatehouse.auth import CurrentSession, require_session
from gatehouse.schemas.auth import DashboardResponse, UserResponse

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def dashboard(current: CurrentSession = Depends(require_session)) -> DashboardResponse:
    """Greet the signed-in user by name, falling back to email."""
    user = current.user
    return DashboardResponse(
        greeting=f"Hello, {user.name or user.email}!",
        user=UserResponse.model_validate(user),
    )
