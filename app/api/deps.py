"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token
from app.db.session import get_db
from app.models.user import User
from app.services.auth import AuthService
from app.services.rbac import Permission, RBACService

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict | None:
    """Extract and decode the current JWT token."""
    if not credentials:
        return None

    return decode_access_token(credentials.credentials)


async def get_current_user(
    token: Annotated[dict | None, Depends(get_current_token)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get the current authenticated staff user.

    Args:
        token: Decoded JWT token
        session: Database session

    Returns:
        Authenticated User

    Raises:
        HTTPException: If not authenticated or not a staff user
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if token.get("actor_type") != "staff":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff authentication required",
        )

    auth_service = AuthService(session)
    user = await auth_service.get_staff_by_id(token["sub"])

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


def require_permissions(*permissions: Permission):
    """Create a dependency that requires specific permissions.

    Usage:
        @router.put("/{id}/pathway", dependencies=[Depends(require_permissions(Permission.PATHWAY_TRANSITION))])

    Args:
        permissions: Required permissions (user must have all)

    Returns:
        Dependency function
    """

    async def permission_checker(
        user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if not RBACService.has_all_permissions(user.role, list(permissions)):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return permission_checker


def get_client_ip(request: Request) -> str | None:
    """Extract client IP from request, honouring X-Forwarded-For."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return None


def get_request_id(request: Request) -> str | None:
    return request.headers.get("X-Request-ID")


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
