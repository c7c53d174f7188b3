"""Authentication service for staff users."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User


class AuthService:
    """Service for handling authentication operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def authenticate_staff(
        self,
        email: str,
        password: str,
    ) -> User | None:
        """Authenticate staff user with email and password.

        Args:
            email: Staff email address
            password: Plain text password

        Returns:
            User if credentials valid, None otherwise
        """
        result = await self.session.execute(
            select(User).where(User.email == email.lower(), User.is_deleted == False)
        )
        user = result.scalar_one_or_none()

        if not user or not user.is_active:
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    async def create_staff_token(self, user: User) -> str:
        """Create JWT access token for staff user."""
        return create_access_token(
            subject=user.id,
            additional_claims={
                "role": user.role.value if hasattr(user.role, "value") else user.role,
                "actor_type": "staff",
                "email": user.email,
            },
        )

    async def get_staff_by_id(self, user_id: str) -> User | None:
        result = await self.session.execute(
            select(User).where(User.id == user_id, User.is_deleted == False)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password for storage."""
        return hash_password(password)
