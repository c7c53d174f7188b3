"""Staff user (login account) model."""

from enum import Enum

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, SoftDeleteMixin, TimestampMixin


class UserRole(str, Enum):
    """Staff user roles for RBAC."""

    ADMIN = "admin"
    UROLOGIST = "urologist"
    DOCTOR = "doctor"
    UROLOGY_NURSE = "urology_nurse"
    GP = "gp"


# Label used when attributing clinical notes to an author
ROLE_LABELS: dict[str, str] = {
    UserRole.UROLOGIST.value: "Urologist",
    UserRole.DOCTOR.value: "Urologist",
    UserRole.UROLOGY_NURSE.value: "Nurse",
    UserRole.GP.value: "GP",
    UserRole.ADMIN.value: "Admin",
}


def role_label(role: "UserRole | str | None") -> str:
    """Map a stored role to the label shown on clinical notes."""
    if role is None:
        return "User"
    value = role.value if isinstance(role, UserRole) else str(role)
    return ROLE_LABELS.get(value, "User")


class User(Base, TimestampMixin, SoftDeleteMixin):
    """Staff login account.

    Covers urologists, nurses, administrators and referring GPs. A
    bookable clinician is a separate catalog entry (ClinicianProfile)
    linked to the account by user_id or, for legacy rows, by email.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        String(50),
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    @property
    def full_name(self) -> str:
        """Return user's full name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def role_label(self) -> str:
        return role_label(self.role)

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
