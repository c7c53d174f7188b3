"""Patient identifier allocation.

Identifiers are the configured prefix, the four-digit year and a
zero-padded random four-digit suffix, e.g. ``URP20260042``.
"""

import logging
import secrets
from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.patient import Patient
from app.utils.time import utc_today

logger = logging.getLogger(__name__)


class IdentifierExhaustedError(Exception):
    """No unused identifier was found within the attempt limit."""

    pass


def random_suffix() -> int:
    return secrets.randbelow(10000)


def format_identifier(prefix: str, year: int, suffix: int) -> str:
    return f"{prefix}{year:04d}{suffix:04d}"


class IdentifierAllocator:
    """Draws random identifiers until an unused one turns up."""

    def __init__(
        self,
        session: AsyncSession,
        prefix: str | None = None,
        max_attempts: int | None = None,
        suffix_factory: Callable[[], int] = random_suffix,
    ) -> None:
        self.session = session
        self.prefix = prefix if prefix is not None else settings.patient_identifier_prefix
        self.max_attempts = max_attempts or settings.patient_identifier_max_attempts
        self.suffix_factory = suffix_factory

    async def is_taken(self, identifier: str) -> bool:
        result = await self.session.execute(
            select(Patient.id).where(Patient.upi == identifier)
        )
        return result.scalar_one_or_none() is not None

    async def allocate(self, year: int | None = None) -> str:
        """Return an identifier not held by any patient.

        Raises:
            IdentifierExhaustedError: every attempt collided
        """
        year = year or utc_today().year

        for attempt in range(1, self.max_attempts + 1):
            candidate = format_identifier(self.prefix, year, self.suffix_factory())
            if not await self.is_taken(candidate):
                return candidate
            logger.debug(f"Identifier {candidate} already allocated (attempt {attempt})")

        logger.error(
            f"Failed to allocate a patient identifier after {self.max_attempts} attempts"
        )
        raise IdentifierExhaustedError(
            f"Could not allocate a unique patient identifier after {self.max_attempts} attempts"
        )
