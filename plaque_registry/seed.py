import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from plaque_registry.config import settings
from plaque_registry.models.user import ROLE_ADMIN, User
from plaque_registry.services.security import hash_password
from plaque_registry.utils.time import utc_now_z

logger = logging.getLogger(__name__)


async def seed_data(session: AsyncSession) -> None:
    """Create the default admin account if it does not exist yet."""
    result = await session.execute(
        select(User).where(
            or_(User.username == settings.admin_username, User.email == settings.admin_email)
        ).limit(1)
    )
    if result.scalars().first() is not None:
        return

    stamp = utc_now_z()
    session.add(User(
        username=settings.admin_username,
        email=settings.admin_email,
        password_hash=hash_password(settings.admin_password),
        role=ROLE_ADMIN,
        created_at=stamp,
        updated_at=stamp,
    ))
    await session.commit()
    logger.info("Default admin account created: %s", settings.admin_email)
