from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from plaque_registry.database import get_db
from plaque_registry.models.user import User
from plaque_registry.services.security import read_token
from plaque_registry.utils.exceptions import Forbidden, Unauthorized


def _extract_token(authorization: str, x_auth_token: str) -> str:
    if authorization.lower().startswith("bearer "):
        return authorization[len("bearer "):].strip()
    return x_auth_token.strip()


async def get_current_user(
    authorization: str = Header(default=""),
    x_auth_token: str = Header(default=""),
    db: AsyncSession = Depends(get_db),
) -> User:
    token = _extract_token(authorization, x_auth_token)
    if not token:
        raise Unauthorized("Aucun jeton, autorisation refusée")

    payload = read_token(token)
    if payload is None:
        raise Unauthorized("Jeton invalide")

    user = await db.get(User, payload["id"])
    if user is None:
        raise Unauthorized("Jeton invalide")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise Forbidden()
    return user
