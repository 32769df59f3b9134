import logging

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from plaque_registry.database import get_db
from plaque_registry.dependencies import get_current_user
from plaque_registry.models.user import ROLE_USER, User
from plaque_registry.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from plaque_registry.services.security import hash_password, issue_token, verify_password
from plaque_registry.utils.exceptions import AppException, Conflict
from plaque_registry.utils.response import success_response
from plaque_registry.utils.time import utc_now_z

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_payload(user: User) -> dict:
    return AuthResponse(
        token=issue_token(user.id, user.role),
        user=UserResponse.model_validate(user),
    ).model_dump()


@router.post("/register", status_code=201)
async def register(request: RegisterRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(User).where(or_(User.email == request.email, User.username == request.username))
    )
    if result.scalars().first() is not None:
        raise Conflict("Cet utilisateur existe déjà")

    stamp = utc_now_z()
    user = User(
        username=request.username,
        email=request.email,
        password_hash=hash_password(request.password),
        role=ROLE_USER,
        created_at=stamp,
        updated_at=stamp,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise Conflict("Cet utilisateur existe déjà") from exc
    await db.refresh(user)

    logger.info("User %s registered", user.username)
    return success_response(data=_auth_payload(user))


@router.post("/login")
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == request.email))
    user = result.scalars().first()

    if user is None:
        raise AppException("Identifiants invalides", status_code=400)

    if not verify_password(request.password, user.password_hash):
        raise AppException("Identifiants invalides", status_code=400)

    return success_response(data=_auth_payload(user))


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return success_response(data=UserResponse.model_validate(user).model_dump())
