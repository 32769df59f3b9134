"""Password hashing and bearer tokens."""
import logging

import bcrypt
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from plaque_registry.config import settings

logger = logging.getLogger(__name__)

TOKEN_SALT = "plaque-registry-auth"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode(), password_hash.encode())


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.secret_key, salt=TOKEN_SALT)


def issue_token(user_id: int, role: str) -> str:
    return _serializer().dumps({"id": user_id, "role": role})


def read_token(token: str, max_age: int | None = None) -> dict | None:
    """Return the token payload, or None if it is expired, forged or malformed."""
    if max_age is None:
        max_age = settings.token_max_age_seconds
    try:
        payload = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        logger.info("Rejected expired token")
        return None
    except BadSignature:
        logger.info("Rejected token with invalid signature")
        return None
    if not isinstance(payload, dict) or not isinstance(payload.get("id"), int):
        return None
    return payload
