"""Staff credentials: bcrypt password hashes and signed access tokens.

A token carries the store, role, permission list and display name so a
terminal is authorised without a database round trip. It lives for one
shift (``ACCESS_TOKEN_EXPIRE_MINUTES``).
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenClaims(BaseModel):
    sub: UUID
    store_id: UUID
    role: str
    permissions: list[str] = Field(default_factory=list)
    name: str = ""


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def verify_and_upgrade(plain: str, hashed: str) -> tuple[bool, str | None]:
    """Check a password. The second item is a new hash when ``hashed`` uses outdated settings."""
    return pwd_context.verify_and_update(plain, hashed)


def create_access_token(claims: TokenClaims, expires_delta: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = claims.model_dump(mode="json")
    payload["iat"] = now
    payload["exp"] = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    """Raises ``JWTError`` on a bad signature or expiry, ``ValidationError`` on missing claims."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    return TokenClaims.model_validate(payload)
