"""Request dependencies: the signed-in staff member and permission gates."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from app.core.config import settings
from app.core.security import decode_access_token
from app.schemas.auth import CurrentUser

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Staff identity from the bearer token. 401 when invalid or expired.

    ``email`` stays empty here; the full profile comes from ``/auth/me``.
    """
    try:
        claims = decode_access_token(token)
    except (JWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Phiên đăng nhập không hợp lệ hoặc đã hết hạn",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CurrentUser(
        id=claims.sub,
        email="",
        full_name=claims.name,
        role=claims.role,
        store_id=claims.store_id,
        permissions=claims.permissions,
        is_active=True,
    )


def require_permission(*required: str):
    """Dependency factory: the user must hold every listed permission."""

    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        missing = [p for p in required if p not in user.permissions]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Không có quyền: {', '.join(missing)}",
            )
        return user

    return checker
