"""FastAPI dependencies: get_current_user, require_admin, require_provisioner.

Usage in any protected router:
    from src.bh_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: UserModel = Depends(get_current_user)):
        ...
"""

import hmac

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bh_common.database import get_db_session
from src.bh_common.errors import (
    AdminRequiredError,
    InvalidCredentialsError,
    ProvisionerAuthError,
)
from src.bh_gateway.auth.jwt_handler import decode_token
from src.bh_gateway.user.db_models import UserModel

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Extract and validate the JWT Bearer token, return the UserModel.

    Raises HTTP 401 if the token is missing, invalid, expired, or names a
    user that no longer exists.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    return user


async def require_admin(
    current_user: UserModel = Depends(get_current_user),
) -> UserModel:
    """Admin gate. is_admin comes from the row loaded for this request, never the token."""
    if not current_user.is_admin:
        raise AdminRequiredError()
    return current_user


async def require_provisioner(
    x_provisioner_token: str | None = Header(None),
) -> None:
    """Authenticate callbacks from the external provisioning platform."""
    expected = settings.PROVISIONER_CALLBACK_TOKEN
    if not expected or not x_provisioner_token:
        raise ProvisionerAuthError()
    if not hmac.compare_digest(x_provisioner_token.encode(), expected.encode()):
        raise ProvisionerAuthError()
