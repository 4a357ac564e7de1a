"""FastAPI dependency: get_current_user_id.

Usage in any protected router:
    from src.sc_gateway.auth.dependencies import get_current_user_id

    @router.get("/protected")
    async def protected(user_id: str = Depends(get_current_user_id)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from config.settings import settings
from src.sc_common.errors import DepositNotAllowedError, InvalidCredentialsError
from src.sc_gateway.auth.jwt_handler import decode_token

# The token endpoint belongs to the external auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Return the `sub` claim of a valid Bearer token, or raise HTTP 401."""
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION
    return user_id


async def require_deposit_service(user_id: str = Depends(get_current_user_id)) -> str:
    """Only the payment service credits balances; players never top up directly."""
    if user_id not in settings.DEPOSIT_SERVICE_IDS:
        raise DepositNotAllowedError()
    return user_id
