"""FastAPI dependencies: get_current_user, require_operator.

Usage in any protected router:
    from src.mb_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: Annotated[CurrentUser, Depends(get_current_user)]):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.mb_common.errors import InvalidCredentialsError, OperatorRequiredError
from src.mb_gateway.auth.jwt_handler import ROLE_OPERATOR, ROLE_USER, decode_token

# tokenUrl points at the platform auth service (used by Swagger's "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str = ROLE_USER

    @property
    def is_operator(self) -> bool:
        return self.role == ROLE_OPERATOR


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Extract and validate the JWT Bearer token.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return CurrentUser(id=payload["sub"], role=payload.get("role", ROLE_USER))


async def require_operator(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Raises HTTP 403 (AppError 1006) unless the caller holds the operator role."""
    if not current_user.is_operator:
        raise OperatorRequiredError()
    return current_user
