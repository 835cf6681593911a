"""JWT verification for tokens issued by the platform auth service.

Claims we rely on:
  sub  — user id
  type — must be "access"
  role — "user" (default) or "operator"; operators reach /admin and /payments

create_access_token exists for service accounts (match result feed, payment
gateway callbacks) that share JWT_SECRET.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.mb_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_SERVICE_TOKEN_EXPIRE = timedelta(minutes=30)

ROLE_USER = "user"
ROLE_OPERATOR = "operator"


def create_access_token(
    user_id: str,
    role: str = ROLE_USER,
    expires_in: timedelta = _SERVICE_TOKEN_EXPIRE,
) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": "access",
        "role": role,
        "iat": now,
        "exp": now + expires_in,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: signature invalid, expired, or not an access token.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidCredentialsError()
    return payload
