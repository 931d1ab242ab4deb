"""Bearer token authentication.

Tokens are JWTs signed with the secret key from configuration. The ``sub``
claim identifies the user every read and mutation is scoped to.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException, status  # type: ignore[import-untyped]
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer  # type: ignore[import-untyped]
from jose import JWTError, jwt  # type: ignore[import-untyped]

from time_ledger.api.dependencies import get_config
from time_ledger.core.config import ConfigManager

ALGORITHM = "HS256"

security = HTTPBearer(auto_error=False)


def create_access_token(
    data: dict[str, Any], secret_key: str, expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token.

    Args:
        data: Claims to encode
        secret_key: Secret key for signing
        expires_delta: Lifetime (default 24 hours)

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=24))
    to_encode.update({"exp": expire, "iat": now})

    encoded_jwt: str = jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)
    return encoded_jwt


def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    config: ConfigManager = Depends(get_config),
) -> dict[str, Any]:
    """Verify the bearer token of a request.

    Returns:
        Decoded token payload

    Raises:
        HTTPException: If the token is missing, invalid or expired
    """
    if not config.get("api.authentication.enabled", True):
        return {"sub": config.user_id}

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    secret_key = config.get("api.authentication.secret_key")
    if not secret_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API secret key not configured",
        )

    try:
        payload: dict[str, Any] = jwt.decode(
            credentials.credentials, secret_key, algorithms=[ALGORITHM]
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


def get_current_user(payload: dict[str, Any] = Depends(verify_token)) -> str:
    """User identity of the authenticated request."""
    user_id: str = payload["sub"]
    return user_id


def create_token_for_user(
    config: ConfigManager,
    user_id: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> dict[str, Any]:
    """Create a complete token response.

    Args:
        config: Configuration manager
        user_id: Subject of the token (default: general.user_id)
        expires_delta: Lifetime (default: api.authentication.token_expiry_hours)

    Returns:
        Dictionary with access_token, token_type and expires_in
    """
    secret_key = config.ensure_api_secret_key()

    if expires_delta is None:
        expires_delta = timedelta(hours=config.get("api.authentication.token_expiry_hours", 24))

    access_token = create_access_token(
        data={"sub": user_id or config.user_id},
        secret_key=secret_key,
        expires_delta=expires_delta,
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": int(expires_delta.total_seconds()),
    }
