import hmac
from typing import Optional

import jwt
from fastapi import HTTPException, status

from medstock.config import Settings, get_settings


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _api_keys(settings: Settings) -> list[str]:
    return [key.strip() for key in (settings.API_KEYS or "").split(",") if key.strip()]


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def _decode_jwt(token: str, settings: Settings) -> dict:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"verify_aud": bool(settings.JWT_AUDIENCE)},
        )
    except jwt.PyJWTError as exc:
        raise _unauthorized("Invalid JWT") from exc


def authenticate_request(api_key: Optional[str], authorization: Optional[str]) -> Optional[dict]:
    """Check an API key or bearer JWT.

    With no keys and no JWT secret configured the admin routes are open and
    ``None`` is returned. ``JWT_REQUIRED`` stops API keys from being accepted.
    """
    settings = get_settings()
    keys = _api_keys(settings)
    if not keys and not settings.JWT_SECRET:
        return None

    if api_key and not settings.JWT_REQUIRED:
        if any(hmac.compare_digest(api_key, key) for key in keys):
            return {"auth_type": "api_key"}

    token = _bearer_token(authorization)
    if token and settings.JWT_SECRET:
        return {"auth_type": "jwt", "payload": _decode_jwt(token, settings)}

    raise _unauthorized("Not authenticated")


def principal_name(auth: Optional[dict]) -> Optional[str]:
    """Admin identity from a decoded JWT (``sub`` or ``username``)."""
    if not auth or auth.get("auth_type") != "jwt":
        return None
    payload = auth["payload"]
    value = payload.get("sub") or payload.get("username")
    return str(value) if value else None


__all__ = ["authenticate_request", "principal_name"]
