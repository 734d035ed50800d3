from typing import Optional

from fastapi import Header, Request

from medstock.config import get_settings
from medstock.core.security import authenticate_request
from medstock.database.session import get_db


def require_auth(
    request: Request,
    api_key_alt: Optional[str] = Header(None, alias="api-key"),
    authorization: Optional[str] = Header(None),
):
    api_key_value = request.headers.get(get_settings().API_KEY_HEADER) or api_key_alt
    return authenticate_request(api_key_value, authorization)


__all__ = ["get_db", "require_auth"]
