from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from app.config import get_settings
from app.core.constants import ERROR_STATUS_CODES
from app.core.errors import InventoryError
from app.core.security import authenticate_request, ensure_role
from app.database.session import get_db


def require_auth(
    request: Request,
    api_key_alt: Optional[str] = Header(None, alias="api-key"),
    authorization: Optional[str] = Header(None),
):
    api_key_value = request.headers.get(get_settings().API_KEY_HEADER) or api_key_alt
    return authenticate_request(
        api_key=api_key_value,
        authorization=authorization,
        require_auth=True,
    )


def require_roles(*roles: str):
    def _dependency(principal=Depends(require_auth)):
        ensure_role(principal, roles)
        return principal

    return _dependency


def http_error(exc: InventoryError) -> HTTPException:
    status_code = ERROR_STATUS_CODES.get(exc.kind, 500)
    headers = {"Retry-After": "1"} if exc.retryable else None
    return HTTPException(status_code=status_code, detail=exc.to_dict(), headers=headers)


__all__ = ["get_db", "http_error", "require_auth", "require_roles"]
