"""Request auth context

Authentication happens upstream (gateway). The resolved identity reaches
this service as headers: X-User-Id, X-Merchant-Id and X-User-Role.
"""

from typing import Optional
from fastapi import Depends, Header
from pydantic import BaseModel
from libs.result import Error
from src.api.error import ClientError

OWNER_ROLE = "MERCHANT_OWNER"


class AuthContext(BaseModel):
    user_id: Optional[int] = None
    merchant_id: Optional[int] = None
    role: Optional[str] = None

    @property
    def is_owner(self) -> bool:
        return (self.role or "").strip().upper() == OWNER_ROLE


def _parse_id(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    raw = raw.strip()
    return int(raw) if raw.isdigit() else None


async def get_auth_context(
    x_user_id: Optional[str] = Header(default=None),
    x_merchant_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> AuthContext:
    return AuthContext(
        user_id=_parse_id(x_user_id),
        merchant_id=_parse_id(x_merchant_id),
        role=x_user_role,
    )


def require_merchant(auth: AuthContext) -> int:
    if auth.merchant_id is None:
        raise ClientError(Error(code="MERCHANT_REQUIRED", message="Merchant context required"))
    return auth.merchant_id


def require_owner(auth: AuthContext) -> int:
    merchant_id = require_merchant(auth)
    if not auth.is_owner:
        raise ClientError(Error(code="FORBIDDEN", message="Owner access required"))
    return merchant_id


async def owner_merchant_id(auth: AuthContext = Depends(get_auth_context)) -> int:
    """Owner-only routes; resolved before the request body is validated"""
    return require_owner(auth)
