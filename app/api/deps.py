"""
app/api/deps.py

Purpose: Request dependencies

- Resolves the bearer token to an active user
- Resolves the user's active business for business-scoped routes
"""

from typing import Dict, Any, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.exceptions import AuthenticationError, ResourceNotFoundError
from app.core.security import decode_access_token
from app.db.mongo import get_users_collection, get_businesses_collection, NO_OBJECT_ID
from utils.constants import MSG_NO_BUSINESS

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, Any]:
    """
    Missing header, wrong scheme, bad signature, expiry, unknown or
    deactivated user all end in 401.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided", code="NO_TOKEN")

    claims = decode_access_token(credentials.credentials)

    user = await get_users_collection().find_one({"id": claims["userId"]}, NO_OBJECT_ID)
    if not user:
        raise AuthenticationError("User not found", code="INVALID_TOKEN")
    if not user.get("is_active", True):
        raise AuthenticationError("Account is deactivated", code="ACCOUNT_DEACTIVATED")

    return user


async def get_current_business(
    user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    business = await get_businesses_collection().find_one(
        {"user_id": user["id"], "is_active": True}, NO_OBJECT_ID
    )
    if not business:
        raise ResourceNotFoundError(MSG_NO_BUSINESS)
    return business
