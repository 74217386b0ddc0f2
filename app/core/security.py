"""
app/core/security.py

Purpose: Password hashing and access tokens

- bcrypt password hashes
- Signed JWT access tokens (userId, email, role)
- Distinguishes expired tokens from malformed ones
"""

from datetime import datetime, timedelta
from typing import Dict, Any

import bcrypt
import jwt

from app.core.config import settings
from app.core.exceptions import AuthenticationError


# bcrypt only looks at the first 72 bytes; newer releases refuse anything longer
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str) -> str:
    """
    Raises:
        ValueError: password longer than MAX_PASSWORD_BYTES
    """
    if password_too_long(password):
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash or password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # stored hash is not a bcrypt hash
        return False


def create_access_token(user_id: str, email: str, role: str) -> str:
    """
    Issues a bearer token for the given user.

    Returns:
        Encoded JWT string
    """
    payload = {
        "userId": user_id,
        "email": email,
        "role": role,
        "iat": datetime.utcnow(),
        "exp": datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRES_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verifies a bearer token and returns its claims.

    Raises:
        AuthenticationError: token expired, malformed or missing claims
    """
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired", code="TOKEN_EXPIRED")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token", code="INVALID_TOKEN")

    if not claims.get("userId"):
        raise AuthenticationError("Invalid token", code="INVALID_TOKEN")

    return claims
