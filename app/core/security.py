"""
Password hashing, JWT issuing/decoding and token revocation.

Identity travels with each request as a bearer token instead of a
server-side session object; revoked tokens are remembered in Redis
until they would have expired anyway.
"""
import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
from jose import jwt, JWTError
from passlib.context import CryptContext
from app.core.config import settings
from app.cache.redis_client import cache

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
REVOKED_PREFIX = "revoked_token"


def validate_password(password: str) -> None:
    """
    Check password strength.

    Raises:
        ValueError: naming the first rule the password breaks
    """
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")

    if not any(c.isupper() for c in password):
        raise ValueError("Password must contain at least one uppercase letter")

    if not any(c.islower() for c in password):
        raise ValueError("Password must contain at least one lowercase letter")

    if not any(c.isdigit() for c in password):
        raise ValueError("Password must contain at least one digit")

    if not any(c in SPECIAL_CHARACTERS for c in password):
        raise ValueError("Password must contain at least one special character")


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain, hashed)


def hash_password(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def identity_claims(user) -> Dict:
    """
    Build the token payload for a user.

    Carries what the access gate and clients need to know about the
    identity (id, username, role and names) and nothing credential-related.
    """
    return {
        "sub": str(user.id),
        "username": user.username,
        "role": getattr(user.role, "value", user.role),
        "first_name": user.first_name,
        "last_name": user.last_name,
    }


def _encode(data: Dict, token_type: str, lifetime: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + lifetime, "type": token_type})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode, must include 'sub'
        expires_delta: Optional custom lifetime

    Returns:
        Encoded JWT token
    """
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, "access", lifetime)


def create_refresh_token(data: Dict) -> str:
    """Create a JWT refresh token with longer expiration."""
    return _encode(data, "refresh", timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str) -> Dict:
    """
    Decode and validate a JWT token.

    Raises:
        ValueError: If token is invalid, expired or has no subject
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise ValueError("Token has expired")
    except JWTError as e:
        raise ValueError(f"Invalid token: {str(e)}")

    if "sub" not in payload:
        raise ValueError("Invalid token payload: missing 'sub' field")
    return payload


async def revoke_token(token: str, expiry: Optional[int] = None) -> bool:
    """
    Add token to the revocation list in Redis.

    Args:
        token: Token to revoke
        expiry: Optional TTL in seconds, derived from the token's exp otherwise

    Returns:
        True if the token was recorded as revoked
    """
    if expiry is None:
        try:
            payload = decode_token(token)
        except ValueError:
            # Nothing to revoke: the token is already unusable
            return False
        expiry = int(payload.get("exp", 0) - time.time())

    if expiry <= 0:
        return False
    return await cache.set(f"{REVOKED_PREFIX}:{token}", True, expire=expiry)


async def is_token_revoked(token: str) -> bool:
    """Check if token is in the revocation list."""
    return await cache.exists(f"{REVOKED_PREFIX}:{token}")
