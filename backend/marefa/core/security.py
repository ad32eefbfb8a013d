# marefa/core/security.py
"""
Security module for authentication.
Handles password hashing and signing/validation of session tokens.
"""
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext

from marefa.config import settings

# Password hashing context
# Argon2 is a modern, secure password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

# Token configuration
JWT_SECRET = settings.session_secret
SESSION_MAX_AGE = dt.timedelta(days=settings.session_max_age_days)
JWT_ALG = "HS256"  # HMAC SHA-256

def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain, hashed)

def create_access_token(user_id: str, role: str, session_id: str, expires_at: dt.datetime | None = None) -> str:
    """
    Create a signed session token.

    The token only identifies a server-side session row (``jti``); it stops
    being accepted as soon as that row is deleted on logout, even before ``exp``.

    Args:
        user_id: Unique user identifier (UUID string)
        role: User role ("user" or "admin")
        session_id: UserSession primary key (UUID string)
        expires_at: Expiry; defaults to now + SESSION_MAX_AGE

    Token payload includes:
        - sub: Subject (user ID)
        - role: User role
        - jti: Session ID
        - iat: Issued at timestamp
        - exp: Expiration timestamp
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": user_id,
        "role": role,
        "jti": session_id,
        "iat": now,
        "exp": expires_at or (now + SESSION_MAX_AGE),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)

def decode_access_token(token: str) -> dict:
    """
    Decode and validate a session token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or malformed
    """
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
