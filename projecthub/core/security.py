"""
Security utilities for ProjectHub API.
Consolidated JWT, password and temporary token handling.
"""
from datetime import datetime, timedelta
from typing import Optional, Literal, Tuple
import hashlib
import uuid
import secrets
import string

import jwt
import bcrypt

from projecthub.config import settings


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """Hash a password."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


# Token types
TokenType = Literal["access", "refresh"]


def _secret_for(token_type: TokenType) -> str:
    return settings.REFRESH_SECRET_KEY if token_type == "refresh" else settings.SECRET_KEY


def create_token(
    data: dict,
    token_type: TokenType = "access",
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT token.

    Args:
        data: Payload data (should include user_id)
        token_type: 'access' or 'refresh'
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    elif token_type == "refresh":
        expire = datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "type": token_type,
        "jti": str(uuid.uuid4())
    })

    return jwt.encode(to_encode, _secret_for(token_type), algorithm=settings.ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create an access token."""
    return create_token(data, token_type="access", expires_delta=expires_delta)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a refresh token."""
    return create_token(data, token_type="refresh", expires_delta=expires_delta)


def verify_token(token: str, token_type: TokenType = "access") -> Optional[dict]:
    """
    Verify a token and check its type.

    Returns:
        Decoded payload if valid and correct type, None otherwise
    """
    try:
        payload = jwt.decode(token, _secret_for(token_type), algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


def hash_token(token: str) -> str:
    """SHA-256 digest stored in place of a mailed token."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def generate_temporary_token() -> Tuple[str, str, datetime]:
    """
    Generate a client facing token for email verification or password reset.

    Returns:
        (unhashed token for the mail, hashed token for the DB, expiry)
    """
    unhashed = secrets.token_hex(20)
    expiry = datetime.utcnow() + timedelta(minutes=settings.TEMPORARY_TOKEN_EXPIRE_MINUTES)
    return unhashed, hash_token(unhashed), expiry


def generate_random_password(length: int = 16) -> str:
    """Unusable password for accounts created through social login."""
    alphabet = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def generate_numeric_suffix(length: int = 4) -> str:
    return ''.join(secrets.choice(string.digits) for _ in range(length))
