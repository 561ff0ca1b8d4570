from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
import bcrypt
from fastapi import HTTPException, status
import secrets

from laborhours.core.config import settings


# Character classes for generated temporary passwords
LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DIGITS = "0123456789"
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
PASSWORD_ALPHABET = LOWERCASE + UPPERCASE + DIGITS + SPECIAL_CHARACTERS


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password"""
    if not hashed_password:
        return False
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def generate_password(length: Optional[int] = None) -> str:
    """
    Generate a temporary password.

    The result always contains at least one lowercase letter, one uppercase
    letter, one digit and one character from SPECIAL_CHARACTERS. Positions
    are shuffled so no class is pinned to a fixed index. Uses the
    ``secrets`` CSPRNG.

    Args:
        length: Total length, defaults to TEMP_PASSWORD_LENGTH (8). Minimum 4.

    Returns:
        The generated password
    """
    length = length or settings.TEMP_PASSWORD_LENGTH
    if length < 4:
        raise ValueError("Password length must be at least 4")

    chars = [
        secrets.choice(LOWERCASE),
        secrets.choice(UPPERCASE),
        secrets.choice(DIGITS),
        secrets.choice(SPECIAL_CHARACTERS),
    ]
    chars.extend(secrets.choice(PASSWORD_ALPHABET) for _ in range(length - 4))

    # Fisher-Yates with the CSPRNG
    for i in range(len(chars) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        chars[i], chars[j] = chars[j], chars[i]

    return "".join(chars)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


def decode_token(token: str) -> Dict[str, Any]:
    """Decode JWT token"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
