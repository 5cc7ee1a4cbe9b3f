"""
JWT token creation / verification, password hashing (bcrypt) and
password strength rules.
"""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from pontaj.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY

_SPECIAL_CHARS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
_SPECIAL_RE = re.compile("[" + re.escape(_SPECIAL_CHARS) + "]")


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


@dataclass
class PasswordStrength:
    is_valid: bool
    score: int
    requirements: dict[str, bool] = field(default_factory=dict)


def check_password_strength(password: str, min_length: int = 8) -> PasswordStrength:
    """Score a password against the five character-class requirements.

    A password is accepted when it meets the length rule and scores at
    least 4 of 5.
    """
    requirements = {
        "length": len(password) >= min_length,
        "uppercase": any(c.isupper() for c in password),
        "lowercase": any(c.islower() for c in password),
        "number": any(c.isdigit() for c in password),
        "special": bool(_SPECIAL_RE.search(password)),
    }
    score = sum(requirements.values())
    return PasswordStrength(
        is_valid=score >= 4 and requirements["length"],
        score=score,
        requirements=requirements,
    )


def generate_secure_password(length: int = 12) -> str:
    """Random password with at least one char from every class."""
    length = max(length, 4)
    pools = [string.ascii_uppercase, string.ascii_lowercase, string.digits, _SPECIAL_CHARS]
    chars = [secrets.choice(pool) for pool in pools]
    alphabet = "".join(pools)
    chars += [secrets.choice(alphabet) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


# ── JWT tokens ──────────────────────────────────────────────────────
def create_access_token(
    subject: str | Any,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode(
        {"exp": expire, "sub": str(subject), "type": "access"},
        _SECRET,
        algorithm=_ALGORITHM,
    )


def create_refresh_token(subject: str | Any) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return jwt.encode(
        {"exp": expire, "sub": str(subject), "type": "refresh"},
        _SECRET,
        algorithm=_ALGORITHM,
    )


def _decode(token: str, token_type: str) -> dict | None:
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


def decode_access_token(token: str) -> dict | None:
    """Return payload dict if *access* token is valid, else ``None``."""
    return _decode(token, "access")


def decode_refresh_token(token: str) -> dict | None:
    """Return payload dict if *refresh* token is valid, else ``None``."""
    return _decode(token, "refresh")
