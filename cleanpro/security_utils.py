"""
Security Utilities
Password hashing, signed reset links and JWTs for customer and admin sessions
"""

import logging
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import (
    ADMIN_TOKEN_EXPIRE_HOURS,
    CUSTOMER_TOKEN_EXPIRE_HOURS,
    JWT_ALGORITHM,
    PASSWORD_RESET_MAX_AGE,
    SECRET_KEY,
)

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

PASSWORD_RESET_SALT = "password-reset"
ADMIN_PASSWORD_MIN_LENGTH = 8

# (pattern, hint shown when missing)
CHARACTER_CLASSES = [
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"\d"), "a number"),
    (re.compile(r'[!@#$%^&*(),.?":{}|<>_\-+=/\\\[\];\'`~]'), "a special character"),
]
REQUIRED_CLASSES = 3

COMMON_PASSWORDS = {"password", "password1", "12345678", "qwerty123", "admin123", "letmein1", "cleanpro1"}


# ============================================================================
# PASSWORDS
# ============================================================================


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """False for accounts that have no password yet (admins awaiting first login)"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.error(f"❌ Stored password hash could not be checked: {e}")
        return False


def check_password_strength(password: str) -> dict[str, Any]:
    """
    Grade an admin password.

    A password is accepted when it has at least ADMIN_PASSWORD_MIN_LENGTH characters,
    covers REQUIRED_CLASSES of the four character classes and is not a well known one.

    Returns:
        dict with 'classes' (number of character classes present), 'is_valid' (bool)
        and 'feedback' (what to change, empty when valid)
    """
    missing = [hint for pattern, hint in CHARACTER_CLASSES if not pattern.search(password)]
    classes = len(CHARACTER_CLASSES) - len(missing)

    feedback = []
    if len(password) < ADMIN_PASSWORD_MIN_LENGTH:
        feedback.append(f"use at least {ADMIN_PASSWORD_MIN_LENGTH} characters")
    if classes < REQUIRED_CLASSES:
        feedback.append("include " + " or ".join(missing))
    if password.lower() in COMMON_PASSWORDS:
        feedback.append("avoid common passwords")

    return {"classes": classes, "is_valid": not feedback, "feedback": feedback}


# ============================================================================
# ONE-TIME CODES & RESET LINKS
# ============================================================================


def generate_otp(digits: int = 6) -> str:
    """Numeric one-time code, zero padded"""
    return f"{secrets.randbelow(10**digits):0{digits}d}"


def constant_time_compare(a: str, b: str) -> bool:
    return secrets.compare_digest(a.encode(), b.encode())


def _reset_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(SECRET_KEY, salt=PASSWORD_RESET_SALT)


def generate_password_reset_token(email: str, account_type: str) -> str:
    return _reset_serializer().dumps({"email": email, "type": account_type})


def verify_password_reset_token(token: str, max_age: int = PASSWORD_RESET_MAX_AGE) -> Optional[dict[str, Any]]:
    """
    Decode a reset link token.

    Returns:
        {"email", "type"} when the signature is good and younger than ``max_age`` seconds,
        None otherwise
    """
    try:
        return _reset_serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        logger.warning("⏰ Password reset token expired")
    except BadSignature:
        logger.warning("⚠️ Password reset token has a bad signature")
    return None


# ============================================================================
# SESSION TOKENS
# ============================================================================


def _issue_token(claims: dict[str, Any], lifetime: timedelta) -> str:
    payload = dict(claims, exp=datetime.now(timezone.utc) + lifetime)
    return jose_jwt.encode(payload, SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """Decoded claims, or None when the token is malformed, forged or expired"""
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"🔑 Rejected session token: {e}")
        return None


def create_customer_token(customer) -> str:
    return _issue_token(
        {"sub": str(customer.id), "email": customer.email, "role": "customer"},
        timedelta(hours=CUSTOMER_TOKEN_EXPIRE_HOURS),
    )


def create_admin_token(admin) -> str:
    return _issue_token(
        {"sub": str(admin.id), "email": admin.email, "role": "admin", "admin_role": admin.role},
        timedelta(hours=ADMIN_TOKEN_EXPIRE_HOURS),
    )


def mask_email(email: str) -> str:
    """j**e@example.com, for log lines"""
    local, _, domain = email.partition("@")
    if len(local) <= 2:
        return f"{'*' * len(local)}@{domain}"
    return f"{local[0]}{'*' * (len(local) - 2)}{local[-1]}@{domain}"
