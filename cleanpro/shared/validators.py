"""Shared validation utilities"""

import re
from typing import Optional

FULL_NAME_PATTERN = re.compile(r"^[A-Za-z\s]{2,100}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase, trimmed email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a phone number and normalize it to digits with an optional leading +.

    Raises:
        ValueError: If the number has fewer than 7 or more than 15 digits
    """
    if not phone or not phone.strip():
        return None

    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)
    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must contain 7 to 15 digits")
    return f"+{digits}" if phone.startswith("+") else digits


def validate_full_name(name: Optional[str]) -> Optional[str]:
    """Letters and spaces only, 2 to 100 characters"""
    if name is None:
        return name

    name = " ".join(name.split())
    if not FULL_NAME_PATTERN.match(name):
        raise ValueError("Name must be 2-100 characters and contain only letters and spaces")
    return name
