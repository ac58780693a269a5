"""Shared validation utilities"""

import re
from typing import Optional


def normalize_phone_digits(phone: Optional[str]) -> str:
    """Digits only, used for uniqueness comparisons"""
    return re.sub(r"\D", "", phone or "")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a phone number.

    Any formatting is accepted as long as the number carries 10 to 15 digits
    (US numbers and international numbers with a country code).

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone or not phone.strip():
        return None

    digits = normalize_phone_digits(phone)
    if len(digits) < 10 or len(digits) > 15:
        raise ValueError("Phone number must contain between 10 and 15 digits")

    return phone.strip()


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email or not email.strip():
        return None

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_full_name(name: Optional[str]) -> Optional[str]:
    """A lead's name must include both first and last name"""
    if not name or not name.strip():
        return None

    name = " ".join(name.split())
    if len(name.split(" ")) < 2:
        raise ValueError("Please enter both first and last name")
    return name


def validate_org_code(code: str) -> str:
    """Organization join codes are 2-10 alphanumerics, stored uppercase"""
    code = (code or "").strip().upper()
    if len(code) < 2 or len(code) > 10:
        raise ValueError("Organization code must be between 2 and 10 characters")
    if not re.match(r"^[A-Z0-9]+$", code):
        raise ValueError("Organization code may only contain letters and numbers")
    return code


def validate_hex_color(color: Optional[str]) -> Optional[str]:
    if not color:
        return None
    if not re.match(r"^#[0-9a-fA-F]{6}$", color):
        raise ValueError("Color must be a hex value like #3B82F6")
    return color.upper()


def find_duplicates(values: list[str]) -> list[str]:
    """Return values that occur more than once (compared as given)"""
    seen = set()
    duplicates = []
    for value in values:
        if not value:
            continue
        if value in seen and value not in duplicates:
            duplicates.append(value)
        seen.add(value)
    return duplicates
