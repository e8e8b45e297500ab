"""Shared validation utilities"""

import re
from datetime import time
from typing import Optional

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\(\)]{10,15}$")

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
GENDERS = ("Male", "Female", "Other")
BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")


def validate_time(value: Optional[str]) -> Optional[str]:
    """
    Validate a 24h clock time.

    Args:
        value: Time string such as "9:30" or "14:05"

    Returns:
        Zero-padded HH:MM string

    Raises:
        ValueError: If the value is not a valid 24h time
    """
    if value is None:
        return value

    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")

    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


def parse_time(value: str) -> time:
    """Parse an already validated HH:MM string"""
    hours, minutes = validate_time(value).split(":")
    return time(hour=int(hours), minute=int(minutes))


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """Validate an international phone number (digits, spaces, dashes, brackets, optional +)"""
    if not phone:
        return phone

    phone = phone.strip()
    if not PHONE_PATTERN.match(phone):
        raise ValueError("Please enter a valid phone number")

    return phone


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_password(password: str) -> str:
    """Require 6+ characters with at least one lowercase, one uppercase letter and one digit"""
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters long")
    if not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"\d", password)):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    return password


def validate_choice(value: Optional[str], choices: tuple, label: str) -> Optional[str]:
    if value is not None and value not in choices:
        raise ValueError(f"{label} must be one of: {', '.join(choices)}")
    return value
