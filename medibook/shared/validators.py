"""Shared validation utilities"""

import re
from typing import Optional

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


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
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Please provide a valid email")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    if not phone:
        return phone

    phone = phone.strip()
    if not PHONE_PATTERN.match(phone):
        raise ValueError("Please provide a valid phone number")
    return phone


def validate_username(username: Optional[str]) -> Optional[str]:
    """3-30 characters, letters, numbers and underscores only"""
    if username is None:
        return username

    username = username.strip()
    if not 3 <= len(username) <= 30:
        raise ValueError("Username must be between 3 and 30 characters")
    if not USERNAME_PATTERN.match(username):
        raise ValueError("Username can only contain letters, numbers, and underscores")
    return username


def is_valid_time(value: Optional[str]) -> bool:
    """HH:MM on a 24 hour clock"""
    return bool(value) and bool(TIME_PATTERN.match(value))


def normalize_time(value: str) -> str:
    """Zero-pad the hour so "9:00" and "09:00" name the same slot"""
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


def validate_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not is_valid_time(value):
        raise ValueError("Please provide a valid time in HH:MM format")
    return normalize_time(value)


def validate_weekday(day: str) -> str:
    if day not in WEEKDAYS:
        raise ValueError(f"Day must be one of: {', '.join(WEEKDAYS)}")
    return day
