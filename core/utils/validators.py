"""Validation utilities for common data types."""

import re
from typing import Optional, Union
from email_validator import validate_email as _validate_email, EmailNotValidError


URL_PATTERN = re.compile(
    r'^https?://'  # http:// or https://
    r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,63}\.?|'  # domain...
    r'localhost|'  # localhost...
    r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # ...or ip
    r'(?::\d+)?'  # optional port
    r'(?:/?|[/?]\S+)$', re.IGNORECASE
)


def validate_email(email: str) -> tuple[bool, Optional[str]]:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, normalized_email or error_message)
    """
    try:
        validation = _validate_email(email, check_deliverability=False)
        return True, validation.normalized
    except EmailNotValidError as e:
        return False, str(e)


def validate_url(url: Optional[str], required: bool = False) -> tuple[bool, Optional[str]]:
    """
    Validate URL format.

    Empty values pass unless ``required`` is set, since profile links on a
    candidate are optional.
    """
    if not url:
        return (False, "URL is required") if required else (True, None)

    if not URL_PATTERN.match(url):
        return False, "Invalid URL format"

    return True, None


def parse_skills(value: Union[str, list[str], None]) -> list[str]:
    """
    Normalize a skills field.

    Accepts a list or a comma separated string; entries are trimmed and
    empty ones dropped.
    """
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename by removing dangerous characters.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    # Remove path separators and other dangerous chars
    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f]', '', filename)

    sanitized = sanitized.replace(' ', '_')

    if len(sanitized) > 255:
        name, ext = sanitized.rsplit('.', 1) if '.' in sanitized else (sanitized, '')
        sanitized = name[:250] + ('.' + ext if ext else '')

    return sanitized
