"""
utils/validation_utils.py

Purpose: Input validation

- Instance name shape and integration type
- Phone number, URL and media type checks
- Message text / caption length limits
- Pagination bounds
- Email shape for registration

Every function raises ValidationError with a user-facing message, so
callers can validate before touching storage or the provider.
"""

import re
from typing import Any, List, Optional
from urllib.parse import urlparse

from wcpilot.core.exceptions import ValidationError
from wcpilot.utils.constants import (
    INSTANCE_NAME_PATTERN,
    INSTANCE_NAME_MIN_LENGTH,
    INSTANCE_NAME_MAX_LENGTH,
    INTEGRATIONS,
    DEFAULT_INTEGRATION,
    MEDIA_TYPES,
    TEXT_MAX_LENGTH,
    CAPTION_MAX_LENGTH,
    PROFILE_NAME_MAX_LENGTH,
    MAX_PAGE_LIMIT,
    WEBHOOK_EVENTS,
    EMAIL_PATTERN,
)


def validate_instance_name(name: Optional[str]) -> str:
    """
    Validates an instance name.

    Format: letters, digits, underscores and hyphens, 3-50 characters.

    Args:
        name: Instance name

    Returns:
        The unchanged name

    Raises:
        ValidationError: If the name is missing or malformed
    """
    if not name or not isinstance(name, str):
        raise ValidationError("Instance name is required")

    if not INSTANCE_NAME_MIN_LENGTH <= len(name) <= INSTANCE_NAME_MAX_LENGTH:
        raise ValidationError(
            f"Instance name must be between {INSTANCE_NAME_MIN_LENGTH} "
            f"and {INSTANCE_NAME_MAX_LENGTH} characters"
        )

    if not re.fullmatch(INSTANCE_NAME_PATTERN, name):
        raise ValidationError(
            "Instance name can only contain letters, numbers, underscores, and hyphens"
        )

    return name


def validate_integration(integration: Optional[str]) -> str:
    """
    Returns the integration type, defaulting to WHATSAPP-BAILEYS when omitted.
    """
    if integration is None or integration == "":
        return DEFAULT_INTEGRATION

    if integration not in INTEGRATIONS:
        raise ValidationError(
            "Invalid integration type",
            details={"allowed": list(INTEGRATIONS)}
        )

    return integration


def validate_phone_number(number: Optional[str]) -> str:
    """
    Validates an international phone number.

    Accepts an optional leading "+" followed by 8-15 digits; spaces,
    dashes, dots and parentheses are ignored.

    Returns:
        Digits-only number as the provider expects it
    """
    if not number or not isinstance(number, str):
        raise ValidationError("Valid phone number is required")

    cleaned = re.sub(r"[\s\-\.\(\)]", "", number)
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]

    if not re.fullmatch(r"^[1-9]\d{7,14}$", cleaned):
        raise ValidationError("Valid phone number is required")

    return cleaned


def is_valid_url(url: Optional[str]) -> bool:
    """
    Checks for an absolute http(s) URL with a host.
    """
    if not url or not isinstance(url, str):
        return False

    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc) and " " not in url.strip()


def validate_url(url: Optional[str], field: str = "URL") -> str:
    if not is_valid_url(url):
        raise ValidationError(f"{field} must be a valid URL")
    return url.strip()


def validate_text(text: Optional[str]) -> str:
    if not text or not isinstance(text, str):
        raise ValidationError(f"Message text must be between 1 and {TEXT_MAX_LENGTH} characters")

    if len(text) > TEXT_MAX_LENGTH:
        raise ValidationError(f"Message text must be between 1 and {TEXT_MAX_LENGTH} characters")

    return text


def validate_media_type(media_type: Optional[str]) -> str:
    if media_type not in MEDIA_TYPES:
        raise ValidationError(
            "Invalid media type",
            details={"allowed": list(MEDIA_TYPES)}
        )
    return media_type


def validate_caption(caption: Optional[str]) -> Optional[str]:
    if caption is None:
        return None

    if not isinstance(caption, str) or len(caption) > CAPTION_MAX_LENGTH:
        raise ValidationError(f"Caption must be less than {CAPTION_MAX_LENGTH} characters")

    return caption


def validate_profile_name(profile_name: str) -> str:
    if not isinstance(profile_name, str) or not 1 <= len(profile_name) <= PROFILE_NAME_MAX_LENGTH:
        raise ValidationError(
            f"Profile name must be between 1 and {PROFILE_NAME_MAX_LENGTH} characters"
        )
    return profile_name


def validate_pagination(page: Any, limit: Any) -> tuple:
    """
    Validates page/limit query values.

    Returns:
        (page, limit) as ints
    """
    try:
        page = int(page)
        limit = int(limit)
    except (TypeError, ValueError):
        raise ValidationError("Page and limit must be integers")

    if page < 1:
        raise ValidationError("Page must be at least 1")

    if not 1 <= limit <= MAX_PAGE_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_LIMIT}")

    return page, limit


def validate_participants(participants: Any) -> List[str]:
    """
    Validates a group participant list.

    Returns:
        Normalized (digits-only) participant numbers
    """
    if not isinstance(participants, list):
        raise ValidationError("Participants must be an array")

    return [validate_phone_number(p) for p in participants]


def validate_webhook_events(events: Any) -> List[str]:
    if not isinstance(events, list):
        raise ValidationError("Events must be an array")

    invalid = [e for e in events if e not in WEBHOOK_EVENTS]
    if invalid:
        raise ValidationError("Invalid event type", details={"invalid": invalid})

    return list(dict.fromkeys(events))


def require_mapping(value: Any, message: str) -> dict:
    if not isinstance(value, dict) or not value:
        raise ValidationError(message)
    return value


def validate_email(email: Optional[str]) -> str:
    """
    Returns the email trimmed and lowercased.
    """
    if not email or not isinstance(email, str):
        raise ValidationError("Valid email is required")

    email = email.strip().lower()
    if not re.fullmatch(EMAIL_PATTERN, email):
        raise ValidationError("Valid email is required")

    return email
