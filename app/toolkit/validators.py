"""
Validators for user-supplied contact and display settings.

This module provides validators for:
- Phone numbers (optional profile field)
- UI locales ("en", "pt-BR")

Usage:
    from toolkit.validators import validate_locale, validate_phone_number

    phone = serializers.CharField(validators=[validate_phone_number])
    locale = serializers.CharField(validators=[validate_locale])

Note:
    - For script/HTML checks on free text, see core.validators
    - Workspace slug rules live in workspaces.validators
"""

from __future__ import annotations

import re

from django.core.exceptions import ValidationError

PHONE_SEPARATORS_RE = re.compile(r"[\s\-().]")
PHONE_RE = re.compile(r"^\+?[1-9]\d{6,14}$")
LOCALE_RE = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")


def validate_phone_number(value: str):
    """
    Validate an international or national phone number.

    Spaces, dashes, dots and parentheses are ignored, so "+55 (11) 98765-4321"
    passes. What remains must be 7 to 15 digits, optionally after a "+".
    An empty value is allowed; the field is optional.

    Raises:
        ValidationError: If format is invalid
    """
    if not value:
        return

    cleaned = PHONE_SEPARATORS_RE.sub("", value)
    if not PHONE_RE.match(cleaned):
        raise ValidationError(
            "Enter a valid phone number, e.g. +5511987654321.",
            code="invalid_phone",
        )


def validate_locale(value: str):
    """
    Validate a UI locale such as "en" or "pt-BR".

    Raises:
        ValidationError: If the value is not a language code with an
            optional upper-case region
    """
    if not LOCALE_RE.match(value or ""):
        raise ValidationError(
            'Enter a locale like "en" or "pt-BR".', code="invalid_locale"
        )
