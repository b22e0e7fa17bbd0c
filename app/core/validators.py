"""
Reusable field validators for generic infrastructure concerns.

These are Django-style validators (raise django.core.exceptions.ValidationError)
attached to model and serializer fields that accept free text from users,
such as profile bios and workspace descriptions.

Usage:
    from core.validators import validate_no_script

    bio = models.TextField(validators=[validate_no_script])

Note:
    - Slug rules for workspaces live in workspaces.validators
"""

from __future__ import annotations

import re

from django.core.exceptions import ValidationError

SCRIPT_PATTERNS = [
    r"<\s*script",
    r"javascript:",
    r"on\w+\s*=",  # onclick, onload, etc.
    r"data:\s*text/html",
]


def validate_no_script(value: str):
    """
    Validate that string contains no script-like content.

    Checks for script tags, event handlers, javascript: URLs.

    Raises:
        ValidationError: If script content found
    """
    for pattern in SCRIPT_PATTERNS:
        if re.search(pattern, value, re.IGNORECASE):
            raise ValidationError("Script content is not allowed in this field.")
