"""
Tests for core.validators.validate_no_script.
"""

import pytest
from django.core.exceptions import ValidationError

from core.validators import validate_no_script


@pytest.mark.parametrize(
    "value",
    [
        "<script>alert(1)</script>",
        "< SCRIPT src=x>",
        "JavaScript:alert(1)",
        '<img src=x onerror="alert(1)">',
        "data: text/html;base64,PHNjcmlwdD4=",
    ],
)
def test_rejects_script_content(value):
    with pytest.raises(ValidationError, match="Script content is not allowed"):
        validate_no_script(value)


@pytest.mark.parametrize(
    "value",
    [
        "",
        "Loja de roupas em Curitiba",
        "Scripts and descriptions for the onboarding call",
        "https://example.com/logo.png",
    ],
)
def test_accepts_plain_text(value):
    validate_no_script(value)
