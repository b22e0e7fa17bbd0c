"""
Tests for authentication input security checks.

All functions under test are pure; no database access.
"""

from datetime import timedelta

import pytest

from authentication.security import (
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
    sanitize_auth_input,
    validate_auth_token,
    validate_email_security,
    validate_password_strength,
    validate_session_security,
)

# =============================================================================
# Password strength
# =============================================================================


class TestValidatePasswordStrength:
    def test_long_varied_password_is_strong(self):
        result = validate_password_strength("Correct-Horse-42")

        assert result.is_strong is True
        assert result.score == 2.5
        assert result.critical_issues == []

    def test_short_password_is_critical(self):
        result = validate_password_strength("Ab1!")

        assert result.is_strong is False
        assert "Password must be at least 8 characters long" in result.critical_issues

    def test_single_character_type_is_critical(self):
        result = validate_password_strength("abcdefghijklmnop")

        assert result.is_strong is False
        assert (
            "Password must contain at least 2 different character types"
            in result.critical_issues
        )

    def test_dictionary_word_is_critical(self):
        """
        Why it matters: "Password123!" scores well on length and variety
        but is one of the first guesses in any credential-stuffing list.
        """
        result = validate_password_strength("Password123!")

        assert result.is_strong is False
        assert result.critical_issues == ["Avoid common dictionary words"]
        assert result.score == 2.0

    def test_two_types_at_eight_chars_is_weak(self):
        result = validate_password_strength("abcd1234")

        assert result.score == 1.0
        assert result.is_strong is False
        assert result.critical_issues == []

    def test_feedback_is_capped_at_three(self):
        result = validate_password_strength("abcdefgh")

        assert result.feedback == [
            "Add uppercase letters",
            "Add numbers",
            "Add special characters",
        ]

    def test_score_never_negative(self):
        assert validate_password_strength("admin").score == 0.0


# =============================================================================
# Email security
# =============================================================================


class TestValidateEmailSecurity:
    def test_regular_address(self):
        result = validate_email_security("ana@example.com")

        assert result.is_valid is True
        assert result.is_secure is True

    @pytest.mark.parametrize("email", ["ana", "ana@example", "ana @example.com", ""])
    def test_malformed_address(self, email):
        result = validate_email_security(email)

        assert result.is_valid is False
        assert result.issues == ["Invalid email format"]

    @pytest.mark.parametrize(
        "email",
        ["ana+promo@example.com", "ana..souza@example.com", ".ana@example.com"],
    )
    def test_suspicious_patterns(self, email):
        result = validate_email_security(email)

        assert result.is_valid is True
        assert result.is_secure is False
        assert "Email contains suspicious patterns" in result.issues

    def test_disposable_domain(self):
        result = validate_email_security("ana@Mailinator.com")

        assert result.is_secure is False
        assert result.issues == ["Temporary email domains are not allowed"]

    def test_too_long(self):
        result = validate_email_security(f"{'a' * 250}@example.com")

        assert "Email address is too long" in result.issues


# =============================================================================
# Session rating
# =============================================================================


class TestValidateSessionSecurity:
    def test_fresh_session(self):
        risk = validate_session_security(timedelta(hours=1), timedelta(minutes=5))

        assert risk.is_valid is True
        assert risk.risk_level == RISK_LOW
        assert risk.issues == []

    def test_aging_session(self):
        risk = validate_session_security(timedelta(hours=13), timedelta(0))

        assert risk.risk_level == RISK_MEDIUM
        assert risk.issues == ["Session is aging"]

    def test_moderate_inactivity(self):
        risk = validate_session_security(timedelta(hours=1), timedelta(minutes=90))

        assert risk.risk_level == RISK_MEDIUM
        assert risk.is_valid is True

    @pytest.mark.parametrize(
        "age, inactivity",
        [
            (timedelta(hours=25), timedelta(0)),
            (timedelta(hours=1), timedelta(hours=3)),
        ],
    )
    def test_high_risk_is_invalid(self, age, inactivity):
        risk = validate_session_security(age, inactivity)

        assert risk.risk_level == RISK_HIGH
        assert risk.is_valid is False


# =============================================================================
# Sanitization
# =============================================================================


class TestSanitizeAuthInput:
    def test_strips_script_tags(self):
        assert sanitize_auth_input("Ana<script>alert(1)</script>") == "Ana"

    def test_strips_javascript_protocol(self):
        assert sanitize_auth_input("JavaScript:alert(1)") == "alert(1)"

    def test_strips_control_characters_and_whitespace(self):
        assert sanitize_auth_input("  Ana\x00 Souza\x1f ") == "Ana Souza"

    def test_caps_length(self):
        assert len(sanitize_auth_input("a" * 1500)) == 1000


# =============================================================================
# Token shape
# =============================================================================


class TestValidateAuthToken:
    @pytest.mark.parametrize(
        "token, token_type",
        [
            ("a" * 64, "signup"),
            ("550e8400-e29b-41d4-a716-446655440000", "invite"),
            ("550e8400%2De29b-41d4-a716-446655440000", "email"),
            ("pkce_" + "x" * 20, "signup"),
            ("dGhpcyBpcyBhIHRva2Vu==", "recovery"),
        ],
    )
    def test_accepted_shapes(self, token, token_type):
        assert validate_auth_token(token, token_type).is_valid is True

    @pytest.mark.parametrize("token", [None, "", "short"])
    def test_too_short(self, token):
        result = validate_auth_token(token, "signup")

        assert result.is_valid is False
        assert result.error == "Invalid token format"

    def test_short_pkce_token(self):
        result = validate_auth_token("pkce_abcdefgh", "signup")

        assert result.error == "Invalid PKCE token format"

    def test_base64_only_for_recovery(self):
        """A base64 blob is only a known shape for password recovery links."""
        assert validate_auth_token("dGhpcyBpcyBhIHRva2Vu==", "signup").is_valid is False

    def test_rejects_markup(self):
        assert validate_auth_token("<script>alert(1)</script>", "recovery").is_valid is False
