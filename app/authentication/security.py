"""
Input security checks for authentication flows.

Pure functions with no database access, used by serializers and AuthService:
- validate_password_strength: 0-4 score with feedback and critical issues
- validate_email_security: suspicious patterns and disposable domains
- validate_session_security: age/inactivity risk level
- sanitize_auth_input: strip control characters and script payloads
- validate_auth_token: format check for tokens arriving in links

Related files:
    - session_security.py: richer session checks and reports
    - serializers.py: RegisterSerializer and password serializers
    - services.py: AuthService

Usage:
    from authentication.security import validate_password_strength

    result = validate_password_strength("Correct-Horse-42")
    if not result.is_strong:
        raise serializers.ValidationError(result.critical_issues or result.feedback)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta
from urllib.parse import unquote

# =============================================================================
# Password strength
# =============================================================================

COMMON_PASSWORD_WORDS = (
    "password",
    "admin",
    "user",
    "login",
    "welcome",
    "secret",
    "access",
)

SPECIAL_CHARS_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>?]")
MAX_FEEDBACK_ITEMS = 3


@dataclass
class PasswordStrengthResult:
    is_strong: bool
    score: float
    feedback: list[str] = field(default_factory=list)
    critical_issues: list[str] = field(default_factory=list)


def validate_password_strength(password: str) -> PasswordStrengthResult:
    """
    Score a password from 0 to 4.

    Length gives up to 1 point, character variety up to 1.5; a common
    dictionary word costs 0.5. A password is strong when it scores at least
    2 and has no critical issue.
    """
    feedback: list[str] = []
    critical_issues: list[str] = []
    score = 0.0

    if len(password) >= 12:
        score += 1
    elif len(password) >= 8:
        score += 0.5
    else:
        critical_issues.append("Password must be at least 8 characters long")

    has_lower = bool(re.search(r"[a-z]", password))
    has_upper = bool(re.search(r"[A-Z]", password))
    has_digit = bool(re.search(r"[0-9]", password))
    has_special = bool(SPECIAL_CHARS_RE.search(password))
    character_types = sum([has_lower, has_upper, has_digit, has_special])

    if character_types >= 4:
        score += 1.5
    elif character_types == 3:
        score += 1
    elif character_types == 2:
        score += 0.5
    else:
        critical_issues.append(
            "Password must contain at least 2 different character types"
        )

    if not has_lower:
        feedback.append("Add lowercase letters")
    if not has_upper:
        feedback.append("Add uppercase letters")
    if not has_digit:
        feedback.append("Add numbers")
    if not has_special:
        feedback.append("Add special characters")

    lowered = password.lower()
    if any(word in lowered for word in COMMON_PASSWORD_WORDS):
        score -= 0.5
        critical_issues.append("Avoid common dictionary words")

    score = max(0.0, min(4.0, score))

    return PasswordStrengthResult(
        is_strong=score >= 2 and not critical_issues,
        score=score,
        feedback=feedback[:MAX_FEEDBACK_ITEMS],
        critical_issues=critical_issues,
    )


# =============================================================================
# Email security
# =============================================================================

TEMPORARY_EMAIL_DOMAINS = frozenset(
    [
        "10minutemail.com",
        "tempmail.org",
        "guerrillamail.com",
        "mailinator.com",
        "throwaway.email",
    ]
)

EMAIL_FORMAT_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SUSPICIOUS_EMAIL_PATTERNS = (
    re.compile(r"\+.*@"),  # plus addressing
    re.compile(r"\.{2,}"),  # consecutive dots
    re.compile(r"^\."),
    re.compile(r"\.$"),
)
MAX_EMAIL_LENGTH = 254


@dataclass
class EmailSecurityResult:
    is_valid: bool
    is_secure: bool
    issues: list[str] = field(default_factory=list)


def validate_email_security(email: str) -> EmailSecurityResult:
    """
    Check an email address for abuse signals.

    A malformed address is invalid. A well-formed address may still be
    insecure (plus addressing, odd dots, disposable domain, too long);
    sign-up rejects insecure addresses.
    """
    if not EMAIL_FORMAT_RE.match(email):
        return EmailSecurityResult(
            is_valid=False, is_secure=False, issues=["Invalid email format"]
        )

    issues: list[str] = []
    if any(pattern.search(email) for pattern in SUSPICIOUS_EMAIL_PATTERNS):
        issues.append("Email contains suspicious patterns")

    domain = email.lower().split("@", 1)[1]
    if domain in TEMPORARY_EMAIL_DOMAINS:
        issues.append("Temporary email domains are not allowed")

    if len(email) > MAX_EMAIL_LENGTH:
        issues.append("Email address is too long")

    return EmailSecurityResult(is_valid=True, is_secure=not issues, issues=issues)


# =============================================================================
# Session age / inactivity
# =============================================================================

RISK_LOW = "low"
RISK_MEDIUM = "medium"
RISK_HIGH = "high"


@dataclass
class SessionRisk:
    is_valid: bool
    risk_level: str
    issues: list[str] = field(default_factory=list)


def validate_session_security(
    session_age: timedelta, inactivity: timedelta
) -> SessionRisk:
    """
    Rate a session by age and time since last activity.

    Older than 24h or idle for more than 2h is high risk (invalid);
    older than 12h or idle for more than 1h is medium.
    """
    issues: list[str] = []
    risk_level = RISK_LOW

    if session_age > timedelta(hours=24):
        issues.append("Session is very old")
        risk_level = RISK_HIGH
    elif session_age > timedelta(hours=12):
        issues.append("Session is aging")
        risk_level = RISK_MEDIUM

    if inactivity > timedelta(hours=2):
        issues.append("Long period of inactivity")
        risk_level = RISK_HIGH
    elif inactivity > timedelta(hours=1):
        issues.append("Moderate inactivity")
        if risk_level == RISK_LOW:
            risk_level = RISK_MEDIUM

    return SessionRisk(
        is_valid=risk_level != RISK_HIGH, risk_level=risk_level, issues=issues
    )


# =============================================================================
# Input sanitization
# =============================================================================

CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")
SCRIPT_TAG_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE)
JAVASCRIPT_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)
MAX_INPUT_LENGTH = 1000


def sanitize_auth_input(value: str) -> str:
    """Trim, drop control chars, script tags and javascript:, cap at 1000."""
    value = value.strip()
    value = CONTROL_CHARS_RE.sub("", value)
    value = SCRIPT_TAG_RE.sub("", value)
    value = JAVASCRIPT_PROTOCOL_RE.sub("", value)
    return value[:MAX_INPUT_LENGTH]


# =============================================================================
# Token format
# =============================================================================

TOKEN_TYPES = ("recovery", "invite", "email", "signup")

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
HEX_TOKEN_RE = re.compile(r"^[0-9a-f]{32,}$", re.IGNORECASE)
BASE64_RE = re.compile(r"^[A-Za-z0-9+/]+=*$")


@dataclass
class TokenValidationResult:
    is_valid: bool
    error: str | None = None


def validate_auth_token(token: str | None, token_type: str) -> TokenValidationResult:
    """
    Check a token's shape without consuming it.

    Accepted shapes: pkce_ tokens (20+ chars), UUIDs (optionally
    URL-encoded), the 64-char hex tokens this service issues, and base64
    for recovery links.
    """
    if not token or len(token) < 10:
        return TokenValidationResult(False, "Invalid token format")

    if token.startswith("pkce_"):
        if len(token) < 20:
            return TokenValidationResult(False, "Invalid PKCE token format")
        return TokenValidationResult(True)

    if UUID_RE.match(token) or HEX_TOKEN_RE.match(token):
        return TokenValidationResult(True)

    if "%" in token or "+" in token:
        if UUID_RE.match(unquote(token)):
            return TokenValidationResult(True)

    if token_type == "recovery" and BASE64_RE.match(token):
        return TokenValidationResult(True)

    return TokenValidationResult(False, "Invalid token format")
