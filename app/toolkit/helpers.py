"""
Helper functions for domain-specific operations.

This module provides domain-aware utility functions for:
- Display initials for avatars without an image
- Data masking (email - PII handling in logs)
- User-Agent parsing (session security responses)

These utilities are specific to user-facing applications that handle
PII and display user data.

Usage:
    from toolkit.helpers import get_initials, mask_email, parse_user_agent

    initials = get_initials("Ana Maria Souza", "ana@example.com")  # "AS"
    masked = mask_email("user@example.com")  # u***@example.com
    info = parse_user_agent(request.META.get("HTTP_USER_AGENT", ""))

Note:
    - For generic infrastructure helpers (token generation, hashing, client IP), see core.helpers
    - For workspace slugs, see workspaces.validators
"""

from __future__ import annotations


def get_initials(name: str | None, email: str | None = None) -> str:
    """
    Build up to two initials for an avatar placeholder.

    Args:
        name: Display name (may be empty)
        email: Fallback when there is no name

    Returns:
        Upper-case initials, or "?" when there is nothing to work with

    Example:
        get_initials("Ana Maria Souza")  # "AS"
        get_initials("Ana")  # "AN"
        get_initials("", "john.doe@example.com")  # "JD"
    """
    words = (name or "").split()

    if not words:
        if not email:
            return "?"
        parts = [p for p in email.split("@")[0].split(".") if p]
        if len(parts) >= 2:
            return (parts[0][0] + parts[1][0]).upper()
        return email[0].upper()

    if len(words) == 1:
        return words[0][:2].upper()

    return (words[0][0] + words[-1][0]).upper()


def mask_email(email: str) -> str:
    """
    Mask email for display.

    Keeps first character, domain, and TLD visible.

    Args:
        email: Email address to mask

    Returns:
        Masked email (e.g., "j***@example.com")

    Example:
        masked = mask_email("john.doe@example.com")  # "j***@example.com"
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.rsplit("@", 1)

    if len(local) > 1:
        masked_local = local[0] + "***"
    else:
        masked_local = "***"

    return f"{masked_local}@{domain}"


def parse_user_agent(user_agent: str) -> dict:
    """
    Parse User-Agent string into device/browser info.

    Provides basic parsing without external dependencies.
    For more accurate parsing, consider using user-agents library.

    Args:
        user_agent: User-Agent header string

    Returns:
        Dict with device_type, browser, os keys

    Example:
        info = parse_user_agent(request.META.get("HTTP_USER_AGENT", ""))
    """
    result = {
        "device_type": "unknown",
        "browser": "unknown",
        "os": "unknown",
        "raw": user_agent,
    }

    if not user_agent:
        return result

    ua_lower = user_agent.lower()

    # Detect device type
    if any(mobile in ua_lower for mobile in ["mobile", "android", "iphone", "ipad"]):
        if "ipad" in ua_lower or "tablet" in ua_lower:
            result["device_type"] = "tablet"
        else:
            result["device_type"] = "mobile"
    else:
        result["device_type"] = "desktop"

    # Detect browser
    if "chrome" in ua_lower and "edg" not in ua_lower:
        result["browser"] = "Chrome"
    elif "firefox" in ua_lower:
        result["browser"] = "Firefox"
    elif "safari" in ua_lower and "chrome" not in ua_lower:
        result["browser"] = "Safari"
    elif "edg" in ua_lower:
        result["browser"] = "Edge"
    elif "opera" in ua_lower or "opr" in ua_lower:
        result["browser"] = "Opera"

    # Detect OS
    if "windows" in ua_lower:
        result["os"] = "Windows"
    elif "iphone" in ua_lower or "ipad" in ua_lower:
        result["os"] = "iOS"
    elif "mac os" in ua_lower or "macos" in ua_lower:
        result["os"] = "macOS"
    elif "android" in ua_lower:
        result["os"] = "Android"
    elif "linux" in ua_lower:
        result["os"] = "Linux"

    return result
