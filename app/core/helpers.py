"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- Token generation (cryptographic)
- HTTP request helpers (client IP extraction)

These utilities are pure infrastructure - they have no knowledge
of domain concepts like users, workspaces, or invitations.

Usage:
    from core.helpers import generate_token, get_client_ip

    token = generate_token(32)
    ip = get_client_ip(request)

Note:
    - For domain-aware helpers (PII masking, user-agent parsing), see toolkit.helpers
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from django.http import HttpRequest


def generate_token(length: int = 32) -> str:
    """
    Generate a cryptographically secure random token.

    Uses secrets module for secure random generation.

    Args:
        length: Number of bytes (resulting string is 2x length in hex)

    Returns:
        Hexadecimal token string

    Example:
        token = generate_token(32)  # Returns 64-character hex string
    """
    return secrets.token_hex(length)


def get_client_ip(request: HttpRequest) -> str:
    """
    Extract client IP from request, handling proxies.

    Checks, in order: the first X-Forwarded-For entry, X-Real-IP, then
    REMOTE_ADDR. Returns "unknown" when none is present, so callers can
    always build a rate-limit identifier.

    Args:
        request: Django or DRF request

    Returns:
        Client IP address string, or "unknown"
    """
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        # Take the first IP in the chain (original client)
        ip = x_forwarded_for.split(",")[0].strip()
        if ip:
            return ip

    x_real_ip = request.META.get("HTTP_X_REAL_IP")
    if x_real_ip:
        return x_real_ip.strip()

    return request.META.get("REMOTE_ADDR") or "unknown"
