"""
Slug rules for workspaces.

- generate_slug: turn a workspace name into a unique slug
- validate_workspace_slug_security: reserved words and odd punctuation
- check_slug_availability: uniqueness, including soft-deleted workspaces

Usage:
    from workspaces.validators import check_slug_availability, generate_slug

    slug = generate_slug("Acme Inc")  # "acme-inc", or "acme-inc-1" if taken
    check = check_slug_availability("acme")
    if not check.available:
        ...  # check.reason
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from core.helpers import generate_token

SLUG_TAKEN_REASON = "A workspace with this slug already exists"

RESERVED_SLUGS = frozenset(
    {
        "admin",
        "api",
        "www",
        "mail",
        "ftp",
        "localhost",
        "root",
        "support",
        "help",
        "blog",
        "store",
        "shop",
        "app",
        "mobile",
        "dashboard",
        "settings",
        "profile",
        "account",
        "billing",
        "auth",
        "login",
        "signup",
        "register",
        "reset",
        "verify",
        "workspace",
        "organization",
        "team",
        "company",
        "business",
    }
)

SLUG_RE = re.compile(r"^[a-z0-9-]+$")
NON_SLUG_CHARS_RE = re.compile(r"[^a-z0-9]+")
EDGE_SPECIAL_RE = re.compile(r"^[.\-_]|[.\-_]$")
CONSECUTIVE_SPECIAL_RE = re.compile(r"[\-_]{2,}")

SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 50
SLUG_BASE_MAX_LENGTH = 40
MAX_NUMERIC_SUFFIX = 99
DEFAULT_SLUG_BASE = "workspace"


@dataclass
class SlugSecurityResult:
    is_valid: bool
    issues: list[str] = field(default_factory=list)


@dataclass
class SlugAvailability:
    available: bool
    reason: str | None = None

    def to_dict(self) -> dict:
        return {"available": self.available, "reason": self.reason}


def slugify_name(name: str) -> str:
    """Lowercase, dash-separated base slug capped at 40 characters."""
    slug = NON_SLUG_CHARS_RE.sub("-", (name or "").lower()).strip("-")
    return slug[:SLUG_BASE_MAX_LENGTH].strip("-")


def validate_workspace_slug_security(slug: str) -> SlugSecurityResult:
    issues = []

    if slug.lower() in RESERVED_SLUGS:
        issues.append("Slug cannot use reserved words")

    if EDGE_SPECIAL_RE.search(slug):
        issues.append("Slug cannot start or end with special characters")

    if CONSECUTIVE_SPECIAL_RE.search(slug):
        issues.append("Slug cannot contain consecutive special characters")

    return SlugSecurityResult(is_valid=not issues, issues=issues)


def _slug_taken(slug: str, exclude_id=None) -> bool:
    from workspaces.models import Workspace

    queryset = Workspace.all_objects.filter(slug=slug)
    if exclude_id is not None:
        queryset = queryset.exclude(id=exclude_id)
    return queryset.exists()


def check_slug_availability(slug: str, exclude_id=None) -> SlugAvailability:
    """
    Check whether a slug can be used.

    Args:
        slug: Candidate slug
        exclude_id: Workspace being renamed (its own slug counts as available)

    Returns:
        SlugAvailability with the first reason the slug cannot be used
    """
    slug = (slug or "").strip().lower()

    if len(slug) < SLUG_MIN_LENGTH:
        return SlugAvailability(False, "Slug must be at least 3 characters")
    if len(slug) > SLUG_MAX_LENGTH:
        return SlugAvailability(False, "Slug must be at most 50 characters")
    if not SLUG_RE.match(slug):
        return SlugAvailability(
            False, "Slug can only contain lowercase letters, numbers, and hyphens"
        )

    security = validate_workspace_slug_security(slug)
    if not security.is_valid:
        return SlugAvailability(False, security.issues[0])

    # Soft-deleted workspaces keep their slug
    if _slug_taken(slug, exclude_id):
        return SlugAvailability(False, SLUG_TAKEN_REASON)

    return SlugAvailability(True)


def generate_slug(name: str) -> str:
    """
    Build a unique slug from a workspace name.

    "Acme Inc!" becomes "acme-inc". When taken, -1 through -99 are tried,
    then a random suffix. Reserved or too short bases are padded so the
    result always passes check_slug_availability.
    """
    base = slugify_name(name) or DEFAULT_SLUG_BASE
    if len(base) < SLUG_MIN_LENGTH or base in RESERVED_SLUGS:
        base = f"{base}-{generate_token(2)}"

    if not _slug_taken(base):
        return base

    for suffix in range(1, MAX_NUMERIC_SUFFIX + 1):
        candidate = f"{base}-{suffix}"
        if not _slug_taken(candidate):
            return candidate

    while True:
        candidate = f"{base}-{generate_token(3)}"
        if not _slug_taken(candidate):
            return candidate
