"""
Session security monitoring.

Evaluates a signed-in session (built from the JWT access token and the
request) and recent login attempts, producing security events that the
API returns and the logs record.

Components:
    SessionInfo: What we know about the session (issued/expires/last activity)
    SecurityEvent: One finding with a severity
    check_session_security: Evaluate a session
    create_security_report: One-line summary for logs
    detect_suspicious_activity: Brute-force and burst detection

Related files:
    - security.py: simpler age/inactivity rating used at sign-in
    - services.py: AuthService.get_session_security
    - models.py: LoginAttempt feeds detect_suspicious_activity

Usage:
    info = SessionInfo(issued_at=..., expires_at=..., last_activity=...)
    check = check_session_security(info, user_agent=ua, ip_address=ip)
    logger.info(create_security_report(user.id, check))
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from django.utils import timezone

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

SEVERITY_LOW = "low"
SEVERITY_MEDIUM = "medium"
SEVERITY_HIGH = "high"
SEVERITY_CRITICAL = "critical"

EVENT_SUSPICIOUS_ACTIVITY = "suspicious_activity"
EVENT_SESSION_EXPIRED = "session_expired"

MAX_SESSION_AGE = timedelta(hours=24)
MAX_INACTIVITY = timedelta(hours=2)
EXPIRY_HIGH_THRESHOLD = timedelta(minutes=5)
EXPIRY_MEDIUM_THRESHOLD = timedelta(minutes=30)
MAX_USER_AGENT_LENGTH = 500

FAILURE_WINDOW = timedelta(minutes=15)
FAILURE_THRESHOLD = 5
BURST_WINDOW = timedelta(minutes=5)
BURST_THRESHOLD = 20

IPV4_RE = re.compile(r"^(\d{1,3}\.){3}\d{1,3}$")
IPV6_RE = re.compile(r"^([0-9a-fA-F]{0,4}:){2,7}[0-9a-fA-F]{0,4}$")


@dataclass
class SessionInfo:
    issued_at: datetime
    expires_at: datetime
    last_activity: datetime | None = None


@dataclass
class SecurityEvent:
    type: str
    severity: str
    message: str
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class SessionSecurityCheck:
    is_secure: bool
    events: list[SecurityEvent] = field(default_factory=list)
    recommended_actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_secure": self.is_secure,
            "events": [event.to_dict() for event in self.events],
            "recommended_actions": self.recommended_actions,
        }


def check_session_security(
    session: SessionInfo | None,
    user_agent: str = "",
    ip_address: str = "",
    now: datetime | None = None,
) -> SessionSecurityCheck:
    """
    Evaluate a session and the client it came from.

    A session is secure when none of its events is high or critical.
    """
    now = now or timezone.now()

    if session is None:
        return SessionSecurityCheck(
            is_secure=False,
            events=[
                SecurityEvent(
                    EVENT_SESSION_EXPIRED,
                    SEVERITY_MEDIUM,
                    "No valid session found",
                    now,
                )
            ],
            recommended_actions=["Please sign in again"],
        )

    events: list[SecurityEvent] = []
    actions: list[str] = []

    session_age = now - session.issued_at
    if session_age > MAX_SESSION_AGE:
        events.append(
            SecurityEvent(
                EVENT_SESSION_EXPIRED,
                SEVERITY_HIGH,
                "Session is very old",
                now,
                {"session_age_hours": round(session_age.total_seconds() / 3600, 2)},
            )
        )
        actions.append("Consider refreshing your session")

    if session.last_activity is not None:
        inactivity = now - session.last_activity
        if inactivity > MAX_INACTIVITY:
            events.append(
                SecurityEvent(
                    EVENT_SUSPICIOUS_ACTIVITY,
                    SEVERITY_MEDIUM,
                    "Long period of inactivity detected",
                    now,
                    {"inactivity_hours": round(inactivity.total_seconds() / 3600, 2)},
                )
            )
            actions.append("Verify recent account activity")

    time_to_expiry = session.expires_at - now
    minutes_to_expiry = round(time_to_expiry.total_seconds() / 60, 2)
    if time_to_expiry < EXPIRY_HIGH_THRESHOLD:
        events.append(
            SecurityEvent(
                EVENT_SESSION_EXPIRED,
                SEVERITY_HIGH,
                "Session will expire soon",
                now,
                {"minutes_to_expiry": minutes_to_expiry},
            )
        )
        actions.append("Session refresh required")
    elif time_to_expiry < EXPIRY_MEDIUM_THRESHOLD:
        events.append(
            SecurityEvent(
                EVENT_SESSION_EXPIRED,
                SEVERITY_MEDIUM,
                "Session approaching expiry",
                now,
                {"minutes_to_expiry": minutes_to_expiry},
            )
        )
        actions.append("Consider refreshing session soon")

    if user_agent and len(user_agent) > MAX_USER_AGENT_LENGTH:
        events.append(
            SecurityEvent(
                EVENT_SUSPICIOUS_ACTIVITY,
                SEVERITY_LOW,
                "Unusual user agent detected",
                now,
                {"user_agent_length": len(user_agent)},
            )
        )

    if ip_address and ip_address != "unknown":
        if not IPV4_RE.match(ip_address) and not IPV6_RE.match(ip_address):
            events.append(
                SecurityEvent(
                    EVENT_SUSPICIOUS_ACTIVITY,
                    SEVERITY_MEDIUM,
                    "Invalid IP address format detected",
                    now,
                    {"ip_address": ip_address},
                )
            )

    is_secure = not any(
        event.severity in (SEVERITY_HIGH, SEVERITY_CRITICAL) for event in events
    )
    return SessionSecurityCheck(
        is_secure=is_secure, events=events, recommended_actions=actions
    )


def create_security_report(user_id: Any, check: SessionSecurityCheck) -> str:
    """Summarize a check on one line for the logs."""
    timestamp = timezone.now().isoformat()
    events = "; ".join(
        f"{event.severity.upper()}: {event.message}" for event in check.events
    )
    actions = ", ".join(check.recommended_actions)
    status = "SECURE" if check.is_secure else "INSECURE"
    return (
        f"[{timestamp}] User {user_id} - Security Status: {status}. "
        f"Events: {events or 'None'}. Actions: {actions or 'None'}"
    )


def detect_suspicious_activity(
    attempts: Iterable[Any], now: datetime | None = None
) -> list[SecurityEvent]:
    """
    Look for brute force and bursts in recent attempts.

    Args:
        attempts: Objects with `created_at` and `success` (LoginAttempt rows)

    Returns:
        High-severity event for 5+ failures in 15 minutes, medium-severity
        event for 20+ successes in 5 minutes
    """
    now = now or timezone.now()
    attempts = list(attempts)
    events: list[SecurityEvent] = []

    failures = [
        a for a in attempts if not a.success and now - a.created_at < FAILURE_WINDOW
    ]
    if len(failures) >= FAILURE_THRESHOLD:
        events.append(
            SecurityEvent(
                EVENT_SUSPICIOUS_ACTIVITY,
                SEVERITY_HIGH,
                "Multiple failed attempts detected",
                now,
                {"failure_count": len(failures)},
            )
        )

    successes = [a for a in attempts if a.success and now - a.created_at < BURST_WINDOW]
    if len(successes) >= BURST_THRESHOLD:
        events.append(
            SecurityEvent(
                EVENT_SUSPICIOUS_ACTIVITY,
                SEVERITY_MEDIUM,
                "Unusually high activity detected",
                now,
                {"action_count": len(successes)},
            )
        )

    return events
