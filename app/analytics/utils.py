"""
Pure helpers for sales analytics.

All money math uses Decimal. Rates are fractions (0.05 means 5%) until
they are rendered.

Functions:
    convert_to_brl: Convert an amount in BRL, USD or EUR to BRL
    calculate_net_revenue: Gross minus tax, refunds and chargebacks (>= 0)
    calculate_aov: Average order value
    calculate_rate: Safe division for rates
    format_money: Two-decimal string used in API payloads
    format_percentage / format_brl / format_large_number: Display strings
    normalize_payment_status / is_successful_payment: Gateway status mapping
    validate_date_range / get_date_range: Reporting windows
    export_to_csv: Rows to CSV text

Usage:
    from analytics.utils import calculate_rate, convert_to_brl, format_money

    gross = convert_to_brl(Decimal("10.00"), "USD")
    refund_rate = format_money(calculate_rate(refunds, gross) * 100)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")
DEFAULT_MAX_RANGE_DAYS = 370

PAYMENT_STATUS_MAP: dict[str, dict[str, str]] = {
    "stripe": {
        "succeeded": "succeeded",
        "paid": "succeeded",
        "captured": "succeeded",
        "requires_payment_method": "failed",
        "requires_confirmation": "pending",
        "requires_action": "pending",
        "processing": "pending",
        "requires_capture": "pending",
        "canceled": "failed",
    },
    "paypal": {
        "completed": "succeeded",
        "approved": "succeeded",
        "captured": "succeeded",
        "pending": "pending",
        "declined": "failed",
        "cancelled": "failed",
        "expired": "failed",
    },
    "mercadopago": {
        "approved": "succeeded",
        "authorized": "succeeded",
        "in_process": "pending",
        "pending": "pending",
        "rejected": "failed",
        "cancelled": "failed",
        "refunded": "refunded",
    },
}

# Fallback lists for gateways without a map
GENERIC_SUCCEEDED = ("succeeded", "paid", "captured", "completed", "approved", "success")
GENERIC_PENDING = ("pending", "processing", "requires_action", "in_process")
GENERIC_FAILED = ("failed", "declined", "rejected", "cancelled", "canceled", "expired")
GENERIC_REFUNDED = ("refunded",)


def to_decimal(value: Any) -> Decimal:
    """Coerce Decimal, int, float, str or None to Decimal (0 when unparsable)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO


def exchange_rates() -> dict[str, Decimal]:
    """Configured conversion rates into BRL."""
    return {
        "BRL": Decimal("1"),
        "USD": to_decimal(settings.EXCHANGE_RATE_USD_TO_BRL),
        "EUR": to_decimal(settings.EXCHANGE_RATE_EUR_TO_BRL),
    }


def convert_to_brl(amount: Any, currency: str) -> Decimal:
    """
    Convert an amount to BRL.

    Unknown currencies are treated as BRL.
    """
    rate = exchange_rates().get((currency or "BRL").upper(), Decimal("1"))
    return to_decimal(amount) * rate


def calculate_net_revenue(
    gross: Any,
    tax: Any = ZERO,
    refunds: Any = ZERO,
    chargebacks: Any = ZERO,
) -> Decimal:
    net = to_decimal(gross) - to_decimal(tax) - to_decimal(refunds) - to_decimal(chargebacks)
    return max(ZERO, net)


def calculate_aov(revenue: Any, orders: int) -> Decimal:
    """Average order value, 0 when there are no orders."""
    if orders <= 0:
        return ZERO
    return to_decimal(revenue) / Decimal(orders)


def calculate_rate(numerator: Any, denominator: Any) -> Decimal:
    """numerator / denominator as a fraction, 0 when the denominator is not positive."""
    den = to_decimal(denominator)
    if den <= 0:
        return ZERO
    return to_decimal(numerator) / den


def format_money(value: Any) -> str:
    """Two-decimal string, e.g. Decimal("12.345") -> "12.35"."""
    return str(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def format_percentage(rate: Any, decimals: int = 2) -> str:
    """Fraction to percentage text: 0.0525 -> "5.25%"."""
    value = to_decimal(rate) * 100
    return f"{value:.{decimals}f}%"


def format_brl(value: Any, show_symbol: bool = True, decimals: int = 2) -> str:
    """
    Format a value the way pt-BR renders BRL.

    Example:
        format_brl(Decimal("1234.5")) -> "R$ 1.234,50"
    """
    amount = to_decimal(value)
    text = f"{abs(amount):,.{decimals}f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if amount < 0 else ""
    if show_symbol:
        return f"{sign}R$ {text}"
    return f"{sign}{text}"


def format_large_number(value: Any, decimals: int = 1) -> str:
    """Compact display: 1500 -> "1.5K", 2500000 -> "2.5M"."""
    num = to_decimal(value)
    for threshold, suffix in (
        (Decimal("1000000000"), "B"),
        (Decimal("1000000"), "M"),
        (Decimal("1000"), "K"),
    ):
        if num >= threshold:
            return f"{num / threshold:.{decimals}f}{suffix}"
    return f"{num:.0f}"


def normalize_payment_status(status: str, gateway: str) -> str:
    """
    Map a gateway status to succeeded, pending, failed, refunded or unknown.

    Gateways with a known map only accept their own vocabulary. Other
    gateways fall back to the generic status lists.
    """
    normalized = (status or "").lower()
    gateway_map = PAYMENT_STATUS_MAP.get((gateway or "").lower())
    if gateway_map is not None:
        return gateway_map.get(normalized, "unknown")

    if normalized in GENERIC_SUCCEEDED:
        return "succeeded"
    if normalized in GENERIC_PENDING:
        return "pending"
    if normalized in GENERIC_FAILED:
        return "failed"
    if normalized in GENERIC_REFUNDED:
        return "refunded"
    return "unknown"


def is_successful_payment(status: str, gateway: str) -> bool:
    return normalize_payment_status(status, gateway) == "succeeded"


@dataclass(frozen=True)
class DateRangeCheck:
    valid: bool
    error: str | None = None


def validate_date_range(
    date_from: datetime,
    date_to: datetime,
    max_days: int = DEFAULT_MAX_RANGE_DAYS,
) -> DateRangeCheck:
    """
    Check that a reporting window is ordered and not too long.

    Partial days count as a whole day.
    """
    if date_from >= date_to:
        return DateRangeCheck(False, "Start date must be before end date")

    days = math.ceil((date_to - date_from).total_seconds() / 86400)
    if days > max_days:
        return DateRangeCheck(False, f"Date range cannot exceed {max_days} days")
    return DateRangeCheck(True)


PERIOD_DAYS = {"today": 1, "7d": 7, "30d": 30, "90d": 90}


def get_date_range(
    period: str,
    tz: str | None = None,
    custom_from: datetime | None = None,
    custom_to: datetime | None = None,
) -> tuple[datetime, datetime]:
    """
    Reporting window for a named period, in the given timezone.

    Periods end at the last microsecond of today. "mtd" starts on the first
    of the month, "custom" uses the given bounds (defaulting to today), and
    unknown periods behave like "30d".
    """
    zone = ZoneInfo(tz or settings.ANALYTICS_DEFAULT_TIMEZONE)
    today = timezone.now().astimezone(zone).date()
    start_of_today = datetime.combine(today, time.min, tzinfo=zone)
    end_of_today = datetime.combine(today, time.max, tzinfo=zone)

    if period == "mtd":
        return start_of_today.replace(day=1), end_of_today
    if period == "custom":
        return custom_from or start_of_today, custom_to or end_of_today

    days = PERIOD_DAYS.get(period, 30)
    return start_of_today - timedelta(days=days - 1), end_of_today


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        if any(ch in value for ch in ',"\r\n'):
            return '"' + value.replace('"', '""') + '"'
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def export_to_csv(rows: Iterable[Mapping[str, Any]]) -> str:
    """
    Render rows as CSV text.

    Columns come from the first row. Strings containing a comma, quote or
    line break are quoted with doubled inner quotes. Returns "" for no rows.
    """
    rows = list(rows)
    if not rows:
        return ""

    headers = list(rows[0].keys())
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(_csv_cell(row.get(header)) for header in headers))
    return "\n".join(lines)
