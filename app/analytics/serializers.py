"""
Serializers for analytics API.

Query parameter serializers:
    AnalyticsFilterSerializer: from, to, tz, product, gateway, country
    ProductsTopFilterSerializer: Filters plus limit (1-50, default 10)
    RecentPaymentsFilterSerializer: limit (1-200, default 50) with optional
        product, gateway and country
    ExportFilterSerializer: report name

Response serializers describe the payloads for the OpenAPI schema.

Design Decisions:
    - `from` and `to` are Python keywords, so those fields are added in
      get_fields()
    - Money is rendered as two-decimal strings; percentages of a whole
      (sales share) are numbers
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from analytics.services import REPORTS, ReportFilters
from analytics.utils import DEFAULT_MAX_RANGE_DAYS, validate_date_range

SUPPORTED_TIMEZONES = [
    "America/New_York",
    "America/Chicago",
    "America/Los_Angeles",
    "America/Sao_Paulo",
    "America/Argentina/Buenos_Aires",
    "Europe/London",
    "Europe/Paris",
    "Europe/Berlin",
    "Asia/Tokyo",
    "Asia/Shanghai",
    "Asia/Dubai",
    "Australia/Sydney",
    "UTC",
]

CODE_PATTERN = r"^[a-zA-Z0-9_-]+$"
MAX_HISTORY_YEARS = 2


def _years_ago(moment, years):
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return moment.replace(year=moment.year - years, day=28)


class DimensionFilterSerializer(serializers.Serializer):
    """Optional product, gateway and country filters."""

    product = serializers.RegexField(
        CODE_PATTERN,
        max_length=100,
        required=False,
        error_messages={
            "invalid": "Invalid product code format",
            "max_length": "Product code too long",
        },
    )
    gateway = serializers.RegexField(
        CODE_PATTERN,
        max_length=50,
        required=False,
        error_messages={
            "invalid": "Invalid gateway format",
            "max_length": "Gateway name too long",
        },
    )
    country = serializers.RegexField(
        r"^[A-Z]{2}$",
        required=False,
        error_messages={"invalid": "Invalid country code format"},
    )


class AnalyticsFilterSerializer(DimensionFilterSerializer):
    """
    Reporting window and dimension filters.

    Rules:
        - from: within the last 2 years and not in the future
        - to: at most 1 day in the future
        - from < to, at most 370 days apart
        - tz: one of SUPPORTED_TIMEZONES (default America/Sao_Paulo)
    """

    tz = serializers.ChoiceField(
        choices=SUPPORTED_TIMEZONES,
        required=False,
        error_messages={"invalid_choice": "Unsupported timezone"},
    )

    def get_fields(self):
        fields = super().get_fields()
        fields["from"] = serializers.DateTimeField()
        fields["to"] = serializers.DateTimeField()
        return fields

    def validate_from(self, value):
        now = timezone.now()
        if value > now or value < _years_ago(now, MAX_HISTORY_YEARS):
            raise serializers.ValidationError(
                "Date must be within the last 2 years and not in the future"
            )
        return value

    def validate_to(self, value):
        if value > timezone.now() + timedelta(days=1):
            raise serializers.ValidationError(
                "End date cannot be more than 1 day in the future"
            )
        return value

    def validate(self, attrs):
        check = validate_date_range(attrs["from"], attrs["to"], DEFAULT_MAX_RANGE_DAYS)
        if not check.valid:
            raise serializers.ValidationError(
                f"Date range cannot exceed {DEFAULT_MAX_RANGE_DAYS} days "
                "and from must be before to"
            )
        attrs.setdefault("tz", settings.ANALYTICS_DEFAULT_TIMEZONE)
        return attrs

    @property
    def filters(self) -> ReportFilters:
        data = self.validated_data
        return ReportFilters(
            date_from=data["from"],
            date_to=data["to"],
            tz=data["tz"],
            product=data.get("product"),
            gateway=data.get("gateway"),
            country=data.get("country"),
        )


class ProductsTopFilterSerializer(AnalyticsFilterSerializer):
    limit = serializers.IntegerField(min_value=1, max_value=50, default=10)


class RecentPaymentsFilterSerializer(DimensionFilterSerializer):
    limit = serializers.IntegerField(min_value=1, max_value=200, default=50)

    @property
    def filters(self) -> ReportFilters:
        data = self.validated_data
        return ReportFilters(
            product=data.get("product"),
            gateway=data.get("gateway"),
            country=data.get("country"),
        )


class ExportFilterSerializer(serializers.Serializer):
    report = serializers.ChoiceField(choices=sorted(REPORTS))


# =============================================================================
# Response serializers (schema only)
# =============================================================================


class CurrencyBreakdownSerializer(serializers.Serializer):
    BRL = serializers.CharField()
    USD = serializers.CharField()
    EUR = serializers.CharField()


class KpisSerializer(serializers.Serializer):
    pedidos = serializers.IntegerField(help_text="Distinct completed orders")
    pagamentos = serializers.IntegerField(help_text="Order items")
    receita_bruta_brl = serializers.CharField()
    impostos_brl = serializers.CharField()
    receita_liquida_brl = serializers.CharField()
    ticket_medio_brl = serializers.CharField()
    refunds_brl = serializers.CharField()
    refund_rate = serializers.CharField(help_text="Percentage, two decimals")
    cb_losses_brl = serializers.CharField()
    cb_rate = serializers.CharField(help_text="Percentage, two decimals")
    assinaturas_ativas = serializers.IntegerField()
    mrr_realizado_brl = serializers.CharField()
    receita_por_moeda = CurrencyBreakdownSerializer()
    impostos_por_moeda = CurrencyBreakdownSerializer()


class RevenuePointSerializer(serializers.Serializer):
    day = serializers.DateField()
    receita_brl = serializers.CharField()


class OrdersPointSerializer(serializers.Serializer):
    day = serializers.DateField()
    pedidos = serializers.IntegerField()


class TopProductSerializer(serializers.Serializer):
    product_code = serializers.CharField()
    pedidos = serializers.IntegerField()
    receita_brl = serializers.CharField()
    ticket_medio_brl = serializers.CharField()
    refund_rate = serializers.CharField()


class SubscriptionsSummarySerializer(serializers.Serializer):
    assinaturas_ativas = serializers.IntegerField()
    novas_assinaturas = serializers.IntegerField()
    churn_assinaturas = serializers.IntegerField()
    mrr_realizado_brl = serializers.CharField()


class DisputesSummarySerializer(serializers.Serializer):
    cb_losses_brl = serializers.CharField()
    total_disputas = serializers.IntegerField()
    abertas = serializers.IntegerField()
    resolvidas = serializers.IntegerField()
    perdidas = serializers.IntegerField()
    ganhas = serializers.IntegerField()


class RecentPaymentSerializer(serializers.Serializer):
    payment_id = serializers.CharField()
    paid_at = serializers.DateTimeField()
    order_id = serializers.CharField(allow_null=True)
    product_code = serializers.CharField(allow_null=True)
    amount_brl = serializers.CharField()
    gateway = serializers.CharField(allow_null=True)
    payment_method = serializers.CharField(allow_null=True)
    country = serializers.CharField(allow_null=True)


class SalesByProductSerializer(serializers.Serializer):
    product_code = serializers.CharField()
    quantity = serializers.IntegerField()
    percentage = serializers.FloatField()


class RevenueByProductSerializer(serializers.Serializer):
    product_code = serializers.CharField()
    revenue_brl = serializers.CharField()
    percentage = serializers.FloatField()


class SalesByDayOfWeekSerializer(serializers.Serializer):
    day_of_week = serializers.CharField()
    sales = serializers.IntegerField()
    percentage = serializers.FloatField()


class SalesByHourSerializer(serializers.Serializer):
    hour = serializers.IntegerField()
    sales = serializers.IntegerField()
    percentage = serializers.FloatField()


class ExchangeRatesSerializer(serializers.Serializer):
    usd_to_brl = serializers.FloatField()
    eur_to_brl = serializers.FloatField()
    last_updated = serializers.DateTimeField()
