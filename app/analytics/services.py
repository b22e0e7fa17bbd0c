"""
Analytics service layer.

Sales reports for one workspace. Every report counts COMPLETED orders only
and honours the optional product, gateway and country filters.

Reports:
    kpis: Headline totals for the dashboard cards
    revenue_timeseries / orders_timeseries: Per local day in the caller's tz
    products_top: Best selling products by revenue
    subscriptions_summary: Active, new and churned subscriptions plus MRR
    disputes_summary: Chargebacks opened in the window
    payments_recent: Latest successful payments
    sales_by_product / revenue_by_product: Share per product
    sales_by_day_of_week / sales_by_hour: Distribution in local time
    exchange_rates: Configured BRL conversion rates
    export_csv: Any list report as CSV

Design Principles:
    - Rows are filtered in the database and aggregated in Python with
      Decimal, so results do not depend on the database's date functions
    - Day and hour buckets use the requested IANA timezone
    - Amounts leave the service as two-decimal strings

Usage:
    from analytics.services import AnalyticsService, ReportFilters

    filters = ReportFilters(date_from=start, date_to=end, tz="UTC")
    result = AnalyticsService.kpis(workspace, filters)
    if result:
        cards = result.data
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from django.conf import settings
from django.db.models import Exists, OuterRef, Q
from django.db.models.functions import Lower
from django.utils import timezone

from core.services import BaseService, ServiceResult

from analytics.models import (
    Dispute,
    DisputeOutcome,
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PricingType,
    Refund,
    Subscription,
)
from analytics.utils import (
    GENERIC_SUCCEEDED,
    PAYMENT_STATUS_MAP,
    ZERO,
    calculate_aov,
    calculate_net_revenue,
    calculate_rate,
    convert_to_brl,
    exchange_rates,
    export_to_csv,
    format_money,
    to_decimal,
    validate_date_range,
)

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from workspaces.models import Workspace

logger = logging.getLogger(__name__)

CURRENCIES = ("BRL", "USD", "EUR")
ACTIVE_SUBSCRIPTION_STATUSES = ("active", "trialing")

# Sunday first
WEEKDAY_LABELS = ("Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sab")


@dataclass(frozen=True)
class ReportFilters:
    """
    Window and dimension filters shared by all reports.

    date_from/date_to are aware datetimes (inclusive). Reports that do not
    take a window (payments_recent) leave them as None.
    """

    date_from: datetime | None = None
    date_to: datetime | None = None
    tz: str = "UTC"
    product: str | None = None
    gateway: str | None = None
    country: str | None = None

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.tz)


def _percentages(values: list[Decimal]) -> list[float]:
    total = sum(values, ZERO)
    return [float(format_money(calculate_rate(v, total) * 100)) for v in values]


def _local(moment: datetime, zone: ZoneInfo) -> datetime:
    return timezone.localtime(moment, zone)


def successful_payments(queryset: QuerySet[Payment]) -> QuerySet[Payment]:
    """
    Restrict payments to those whose status normalizes to "succeeded".

    Mirrors analytics.utils.normalize_payment_status as a database filter,
    case-insensitively on status and gateway.
    """
    queryset = queryset.annotate(
        status_normalized=Lower("status"),
        gateway_normalized=Lower("gateway"),
    )
    condition = Q(status_normalized__in=GENERIC_SUCCEEDED) & ~Q(
        gateway_normalized__in=list(PAYMENT_STATUS_MAP)
    )
    for gateway, statuses in PAYMENT_STATUS_MAP.items():
        succeeded = [
            status for status, normalized in statuses.items() if normalized == "succeeded"
        ]
        condition |= Q(gateway_normalized=gateway, status_normalized__in=succeeded)
    return queryset.filter(condition)


class AnalyticsService(BaseService):
    """
    Service for sales analytics.

    All methods are class methods taking the workspace first, so reports
    can never read another workspace's data.
    """

    # -------------------------------------------------------------------------
    # Query building
    # -------------------------------------------------------------------------

    @classmethod
    def _check_window(cls, filters: ReportFilters) -> ServiceResult | None:
        check = validate_date_range(filters.date_from, filters.date_to)
        if not check.valid:
            return ServiceResult.failure(check.error, error_code="INVALID_DATE_RANGE")
        return None

    @classmethod
    def _items(cls, workspace: Workspace, filters: ReportFilters) -> QuerySet[OrderItem]:
        """Items of completed orders placed in the window."""
        queryset = OrderItem.objects.select_related("order", "customer").filter(
            order__workspace=workspace,
            order__status=OrderStatus.COMPLETED,
            order__created_at__gte=filters.date_from,
            order__created_at__lte=filters.date_to,
        )
        if filters.gateway:
            queryset = queryset.filter(order__gateway=filters.gateway)
        if filters.product:
            queryset = queryset.filter(product_code=filters.product)
        if filters.country:
            queryset = queryset.filter(customer__country=filters.country)
        return queryset

    @classmethod
    def _priced_items(cls, workspace: Workspace, filters: ReportFilters) -> QuerySet[OrderItem]:
        return cls._items(workspace, filters).filter(price__isnull=False)

    @classmethod
    def _orders(cls, workspace: Workspace, filters: ReportFilters) -> QuerySet[Order]:
        """
        Completed orders placed in the window.

        With a product or country filter an order counts when at least one
        of its items matches.
        """
        queryset = Order.objects.filter(
            workspace=workspace,
            status=OrderStatus.COMPLETED,
            created_at__gte=filters.date_from,
            created_at__lte=filters.date_to,
        )
        if filters.gateway:
            queryset = queryset.filter(gateway=filters.gateway)
        if filters.product or filters.country:
            items = OrderItem.objects.filter(order=OuterRef("pk"))
            if filters.product:
                items = items.filter(product_code=filters.product)
            if filters.country:
                items = items.filter(customer__country=filters.country)
            queryset = queryset.filter(Exists(items))
        return queryset

    @classmethod
    def _item_dimensions(
        cls,
        queryset: QuerySet,
        filters: ReportFilters,
        prefix: str = "order_item__",
        country_lookup: str | None = None,
    ) -> QuerySet:
        """Apply product and country filters through an order item relation."""
        if filters.product:
            queryset = queryset.filter(**{f"{prefix}product_code": filters.product})
        if filters.country:
            lookup = country_lookup or f"{prefix}customer__country"
            queryset = queryset.filter(**{lookup: filters.country})
        return queryset

    @classmethod
    def _active_subscriptions(
        cls, workspace: Workspace, filters: ReportFilters
    ) -> QuerySet[Subscription]:
        """Running subscriptions: active/trialing, or never canceled and started before `to`."""
        queryset = Subscription.objects.filter(workspace=workspace).filter(
            Q(status__in=ACTIVE_SUBSCRIPTION_STATUSES)
            | Q(canceled_at__isnull=True, start_date__lt=filters.date_to)
        )
        if filters.gateway:
            queryset = queryset.filter(order_item__order__gateway=filters.gateway)
        return cls._item_dimensions(queryset, filters, country_lookup="customer__country")

    @staticmethod
    def _item_brl(item: OrderItem) -> Decimal:
        return convert_to_brl(item.price, item.order.currency)

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    @classmethod
    def kpis(cls, workspace: Workspace, filters: ReportFilters) -> ServiceResult[dict]:
        """
        Headline KPIs for the window.

        Returns:
            ServiceResult with pedidos, pagamentos, gross/tax/net revenue,
            average ticket, refunds, chargebacks, active subscriptions,
            realized MRR and per-currency revenue and tax
        """
        failure = cls._check_window(filters)
        if failure is not None:
            return failure

        tax_rate = to_decimal(settings.ANALYTICS_TAX_RATE)
        items = list(
            cls._items(workspace, filters).annotate(
                has_subscription=Exists(Subscription.objects.filter(order_item=OuterRef("pk")))
            )
        )

        by_currency = {currency: ZERO for currency in CURRENCIES}
        gross = ZERO
        mrr = ZERO
        for item in items:
            if item.price is None:
                continue
            currency = item.order.currency
            if currency in by_currency:
                by_currency[currency] += item.price
            amount = cls._item_brl(item)
            gross += amount
            if item.pricing_type == PricingType.SUBSCRIPTION and item.has_subscription:
                mrr += amount

        taxes = gross * tax_rate

        refunds = Refund.objects.filter(
            workspace=workspace,
            created_at__gte=filters.date_from,
            created_at__lte=filters.date_to,
        )
        if filters.gateway:
            refunds = refunds.filter(payment__gateway=filters.gateway)
        refunds = cls._item_dimensions(refunds, filters)
        refunds_total = sum((to_decimal(r.amount_brl) for r in refunds), ZERO)

        disputes = Dispute.objects.filter(
            workspace=workspace,
            resolved_at__gte=filters.date_from,
            resolved_at__lte=filters.date_to,
        )
        if filters.gateway:
            disputes = disputes.filter(gateway=filters.gateway)
        disputes = cls._item_dimensions(disputes, filters, country_lookup="customer__country")
        cb_losses = sum((to_decimal(d.net_loss_brl) for d in disputes), ZERO)

        orders = cls._orders(workspace, filters).count()
        net = calculate_net_revenue(gross, taxes, refunds_total, cb_losses)

        data = {
            "pedidos": orders,
            "pagamentos": len(items),
            "receita_bruta_brl": format_money(gross),
            "impostos_brl": format_money(taxes),
            "receita_liquida_brl": format_money(net),
            "ticket_medio_brl": format_money(calculate_aov(gross, orders)),
            "refunds_brl": format_money(refunds_total),
            "refund_rate": format_money(calculate_rate(refunds_total, gross) * 100),
            "cb_losses_brl": format_money(cb_losses),
            "cb_rate": format_money(calculate_rate(cb_losses, gross) * 100),
            "assinaturas_ativas": cls._active_subscriptions(workspace, filters).count(),
            "mrr_realizado_brl": format_money(mrr),
            "receita_por_moeda": {c: format_money(v) for c, v in by_currency.items()},
            "impostos_por_moeda": {
                c: format_money(v * tax_rate) for c, v in by_currency.items()
            },
        }
        cls.get_logger().debug(
            f"Computed KPIs for workspace {workspace.id}: {orders} orders"
        )
        return ServiceResult.success(data)

    @classmethod
    def revenue_timeseries(
        cls, workspace: Workspace, filters: ReportFilters
    ) -> ServiceResult[list[dict]]:
        """Gross revenue in BRL per local day, days with sales only, ascending."""
        failure = cls._check_window(filters)
        if failure is not None:
            return failure

        zone = filters.zone
        per_day: dict = defaultdict(lambda: ZERO)
        for item in cls._priced_items(workspace, filters):
            per_day[_local(item.order.created_at, zone).date()] += cls._item_brl(item)

        return ServiceResult.success(
            [
                {"day": day.isoformat(), "receita_brl": format_money(amount)}
                for day, amount in sorted(per_day.items())
            ]
        )

    @classmethod
    def orders_timeseries(
        cls, workspace: Workspace, filters: ReportFilters
    ) -> ServiceResult[list[dict]]:
        """Completed orders per local day, days with orders only, ascending."""
        failure = cls._check_window(filters)
        if failure is not None:
            return failure

        zone = filters.zone
        per_day: dict = defaultdict(int)
        for created_at in cls._orders(workspace, filters).values_list("created_at", flat=True):
            per_day[_local(created_at, zone).date()] += 1

        return ServiceResult.success(
            [{"day": day.isoformat(), "pedidos": count} for day, count in sorted(per_day.items())]
        )

    @classmethod
    def products_top(
        cls, workspace: Workspace, filters: ReportFilters, limit: int = 10
    ) -> ServiceResult[list[dict]]:
        """
        Products ranked by revenue.

        Refund rate uses refunds created in the window against the
        product's items.
        """
        failure = cls._check_window(filters)
        if failure is not None:
            return failure

        orders: dict[str, set] = defaultdict(set)
        revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)
        item_products: dict[int, str] = {}
        for item in cls._priced_items(workspace, filters):
            orders[item.product_code].add(item.order_id)
            revenue[item.product_code] += cls._item_brl(item)
            item_products[item.id] = item.product_code

        refunds: dict[str, Decimal] = defaultdict(lambda: ZERO)
        refund_rows = Refund.objects.filter(
            workspace=workspace,
            order_item_id__in=list(item_products),
            created_at__gte=filters.date_from,
            created_at__lte=filters.date_to,
        ).values_list("order_item_id", "amount_brl")
        for item_id, amount in refund_rows:
            refunds[item_products[item_id]] += to_decimal(amount)

        ranked = sorted(revenue.items(), key=lambda pair: pair[1], reverse=True)[:limit]
        rows = []
        for product_code, amount in ranked:
            count = len(orders[product_code])
            rows.append(
                {
                    "product_code": product_code,
                    "pedidos": count,
                    "receita_brl": format_money(amount),
                    "ticket_medio_brl": format_money(calculate_aov(amount, count)),
                    "refund_rate": format_money(
                        calculate_rate(refunds[product_code], amount) * 100
                    ),
                }
            )
        return ServiceResult.success(rows)

    @classmethod
    def subscriptions_summary(
        cls, workspace: Workspace, filters: ReportFilters
    ) -> ServiceResult[dict]:
        """
        Subscription counts and realized MRR.

        MRR is the BRL total of successful payments made in the window on
        order items that started a subscription.
        """
        failure = cls._check_window(filters)
        if failure is not None:
            return failure

        in_window = Subscription.objects.filter(workspace=workspace)
        if filters.gateway:
            in_window = in_window.filter(order_item__order__gateway=filters.gateway)
        in_window = cls._item_dimensions(in_window, filters, country_lookup="customer__country")

        payments = Payment.objects.filter(
            workspace=workspace,
            created_at__gte=filters.date_from,
            created_at__lte=filters.date_to,
        ).filter(Exists(Subscription.objects.filter(order_item=OuterRef("order_item"))))
        if filters.gateway:
            payments = payments.filter(gateway=filters.gateway)
        payments = cls._item_dimensions(successful_payments(payments), filters)
        mrr = sum((to_decimal(p.amount_brl) for p in payments), ZERO)

        return ServiceResult.success(
            {
                "assinaturas_ativas": cls._active_subscriptions(workspace, filters).count(),
                "novas_assinaturas": in_window.filter(
                    start_date__gte=filters.date_from, start_date__lte=filters.date_to
                ).count(),
                "churn_assinaturas": in_window.filter(
                    canceled_at__gte=filters.date_from, canceled_at__lte=filters.date_to
                ).count(),
                "mrr_realizado_brl": format_money(mrr),
            }
        )

    @classmethod
    def disputes_summary(
        cls, workspace: Workspace, filters: ReportFilters
    ) -> ServiceResult[dict]:
        """Disputes opened in the window, by state and outcome."""
        failure = cls._check_window(filters)
        if failure is not None:
            return failure

        disputes = Dispute.objects.filter(
            workspace=workspace,
            opened_at__gte=filters.date_from,
            opened_at__lte=filters.date_to,
        )
        if filters.gateway:
            disputes = disputes.filter(gateway=filters.gateway)
        disputes = list(
            cls._item_dimensions(disputes, filters, country_lookup="customer__country")
        )

        return ServiceResult.success(
            {
                "cb_losses_brl": format_money(
                    sum((to_decimal(d.net_loss_brl) for d in disputes), ZERO)
                ),
                "total_disputas": len(disputes),
                "abertas": sum(1 for d in disputes if d.is_open),
                "resolvidas": sum(1 for d in disputes if not d.is_open),
                "perdidas": sum(1 for d in disputes if d.outcome == DisputeOutcome.LOST),
                "ganhas": sum(1 for d in disputes if d.outcome == DisputeOutcome.WON),
            }
        )

    @classmethod
    def payments_recent(
        cls, workspace: Workspace, filters: ReportFilters, limit: int = 50
    ) -> ServiceResult[list[dict]]:
        """Latest successful payments, newest first."""
        payments = Payment.objects.select_related(
            "order_item", "order_item__customer"
        ).filter(workspace=workspace)
        if filters.gateway:
            payments = payments.filter(gateway=filters.gateway)
        payments = cls._item_dimensions(successful_payments(payments), filters)

        rows = []
        for payment in payments.order_by("-created_at", "-id")[:limit]:
            item = payment.order_item
            customer = item.customer if item else None
            rows.append(
                {
                    "payment_id": str(payment.id),
                    "paid_at": payment.created_at,
                    "order_id": str(item.order_id) if item else None,
                    "product_code": item.product_code if item else None,
                    "amount_brl": format_money(payment.amount_brl),
                    "gateway": payment.gateway or None,
                    "payment_method": payment.payment_method or None,
                    "country": (customer.country or None) if customer else None,
                }
            )
        return ServiceResult.success(rows)

    @classmethod
    def sales_by_product(
        cls, workspace: Workspace, filters: ReportFilters
    ) -> ServiceResult[list[dict]]:
        """Distinct orders per product with their share, most sold first."""
        failure = cls._check_window(filters)
        if failure is not None:
            return failure

        orders: dict[str, set] = defaultdict(set)
        for product_code, order_id in cls._items(workspace, filters).values_list(
            "product_code", "order_id"
        ):
            orders[product_code].add(order_id)

        ranked = sorted(
            ((code, len(ids)) for code, ids in orders.items()),
            key=lambda pair: pair[1],
            reverse=True,
        )
        shares = _percentages([Decimal(count) for _, count in ranked])
        return ServiceResult.success(
            [
                {"product_code": code, "quantity": count, "percentage": share}
                for (code, count), share in zip(ranked, shares)
            ]
        )

    @classmethod
    def revenue_by_product(
        cls, workspace: Workspace, filters: ReportFilters
    ) -> ServiceResult[list[dict]]:
        """BRL revenue per product with its share, highest first."""
        failure = cls._check_window(filters)
        if failure is not None:
            return failure

        revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for item in cls._priced_items(workspace, filters):
            revenue[item.product_code] += cls._item_brl(item)

        ranked = sorted(revenue.items(), key=lambda pair: pair[1], reverse=True)
        shares = _percentages([amount for _, amount in ranked])
        return ServiceResult.success(
            [
                {
                    "product_code": code,
                    "revenue_brl": format_money(amount),
                    "percentage": share,
                }
                for (code, amount), share in zip(ranked, shares)
            ]
        )

    @classmethod
    def sales_by_day_of_week(
        cls, workspace: Workspace, filters: ReportFilters
    ) -> ServiceResult[list[dict]]:
        """Orders per local weekday, Sunday first, weekdays with sales only."""
        failure = cls._check_window(filters)
        if failure is not None:
            return failure

        zone = filters.zone
        counts: dict[int, int] = defaultdict(int)
        for created_at in cls._orders(workspace, filters).values_list("created_at", flat=True):
            # Python weekdays start on Monday
            counts[(_local(created_at, zone).weekday() + 1) % 7] += 1

        days = sorted(counts)
        shares = _percentages([Decimal(counts[day]) for day in days])
        return ServiceResult.success(
            [
                {"day_of_week": WEEKDAY_LABELS[day], "sales": counts[day], "percentage": share}
                for day, share in zip(days, shares)
            ]
        )

    @classmethod
    def sales_by_hour(
        cls, workspace: Workspace, filters: ReportFilters
    ) -> ServiceResult[list[dict]]:
        """Orders per local hour (0-23), hours with sales only."""
        failure = cls._check_window(filters)
        if failure is not None:
            return failure

        zone = filters.zone
        counts: dict[int, int] = defaultdict(int)
        for created_at in cls._orders(workspace, filters).values_list("created_at", flat=True):
            counts[_local(created_at, zone).hour] += 1

        hours = sorted(counts)
        shares = _percentages([Decimal(counts[hour]) for hour in hours])
        return ServiceResult.success(
            [
                {"hour": hour, "sales": counts[hour], "percentage": share}
                for hour, share in zip(hours, shares)
            ]
        )

    @classmethod
    def exchange_rates(cls, workspace: Workspace) -> ServiceResult[dict]:
        rates = exchange_rates()
        cls.get_logger().debug(f"Exchange rates requested for workspace {workspace.id}")
        return ServiceResult.success(
            {
                "usd_to_brl": float(rates["USD"]),
                "eur_to_brl": float(rates["EUR"]),
                "last_updated": timezone.now(),
            }
        )

    @classmethod
    def export_csv(
        cls,
        workspace: Workspace,
        report: str,
        filters: ReportFilters,
        limit: int | None = None,
    ) -> ServiceResult[str]:
        """
        Render a list report as CSV.

        Args:
            report: Key of REPORTS
            limit: Row limit for products_top and payments_recent

        Returns:
            ServiceResult with the CSV text ("" when the report is empty)
        """
        if report not in REPORTS:
            return ServiceResult.failure(
                f"Unknown report: {report}", error_code="UNKNOWN_REPORT"
            )

        method = getattr(cls, report)
        if limit is not None:
            result = method(workspace, filters, limit=limit)
        else:
            result = method(workspace, filters)
        if not result:
            return result

        logger.info(
            f"Exported {report} ({len(result.data)} rows) for workspace {workspace.id}"
        )
        return ServiceResult.success(export_to_csv(result.data))


# Exportable list reports, named after their AnalyticsService methods
REPORTS = (
    "revenue_timeseries",
    "orders_timeseries",
    "products_top",
    "payments_recent",
    "sales_by_product",
    "revenue_by_product",
    "sales_by_day_of_week",
    "sales_by_hour",
)

# Reports that take a row limit
LIMITED_REPORTS = {"products_top", "payments_recent"}
