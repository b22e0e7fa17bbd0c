"""
Tests for AnalyticsService.

One dataset (the `sales` fixture) is shared by every report so the numbers
can be checked by hand:

    order 1  BRL stripe  2026-03-14 12:00 SP  course-basic   100.00   BR
    order 2  USD paypal  2026-03-13 12:00 SP  ebook           20.00   US  (= 110.00 BRL)
    order 3  BRL stripe  2026-03-14 12:00 SP  course-basic    50.00   BR
                                              mentoria       200.00   BR  (subscription)

    Excluded: a pending order, an order from before the window and an
    order in another workspace.

    Gross 460.00, tax 2.5% = 11.50, refunds 10.00, chargebacks 20.00.
"""

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from analytics.models import OrderStatus, Payment, PricingType
from analytics.services import AnalyticsService, ReportFilters, successful_payments
from analytics.tests.conftest import NOW
from analytics.tests.factories import (
    DisputeFactory,
    OrderFactory,
    OrderItemFactory,
    PaymentFactory,
    RefundFactory,
    SubscriptionFactory,
)


@pytest.fixture(autouse=True)
def rates(settings):
    settings.EXCHANGE_RATE_USD_TO_BRL = 5.5
    settings.EXCHANGE_RATE_EUR_TO_BRL = 6.0
    settings.ANALYTICS_TAX_RATE = 0.025


@pytest.fixture
def sales(workspace, other_workspace):
    yesterday = NOW - timedelta(days=1)

    order1 = OrderFactory(workspace=workspace, created_at=yesterday)
    item1 = OrderItemFactory(order=order1, product_code="course-basic", price=Decimal("100.00"))

    order2 = OrderFactory(
        workspace=workspace,
        gateway="paypal",
        currency="USD",
        created_at=NOW - timedelta(days=2),
    )
    ebook = OrderItemFactory(
        order=order2, product_code="ebook", price=Decimal("20.00"), customer__country="US"
    )

    order3 = OrderFactory(workspace=workspace, created_at=yesterday)
    OrderItemFactory(order=order3, product_code="course-basic", price=Decimal("50.00"))
    plan = OrderItemFactory(
        order=order3,
        product_code="mentoria",
        price=Decimal("200.00"),
        pricing_type=PricingType.SUBSCRIPTION,
    )

    # Outside the report
    OrderItemFactory(order__workspace=workspace, order__status=OrderStatus.PENDING, price=999)
    OrderItemFactory(order__workspace=workspace, order__created_at=NOW - timedelta(days=40))
    OrderItemFactory(order__workspace=other_workspace, price=Decimal("500.00"))

    card_payment = PaymentFactory(
        workspace=workspace, order_item=item1, amount_brl=Decimal("100.00"), created_at=yesterday
    )
    plan_payment = PaymentFactory(
        workspace=workspace,
        order_item=plan,
        amount_brl=Decimal("200.00"),
        created_at=yesterday + timedelta(hours=1),
    )
    paypal_payment = PaymentFactory(
        workspace=workspace,
        order_item=ebook,
        status="COMPLETED",
        gateway="paypal",
        payment_method="paypal",
        amount_brl=Decimal("110.00"),
        created_at=NOW - timedelta(days=2),
    )
    PaymentFactory(
        workspace=workspace,
        order_item=plan,
        status="requires_payment_method",
        amount_brl=Decimal("200.00"),
        created_at=NOW,
    )
    PaymentFactory(workspace=other_workspace, status="approved", gateway="mercadopago")

    RefundFactory(
        workspace=workspace,
        order_item=item1,
        payment=card_payment,
        amount_brl=Decimal("10.00"),
        created_at=yesterday,
    )

    DisputeFactory(
        workspace=workspace,
        order_item=item1,
        customer=item1.customer,
        opened_at=NOW - timedelta(days=10),
        resolved_at=NOW - timedelta(days=3),
        outcome="lost",
        net_loss_brl=Decimal("20.00"),
    )
    DisputeFactory(workspace=workspace, opened_at=NOW - timedelta(days=2))
    DisputeFactory(
        workspace=workspace,
        opened_at=NOW - timedelta(days=60),
        resolved_at=NOW - timedelta(days=20),
        outcome="won",
    )

    SubscriptionFactory(
        workspace=workspace, order_item=plan, customer=plan.customer, start_date=yesterday
    )
    SubscriptionFactory(
        workspace=workspace,
        status="canceled",
        start_date=NOW - timedelta(days=60),
        canceled_at=NOW - timedelta(days=5),
    )

    return SimpleNamespace(
        item1=item1,
        ebook=ebook,
        plan=plan,
        card_payment=card_payment,
        plan_payment=plan_payment,
        paypal_payment=paypal_payment,
    )


def with_filters(window, **kwargs):
    return ReportFilters(
        date_from=window.date_from, date_to=window.date_to, tz=window.tz, **kwargs
    )


# =============================================================================
# KPIs
# =============================================================================


@pytest.mark.django_db
class TestKpis:
    def test_totals(self, workspace, window, sales):
        result = AnalyticsService.kpis(workspace, window.filters)

        assert result.success
        kpis = result.data
        assert kpis["pedidos"] == 3
        assert kpis["pagamentos"] == 4
        assert kpis["receita_bruta_brl"] == "460.00"
        assert kpis["impostos_brl"] == "11.50"
        assert kpis["refunds_brl"] == "10.00"
        assert kpis["cb_losses_brl"] == "20.00"
        assert kpis["receita_liquida_brl"] == "418.50"
        assert kpis["ticket_medio_brl"] == "153.33"

    def test_rates_are_percentages(self, workspace, window, sales):
        kpis = AnalyticsService.kpis(workspace, window.filters).data

        assert kpis["refund_rate"] == "2.17"
        assert kpis["cb_rate"] == "4.35"

    def test_subscription_metrics(self, workspace, window, sales):
        kpis = AnalyticsService.kpis(workspace, window.filters).data

        assert kpis["assinaturas_ativas"] == 1
        assert kpis["mrr_realizado_brl"] == "200.00"

    def test_per_currency_breakdown_is_in_original_currency(self, workspace, window, sales):
        kpis = AnalyticsService.kpis(workspace, window.filters).data

        assert kpis["receita_por_moeda"] == {"BRL": "350.00", "USD": "20.00", "EUR": "0.00"}
        assert kpis["impostos_por_moeda"] == {"BRL": "8.75", "USD": "0.50", "EUR": "0.00"}

    def test_gateway_filter(self, workspace, window, sales):
        kpis = AnalyticsService.kpis(workspace, with_filters(window, gateway="paypal")).data

        assert kpis["pedidos"] == 1
        assert kpis["receita_bruta_brl"] == "110.00"
        assert kpis["refunds_brl"] == "0.00"
        assert kpis["cb_losses_brl"] == "0.00"

    def test_product_filter(self, workspace, window, sales):
        kpis = AnalyticsService.kpis(
            workspace, with_filters(window, product="course-basic")
        ).data

        assert kpis["pedidos"] == 2
        assert kpis["receita_bruta_brl"] == "150.00"
        assert kpis["refunds_brl"] == "10.00"

    def test_country_filter(self, workspace, window, sales):
        kpis = AnalyticsService.kpis(workspace, with_filters(window, country="US")).data

        assert kpis["pedidos"] == 1
        assert kpis["receita_bruta_brl"] == "110.00"

    def test_empty_workspace_reports_zeros(self, other_workspace, window):
        kpis = AnalyticsService.kpis(other_workspace, window.filters).data

        assert kpis["pedidos"] == 0
        assert kpis["ticket_medio_brl"] == "0.00"
        assert kpis["refund_rate"] == "0.00"

    def test_net_revenue_is_floored_at_zero(self, workspace, window):
        OrderItemFactory(order__workspace=workspace, price=Decimal("10.00"))
        RefundFactory(workspace=workspace, amount_brl=Decimal("50.00"))

        kpis = AnalyticsService.kpis(workspace, window.filters).data

        assert kpis["receita_liquida_brl"] == "0.00"

    def test_rejects_inverted_window(self, workspace):
        filters = ReportFilters(date_from=NOW, date_to=NOW - timedelta(days=1))

        result = AnalyticsService.kpis(workspace, filters)

        assert not result.success
        assert result.error_code == "INVALID_DATE_RANGE"
        assert result.error == "Start date must be before end date"


@pytest.mark.parametrize(
    "report",
    [
        "kpis",
        "revenue_timeseries",
        "orders_timeseries",
        "products_top",
        "subscriptions_summary",
        "disputes_summary",
        "sales_by_product",
        "revenue_by_product",
        "sales_by_day_of_week",
        "sales_by_hour",
    ],
)
def test_reports_reject_windows_over_limit(workspace, report):
    filters = ReportFilters(date_from=NOW - timedelta(days=400), date_to=NOW)

    result = getattr(AnalyticsService, report)(workspace, filters)

    assert not result.success
    assert result.error_code == "INVALID_DATE_RANGE"
    assert result.error == "Date range cannot exceed 370 days"


# =============================================================================
# Time series
# =============================================================================


@pytest.mark.django_db
class TestTimeseries:
    def test_revenue_per_local_day(self, workspace, window, sales):
        result = AnalyticsService.revenue_timeseries(workspace, window.filters)

        assert result.data == [
            {"day": "2026-03-13", "receita_brl": "110.00"},
            {"day": "2026-03-14", "receita_brl": "350.00"},
        ]

    def test_orders_per_local_day(self, workspace, window, sales):
        result = AnalyticsService.orders_timeseries(workspace, window.filters)

        assert result.data == [
            {"day": "2026-03-13", "pedidos": 1},
            {"day": "2026-03-14", "pedidos": 2},
        ]

    def test_days_follow_requested_timezone(self, workspace, window):
        """
        Why it matters: an order at 01:00 UTC belongs to the previous day
        for a merchant in Sao Paulo but not for one in Tokyo.
        """
        OrderItemFactory(
            order__workspace=workspace,
            order__created_at=NOW.replace(day=10, hour=1),
        )

        sao_paulo = AnalyticsService.orders_timeseries(workspace, window.filters).data
        tokyo = AnalyticsService.orders_timeseries(
            workspace, ReportFilters(window.date_from, window.date_to, "Asia/Tokyo")
        ).data

        assert sao_paulo == [{"day": "2026-03-09", "pedidos": 1}]
        assert tokyo == [{"day": "2026-03-10", "pedidos": 1}]


# =============================================================================
# Products
# =============================================================================


@pytest.mark.django_db
class TestProducts:
    def test_products_top_ranked_by_revenue(self, workspace, window, sales):
        rows = AnalyticsService.products_top(workspace, window.filters).data

        assert [row["product_code"] for row in rows] == ["mentoria", "course-basic", "ebook"]
        course = rows[1]
        assert course == {
            "product_code": "course-basic",
            "pedidos": 2,
            "receita_brl": "150.00",
            "ticket_medio_brl": "75.00",
            "refund_rate": "6.67",
        }

    def test_products_top_limit(self, workspace, window, sales):
        rows = AnalyticsService.products_top(workspace, window.filters, limit=1).data

        assert len(rows) == 1
        assert rows[0]["product_code"] == "mentoria"

    def test_sales_by_product_shares(self, workspace, window, sales):
        rows = AnalyticsService.sales_by_product(workspace, window.filters).data

        assert rows[0] == {"product_code": "course-basic", "quantity": 2, "percentage": 50.0}
        assert {row["product_code"] for row in rows[1:]} == {"ebook", "mentoria"}
        assert sum(row["percentage"] for row in rows) == pytest.approx(100.0)

    def test_revenue_by_product_shares(self, workspace, window, sales):
        rows = AnalyticsService.revenue_by_product(workspace, window.filters).data

        assert rows == [
            {"product_code": "mentoria", "revenue_brl": "200.00", "percentage": 43.48},
            {"product_code": "course-basic", "revenue_brl": "150.00", "percentage": 32.61},
            {"product_code": "ebook", "revenue_brl": "110.00", "percentage": 23.91},
        ]

    def test_no_sales(self, other_workspace, window):
        assert AnalyticsService.sales_by_product(other_workspace, window.filters).data == []


# =============================================================================
# Distributions
# =============================================================================


@pytest.mark.django_db
class TestDistributions:
    def test_sales_by_day_of_week_sunday_first(self, workspace, window, sales):
        rows = AnalyticsService.sales_by_day_of_week(workspace, window.filters).data

        assert rows == [
            {"day_of_week": "Sex", "sales": 1, "percentage": 33.33},
            {"day_of_week": "Sab", "sales": 2, "percentage": 66.67},
        ]

    def test_sunday_label(self, workspace, window):
        # 2026-03-08 is a Sunday
        OrderItemFactory(order__workspace=workspace, order__created_at=NOW.replace(day=8))

        rows = AnalyticsService.sales_by_day_of_week(workspace, window.filters).data

        assert rows == [{"day_of_week": "Dom", "sales": 1, "percentage": 100.0}]

    def test_sales_by_hour_in_local_time(self, workspace, window, sales):
        rows = AnalyticsService.sales_by_hour(workspace, window.filters).data

        assert rows == [{"hour": 12, "sales": 3, "percentage": 100.0}]


# =============================================================================
# Subscriptions & disputes
# =============================================================================


@pytest.mark.django_db
class TestSubscriptionsSummary:
    def test_summary(self, workspace, window, sales):
        summary = AnalyticsService.subscriptions_summary(workspace, window.filters).data

        assert summary == {
            "assinaturas_ativas": 1,
            "novas_assinaturas": 1,
            "churn_assinaturas": 1,
            "mrr_realizado_brl": "200.00",
        }

    def test_mrr_ignores_failed_payments(self, workspace, window, sales):
        """The declined retry on the plan must not add to MRR."""
        summary = AnalyticsService.subscriptions_summary(workspace, window.filters).data

        assert summary["mrr_realizado_brl"] == "200.00"

    def test_product_filter(self, workspace, window, sales):
        summary = AnalyticsService.subscriptions_summary(
            workspace, with_filters(window, product="ebook")
        ).data

        assert summary["assinaturas_ativas"] == 0
        assert summary["mrr_realizado_brl"] == "0.00"


@pytest.mark.django_db
class TestDisputesSummary:
    def test_counts_disputes_opened_in_window(self, workspace, window, sales):
        summary = AnalyticsService.disputes_summary(workspace, window.filters).data

        assert summary == {
            "cb_losses_brl": "20.00",
            "total_disputas": 2,
            "abertas": 1,
            "resolvidas": 1,
            "perdidas": 1,
            "ganhas": 0,
        }


# =============================================================================
# Payments
# =============================================================================


@pytest.mark.django_db
class TestPaymentsRecent:
    def test_successful_payments_newest_first(self, workspace, sales):
        rows = AnalyticsService.payments_recent(workspace, ReportFilters()).data

        assert [row["payment_id"] for row in rows] == [
            str(sales.plan_payment.id),
            str(sales.card_payment.id),
            str(sales.paypal_payment.id),
        ]

    def test_row_shape(self, workspace, sales):
        row = AnalyticsService.payments_recent(workspace, ReportFilters(), limit=1).data[0]

        assert row["order_id"] == str(sales.plan.order_id)
        assert row["product_code"] == "mentoria"
        assert row["amount_brl"] == "200.00"
        assert row["gateway"] == "stripe"
        assert row["payment_method"] == "card"
        assert row["country"] == "BR"

    def test_country_filter(self, workspace, sales):
        rows = AnalyticsService.payments_recent(workspace, ReportFilters(country="US")).data

        assert [row["payment_id"] for row in rows] == [str(sales.paypal_payment.id)]

    def test_payment_without_order_item(self, workspace):
        payment = PaymentFactory(workspace=workspace, gateway="hotmart", status="SUCCESS")

        row = AnalyticsService.payments_recent(workspace, ReportFilters()).data[0]

        assert row["payment_id"] == str(payment.id)
        assert row["order_id"] is None
        assert row["country"] is None


@pytest.mark.django_db
class TestSuccessfulPayments:
    @pytest.mark.parametrize(
        "status, gateway, included",
        [
            ("succeeded", "stripe", True),
            ("completed", "stripe", False),
            ("COMPLETED", "PayPal", True),
            ("approved", "mercadopago", True),
            ("pending", "mercadopago", False),
            ("SUCCESS", "hotmart", True),
            ("refunded", "hotmart", False),
        ],
    )
    def test_matches_status_normalization(self, workspace, status, gateway, included):
        PaymentFactory(workspace=workspace, status=status, gateway=gateway)

        matched = successful_payments(Payment.objects.filter(workspace=workspace)).exists()

        assert matched is included


# =============================================================================
# Exchange rates & export
# =============================================================================


@pytest.mark.django_db
class TestExchangeRates:
    def test_configured_rates(self, workspace):
        data = AnalyticsService.exchange_rates(workspace).data

        assert data["usd_to_brl"] == 5.5
        assert data["eur_to_brl"] == 6.0
        assert data["last_updated"] == NOW


@pytest.mark.django_db
class TestExportCsv:
    def test_products_top_csv(self, workspace, window, sales):
        result = AnalyticsService.export_csv(workspace, "products_top", window.filters, limit=2)

        assert result.success
        assert result.data.splitlines() == [
            "product_code,pedidos,receita_brl,ticket_medio_brl,refund_rate",
            "mentoria,1,200.00,200.00,0.00",
            "course-basic,2,150.00,75.00,6.67",
        ]

    def test_empty_report_is_empty_string(self, other_workspace, window):
        result = AnalyticsService.export_csv(other_workspace, "sales_by_hour", window.filters)

        assert result.success
        assert result.data == ""

    def test_unknown_report(self, workspace, window):
        result = AnalyticsService.export_csv(workspace, "kpis", window.filters)

        assert not result.success
        assert result.error_code == "UNKNOWN_REPORT"

    def test_invalid_window_propagates(self, workspace):
        filters = ReportFilters(date_from=NOW, date_to=NOW)

        result = AnalyticsService.export_csv(workspace, "sales_by_hour", filters)

        assert result.error_code == "INVALID_DATE_RANGE"
