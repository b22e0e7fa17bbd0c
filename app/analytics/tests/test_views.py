"""
Tests for analytics API views.

This module tests the HTTP layer:
- Access control (owner/admin of the active workspace only)
- Query parameter validation
- Response shapes of each report
- CSV export

Report arithmetic is covered in test_services.py.
"""

from decimal import Decimal

import pytest
from rest_framework import status

from analytics.tests.factories import OrderItemFactory, PaymentFactory
from core.exceptions import RateLimitError
from workspaces.models import WorkspaceRole
from workspaces.tests.conftest import make_client
from workspaces.tests.factories import WorkspaceFactory, WorkspaceMemberFactory

# =============================================================================
# URL Constants
# =============================================================================


ANALYTICS_URL = "/api/v1/analytics/"
KPIS_URL = f"{ANALYTICS_URL}kpis/"
REVENUE_TIMESERIES_URL = f"{ANALYTICS_URL}revenue-timeseries/"
PRODUCTS_TOP_URL = f"{ANALYTICS_URL}products-top/"
PAYMENTS_RECENT_URL = f"{ANALYTICS_URL}payments-recent/"
EXCHANGE_RATES_URL = f"{ANALYTICS_URL}exchange-rates/"
EXPORT_URL = f"{ANALYTICS_URL}export/"

REPORT_URLS = [
    f"{ANALYTICS_URL}{path}/"
    for path in (
        "kpis",
        "revenue-timeseries",
        "orders-timeseries",
        "products-top",
        "subscriptions-summary",
        "disputes-summary",
        "sales-by-product",
        "revenue-by-product",
        "sales-by-day-of-week",
        "sales-by-hour",
    )
]


@pytest.fixture
def order_item(workspace):
    return OrderItemFactory(order__workspace=workspace, price=Decimal("120.00"))


# =============================================================================
# Access control
# =============================================================================


@pytest.mark.django_db
class TestAccess:
    def test_unauthenticated_rejected(self, api_client, window):
        response = api_client.get(KPIS_URL, window.params)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_member_forbidden(self, member_client, window):
        """
        Why it matters: revenue figures are restricted to workspace
        managers; plain members must not see them.
        """
        response = member_client.get(KPIS_URL, window.params)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_allowed(self, workspace, window):
        admin = WorkspaceMemberFactory(workspace=workspace, role=WorkspaceRole.ADMIN).user
        admin.active_workspace = workspace
        admin.save(update_fields=["active_workspace"])

        response = make_client(admin).get(KPIS_URL, window.params)

        assert response.status_code == status.HTTP_200_OK

    def test_requires_active_workspace(self, owner, owner_client, window):
        owner.active_workspace = None
        owner.save(update_fields=["active_workspace"])

        response = owner_client.get(KPIS_URL, window.params)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_reports_on_active_workspace_only(self, owner, owner_client, window, order_item):
        other = WorkspaceFactory(owner=owner)
        OrderItemFactory(order__workspace=other, price=Decimal("999.00"))
        owner.active_workspace = other
        owner.save(update_fields=["active_workspace"])

        response = owner_client.get(KPIS_URL, window.params)

        assert response.data["receita_bruta_brl"] == "999.00"


# =============================================================================
# Reports
# =============================================================================


@pytest.mark.django_db
class TestReports:
    @pytest.mark.parametrize("url", REPORT_URLS)
    def test_every_report_answers(self, owner_client, window, order_item, url):
        response = owner_client.get(url, window.params)

        assert response.status_code == status.HTTP_200_OK

    def test_kpis_shape(self, owner_client, window, order_item):
        response = owner_client.get(KPIS_URL, window.params)

        assert response.data["pedidos"] == 1
        assert response.data["receita_bruta_brl"] == "120.00"
        assert set(response.data["receita_por_moeda"]) == {"BRL", "USD", "EUR"}

    def test_revenue_timeseries(self, owner_client, window, order_item):
        response = owner_client.get(REVENUE_TIMESERIES_URL, window.params)

        assert response.data == [{"day": "2026-03-15", "receita_brl": "120.00"}]

    def test_products_top_limit(self, owner_client, window, order_item):
        response = owner_client.get(PRODUCTS_TOP_URL, {**window.params, "limit": 51})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "limit" in response.data

    def test_invalid_filters(self, owner_client, window):
        response = owner_client.get(KPIS_URL, {**window.params, "country": "brazil"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "country" in response.data

    def test_missing_window(self, owner_client):
        response = owner_client.get(KPIS_URL)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_payments_recent_without_window(self, owner_client, workspace, order_item):
        PaymentFactory(workspace=workspace, order_item=order_item)

        response = owner_client.get(PAYMENTS_RECENT_URL, {"limit": 5})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]["product_code"] == "course-basic"

    def test_exchange_rates(self, owner_client, settings):
        settings.EXCHANGE_RATE_USD_TO_BRL = 5.25

        response = owner_client.get(EXCHANGE_RATES_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["usd_to_brl"] == 5.25
        assert "last_updated" in response.data


# =============================================================================
# Export
# =============================================================================


@pytest.mark.django_db
class TestExport:
    def test_csv_download(self, owner_client, window, order_item):
        response = owner_client.get(EXPORT_URL, {**window.params, "report": "products_top"})

        assert response.status_code == status.HTTP_200_OK
        assert response["Content-Type"].startswith("text/csv")
        assert response["Content-Disposition"] == (
            'attachment; filename="products_top-20260315.csv"'
        )
        assert response.content.decode().splitlines() == [
            "product_code,pedidos,receita_brl,ticket_medio_brl,refund_rate",
            "course-basic,1,120.00,120.00,0.00",
        ]

    def test_payments_recent_export_needs_no_window(self, owner_client, workspace, order_item):
        PaymentFactory(workspace=workspace, order_item=order_item)

        response = owner_client.get(EXPORT_URL, {"report": "payments_recent"})

        assert response.status_code == status.HTTP_200_OK
        assert response.content.decode().startswith("payment_id,paid_at,order_id")

    def test_unknown_report(self, owner_client, window):
        response = owner_client.get(EXPORT_URL, {**window.params, "report": "kpis"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "report" in response.data

    def test_member_forbidden(self, member_client, window):
        response = member_client.get(EXPORT_URL, {**window.params, "report": "sales_by_hour"})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_rate_limited(self, owner_client, window, settings, mocker):
        settings.RATE_LIMIT_ENABLED = True
        mocker.patch(
            "core.decorators.enforce_rate_limit",
            side_effect=RateLimitError(
                "Rate limit exceeded. Try again in 60 seconds.",
                details={"retry_after": 60},
            ),
        )

        response = owner_client.get(EXPORT_URL, {**window.params, "report": "sales_by_hour"})

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
