"""
Views for analytics API.

All endpoints read the caller's active workspace and require the caller to
be its owner or admin.

URL Structure:
    /api/v1/analytics/kpis/                     GET
    /api/v1/analytics/revenue-timeseries/       GET
    /api/v1/analytics/orders-timeseries/        GET
    /api/v1/analytics/products-top/             GET
    /api/v1/analytics/subscriptions-summary/    GET
    /api/v1/analytics/disputes-summary/         GET
    /api/v1/analytics/payments-recent/          GET
    /api/v1/analytics/sales-by-product/         GET
    /api/v1/analytics/revenue-by-product/       GET
    /api/v1/analytics/sales-by-day-of-week/     GET
    /api/v1/analytics/sales-by-hour/            GET
    /api/v1/analytics/exchange-rates/           GET
    /api/v1/analytics/export/                   GET (text/csv)

Query Parameters:
    from, to: ISO datetimes (required except for payments-recent)
    tz: Timezone for day and hour buckets (default America/Sao_Paulo)
    product, gateway, country: Optional filters
    limit: products-top (1-50) and payments-recent (1-200)
    report: Report name for export
"""

from __future__ import annotations

from django.http import HttpResponse
from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.decorators import log_request, rate_limit
from core.viewset_mixins import ServiceResultMixin

from analytics.serializers import (
    AnalyticsFilterSerializer,
    DisputesSummarySerializer,
    ExchangeRatesSerializer,
    ExportFilterSerializer,
    KpisSerializer,
    OrdersPointSerializer,
    ProductsTopFilterSerializer,
    RecentPaymentSerializer,
    RecentPaymentsFilterSerializer,
    RevenueByProductSerializer,
    RevenuePointSerializer,
    SalesByDayOfWeekSerializer,
    SalesByHourSerializer,
    SalesByProductSerializer,
    SubscriptionsSummarySerializer,
    TopProductSerializer,
)
from analytics.services import LIMITED_REPORTS, AnalyticsService
from workspaces.permissions import IsActiveWorkspaceManager

FILTER_PARAMETERS = [
    OpenApiParameter("from", OpenApiTypes.DATETIME, required=True),
    OpenApiParameter("to", OpenApiTypes.DATETIME, required=True),
    OpenApiParameter("tz", OpenApiTypes.STR, description="IANA timezone"),
    OpenApiParameter("product", OpenApiTypes.STR),
    OpenApiParameter("gateway", OpenApiTypes.STR),
    OpenApiParameter("country", OpenApiTypes.STR, description="ISO 3166-1 alpha-2"),
]


class AnalyticsView(ServiceResultMixin, APIView):
    """
    Base view for one report.

    Subclasses name the AnalyticsService method in `report` and may swap the
    query serializer. Reports with a row limit pass it through.
    """

    permission_classes = [IsAuthenticated, IsActiveWorkspaceManager]
    filter_serializer_class = AnalyticsFilterSerializer
    report: str = ""

    @property
    def workspace(self):
        return self.request.workspace_membership.workspace

    def run_report(self, request):
        serializer = self.filter_serializer_class(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        kwargs = {}
        if "limit" in serializer.validated_data:
            kwargs["limit"] = serializer.validated_data["limit"]

        method = getattr(AnalyticsService, self.report)
        result = method(self.workspace, serializer.filters, **kwargs)
        if not result:
            return self.failure_response(result)
        return Response(result.data)

    @rate_limit("api", identifier="user_id")
    def get(self, request):
        return self.run_report(request)


def _report_schema(operation_id, summary, response, parameters=FILTER_PARAMETERS):
    return extend_schema(
        operation_id=operation_id,
        summary=summary,
        tags=["Analytics"],
        parameters=parameters,
        responses={
            200: response,
            400: OpenApiResponse(description="Invalid filters"),
            403: OpenApiResponse(description="Not an owner or admin of the active workspace"),
        },
    )


class KpisView(AnalyticsView):
    report = "kpis"

    @_report_schema("analytics_kpis", "Dashboard KPIs", KpisSerializer)
    def get(self, request):
        return super().get(request)


class RevenueTimeseriesView(AnalyticsView):
    report = "revenue_timeseries"

    @_report_schema(
        "analytics_revenue_timeseries",
        "Revenue per day",
        RevenuePointSerializer(many=True),
    )
    def get(self, request):
        return super().get(request)


class OrdersTimeseriesView(AnalyticsView):
    report = "orders_timeseries"

    @_report_schema(
        "analytics_orders_timeseries",
        "Orders per day",
        OrdersPointSerializer(many=True),
    )
    def get(self, request):
        return super().get(request)


class ProductsTopView(AnalyticsView):
    report = "products_top"
    filter_serializer_class = ProductsTopFilterSerializer

    @_report_schema(
        "analytics_products_top",
        "Top products by revenue",
        TopProductSerializer(many=True),
        parameters=[*FILTER_PARAMETERS, OpenApiParameter("limit", OpenApiTypes.INT)],
    )
    def get(self, request):
        return super().get(request)


class SubscriptionsSummaryView(AnalyticsView):
    report = "subscriptions_summary"

    @_report_schema(
        "analytics_subscriptions_summary",
        "Subscriptions summary",
        SubscriptionsSummarySerializer,
    )
    def get(self, request):
        return super().get(request)


class DisputesSummaryView(AnalyticsView):
    report = "disputes_summary"

    @_report_schema(
        "analytics_disputes_summary",
        "Chargebacks summary",
        DisputesSummarySerializer,
    )
    def get(self, request):
        return super().get(request)


class PaymentsRecentView(AnalyticsView):
    report = "payments_recent"
    filter_serializer_class = RecentPaymentsFilterSerializer

    @_report_schema(
        "analytics_payments_recent",
        "Recent successful payments",
        RecentPaymentSerializer(many=True),
        parameters=[
            OpenApiParameter("limit", OpenApiTypes.INT),
            *FILTER_PARAMETERS[3:],
        ],
    )
    def get(self, request):
        return super().get(request)


class SalesByProductView(AnalyticsView):
    report = "sales_by_product"

    @_report_schema(
        "analytics_sales_by_product",
        "Sales per product",
        SalesByProductSerializer(many=True),
    )
    def get(self, request):
        return super().get(request)


class RevenueByProductView(AnalyticsView):
    report = "revenue_by_product"

    @_report_schema(
        "analytics_revenue_by_product",
        "Revenue per product",
        RevenueByProductSerializer(many=True),
    )
    def get(self, request):
        return super().get(request)


class SalesByDayOfWeekView(AnalyticsView):
    report = "sales_by_day_of_week"

    @_report_schema(
        "analytics_sales_by_day_of_week",
        "Sales per weekday",
        SalesByDayOfWeekSerializer(many=True),
    )
    def get(self, request):
        return super().get(request)


class SalesByHourView(AnalyticsView):
    report = "sales_by_hour"

    @_report_schema(
        "analytics_sales_by_hour",
        "Sales per hour",
        SalesByHourSerializer(many=True),
    )
    def get(self, request):
        return super().get(request)


class ExchangeRatesView(AnalyticsView):
    @extend_schema(
        operation_id="analytics_exchange_rates",
        summary="Currency conversion rates",
        tags=["Analytics"],
        responses={200: ExchangeRatesSerializer},
    )
    @rate_limit("api", identifier="user_id")
    def get(self, request):
        result = AnalyticsService.exchange_rates(self.workspace)
        return Response(ExchangeRatesSerializer(result.data).data)


class ExportView(AnalyticsView):
    """
    CSV download of a list report.

    The report's own filters apply, e.g.
    ?report=products_top&from=...&to=...&limit=20
    """

    @extend_schema(
        operation_id="analytics_export",
        summary="Export report as CSV",
        tags=["Analytics"],
        parameters=[
            OpenApiParameter("report", OpenApiTypes.STR, required=True),
            *FILTER_PARAMETERS,
            OpenApiParameter("limit", OpenApiTypes.INT),
        ],
        responses={
            (200, "text/csv"): OpenApiTypes.STR,
            400: OpenApiResponse(description="Invalid report or filters"),
        },
    )
    @rate_limit("heavy", identifier="user_id")
    @log_request()
    def get(self, request):
        report_serializer = ExportFilterSerializer(data=request.query_params)
        report_serializer.is_valid(raise_exception=True)
        report = report_serializer.validated_data["report"]

        if report == "payments_recent":
            serializer_class = RecentPaymentsFilterSerializer
        elif report == "products_top":
            serializer_class = ProductsTopFilterSerializer
        else:
            serializer_class = AnalyticsFilterSerializer
        serializer = serializer_class(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        limit = serializer.validated_data.get("limit") if report in LIMITED_REPORTS else None
        result = AnalyticsService.export_csv(
            self.workspace, report, serializer.filters, limit=limit
        )
        if not result:
            return self.failure_response(result)

        filename = f"{report}-{timezone.now():%Y%m%d}.csv"
        response = HttpResponse(result.data, content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response
