"""
URL configuration for analytics API.

All URLs are prefixed with /api/v1/analytics/ in the main URL configuration.
Every endpoint reports on the caller's active workspace.
"""

from django.urls import path

from analytics import views

app_name = "analytics"

urlpatterns = [
    path("kpis/", views.KpisView.as_view(), name="kpis"),
    path(
        "revenue-timeseries/",
        views.RevenueTimeseriesView.as_view(),
        name="revenue-timeseries",
    ),
    path(
        "orders-timeseries/",
        views.OrdersTimeseriesView.as_view(),
        name="orders-timeseries",
    ),
    path("products-top/", views.ProductsTopView.as_view(), name="products-top"),
    path(
        "subscriptions-summary/",
        views.SubscriptionsSummaryView.as_view(),
        name="subscriptions-summary",
    ),
    path(
        "disputes-summary/",
        views.DisputesSummaryView.as_view(),
        name="disputes-summary",
    ),
    path(
        "payments-recent/",
        views.PaymentsRecentView.as_view(),
        name="payments-recent",
    ),
    path(
        "sales-by-product/",
        views.SalesByProductView.as_view(),
        name="sales-by-product",
    ),
    path(
        "revenue-by-product/",
        views.RevenueByProductView.as_view(),
        name="revenue-by-product",
    ),
    path(
        "sales-by-day-of-week/",
        views.SalesByDayOfWeekView.as_view(),
        name="sales-by-day-of-week",
    ),
    path("sales-by-hour/", views.SalesByHourView.as_view(), name="sales-by-hour"),
    path(
        "exchange-rates/",
        views.ExchangeRatesView.as_view(),
        name="exchange-rates",
    ),
    path("export/", views.ExportView.as_view(), name="export"),
]
