"""
Analytics application configuration.

This app provides sales analytics for the active workspace:
- Orders, payments, refunds, disputes and subscriptions
- KPI, time series and breakdown endpoints for the dashboard
- CSV export of report rows
"""

from django.apps import AppConfig


class AnalyticsConfig(AppConfig):
    """Configuration for the analytics application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "analytics"
    verbose_name = "Analytics"
