"""
Tests for analytics query serializers.

The clock is frozen at 2026-03-15 15:00 UTC (see conftest.py).
"""

from datetime import timedelta

import pytest

from analytics.serializers import (
    AnalyticsFilterSerializer,
    ExportFilterSerializer,
    ProductsTopFilterSerializer,
    RecentPaymentsFilterSerializer,
)
from analytics.tests.conftest import NOW


def params(**overrides):
    data = {
        "from": (NOW - timedelta(days=7)).isoformat(),
        "to": NOW.isoformat(),
    }
    data.update(overrides)
    return data


class TestAnalyticsFilterSerializer:
    def test_defaults_timezone(self):
        serializer = AnalyticsFilterSerializer(data=params())

        assert serializer.is_valid(), serializer.errors
        filters = serializer.filters
        assert filters.tz == "America/Sao_Paulo"
        assert filters.product is None
        assert filters.date_to == NOW

    def test_accepts_dimension_filters(self):
        serializer = AnalyticsFilterSerializer(
            data=params(product="course-basic", gateway="mercadopago", country="BR", tz="UTC")
        )

        assert serializer.is_valid(), serializer.errors
        assert serializer.filters.gateway == "mercadopago"

    def test_rejects_from_in_the_future(self):
        date_from = NOW + timedelta(hours=1)
        serializer = AnalyticsFilterSerializer(
            data={
                "from": date_from.isoformat(),
                "to": (date_from + timedelta(hours=1)).isoformat(),
            }
        )

        assert not serializer.is_valid()
        assert serializer.errors["from"] == [
            "Date must be within the last 2 years and not in the future"
        ]

    def test_rejects_from_older_than_two_years(self):
        serializer = AnalyticsFilterSerializer(
            data=params(**{"from": (NOW - timedelta(days=2 * 366)).isoformat()})
        )

        assert not serializer.is_valid()
        assert "from" in serializer.errors

    def test_to_may_be_up_to_one_day_ahead(self):
        """
        Why it matters: a dashboard in Tokyo asks for "end of today" which
        is still tomorrow in UTC.
        """
        ok = AnalyticsFilterSerializer(
            data=params(to=(NOW + timedelta(hours=23)).isoformat())
        )
        too_far = AnalyticsFilterSerializer(
            data=params(to=(NOW + timedelta(days=1, minutes=1)).isoformat())
        )

        assert ok.is_valid(), ok.errors
        assert not too_far.is_valid()
        assert too_far.errors["to"] == ["End date cannot be more than 1 day in the future"]

    @pytest.mark.parametrize(
        "date_from, date_to",
        [
            (NOW - timedelta(days=1), NOW - timedelta(days=2)),
            (NOW - timedelta(days=400), NOW),
        ],
    )
    def test_rejects_bad_ranges(self, date_from, date_to):
        serializer = AnalyticsFilterSerializer(
            data=params(**{"from": date_from.isoformat(), "to": date_to.isoformat()})
        )

        assert not serializer.is_valid()
        assert serializer.errors["non_field_errors"] == [
            "Date range cannot exceed 370 days and from must be before to"
        ]

    def test_rejects_unsupported_timezone(self):
        serializer = AnalyticsFilterSerializer(data=params(tz="Mars/Olympus_Mons"))

        assert not serializer.is_valid()
        assert serializer.errors["tz"] == ["Unsupported timezone"]

    @pytest.mark.parametrize(
        "field, value",
        [
            ("product", "course basic"),
            ("product", "x" * 101),
            ("gateway", "stripe;drop"),
            ("gateway", "g" * 51),
            ("country", "br"),
            ("country", "BRA"),
        ],
    )
    def test_rejects_malformed_dimensions(self, field, value):
        serializer = AnalyticsFilterSerializer(data=params(**{field: value}))

        assert not serializer.is_valid()
        assert field in serializer.errors

    def test_requires_window(self):
        serializer = AnalyticsFilterSerializer(data={})

        assert not serializer.is_valid()
        assert set(serializer.errors) == {"from", "to"}


class TestLimits:
    def test_products_top_defaults_to_ten(self):
        serializer = ProductsTopFilterSerializer(data=params())

        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["limit"] == 10

    @pytest.mark.parametrize("limit", [0, 51])
    def test_products_top_bounds(self, limit):
        assert not ProductsTopFilterSerializer(data=params(limit=limit)).is_valid()

    def test_recent_payments_need_no_window(self):
        serializer = RecentPaymentsFilterSerializer(data={"limit": 200})

        assert serializer.is_valid(), serializer.errors
        assert serializer.filters.date_from is None

    def test_recent_payments_bounds(self):
        assert RecentPaymentsFilterSerializer(data={}).is_valid()
        assert not RecentPaymentsFilterSerializer(data={"limit": 201}).is_valid()


class TestExportFilterSerializer:
    def test_accepts_list_reports(self):
        assert ExportFilterSerializer(data={"report": "sales_by_hour"}).is_valid()

    def test_rejects_non_list_reports(self):
        serializer = ExportFilterSerializer(data={"report": "kpis"})

        assert not serializer.is_valid()
        assert "report" in serializer.errors
