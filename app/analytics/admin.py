"""
Django admin configuration for analytics models.

Read-mostly views of imported sales data for support and debugging.
"""

from django.contrib import admin

from analytics.models import (
    Customer,
    Dispute,
    Order,
    OrderItem,
    Payment,
    Refund,
    Subscription,
)


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ["customer"]


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["external_id", "workspace", "country", "created_at"]
    list_filter = ["country"]
    search_fields = ["external_id", "email"]
    raw_id_fields = ["workspace"]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ["external_id", "workspace", "status", "gateway", "currency", "created_at"]
    list_filter = ["status", "gateway", "currency"]
    search_fields = ["external_id"]
    raw_id_fields = ["workspace"]
    inlines = [OrderItemInline]
    date_hierarchy = "created_at"


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ["id", "workspace", "status", "gateway", "payment_method", "amount_brl", "created_at"]
    list_filter = ["gateway", "status", "payment_method"]
    raw_id_fields = ["workspace", "order_item"]


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = ["id", "workspace", "amount_brl", "created_at"]
    raw_id_fields = ["workspace", "order_item", "payment"]


@admin.register(Dispute)
class DisputeAdmin(admin.ModelAdmin):
    list_display = ["id", "workspace", "gateway", "outcome", "net_loss_brl", "opened_at", "resolved_at"]
    list_filter = ["outcome", "gateway"]
    raw_id_fields = ["workspace", "order_item", "customer"]


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ["id", "workspace", "status", "start_date", "canceled_at"]
    list_filter = ["status"]
    raw_id_fields = ["workspace", "order_item", "customer"]
