"""
Analytics models.

Sales data imported from payment gateways, scoped to a workspace:
- Customers and their orders
- Order items (one product each) with one-time or subscription pricing
- Payments, refunds and disputes recorded against order items
- Subscriptions started by subscription order items

Models:
    Customer: Buyer identified by the gateway's customer id
    Order: Checkout with a currency, gateway and status
    OrderItem: Product line of an order, priced in the order currency
    Payment: Gateway charge, amount already converted to BRL
    Refund: Refunded amount in BRL
    Dispute: Chargeback with its outcome and net loss in BRL
    Subscription: Recurring plan started by an order item

Design Decisions:
    - Money is stored as Decimal with two places, never float
    - Payment status keeps the gateway's raw value; analytics.utils
      normalizes it when needed
    - Event timestamps (created_at, opened_at, start_date) are assignable
      so imported history keeps its original dates
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel

MONEY_MAX_DIGITS = 14
MONEY_DECIMAL_PLACES = 2


class Currency(models.TextChoices):
    BRL = "BRL", "Brazilian Real"
    USD = "USD", "US Dollar"
    EUR = "EUR", "Euro"


class OrderStatus(models.TextChoices):
    """
    Order lifecycle status.

    Only COMPLETED orders count towards analytics.
    """

    PENDING = "PENDING", "Pending"
    COMPLETED = "COMPLETED", "Completed"
    CANCELED = "CANCELED", "Canceled"
    FAILED = "FAILED", "Failed"


class PricingType(models.TextChoices):
    ONE_TIME = "one_time", "One-time"
    SUBSCRIPTION = "subscription", "Subscription"


class DisputeOutcome(models.TextChoices):
    OPEN = "", "Open"
    WON = "won", "Won"
    LOST = "lost", "Lost"


class Customer(BaseModel):
    """
    A buyer.

    Fields:
        workspace: Owning workspace
        external_id: Customer id at the gateway
        email: Optional contact email
        country: ISO 3166-1 alpha-2 country code
    """

    workspace = models.ForeignKey(
        "workspaces.Workspace",
        on_delete=models.CASCADE,
        related_name="customers",
    )
    external_id = models.CharField(max_length=100)
    email = models.EmailField(blank=True)
    country = models.CharField(max_length=2, blank=True, db_index=True)

    class Meta:
        db_table = "analytics_customer"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["workspace", "external_id"],
                name="unique_customer_external_id_per_workspace",
            ),
        ]

    def __str__(self) -> str:
        return f"Customer {self.external_id} ({self.country or '--'})"


class Order(BaseModel):
    """
    A checkout.

    Fields:
        workspace: Owning workspace
        external_id: Order id at the gateway
        status: OrderStatus
        gateway: Gateway slug (stripe, paypal, mercadopago, ...)
        currency: Currency the items are priced in
        created_at: When the order was placed (assignable on import)
    """

    workspace = models.ForeignKey(
        "workspaces.Workspace",
        on_delete=models.CASCADE,
        related_name="orders",
    )
    external_id = models.CharField(max_length=100)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )
    gateway = models.CharField(max_length=50, db_index=True)
    currency = models.CharField(
        max_length=3,
        choices=Currency.choices,
        default=Currency.BRL,
    )
    created_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the order was placed",
    )

    class Meta:
        db_table = "analytics_order"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["workspace", "status", "created_at"],
                name="analytics_order_ws_status_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Order {self.external_id} ({self.status})"


class OrderItem(BaseModel):
    """
    One product line of an order.

    Fields:
        order: Parent order
        customer: Buyer
        product_code: Product identifier
        price: Price in the order currency
        pricing_type: one_time or subscription
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )
    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    product_code = models.CharField(max_length=100, db_index=True)
    price = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        null=True,
        blank=True,
    )
    pricing_type = models.CharField(
        max_length=20,
        choices=PricingType.choices,
        default=PricingType.ONE_TIME,
    )

    class Meta:
        db_table = "analytics_order_item"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.product_code} x {self.price}"


class Payment(BaseModel):
    """
    A gateway charge.

    Fields:
        status: Raw gateway status (see analytics.utils.normalize_payment_status)
        payment_method: card, pix, boleto, paypal, ...
        amount_brl: Charged amount converted to BRL
        created_at: When the payment was made (assignable on import)
    """

    workspace = models.ForeignKey(
        "workspaces.Workspace",
        on_delete=models.CASCADE,
        related_name="payments",
    )
    order_item = models.ForeignKey(
        OrderItem,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    status = models.CharField(max_length=30, db_index=True)
    gateway = models.CharField(max_length=50, blank=True)
    payment_method = models.CharField(max_length=30, blank=True)
    amount_brl = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "analytics_payment"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Payment {self.pk} {self.status} {self.amount_brl}"


class Refund(BaseModel):
    workspace = models.ForeignKey(
        "workspaces.Workspace",
        on_delete=models.CASCADE,
        related_name="refunds",
    )
    order_item = models.ForeignKey(
        OrderItem,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="refunds",
    )
    payment = models.ForeignKey(
        Payment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="refunds",
    )
    amount_brl = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "analytics_refund"
        ordering = ["-created_at"]


class Dispute(BaseModel):
    """
    A chargeback.

    Fields:
        opened_at: When the customer opened the dispute
        resolved_at: When the gateway decided it (null while open)
        outcome: "", won or lost
        net_loss_brl: Amount lost including fees, in BRL
    """

    workspace = models.ForeignKey(
        "workspaces.Workspace",
        on_delete=models.CASCADE,
        related_name="disputes",
    )
    order_item = models.ForeignKey(
        OrderItem,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="disputes",
    )
    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="disputes",
    )
    gateway = models.CharField(max_length=50, blank=True)
    opened_at = models.DateTimeField(default=timezone.now, db_index=True)
    resolved_at = models.DateTimeField(null=True, blank=True, db_index=True)
    outcome = models.CharField(
        max_length=10,
        choices=DisputeOutcome.choices,
        default=DisputeOutcome.OPEN,
        blank=True,
    )
    net_loss_brl = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "analytics_dispute"
        ordering = ["-opened_at"]

    @property
    def is_open(self) -> bool:
        return self.resolved_at is None


class Subscription(BaseModel):
    """
    A recurring plan.

    Fields:
        status: Gateway status (active, trialing, past_due, canceled, ...)
        start_date: When billing started
        canceled_at: When the subscription was canceled (null while running)
    """

    workspace = models.ForeignKey(
        "workspaces.Workspace",
        on_delete=models.CASCADE,
        related_name="subscriptions",
    )
    order_item = models.ForeignKey(
        OrderItem,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="subscriptions",
    )
    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="subscriptions",
    )
    status = models.CharField(max_length=20, db_index=True)
    start_date = models.DateTimeField(default=timezone.now, db_index=True)
    canceled_at = models.DateTimeField(null=True, blank=True, db_index=True)

    class Meta:
        db_table = "analytics_subscription"
        ordering = ["-start_date"]

    def __str__(self) -> str:
        return f"Subscription {self.pk} ({self.status})"
