import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


def _id():
    return (
        "id",
        models.BigAutoField(
            auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
        ),
    )


def _created_at():
    return (
        "created_at",
        models.DateTimeField(
            auto_now_add=True,
            db_index=True,
            help_text="Timestamp when this record was created",
        ),
    )


def _updated_at():
    return (
        "updated_at",
        models.DateTimeField(
            auto_now=True,
            help_text="Timestamp when this record was last modified",
        ),
    )


def _money():
    return models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)


def _workspace(related_name):
    return (
        "workspace",
        models.ForeignKey(
            on_delete=django.db.models.deletion.CASCADE,
            related_name=related_name,
            to="workspaces.workspace",
        ),
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("workspaces", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                _id(),
                _created_at(),
                _updated_at(),
                ("external_id", models.CharField(max_length=100)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("country", models.CharField(blank=True, db_index=True, max_length=2)),
                _workspace("customers"),
            ],
            options={
                "db_table": "analytics_customer",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("workspace", "external_id"),
                        name="unique_customer_external_id_per_workspace",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                _id(),
                _updated_at(),
                ("external_id", models.CharField(max_length=100)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("COMPLETED", "Completed"),
                            ("CANCELED", "Canceled"),
                            ("FAILED", "Failed"),
                        ],
                        db_index=True,
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                ("gateway", models.CharField(db_index=True, max_length=50)),
                (
                    "currency",
                    models.CharField(
                        choices=[
                            ("BRL", "Brazilian Real"),
                            ("USD", "US Dollar"),
                            ("EUR", "Euro"),
                        ],
                        default="BRL",
                        max_length=3,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        help_text="When the order was placed",
                    ),
                ),
                _workspace("orders"),
            ],
            options={
                "db_table": "analytics_order",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["workspace", "status", "created_at"],
                        name="analytics_order_ws_status_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                _id(),
                _created_at(),
                _updated_at(),
                ("product_code", models.CharField(db_index=True, max_length=100)),
                ("price", _money()),
                (
                    "pricing_type",
                    models.CharField(
                        choices=[
                            ("one_time", "One-time"),
                            ("subscription", "Subscription"),
                        ],
                        default="one_time",
                        max_length=20,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order_items",
                        to="analytics.customer",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="analytics.order",
                    ),
                ),
            ],
            options={
                "db_table": "analytics_order_item",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                _id(),
                _updated_at(),
                ("status", models.CharField(db_index=True, max_length=30)),
                ("gateway", models.CharField(blank=True, max_length=50)),
                ("payment_method", models.CharField(blank=True, max_length=30)),
                ("amount_brl", _money()),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
                (
                    "order_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payments",
                        to="analytics.orderitem",
                    ),
                ),
                _workspace("payments"),
            ],
            options={
                "db_table": "analytics_payment",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Refund",
            fields=[
                _id(),
                _updated_at(),
                ("amount_brl", _money()),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
                (
                    "order_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="refunds",
                        to="analytics.orderitem",
                    ),
                ),
                (
                    "payment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="refunds",
                        to="analytics.payment",
                    ),
                ),
                _workspace("refunds"),
            ],
            options={
                "db_table": "analytics_refund",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Dispute",
            fields=[
                _id(),
                _created_at(),
                _updated_at(),
                ("gateway", models.CharField(blank=True, max_length=50)),
                (
                    "opened_at",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
                (
                    "resolved_at",
                    models.DateTimeField(blank=True, db_index=True, null=True),
                ),
                (
                    "outcome",
                    models.CharField(
                        blank=True,
                        choices=[("", "Open"), ("won", "Won"), ("lost", "Lost")],
                        default="",
                        max_length=10,
                    ),
                ),
                ("net_loss_brl", _money()),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="disputes",
                        to="analytics.customer",
                    ),
                ),
                (
                    "order_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="disputes",
                        to="analytics.orderitem",
                    ),
                ),
                _workspace("disputes"),
            ],
            options={
                "db_table": "analytics_dispute",
                "ordering": ["-opened_at"],
            },
        ),
        migrations.CreateModel(
            name="Subscription",
            fields=[
                _id(),
                _created_at(),
                _updated_at(),
                ("status", models.CharField(db_index=True, max_length=20)),
                (
                    "start_date",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
                (
                    "canceled_at",
                    models.DateTimeField(blank=True, db_index=True, null=True),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="subscriptions",
                        to="analytics.customer",
                    ),
                ),
                (
                    "order_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="subscriptions",
                        to="analytics.orderitem",
                    ),
                ),
                _workspace("subscriptions"),
            ],
            options={
                "db_table": "analytics_subscription",
                "ordering": ["-start_date"],
            },
        ),
    ]
