from decimal import Decimal

import django.core.validators
import django.utils.timezone
from django.db import migrations, models

import fulfillment_ledger.expenses.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Expense",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "client",
                    models.CharField(
                        db_index=True,
                        max_length=100,
                        validators=[fulfillment_ledger.expenses.models.validate_client],
                    ),
                ),
                ("product_description", models.CharField(max_length=255)),
                ("quantity", models.CharField(default="1", max_length=50)),
                (
                    "product_cost",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "tax_percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("5.50"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("100")),
                        ],
                    ),
                ),
                (
                    "markup_basis",
                    models.CharField(
                        choices=[("before_tax", "Before tax (HT)"), ("after_tax", "After tax (TTC)")],
                        default="after_tax",
                        max_length=20,
                    ),
                ),
                (
                    "markup_percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("5.00"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("100")),
                        ],
                    ),
                ),
                (
                    "shipping_cost",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                ("shipping_carrier", models.CharField(default="Colissimo", max_length=100)),
                (
                    "payment_received",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=12),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("shipped", "Shipped"),
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("cancelled", "Cancelled"),
                            ("refund", "Refund"),
                        ],
                        default="shipped",
                        max_length=20,
                    ),
                ),
                ("invoice_number", models.CharField(blank=True, db_index=True, max_length=50, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["date", "id"],
                "indexes": [
                    models.Index(fields=["client", "date", "id"], name="expense_client_date_idx"),
                ],
            },
        ),
    ]
