from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from fulfillment_ledger.common.clients import is_known_client


def validate_client(value):
    if not is_known_client(value):
        raise ValidationError(f"{value} is not a known client.")


class MarkupBasis(models.TextChoices):
    BEFORE_TAX = "before_tax", "Before tax (HT)"
    AFTER_TAX = "after_tax", "After tax (TTC)"


class ExpenseStatus(models.TextChoices):
    SHIPPED = "shipped", "Shipped"
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    CANCELLED = "cancelled", "Cancelled"
    REFUND = "refund", "Refund"


class Expense(models.Model):
    """One billable order line for a client."""
    date = models.DateTimeField(default=timezone.now)
    client = models.CharField(max_length=100, db_index=True, validators=[validate_client])
    product_description = models.CharField(max_length=255)
    quantity = models.CharField(max_length=50, default="1")
    product_cost = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0"))]
    )
    tax_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("5.50"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    markup_basis = models.CharField(
        max_length=20, choices=MarkupBasis.choices, default=MarkupBasis.AFTER_TAX
    )
    markup_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("5.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    shipping_cost = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    shipping_carrier = models.CharField(max_length=100, default="Colissimo")
    # Only ever moved by the payment allocator.
    payment_received = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    status = models.CharField(
        max_length=20, choices=ExpenseStatus.choices, default=ExpenseStatus.SHIPPED
    )
    invoice_number = models.CharField(max_length=50, null=True, blank=True, db_index=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date", "id"]
        indexes = [
            models.Index(fields=["client", "date", "id"], name="expense_client_date_idx"),
        ]

    def __str__(self):
        return f"{self.client} - {self.product_description} on {self.date:%Y-%m-%d}"

    @property
    def valuation(self):
        from fulfillment_ledger.expenses.services.valuation import value_expense

        return value_expense(self)
