from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from fulfillment_ledger.expenses.models import Expense, validate_client


class Payment(models.Model):
    """Money received from one client, applied to its unpaid expenses on creation."""
    date = models.DateTimeField(default=timezone.now)
    client = models.CharField(max_length=100, db_index=True, validators=[validate_client])
    amount = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0.01"))]
    )
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-id"]
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'

    def __str__(self):
        return f"Payment of {self.amount} from {self.client} on {self.date:%Y-%m-%d}"


class PaymentApplication(models.Model):
    """The part of a payment applied to one expense."""
    payment = models.ForeignKey(Payment, on_delete=models.CASCADE, related_name='applications')
    expense = models.ForeignKey(Expense, on_delete=models.PROTECT, related_name='payment_applications')
    amount_applied = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_applied__gt=0),
                name="payment_application_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.amount_applied} of payment {self.payment_id} to expense {self.expense_id}"
