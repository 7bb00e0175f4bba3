from datetime import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from fulfillment_ledger.expenses.models import Expense, MarkupBasis


def local_datetime(year, month, day, hour=12):
    return timezone.make_aware(datetime(year, month, day, hour, 0))


def make_user(username="operator"):
    user, _ = get_user_model().objects.get_or_create(username=username)
    return user


def make_expense(**overrides):
    values = {
        "date": local_datetime(2024, 1, 15),
        "client": "BEST DEAL",
        "product_description": "Carton of olive oil",
        "quantity": "1",
        "product_cost": Decimal("100.00"),
        "tax_percentage": Decimal("20.00"),
        "markup_basis": MarkupBasis.AFTER_TAX,
        "markup_percentage": Decimal("10.00"),
        "shipping_cost": Decimal("5.00"),
    }
    values.update(overrides)
    return Expense.objects.create(**values)
