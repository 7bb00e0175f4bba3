from decimal import Decimal, InvalidOperation

from django import template
from django.conf import settings

from fulfillment_ledger.common.money import to_cents

register = template.Library()


@register.filter
def euro(value) -> str:
    try:
        amount = to_cents(value)
    except (InvalidOperation, TypeError, ValueError):
        amount = Decimal("0.00")
    return f"{settings.LEDGER_CURRENCY_SYMBOL}{amount}"


@register.filter
def percent(value, places=1) -> str:
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return ""
    return f"{rate:.{int(places)}f}%"
