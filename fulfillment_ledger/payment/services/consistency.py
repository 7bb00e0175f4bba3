import logging

from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce

from fulfillment_ledger.common.exceptions import ConsistencyFault
from fulfillment_ledger.common.money import ZERO, to_cents
from fulfillment_ledger.expenses.models import Expense
from fulfillment_ledger.payment.models import Payment

logger = logging.getLogger(__name__)


def _applied_sum(path):
    return Coalesce(
        Sum(path),
        Value(ZERO),
        output_field=DecimalField(max_digits=14, decimal_places=2),
    )


def _payment_faults(payments):
    # Compared in Python: some backends sum decimals as floats.
    annotated = payments.annotate(applied=_applied_sum("applications__amount_applied")).order_by("id")
    return [
        f"Payment {p.pk} ({p.client}) has {p.applied} applied but only {p.amount} received."
        for p in annotated
        if to_cents(p.applied) > to_cents(p.amount)
    ]


def _expense_faults(expenses):
    annotated = expenses.annotate(applied=_applied_sum("payment_applications__amount_applied")).order_by("id")
    return [
        f"Expense {e.pk} ({e.client}) records {e.payment_received} received "
        f"but its applications sum to {e.applied}."
        for e in annotated
        if to_cents(e.applied) != to_cents(e.payment_received)
    ]


def find_consistency_faults(client=None):
    """
    Scan the ledger for broken invariants:
    - a payment whose applications add up to more than the payment amount
    - an expense whose payment_received is not the sum of its applications
    Returns one human readable line per fault.
    """
    payments = Payment.objects.all()
    expenses = Expense.objects.all()
    if client:
        payments = payments.filter(client=client)
        expenses = expenses.filter(client=client)
    return _payment_faults(payments) + _expense_faults(expenses)


def assert_payment_consistent(payment):
    """Raise ConsistencyFault if the payment, or an expense it was applied to, is out of balance."""
    expense_ids = list(payment.applications.values_list("expense_id", flat=True))
    faults = (
        _payment_faults(Payment.objects.filter(pk=payment.pk))
        + _expense_faults(Expense.objects.filter(pk__in=expense_ids))
    )
    if faults:
        for fault in faults:
            logger.error(fault)
        raise ConsistencyFault(detail="; ".join(faults))
