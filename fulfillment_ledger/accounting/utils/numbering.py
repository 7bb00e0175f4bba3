from django.db import transaction

from fulfillment_ledger.expenses.models import Expense


def generate_invoice_number():
    """
    Next invoice number in the plain sequence 1, 2, 3...: one more than the
    highest numeric invoice number already stamped on an expense. Non-numeric
    numbers entered by hand are ignored.
    """
    with transaction.atomic():
        numbers = (
            Expense.objects
            .select_for_update()
            .exclude(invoice_number__isnull=True)
            .exclude(invoice_number="")
            .values_list("invoice_number", flat=True)
        )
        highest = max((int(n) for n in numbers if n.strip().isdecimal()), default=0)

    return str(highest + 1)
