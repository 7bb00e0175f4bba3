import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from fulfillment_ledger.common.clients import is_known_client
from fulfillment_ledger.common.exceptions import ConsistencyFault
from fulfillment_ledger.common.money import ZERO, to_cents
from fulfillment_ledger.expenses.models import Expense
from fulfillment_ledger.expenses.services.valuation import value_expense
from fulfillment_ledger.payment.models import Payment, PaymentApplication
from fulfillment_ledger.payment.services.consistency import assert_payment_consistent

logger = logging.getLogger(__name__)


class PaymentAllocationService:

    @staticmethod
    def create_payment(*, client, amount, date=None, notes=""):
        """
        Record a payment and apply it to the client's unpaid expenses, oldest
        order first (ties go to the expense recorded first).

        Each expense's balance is read from the database right before it is
        paid down, so the loop never works from a stale snapshot. Whatever is
        left once every expense is settled stays unapplied, as client credit.
        The payment, its applications and the expense updates commit together
        or not at all.
        """
        amount = to_cents(amount)
        if amount <= ZERO:
            raise ValidationError({"amount": "Payment amount must be positive."})
        if not is_known_client(client):
            raise ValidationError({"client": f"Unknown client: {client}."})

        with transaction.atomic():
            payment = Payment.objects.create(
                client=client,
                amount=amount,
                date=date or timezone.now(),
                notes=notes or "",
            )

            # Lock the client's expenses; a second payment for the same client waits here.
            expense_ids = list(
                Expense.objects
                .select_for_update()
                .filter(client=client)
                .order_by("date", "id")
                .values_list("id", flat=True)
            )

            remaining = amount
            for expense_id in expense_ids:
                if remaining <= ZERO:
                    break

                expense = Expense.objects.get(pk=expense_id)
                outstanding = to_cents(value_expense(expense).outstanding_balance)
                if outstanding <= ZERO:
                    logger.debug(f"Expense {expense_id} already settled, skipping")
                    continue

                applied = min(outstanding, remaining)
                PaymentApplication.objects.create(
                    payment=payment,
                    expense=expense,
                    amount_applied=applied,
                )
                Expense.objects.filter(pk=expense_id).update(
                    payment_received=F("payment_received") + applied
                )
                remaining -= applied

            assert_payment_consistent(payment)

        logger.info(
            f"Payment {payment.pk} of {amount} from {client} recorded; "
            f"{amount - remaining} applied, {remaining} left unapplied"
        )
        return payment

    @staticmethod
    def delete_payment(payment_id):
        """
        Undo every application of a payment, then delete the payment.

        Each expense gives back exactly the amount stored on its application,
        even if the expense was edited since. Fails without any effect when the
        payment, or an expense it was applied to, no longer exists.
        """
        with transaction.atomic():
            try:
                payment = Payment.objects.select_for_update().get(pk=payment_id)
            except Payment.DoesNotExist:
                raise NotFound(f"Payment {payment_id} does not exist.")

            applications = list(payment.applications.order_by("-id"))
            for application in applications:
                updated = Expense.objects.filter(pk=application.expense_id).update(
                    payment_received=F("payment_received") - application.amount_applied
                )
                if not updated:
                    raise NotFound(
                        f"Expense {application.expense_id} paid by payment {payment_id} no longer exists."
                    )

                expense = Expense.objects.get(pk=application.expense_id)
                if to_cents(expense.payment_received) < ZERO:
                    raise ConsistencyFault(
                        detail=(
                            f"Reversing payment {payment_id} would leave expense {expense.pk} "
                            f"with a negative payment received ({expense.payment_received})."
                        )
                    )

            payment.applications.all().delete()
            payment.delete()

        logger.info(
            f"Payment {payment_id} deleted; {len(applications)} application(s) reversed"
        )

    @staticmethod
    def get_applications(payment_id):
        try:
            payment = Payment.objects.get(pk=payment_id)
        except Payment.DoesNotExist:
            raise NotFound(f"Payment {payment_id} does not exist.")
        return payment.applications.select_related("expense").order_by("id")
