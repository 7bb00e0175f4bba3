from decimal import Decimal
from unittest import mock

from django.test import TestCase
from rest_framework.exceptions import NotFound, ValidationError

from fulfillment_ledger.common.exceptions import ConsistencyFault
from fulfillment_ledger.common.tests.factories import local_datetime, make_expense
from fulfillment_ledger.expenses.models import Expense
from fulfillment_ledger.payment.models import Payment, PaymentApplication
from fulfillment_ledger.payment.services.allocation_service import PaymentAllocationService
from fulfillment_ledger.payment.services.consistency import find_consistency_faults


def applied_amounts(payment):
    return [
        (application.expense_id, application.amount_applied)
        for application in payment.applications.order_by("id")
    ]


class CreatePaymentTests(TestCase):
    def setUp(self):
        # 115.00 billable
        self.first = make_expense(date=local_datetime(2024, 1, 15))
        # 50.00 billable
        self.second = make_expense(
            date=local_datetime(2024, 1, 20),
            product_cost=Decimal("50.00"),
            markup_percentage=Decimal("0"),
            shipping_cost=Decimal("0"),
        )

    def test_payment_is_applied_oldest_first(self):
        payment = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("130.00"))

        self.assertEqual(
            applied_amounts(payment),
            [(self.first.pk, Decimal("115.00")), (self.second.pk, Decimal("15.00"))],
        )
        self.first.refresh_from_db()
        self.second.refresh_from_db()
        self.assertEqual(self.first.payment_received, Decimal("115.00"))
        self.assertEqual(self.first.valuation.rounded().outstanding_balance, Decimal("0.00"))
        self.assertEqual(self.second.payment_received, Decimal("15.00"))
        self.assertEqual(self.second.valuation.rounded().outstanding_balance, Decimal("35.00"))

    def test_leftover_stays_unapplied(self):
        Expense.objects.filter(pk=self.second.pk).delete()

        payment = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("200.00"))

        self.assertEqual(applied_amounts(payment), [(self.first.pk, Decimal("115.00"))])
        self.first.refresh_from_db()
        self.assertEqual(self.first.payment_received, Decimal("115.00"))
        self.assertEqual(Payment.objects.get(pk=payment.pk).amount, Decimal("200.00"))

    def test_settled_expenses_are_skipped(self):
        PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("115.00"))

        payment = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("20.00"))

        self.assertEqual(applied_amounts(payment), [(self.second.pk, Decimal("20.00"))])

    def test_same_date_goes_to_first_recorded_expense(self):
        same_day = local_datetime(2024, 1, 10)
        earlier = make_expense(date=same_day, product_cost=Decimal("10.00"), tax_percentage=Decimal("0"),
                               markup_percentage=Decimal("0"), shipping_cost=Decimal("0"))
        later = make_expense(date=same_day, product_cost=Decimal("10.00"), tax_percentage=Decimal("0"),
                             markup_percentage=Decimal("0"), shipping_cost=Decimal("0"))

        payment = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("15.00"))

        self.assertEqual(
            applied_amounts(payment),
            [(earlier.pk, Decimal("10.00")), (later.pk, Decimal("5.00"))],
        )

    def test_other_clients_are_untouched(self):
        other = make_expense(client="LE PHÉNICIEN", date=local_datetime(2023, 12, 1))

        PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("500.00"))

        other.refresh_from_db()
        self.assertEqual(other.payment_received, Decimal("0.00"))
        self.assertFalse(PaymentApplication.objects.filter(expense=other).exists())

    def test_payment_without_unpaid_expenses_has_no_applications(self):
        payment = PaymentAllocationService.create_payment(client="LE PHÉNICIEN", amount=Decimal("40.00"))
        self.assertEqual(payment.applications.count(), 0)

    def test_amount_is_rounded_to_cents(self):
        payment = PaymentAllocationService.create_payment(client="BEST DEAL", amount="10.005")
        self.assertEqual(payment.amount, Decimal("10.01"))

    def test_non_positive_amount_is_rejected(self):
        for amount in (Decimal("0"), Decimal("-5.00"), Decimal("0.004")):
            with self.assertRaises(ValidationError):
                PaymentAllocationService.create_payment(client="BEST DEAL", amount=amount)
        self.assertEqual(Payment.objects.count(), 0)

    def test_unknown_client_is_rejected(self):
        with self.assertRaises(ValidationError):
            PaymentAllocationService.create_payment(client="ACME", amount=Decimal("10.00"))
        self.assertEqual(Payment.objects.count(), 0)

    def test_failure_rolls_back_everything(self):
        with mock.patch(
            "fulfillment_ledger.payment.services.allocation_service.assert_payment_consistent",
            side_effect=ConsistencyFault(detail="boom"),
        ):
            with self.assertRaises(ConsistencyFault):
                PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("130.00"))

        self.assertEqual(Payment.objects.count(), 0)
        self.assertEqual(PaymentApplication.objects.count(), 0)
        self.first.refresh_from_db()
        self.second.refresh_from_db()
        self.assertEqual(self.first.payment_received, Decimal("0.00"))
        self.assertEqual(self.second.payment_received, Decimal("0.00"))

    def test_ledger_stays_consistent(self):
        PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("70.00"))
        PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("70.00"))
        PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("70.00"))

        self.assertEqual(find_consistency_faults(), [])
        self.first.refresh_from_db()
        self.second.refresh_from_db()
        self.assertEqual(self.first.payment_received, Decimal("115.00"))
        self.assertEqual(self.second.payment_received, Decimal("50.00"))


class DeletePaymentTests(TestCase):
    def setUp(self):
        self.first = make_expense(date=local_datetime(2024, 1, 15))
        self.second = make_expense(
            date=local_datetime(2024, 1, 20),
            product_cost=Decimal("50.00"),
            markup_percentage=Decimal("0"),
            shipping_cost=Decimal("0"),
        )
        self.payment = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("130.00"))

    def test_delete_gives_back_what_was_applied(self):
        PaymentAllocationService.delete_payment(self.payment.pk)

        self.first.refresh_from_db()
        self.second.refresh_from_db()
        self.assertEqual(self.first.payment_received, Decimal("0.00"))
        self.assertEqual(self.second.payment_received, Decimal("0.00"))
        self.assertFalse(Payment.objects.filter(pk=self.payment.pk).exists())
        self.assertEqual(PaymentApplication.objects.count(), 0)

    def test_delete_after_editing_an_expense(self):
        Expense.objects.filter(pk=self.first.pk).update(product_cost=Decimal("300.00"))

        PaymentAllocationService.delete_payment(self.payment.pk)

        self.first.refresh_from_db()
        self.assertEqual(self.first.payment_received, Decimal("0.00"))
        self.assertEqual(self.first.product_cost, Decimal("300.00"))

    def test_delete_leaves_other_payments_alone(self):
        later = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("10.00"))

        PaymentAllocationService.delete_payment(self.payment.pk)

        self.second.refresh_from_db()
        self.assertEqual(self.second.payment_received, Decimal("10.00"))
        self.assertEqual(later.applications.count(), 1)
        self.assertEqual(find_consistency_faults(), [])

    def test_missing_payment(self):
        with self.assertRaises(NotFound):
            PaymentAllocationService.delete_payment(self.payment.pk + 100)

    def test_negative_result_aborts_the_reversal(self):
        Expense.objects.filter(pk=self.second.pk).update(payment_received=Decimal("0.00"))

        with self.assertRaises(ConsistencyFault):
            PaymentAllocationService.delete_payment(self.payment.pk)

        self.assertTrue(Payment.objects.filter(pk=self.payment.pk).exists())
        self.assertEqual(PaymentApplication.objects.filter(payment=self.payment).count(), 2)
        self.first.refresh_from_db()
        self.assertEqual(self.first.payment_received, Decimal("115.00"))

    def test_get_applications(self):
        applications = PaymentAllocationService.get_applications(self.payment.pk)
        self.assertEqual([a.expense_id for a in applications], [self.first.pk, self.second.pk])

        with self.assertRaises(NotFound):
            PaymentAllocationService.get_applications(self.payment.pk + 100)


class CentSettlementTests(TestCase):
    def setUp(self):
        # 33.33 * 1.05 = 34.9965 billable
        self.expense = make_expense(
            product_cost=Decimal("33.33"),
            tax_percentage=Decimal("5.50"),
            markup_percentage=Decimal("5.00"),
            shipping_cost=Decimal("0"),
        )

    def test_balance_is_settled_rounded_to_cents(self):
        payment = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("50.00"))

        self.assertEqual(applied_amounts(payment), [(self.expense.pk, Decimal("35.00"))])
        self.expense.refresh_from_db()
        self.assertEqual(self.expense.payment_received, Decimal("35.00"))
        self.assertEqual(str(self.expense.valuation.rounded().outstanding_balance), "0.00")

    def test_last_cent_settles_the_expense(self):
        PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("34.99"))
        last = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("0.01"))

        self.assertEqual(applied_amounts(last), [(self.expense.pk, Decimal("0.01"))])
        self.expense.refresh_from_db()
        self.assertEqual(self.expense.payment_received, Decimal("35.00"))

        extra = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("5.00"))
        self.assertEqual(applied_amounts(extra), [])

    def test_sub_cent_residue_is_skipped(self):
        # 10.49 * 1.01 = 10.5949 billable, rounds down to 10.59
        expense = make_expense(
            date=local_datetime(2023, 12, 1),
            product_cost=Decimal("10.49"),
            tax_percentage=Decimal("0"),
            markup_percentage=Decimal("1.00"),
            shipping_cost=Decimal("0"),
        )

        first = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("10.59"))
        self.assertEqual(applied_amounts(first), [(expense.pk, Decimal("10.59"))])

        second = PaymentAllocationService.create_payment(client="BEST DEAL", amount=Decimal("1.00"))

        self.assertEqual(applied_amounts(second), [(self.expense.pk, Decimal("1.00"))])
        self.assertFalse(PaymentApplication.objects.filter(expense=expense, payment=second).exists())
        self.assertFalse(PaymentApplication.objects.filter(amount_applied__lte=0).exists())
        expense.refresh_from_db()
        self.assertEqual(expense.payment_received, Decimal("10.59"))
        self.assertEqual(find_consistency_faults(), [])
