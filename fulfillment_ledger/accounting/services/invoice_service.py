import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from fulfillment_ledger.accounting.utils.numbering import generate_invoice_number
from fulfillment_ledger.common.clients import CompanyInfo, ISSUER, company_info_for, is_known_client
from fulfillment_ledger.common.money import HUNDRED, ZERO, to_cents, to_decimal
from fulfillment_ledger.expenses.models import Expense
from fulfillment_ledger.expenses.services.valuation import value_expense

logger = logging.getLogger(__name__)


@dataclass
class InvoiceLine:
    date: date
    description: str
    quantity: str
    tax_exclusive: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    tax_inclusive: Decimal
    markup_rate: Decimal
    total: Decimal


@dataclass
class TaxGroup:
    rate: Decimal
    base: Decimal = ZERO
    tax: Decimal = ZERO
    total: Decimal = ZERO


@dataclass
class Invoice:
    number: str
    invoice_date: date
    issuer: CompanyInfo
    client: CompanyInfo
    expenses: List[Expense]
    lines: List[InvoiceLine] = field(default_factory=list)
    shipping_lines: List[InvoiceLine] = field(default_factory=list)
    tax_groups: List[TaxGroup] = field(default_factory=list)
    product_subtotal: Decimal = ZERO
    shipping_total: Decimal = ZERO
    total_paid: Decimal = ZERO

    @property
    def grand_total(self) -> Decimal:
        return self.product_subtotal + self.shipping_total

    @property
    def balance_due(self) -> Decimal:
        return self.grand_total - self.total_paid

    @property
    def tax_base_total(self) -> Decimal:
        return sum((group.base for group in self.tax_groups), ZERO)

    @property
    def tax_total(self) -> Decimal:
        return sum((group.tax for group in self.tax_groups), ZERO)

    @property
    def tax_inclusive_total(self) -> Decimal:
        return sum((group.total for group in self.tax_groups), ZERO)

    @property
    def filename(self) -> str:
        return f"facture-{self.number}.pdf"

    def as_dict(self):
        return {
            "invoice_number": self.number,
            "invoice_date": self.invoice_date,
            "client": self.client.name,
            "expense_ids": [expense.id for expense in self.expenses],
            "tax_groups": [
                {
                    "rate": str(group.rate),
                    "base": str(to_cents(group.base)),
                    "tax": str(to_cents(group.tax)),
                    "total": str(to_cents(group.total)),
                }
                for group in self.tax_groups
            ],
            "product_subtotal": str(to_cents(self.product_subtotal)),
            "shipping_total": str(to_cents(self.shipping_total)),
            "grand_total": str(to_cents(self.grand_total)),
            "total_paid": str(to_cents(self.total_paid)),
            "balance_due": str(to_cents(self.balance_due)),
        }


def build_invoice(number, invoice_date, client, expenses):
    """
    Lay out an invoice for a client's expenses.

    The VAT summary is grouped by rate and computed on the marked-up,
    tax-inclusive product amount: base = amount / (1 + rate), VAT = amount - base.
    Shipping is listed on its own lines, outside the VAT summary.
    """
    invoice = Invoice(
        number=number,
        invoice_date=invoice_date,
        issuer=ISSUER,
        client=company_info_for(client),
        expenses=list(expenses),
    )

    groups = {}
    for expense in invoice.expenses:
        valuation = value_expense(expense)
        rate = to_decimal(expense.tax_percentage)

        invoice.lines.append(InvoiceLine(
            date=timezone.localtime(expense.date).date(),
            description=expense.product_description,
            quantity=expense.quantity,
            tax_exclusive=valuation.tax_exclusive_cost,
            tax_rate=rate,
            tax_amount=valuation.tax_amount,
            tax_inclusive=valuation.tax_inclusive_cost,
            markup_rate=to_decimal(expense.markup_percentage),
            total=valuation.cost_with_markup,
        ))

        if valuation.shipping_cost > ZERO:
            invoice.shipping_lines.append(InvoiceLine(
                date=timezone.localtime(expense.date).date(),
                description=f"Livraison - {expense.shipping_carrier or 'Standard'}",
                quantity="1",
                tax_exclusive=valuation.shipping_cost,
                tax_rate=ZERO,
                tax_amount=ZERO,
                tax_inclusive=valuation.shipping_cost,
                markup_rate=ZERO,
                total=valuation.shipping_cost,
            ))

        group = groups.setdefault(rate, TaxGroup(rate=rate))
        marked_up_base = valuation.cost_with_markup / (1 + rate / HUNDRED)
        group.base += marked_up_base
        group.tax += valuation.cost_with_markup - marked_up_base
        group.total += valuation.cost_with_markup

        invoice.product_subtotal += valuation.cost_with_markup
        invoice.shipping_total += valuation.shipping_cost
        invoice.total_paid += to_decimal(expense.payment_received)

    invoice.tax_groups = [groups[rate] for rate in sorted(groups)]
    return invoice


@transaction.atomic
def issue_invoice(client, expense_ids=None, month=None, invoice_date=None):
    """
    Give the next invoice number to a set of the client's expenses and build
    the invoice. Either explicit expense ids or a (year, month) pair selects
    the expenses; for a month, expenses already on an invoice are left out.
    """
    if not is_known_client(client):
        raise ValidationError({"client": f"Unknown client: {client}."})

    expenses = Expense.objects.select_for_update().filter(client=client)

    if expense_ids:
        wanted = set(expense_ids)
        selected = list(expenses.filter(pk__in=wanted).order_by("date", "id"))
        missing = wanted - {expense.pk for expense in selected}
        if missing:
            raise ValidationError(
                {"expense_ids": f"Not expenses of {client}: {', '.join(str(pk) for pk in sorted(missing))}."}
            )
        already = [expense.pk for expense in selected if expense.invoice_number]
        if already:
            raise ValidationError(
                {"expense_ids": f"Already invoiced: {', '.join(str(pk) for pk in already)}."}
            )
    elif month:
        year, month_number = month
        selected = list(
            expenses
            .filter(date__year=year, date__month=month_number)
            .filter(invoice_number__isnull=True)
            .order_by("date", "id")
        )
    else:
        raise ValidationError("Select the expenses or the month to invoice.")

    if not selected:
        raise ValidationError("There are no expenses to invoice.")

    number = generate_invoice_number()
    Expense.objects.filter(pk__in=[expense.pk for expense in selected]).update(invoice_number=number)
    for expense in selected:
        expense.invoice_number = number

    logger.info(f"Invoice {number} issued to {client} for {len(selected)} expense(s)")
    return build_invoice(number, invoice_date or timezone.localdate(), client, selected)


def load_invoice(invoice_number, invoice_date=None):
    """Rebuild an invoice that was already issued."""
    expenses = list(Expense.objects.filter(invoice_number=invoice_number).order_by("date", "id"))
    if not expenses:
        raise NotFound(f"Invoice {invoice_number} does not exist.")
    return build_invoice(
        invoice_number,
        invoice_date or timezone.localdate(),
        expenses[0].client,
        expenses,
    )
