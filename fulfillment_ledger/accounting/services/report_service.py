import calendar
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional

from django.db.models import Sum
from django.utils import timezone
from django.utils.text import slugify
from rest_framework.exceptions import ValidationError

from fulfillment_ledger.common.clients import known_clients
from fulfillment_ledger.common.money import ZERO, to_cents
from fulfillment_ledger.expenses.models import Expense
from fulfillment_ledger.expenses.services.valuation import ExpenseValuation, value_expense
from fulfillment_ledger.payment.models import Payment, PaymentApplication

MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
RECENT_EXPENSES = 5


@dataclass
class ReportLine:
    expense: Expense
    valuation: ExpenseValuation

    def as_dict(self):
        rounded = self.valuation.rounded()
        return {
            "id": self.expense.id,
            "date": self.expense.date,
            "client": self.expense.client,
            "product_description": self.expense.product_description,
            "quantity": self.expense.quantity,
            "status": self.expense.status,
            "cost_with_markup": str(rounded.cost_with_markup),
            "shipping_cost": str(rounded.shipping_cost),
            "total_billable": str(rounded.total_billable),
            "payment_received": str(to_cents(self.expense.payment_received)),
            "outstanding_balance": str(rounded.outstanding_balance),
        }


@dataclass
class MonthlyReport:
    year: int
    month: int
    client: Optional[str]
    lines: List[ReportLine] = field(default_factory=list)

    @property
    def period_start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def period_end(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @property
    def product_total(self) -> Decimal:
        return sum((line.valuation.cost_with_markup for line in self.lines), ZERO)

    @property
    def shipping_total(self) -> Decimal:
        return sum((line.valuation.shipping_cost for line in self.lines), ZERO)

    @property
    def grand_total(self) -> Decimal:
        return self.product_total + self.shipping_total

    @property
    def total_paid(self) -> Decimal:
        return sum((line.expense.payment_received for line in self.lines), ZERO)

    @property
    def balance(self) -> Decimal:
        return self.grand_total - self.total_paid

    @property
    def filename(self) -> str:
        if self.client:
            return f"expense-report-{slugify(self.client)}-{self.period_start:%Y-%m}.pdf"
        return f"expense-report-{self.period_start:%Y-%m}.pdf"

    def as_dict(self):
        return {
            "month": f"{self.period_start:%Y-%m}",
            "client": self.client,
            "expense_count": len(self.lines),
            "product_total": str(to_cents(self.product_total)),
            "shipping_total": str(to_cents(self.shipping_total)),
            "grand_total": str(to_cents(self.grand_total)),
            "total_paid": str(to_cents(self.total_paid)),
            "balance": str(to_cents(self.balance)),
            "expenses": [line.as_dict() for line in self.lines],
        }


def parse_month(value):
    """Turn 'YYYY-MM' into (year, month)."""
    match = MONTH_RE.match(value or "")
    if not match:
        raise ValidationError({"month": "Month must be given as YYYY-MM."})
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError({"month": "Month must be between 01 and 12."})
    return year, month


def expenses_in_month(year, month, client=None):
    expenses = Expense.objects.filter(date__year=year, date__month=month)
    if client:
        expenses = expenses.filter(client=client)
    return expenses.order_by("date", "id")


def build_monthly_report(year, month, client=None):
    """Expenses of one month, optionally for one client, oldest first, with their totals."""
    lines = [
        ReportLine(expense=expense, valuation=value_expense(expense))
        for expense in expenses_in_month(year, month, client)
    ]
    return MonthlyReport(year=year, month=month, client=client or None, lines=lines)


def client_credit(client):
    """Money received from a client that no expense has absorbed yet."""
    received = Payment.objects.filter(client=client).aggregate(total=Sum("amount"))["total"] or ZERO
    applied = (
        PaymentApplication.objects
        .filter(payment__client=client)
        .aggregate(total=Sum("amount_applied"))["total"]
        or ZERO
    )
    return to_cents(received) - to_cents(applied)


def build_dashboard(today=None):
    """
    Figures for the current month: totals, the latest expenses and what each
    client owes, plus any payment credit a client has not used up yet.
    """
    today = today or timezone.localdate()
    report = build_monthly_report(today.year, today.month)

    recent = sorted(report.lines, key=lambda line: (line.expense.date, line.expense.id), reverse=True)

    client_balances = []
    for client in known_clients():
        lines = [line for line in report.lines if line.expense.client == client]
        if not lines:
            continue
        total = sum((line.valuation.total_billable for line in lines), ZERO)
        paid = sum((line.expense.payment_received for line in lines), ZERO)
        client_balances.append({
            "client": client,
            "expense_count": len(lines),
            "total": str(to_cents(total)),
            "paid": str(to_cents(paid)),
            "balance": str(to_cents(total - paid)),
        })

    client_credits = []
    for client in known_clients():
        credit = client_credit(client)
        if credit > ZERO:
            client_credits.append({"client": client, "credit": str(credit)})

    return {
        "month": f"{today:%Y-%m}",
        "expense_count": len(report.lines),
        "product_total": str(to_cents(report.product_total)),
        "shipping_total": str(to_cents(report.shipping_total)),
        "total": str(to_cents(report.grand_total)),
        "total_paid": str(to_cents(report.total_paid)),
        "balance_owed": str(to_cents(report.balance)),
        "recent_expenses": [line.as_dict() for line in recent[:RECENT_EXPENSES]],
        "client_balances": client_balances,
        "client_credits": client_credits,
    }
