from dataclasses import dataclass, fields
from decimal import Decimal

from fulfillment_ledger.common.money import HUNDRED, ZERO, to_cents, to_decimal
from fulfillment_ledger.expenses.models import MarkupBasis

DEFAULT_TAX_PERCENTAGE = Decimal("5.5")
ONE = Decimal("1")


@dataclass(frozen=True)
class ExpenseValuation:
    tax_exclusive_cost: Decimal
    tax_amount: Decimal
    tax_inclusive_cost: Decimal
    markup_amount: Decimal
    cost_with_markup: Decimal
    shipping_cost: Decimal
    total_billable: Decimal
    outstanding_balance: Decimal

    def rounded(self) -> "ExpenseValuation":
        """Same breakdown with every amount rounded to cents, for display."""
        return ExpenseValuation(
            **{f.name: to_cents(getattr(self, f.name)) for f in fields(self)}
        )

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def value_expense(expense) -> ExpenseValuation:
    """
    Break an expense down into tax-exclusive cost, tax, markup, shipping and
    what is still owed on it.

    With markup after tax (the default) the entered cost already includes tax
    and the markup is applied to that tax-inclusive amount. With markup before
    tax the entered cost excludes tax, the markup is applied first and tax is
    then charged on the marked-up amount.

    Amounts keep full precision; nothing is rounded here.
    """
    entered = to_decimal(expense.product_cost)
    tax_rate = _percentage(getattr(expense, "tax_percentage", None), DEFAULT_TAX_PERCENTAGE)
    markup_rate = _percentage(getattr(expense, "markup_percentage", None), ZERO)
    basis = getattr(expense, "markup_basis", None) or MarkupBasis.AFTER_TAX
    shipping = to_decimal(getattr(expense, "shipping_cost", None))
    paid = to_decimal(getattr(expense, "payment_received", None))

    if basis == MarkupBasis.BEFORE_TAX:
        tax_exclusive = entered
        ht_with_markup = tax_exclusive * (ONE + markup_rate / HUNDRED)
        tax_on_markup = ht_with_markup * tax_rate / HUNDRED
        cost_with_markup = ht_with_markup + tax_on_markup

        tax_inclusive = tax_exclusive * (ONE + tax_rate / HUNDRED)
        tax_amount = tax_inclusive - tax_exclusive
        markup_amount = cost_with_markup - tax_inclusive
    else:
        tax_inclusive = entered
        tax_exclusive = tax_inclusive / (ONE + tax_rate / HUNDRED)
        tax_amount = tax_inclusive - tax_exclusive

        cost_with_markup = tax_inclusive * (ONE + markup_rate / HUNDRED)
        markup_amount = cost_with_markup - tax_inclusive

    total_billable = cost_with_markup + shipping

    return ExpenseValuation(
        tax_exclusive_cost=tax_exclusive,
        tax_amount=tax_amount,
        tax_inclusive_cost=tax_inclusive,
        markup_amount=markup_amount,
        cost_with_markup=cost_with_markup,
        shipping_cost=shipping,
        total_billable=total_billable,
        outstanding_balance=total_billable - paid,
    )


def _percentage(value, default):
    if value is None or value == "":
        return default
    return to_decimal(value)
