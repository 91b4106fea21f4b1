"""Record-level financial calculations.

Pure helpers used by the adapter, the aggregation functions and the manager:
document totals, expense totals with taxes, budget consumption, document
numbering and calendar month arithmetic.
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from devinde_finances.models.enums import DocumentType, ExpenseStatus
from devinde_finances.models.ui import UIDocument, UIExpense, UIExpenseBudget, UIInvoiceItem

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def calculate_item_total(item: UIInvoiceItem) -> Decimal:
    """quantity x unit price, less the item's percentage discount."""
    discount_factor = 1 - item.discount / HUNDRED if item.discount else Decimal("1")
    return item.quantity * item.unit_price * discount_factor


def calculate_document_totals(document: UIDocument) -> UIDocument:
    """Return a copy of the document with subtotal, tax and total recomputed from its items.

    Tax is applied per item: ``item_total * item.tax_rate`` where the rate is a
    fraction. ``total`` is always ``subtotal + tax_amount``.
    """
    subtotal = ZERO
    tax_amount = ZERO
    for item in document.items:
        item_total = calculate_item_total(item)
        subtotal += item_total
        tax_amount += item_total * item.tax_rate

    return document.model_copy(
        update={
            "subtotal": subtotal,
            "tax_amount": tax_amount,
            "total": subtotal + tax_amount,
        }
    )


def calculate_expense_total(expense: UIExpense) -> Decimal:
    """Amount including taxes.

    Precedence: an explicit ``tax_amount``, then the general ``tax_rate``, then
    the itemized ``tax1_rate`` and ``tax2_rate``.
    """
    if expense.tax_amount is not None:
        return expense.amount + expense.tax_amount
    if expense.tax_rate is not None:
        return expense.amount * (1 + expense.tax_rate)

    total = expense.amount
    if expense.tax1_rate is not None:
        total += expense.amount * expense.tax1_rate
    if expense.tax2_rate is not None:
        total += expense.amount * expense.tax2_rate
    return total


def calculate_budget_usage(
    budget: UIExpenseBudget, expenses: Iterable[UIExpense]
) -> UIExpenseBudget:
    """Return a copy of the budget with ``spent``, ``remaining`` and ``percent_used`` filled.

    An expense counts when it shares the budget's category, is not cancelled
    and its ``expense_date`` falls within the budget period (inclusive).
    """
    spent = sum(
        (
            e.amount
            for e in expenses
            if e.category == budget.category
            and e.status != ExpenseStatus.CANCELLED
            and budget.start_date <= e.expense_date <= budget.end_date
        ),
        ZERO,
    )
    percent_used = spent / budget.amount * HUNDRED if budget.amount else ZERO

    return budget.model_copy(
        update={
            "spent": spent,
            "remaining": budget.amount - spent,
            "percent_used": percent_used,
        }
    )


def generate_document_number(
    document_type: DocumentType, sequence: int, year: Optional[int] = None
) -> str:
    """Build a human document number such as ``F2024-007`` or ``D2024-012``.

    Args:
        document_type: Invoices use the ``F`` prefix, quotes ``D``.
        sequence: 1-based position of the document within the year.
        year: Defaults to the current year.
    """
    prefix = "F" if document_type == DocumentType.INVOICE else "D"
    return f"{prefix}{year or date.today().year}-{sequence:03d}"


def add_months(value: date, months: int) -> date:
    """Shift a date by whole calendar months, clamping the day to the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


__all__ = [
    "calculate_item_total",
    "calculate_document_totals",
    "calculate_expense_total",
    "calculate_budget_usage",
    "generate_document_number",
    "add_months",
]
