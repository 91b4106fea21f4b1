"""Read-only filtering of invoice and expense collections.

Every provided criterion must match (AND). Unset criteria leave their axis
unconstrained, so an empty filter returns the input unchanged and in order.
Ranges are inclusive; text search is a case-insensitive substring match.
"""

from typing import Optional, Sequence

from devinde_finances.models.stats import ExpenseFilter, InvoiceFilter
from devinde_finances.models.ui import UIDocument, UIExpense


def _matches_text(term: Optional[str], *fields: Optional[str]) -> bool:
    if not term:
        return True
    needle = term.lower()
    return any(needle in (value or "").lower() for value in fields)


def _invoice_matches(invoice: UIDocument, criteria: InvoiceFilter) -> bool:
    if criteria.status and invoice.status not in criteria.status:
        return False
    if criteria.client_id and invoice.client_info.id != criteria.client_id:
        return False
    if criteria.date_from and invoice.issue_date < criteria.date_from:
        return False
    if criteria.date_to and invoice.issue_date > criteria.date_to:
        return False
    if criteria.min_amount is not None and invoice.total < criteria.min_amount:
        return False
    if criteria.max_amount is not None and invoice.total > criteria.max_amount:
        return False
    return _matches_text(
        criteria.search_term,
        invoice.number,
        invoice.client_info.name,
        invoice.notes,
    )


def _expense_matches(expense: UIExpense, criteria: ExpenseFilter) -> bool:
    if criteria.status and expense.status not in criteria.status:
        return False
    if criteria.type and expense.type not in criteria.type:
        return False
    if criteria.category and expense.category not in criteria.category:
        return False
    if criteria.date_from and expense.expense_date < criteria.date_from:
        return False
    if criteria.date_to and expense.expense_date > criteria.date_to:
        return False
    if criteria.min_amount is not None and expense.amount < criteria.min_amount:
        return False
    if criteria.max_amount is not None and expense.amount > criteria.max_amount:
        return False
    if criteria.recurring is not None and expense.recurring != criteria.recurring:
        return False
    return _matches_text(
        criteria.search_term,
        expense.title,
        expense.description,
        expense.vendor_name,
    )


def filter_invoices(
    invoices: Sequence[UIDocument], criteria: Optional[InvoiceFilter] = None
) -> list[UIDocument]:
    """Return the invoices matching every criterion, preserving order."""
    if criteria is None:
        return list(invoices)
    return [invoice for invoice in invoices if _invoice_matches(invoice, criteria)]


def filter_expenses(
    expenses: Sequence[UIExpense], criteria: Optional[ExpenseFilter] = None
) -> list[UIExpense]:
    """Return the expenses matching every criterion, preserving order."""
    if criteria is None:
        return list(expenses)
    return [expense for expense in expenses if _expense_matches(expense, criteria)]


__all__ = ["filter_invoices", "filter_expenses"]
