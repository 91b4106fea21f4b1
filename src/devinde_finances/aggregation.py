"""Summary statistics over presentation-shape collections.

All functions are pure: inputs are never mutated, the result does not depend
on the order of the input collection, and calling them twice gives the same
answer. Functions that depend on the current day accept ``today`` so that
dashboards can be reproduced (and tested) for any reference date.

Usage:
    from devinde_finances.aggregation import calculate_cashflow_stats

    stats = calculate_cashflow_stats(entries, accounts, forecasts)
    print(stats.projected_balance_30_days)
"""

import calendar
from collections import defaultdict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

import structlog

from devinde_finances.calculations import add_months
from devinde_finances.models.enums import (
    CashflowEntryType,
    DocumentStatus,
    ExpenseCategory,
    ExpenseStatus,
)
from devinde_finances.models.stats import (
    CashflowStats,
    CategoryShare,
    ExpenseStats,
    InvoiceStats,
    MonthlyAmount,
    MonthlyCashflow,
    MonthlyReport,
    MonthlyRevenue,
    UpcomingExpenses,
    UpcomingInvoices,
)
from devinde_finances.models.ui import (
    UIBankAccount,
    UICashflowEntry,
    UICashflowForecast,
    UIDocument,
    UIExpense,
)

logger = structlog.get_logger()

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TOP_CATEGORY_COUNT = 5

_OUTFLOW_TYPES = (CashflowEntryType.EXPENSE, CashflowEntryType.TAX)


def _month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def _is_outflow(entry: UICashflowEntry) -> bool:
    return entry.type in _OUTFLOW_TYPES


# =============================================================================
# INVOICES
# =============================================================================

def calculate_invoice_stats(invoices: Sequence[UIDocument]) -> InvoiceStats:
    """Receivables summary.

    - Outstanding: total minus paid over documents that are not paid.
    - Paid: amounts received on paid documents or any document with payments.
    - Overdue: total minus paid over overdue documents.
    - Average days to payment: whole days from issue to last payment over
      paid documents having a payment date, rounded half up.
    """
    total_outstanding = ZERO
    total_paid = ZERO
    total_overdue = ZERO
    payment_delays: list[int] = []
    by_status = {status: 0 for status in DocumentStatus}
    revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)

    for invoice in invoices:
        balance_due = invoice.total - invoice.amount_paid
        if invoice.status != DocumentStatus.PAID:
            total_outstanding += balance_due
        if invoice.status == DocumentStatus.PAID or invoice.amount_paid > 0:
            total_paid += invoice.amount_paid
        if invoice.status == DocumentStatus.OVERDUE:
            total_overdue += balance_due
        if invoice.status == DocumentStatus.PAID and invoice.last_payment_date:
            payment_delays.append((invoice.last_payment_date - invoice.issue_date).days)

        by_status[invoice.status] += 1
        revenue[_month_key(invoice.issue_date)] += invoice.total

    average_days = 0
    if payment_delays:
        mean = Decimal(sum(payment_delays)) / len(payment_delays)
        average_days = int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return InvoiceStats(
        total_outstanding=total_outstanding,
        total_paid=total_paid,
        total_overdue=total_overdue,
        average_days_to_payment=average_days,
        invoices_by_status=by_status,
        revenue_by_month=[
            MonthlyRevenue(month=month, revenue=amount)
            for month, amount in sorted(revenue.items())
        ],
    )


# =============================================================================
# EXPENSES
# =============================================================================

def calculate_expense_stats(expenses: Sequence[UIExpense]) -> ExpenseStats:
    """Spending summary; cancelled expenses are left out of every total.

    The monthly series covers all expenses, cancelled ones included.
    """
    active = [e for e in expenses if e.status != ExpenseStatus.CANCELLED]
    total = sum((e.amount for e in active), ZERO)

    by_category = {category: ZERO for category in ExpenseCategory}
    for expense in active:
        by_category[expense.category] += expense.amount

    by_month: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        by_month[_month_key(expense.expense_date)] += expense.amount

    # sorted() is stable, so ties keep the enum declaration order
    ranked = sorted(
        ((category, amount) for category, amount in by_category.items() if amount > 0),
        key=lambda pair: pair[1],
        reverse=True,
    )
    top_categories = [
        CategoryShare(
            category=category,
            amount=amount,
            percentage=amount / total * HUNDRED if total else ZERO,
        )
        for category, amount in ranked[:TOP_CATEGORY_COUNT]
    ]

    return ExpenseStats(
        total_expenses=total,
        expenses_by_category=by_category,
        expenses_by_month=[
            MonthlyAmount(month=month, amount=amount)
            for month, amount in sorted(by_month.items())
        ],
        top_categories=top_categories,
        recurring_expenses_total=sum((e.amount for e in active if e.recurring), ZERO),
    )


# =============================================================================
# CASH FLOW
# =============================================================================

def calculate_cashflow_stats(
    entries: Sequence[UICashflowEntry],
    accounts: Sequence[UIBankAccount],
    forecasts: Sequence[UICashflowForecast] = (),
    *,
    invoices: Optional[Sequence[UIDocument]] = None,
    expenses: Optional[Sequence[UIExpense]] = None,
    today: Optional[date] = None,
    trailing_months: int = 6,
    short_window_days: int = 30,
    long_window_days: int = 90,
) -> CashflowStats:
    """Treasury summary as of ``today``.

    Args:
        entries: Cash flow entries of the business plan.
        accounts: Bank accounts; their balances sum to the current balance.
        forecasts: Accepted for parity with the dashboard inputs. Forecast
            balances are exposed on the forecasts themselves.
        invoices: When given, ``upcoming_invoices.overdue`` counts overdue documents.
        expenses: When given, ``upcoming_expenses.recurring`` counts active
            recurring expenses.
        today: Reference day, defaults to the current date.
        trailing_months: Size of the trailing window, also used as the fixed
            divisor of the monthly averages.
        short_window_days: Horizon of the short projection and of "upcoming".
        long_window_days: Horizon of the long projection.

    Projections start from the current balance and apply income (+) and
    expense/tax (-) entries dated strictly after ``today`` and up to the
    horizon inclusive. Transfers are neutral.
    """
    today = today or date.today()
    short_horizon = today + timedelta(days=short_window_days)
    long_horizon = today + timedelta(days=long_window_days)
    window_start = add_months(today, -trailing_months)

    current_balance = sum((a.balance for a in accounts), ZERO)

    projected_short = current_balance
    projected_long = current_balance
    upcoming_income: list[UICashflowEntry] = []
    upcoming_outflow: list[UICashflowEntry] = []
    for entry in entries:
        if entry.date <= today:
            continue
        if entry.date <= short_horizon:
            projected_short += entry.signed_amount
            if entry.type == CashflowEntryType.INCOME:
                upcoming_income.append(entry)
            elif _is_outflow(entry):
                upcoming_outflow.append(entry)
        if entry.date <= long_horizon:
            projected_long += entry.signed_amount

    recent = [e for e in entries if window_start <= e.date <= today]
    recent_income = [e.amount for e in recent if e.type == CashflowEntryType.INCOME]
    recent_outflow = [e.amount for e in recent if _is_outflow(e)]
    divisor = Decimal(trailing_months)
    avg_income = sum(recent_income, ZERO) / divisor if recent_income else ZERO
    avg_expenses = sum(recent_outflow, ZERO) / divisor if recent_outflow else ZERO

    income_by_month: dict[str, Decimal] = defaultdict(lambda: ZERO)
    outflow_by_month: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for entry in recent:
        if entry.type == CashflowEntryType.INCOME:
            income_by_month[_month_key(entry.date)] += entry.amount
        elif _is_outflow(entry):
            outflow_by_month[_month_key(entry.date)] += entry.amount

    cashflow_by_month = [
        MonthlyCashflow(
            month=month,
            income=income_by_month.get(month, ZERO),
            expenses=outflow_by_month.get(month, ZERO),
            net=income_by_month.get(month, ZERO) - outflow_by_month.get(month, ZERO),
        )
        for month in sorted(set(income_by_month) | set(outflow_by_month))
    ]

    overdue_count = 0
    if invoices is not None:
        overdue_count = sum(1 for i in invoices if i.status == DocumentStatus.OVERDUE)
    recurring_count = 0
    if expenses is not None:
        recurring_count = sum(
            1 for e in expenses if e.recurring and e.status != ExpenseStatus.CANCELLED
        )

    logger.debug(
        "cashflow_stats_calculated",
        today=today.isoformat(),
        entries=len(entries),
        accounts=len(accounts),
        forecasts=len(forecasts),
    )

    return CashflowStats(
        current_balance=current_balance,
        projected_balance_30_days=projected_short,
        projected_balance_90_days=projected_long,
        monthly_avg_income=avg_income,
        monthly_avg_expenses=avg_expenses,
        monthly_net_cashflow=avg_income - avg_expenses,
        upcoming_invoices=UpcomingInvoices(
            count=len(upcoming_income),
            total=sum((e.amount for e in upcoming_income), ZERO),
            overdue=overdue_count,
        ),
        upcoming_expenses=UpcomingExpenses(
            count=len(upcoming_outflow),
            total=sum((e.amount for e in upcoming_outflow), ZERO),
            recurring=recurring_count,
        ),
        cashflow_by_month=cashflow_by_month,
    )


# =============================================================================
# MONTHLY REPORT
# =============================================================================

def build_monthly_report(
    entries: Iterable[UICashflowEntry],
    accounts: Iterable[UIBankAccount],
    year: int,
    month: int,
) -> MonthlyReport:
    """Cash movements of one calendar month.

    The starting balance is the sum of the current account balances rather
    than the historical balance at the start of the month; the report flags
    this with ``starting_balance_is_current``.

    Raises:
        ValueError: If ``month`` is not in 1..12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}. Must be between 1 and 12")

    first_day = date(year, month, 1)
    last_day = date(year, month, calendar.monthrange(year, month)[1])
    month_entries = sorted(
        (e for e in entries if first_day <= e.date <= last_day),
        key=lambda e: e.date,
    )

    total_income = ZERO
    total_expenses = ZERO
    income_by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
    expenses_by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for entry in month_entries:
        category = entry.category or "other"
        if entry.type == CashflowEntryType.INCOME:
            total_income += entry.amount
            income_by_category[category] += entry.amount
        elif _is_outflow(entry):
            total_expenses += entry.amount
            expenses_by_category[category] += entry.amount

    return MonthlyReport(
        month=calendar.month_name[month],
        month_number=month,
        year=year,
        starting_balance=sum((a.balance for a in accounts), ZERO),
        total_income=total_income,
        total_expenses=total_expenses,
        income_by_category=dict(income_by_category),
        expenses_by_category=dict(expenses_by_category),
        entries=month_entries,
        starting_balance_is_current=True,
    )


__all__ = [
    "calculate_invoice_stats",
    "calculate_expense_stats",
    "calculate_cashflow_stats",
    "build_monthly_report",
]
