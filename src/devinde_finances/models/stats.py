"""Summary, report and filter models.

Aggregates are recomputed from the in-memory presentation collections after
every load and successful mutation; none of them is persisted.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from devinde_finances.models.enums import (
    DocumentStatus,
    ExpenseCategory,
    ExpenseStatus,
    ExpenseType,
)
from devinde_finances.models.ui import UICashflowEntry


# =============================================================================
# SERIES
# =============================================================================

class MonthlyRevenue(BaseModel):
    month: str = Field(description="Year-month key, YYYY-MM")
    revenue: Decimal = Decimal("0")


class MonthlyAmount(BaseModel):
    month: str = Field(description="Year-month key, YYYY-MM")
    amount: Decimal = Decimal("0")


class MonthlyCashflow(BaseModel):
    month: str = Field(description="Year-month key, YYYY-MM")
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    net: Decimal = Decimal("0")


class CategoryShare(BaseModel):
    category: ExpenseCategory
    amount: Decimal
    percentage: Decimal = Field(description="Share of total expenses, 0-100")


# =============================================================================
# STATS
# =============================================================================

class InvoiceStats(BaseModel):
    """Receivables overview for the invoicing dashboard."""

    total_outstanding: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    total_overdue: Decimal = Decimal("0")
    average_days_to_payment: int = 0
    invoices_by_status: dict[DocumentStatus, int] = Field(default_factory=dict)
    revenue_by_month: list[MonthlyRevenue] = Field(default_factory=list)


class ExpenseStats(BaseModel):
    total_expenses: Decimal = Decimal("0")
    expenses_by_category: dict[ExpenseCategory, Decimal] = Field(default_factory=dict)
    expenses_by_month: list[MonthlyAmount] = Field(default_factory=list)
    top_categories: list[CategoryShare] = Field(
        default_factory=list,
        description="Up to five categories with spending, largest first",
    )
    recurring_expenses_total: Decimal = Decimal("0")


class UpcomingInvoices(BaseModel):
    count: int = 0
    total: Decimal = Decimal("0")
    overdue: int = Field(default=0, description="Documents currently overdue")


class UpcomingExpenses(BaseModel):
    count: int = 0
    total: Decimal = Decimal("0")
    recurring: int = Field(default=0, description="Active recurring expenses")


class CashflowStats(BaseModel):
    """Treasury overview: balances, projections and trailing averages."""

    current_balance: Decimal = Decimal("0")
    projected_balance_30_days: Decimal = Decimal("0")
    projected_balance_90_days: Decimal = Decimal("0")
    monthly_avg_income: Decimal = Decimal("0")
    monthly_avg_expenses: Decimal = Decimal("0")
    monthly_net_cashflow: Decimal = Decimal("0")
    upcoming_invoices: UpcomingInvoices = Field(default_factory=UpcomingInvoices)
    upcoming_expenses: UpcomingExpenses = Field(default_factory=UpcomingExpenses)
    cashflow_by_month: list[MonthlyCashflow] = Field(default_factory=list)


class MonthlyReport(BaseModel):
    """Cash movements of one calendar month.

    The starting balance is the sum of the *current* bank-account balances,
    not a reconstruction of the balance on the first day of the month;
    ``starting_balance_is_current`` makes that explicit to consumers.
    """

    month: str = Field(description="English month name")
    month_number: int = Field(ge=1, le=12)
    year: int
    starting_balance: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    income_by_category: dict[str, Decimal] = Field(default_factory=dict)
    expenses_by_category: dict[str, Decimal] = Field(default_factory=dict)
    entries: list[UICashflowEntry] = Field(default_factory=list)
    starting_balance_is_current: bool = True

    @computed_field
    @property
    def net_cashflow(self) -> Decimal:
        """Income minus expenses for the month."""
        return self.total_income - self.total_expenses

    @computed_field
    @property
    def ending_balance(self) -> Decimal:
        """Starting balance plus the month's net cash flow."""
        return self.starting_balance + self.net_cashflow


# =============================================================================
# FILTERS
# =============================================================================

class InvoiceFilter(BaseModel):
    """Criteria for ``filter_invoices``. Unset criteria do not constrain."""

    status: Optional[list[DocumentStatus]] = None
    client_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    search_term: Optional[str] = None


class ExpenseFilter(BaseModel):
    """Criteria for ``filter_expenses``. Unset criteria do not constrain."""

    status: Optional[list[ExpenseStatus]] = None
    type: Optional[list[ExpenseType]] = None
    category: Optional[list[ExpenseCategory]] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    search_term: Optional[str] = None
    recurring: Optional[bool] = None


__all__ = [
    "MonthlyRevenue",
    "MonthlyAmount",
    "MonthlyCashflow",
    "CategoryShare",
    "InvoiceStats",
    "ExpenseStats",
    "UpcomingInvoices",
    "UpcomingExpenses",
    "CashflowStats",
    "MonthlyReport",
    "InvoiceFilter",
    "ExpenseFilter",
]
