"""Presentation ("UI") shape of the finances records.

These are the strongly typed records handed to forms, tables and dashboards:
enums instead of strings, ``Decimal`` amounts, ``date`` dates and timezone-aware
timestamps, plus the UI-only state flags (editing, expansion, validation
errors). They carry the same business fields as the persisted records in
``devinde_finances.models.service``; the adapter is the only place converting
between the two.

Forecast and scenario balances are computed fields: they are replayed from
``initial_balance`` and the entries on every access and can never be set from
the outside.
"""

import datetime as dt
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, NamedTuple, Optional, Sequence

from pydantic import BaseModel, Field, computed_field

from devinde_finances.models.enums import (
    BankAccountType,
    BudgetPeriod,
    CashflowEntryState,
    CashflowEntryType,
    DocumentStatus,
    DocumentType,
    ExpenseCategory,
    ExpensePaymentMethod,
    ExpenseStatus,
    ExpenseType,
    PaymentMethod,
    RecurrenceFrequency,
)
from devinde_finances.models.service import ClientInfo, CompanyInfo


def _utc_now() -> datetime:
    """Return current UTC datetime with timezone info."""
    return datetime.now(timezone.utc)


class UIRecord(BaseModel):
    """Base for presentation records."""

    is_editing: bool = False
    validation_errors: dict[str, str] = Field(
        default_factory=dict,
        description="Form validation messages keyed by field name",
    )


# =============================================================================
# INVOICING
# =============================================================================

class UIInvoiceItem(UIRecord):
    id: str = ""
    description: str = ""
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    tax_rate: Decimal = Field(
        default=Decimal("0"),
        description="Tax rate as a fraction (0.2 for 20%)",
    )
    discount: Optional[Decimal] = Field(
        default=None,
        description="Discount as a percentage (10 for 10%)",
    )
    notes: Optional[str] = None
    service_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class UIPayment(UIRecord):
    id: str = ""
    document_id: str = ""
    amount: Decimal = Decimal("0")
    method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    reference: Optional[str] = None
    notes: Optional[str] = None
    receipt_number: Optional[str] = None
    receipt_sent: bool = False
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)
    date: dt.date = Field(
        default_factory=date.today,
        description="Day the payment was received",
    )


class UIDocument(UIRecord):
    """An invoice or quote as edited in the invoicing screens."""

    id: str = ""
    type: DocumentType = DocumentType.INVOICE
    status: DocumentStatus = DocumentStatus.DRAFT
    number: str = ""
    issue_date: date = Field(default_factory=date.today)
    due_date: Optional[date] = None
    valid_until: Optional[date] = Field(
        default=None,
        description="Expiry date of a quote",
    )
    client_info: ClientInfo = Field(default_factory=ClientInfo)
    company_info: CompanyInfo = Field(default_factory=CompanyInfo)
    items: list[UIInvoiceItem] = Field(default_factory=list)
    notes: str = ""
    payment_terms: str = ""
    business_plan_id: str = ""
    service_id: Optional[str] = None

    # Payment tracking
    payments: list[UIPayment] = Field(default_factory=list)
    amount_paid: Decimal = Decimal("0")
    remaining_amount: Optional[Decimal] = None
    last_payment_date: Optional[date] = None
    last_reminder_date: Optional[date] = None
    reminder_count: int = Field(default=0, ge=0)
    client_risk_flag: bool = False

    # Totals
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    is_expanded: bool = False
    is_previewing: bool = False


# =============================================================================
# EXPENSES
# =============================================================================

class UIExpense(UIRecord):
    """An expense with its optional tax breakdown.

    Up to two named taxes can be recorded; ``tax_amount`` and ``tax_rate`` take
    precedence over them when computing the total with taxes.
    """

    id: str = ""
    title: str = ""
    description: str = ""
    type: ExpenseType = ExpenseType.OTHER
    category: ExpenseCategory = ExpenseCategory.OTHER
    amount: Decimal = Decimal("0")
    tax_amount: Optional[Decimal] = None
    tax_rate: Optional[Decimal] = None
    tax1_name: Optional[str] = None
    tax1_rate: Optional[Decimal] = None
    tax1_amount: Optional[Decimal] = None
    tax2_name: Optional[str] = None
    tax2_rate: Optional[Decimal] = None
    tax2_amount: Optional[Decimal] = None
    expense_date: date = Field(default_factory=date.today)
    payment_date: Optional[date] = None
    status: ExpenseStatus = ExpenseStatus.DRAFT
    payment_method: Optional[ExpensePaymentMethod] = None
    recurring: bool = False
    recurrence_frequency: Optional[RecurrenceFrequency] = None
    recurrence_end_date: Optional[date] = None
    vendor_name: Optional[str] = None
    vendor_vat: Optional[str] = None
    invoice_number: Optional[str] = None
    receipt_url: Optional[str] = None
    notes: Optional[str] = None
    business_plan_id: str = ""
    project_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    is_expanded: bool = False

    @computed_field
    @property
    def has_receipt(self) -> bool:
        """Returns True when a receipt has been attached."""
        return bool(self.receipt_url)


class UIExpenseBudget(UIRecord):
    """Spending limit for one category over a period.

    ``spent``, ``remaining`` and ``percent_used`` are filled from the matching
    expenses by ``calculate_budget_usage`` and are never persisted.
    """

    id: str = ""
    category: ExpenseCategory = ExpenseCategory.OTHER
    amount: Decimal = Decimal("0")
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: date = Field(default_factory=date.today)
    end_date: date = Field(default_factory=date.today)
    business_plan_id: str = ""
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    spent: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")
    percent_used: Decimal = Decimal("0")


# =============================================================================
# CASH FLOW
# =============================================================================

class UICashflowEntry(UIRecord):
    id: str = ""
    type: CashflowEntryType = CashflowEntryType.INCOME
    amount: Decimal = Decimal("0")
    description: str = ""
    state: CashflowEntryState = CashflowEntryState.PROJECTED
    source_id: Optional[str] = None
    source_type: Optional[str] = None
    source_description: Optional[str] = None
    destination_id: Optional[str] = None
    destination_account: Optional[str] = None
    category: Optional[str] = None
    business_plan_id: str = ""
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)
    date: dt.date = Field(default_factory=date.today)

    @property
    def signed_amount(self) -> Decimal:
        """Effect of this entry on a balance: income adds, expense and tax subtract."""
        if self.type == CashflowEntryType.INCOME:
            return self.amount
        if self.type in (CashflowEntryType.EXPENSE, CashflowEntryType.TAX):
            return -self.amount
        return Decimal("0")


class UIBankAccount(UIRecord):
    id: str = ""
    name: str = ""
    type: BankAccountType = BankAccountType.CHECKING
    balance: Decimal = Decimal("0")
    currency: str = "EUR"
    account_number: Optional[str] = None
    iban: Optional[str] = None
    swift: Optional[str] = None
    bank: Optional[str] = None
    description: Optional[str] = None
    is_primary: bool = False
    business_plan_id: str = ""
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class BalanceWalk(NamedTuple):
    final_balance: Decimal
    lowest_balance: Decimal
    highest_balance: Decimal
    net_change: Decimal


def walk_balances(initial_balance: Decimal, entries: Sequence[UICashflowEntry]) -> BalanceWalk:
    """Replay entries in ascending date order against a running balance.

    Lowest and highest are taken over the balances after each entry; with no
    entries they all equal the initial balance. The sort is stable, so entries
    sharing a date keep their relative order.
    """
    balance = initial_balance
    lowest = highest = None
    for entry in sorted(entries, key=lambda e: e.date):
        balance += entry.signed_amount
        lowest = balance if lowest is None else min(lowest, balance)
        highest = balance if highest is None else max(highest, balance)

    return BalanceWalk(
        final_balance=balance,
        lowest_balance=initial_balance if lowest is None else lowest,
        highest_balance=initial_balance if highest is None else highest,
        net_change=balance - initial_balance,
    )


class UICashflowForecast(UIRecord):
    """Projected balance over a date range."""

    id: str = ""
    start_date: date = Field(default_factory=date.today)
    end_date: date = Field(default_factory=date.today)
    initial_balance: Decimal = Decimal("0")
    entries: list[UICashflowEntry] = Field(default_factory=list)
    business_plan_id: str = ""
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    def _walk(self) -> BalanceWalk:
        return walk_balances(self.initial_balance, self.entries)

    @computed_field
    @property
    def final_balance(self) -> Decimal:
        """Balance after every entry has been applied."""
        return self._walk().final_balance

    @computed_field
    @property
    def lowest_balance(self) -> Decimal:
        """Lowest running balance after any entry."""
        return self._walk().lowest_balance

    @computed_field
    @property
    def highest_balance(self) -> Decimal:
        """Highest running balance after any entry."""
        return self._walk().highest_balance

    @computed_field
    @property
    def net_change(self) -> Decimal:
        """Final balance minus initial balance."""
        return self._walk().net_change


class UICashflowScenario(UICashflowForecast):
    """A named what-if variant of a forecast."""

    name: str = ""
    description: Optional[str] = None
    assumptions: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form hypotheses behind the scenario",
    )
    is_favorite: bool = False


__all__ = [
    "UIRecord",
    "UIInvoiceItem",
    "UIPayment",
    "UIDocument",
    "UIExpense",
    "UIExpenseBudget",
    "UICashflowEntry",
    "UIBankAccount",
    "UICashflowForecast",
    "UICashflowScenario",
    "BalanceWalk",
    "walk_balances",
]
