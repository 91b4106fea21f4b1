"""Finances data models.

This package provides:
- Fixed vocabularies shared with persisted data (enums.py)
- Persisted record shapes stored in the business plan (service.py)
- Typed presentation records with UI-only state (ui.py)
- Stats, monthly report and filter criteria (stats.py)
"""

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
from devinde_finances.models.service import (
    CashflowData,
    ClientInfo,
    CompanyInfo,
    FinancesData,
    ServiceBankAccount,
    ServiceCashflowEntry,
    ServiceCashflowForecast,
    ServiceCashflowScenario,
    ServiceDocument,
    ServiceExpense,
    ServiceExpenseBudget,
    ServiceInvoiceItem,
    ServicePayment,
    ServiceRecord,
)
from devinde_finances.models.stats import (
    CashflowStats,
    CategoryShare,
    ExpenseFilter,
    ExpenseStats,
    InvoiceFilter,
    InvoiceStats,
    MonthlyAmount,
    MonthlyCashflow,
    MonthlyReport,
    MonthlyRevenue,
    UpcomingExpenses,
    UpcomingInvoices,
)
from devinde_finances.models.ui import (
    BalanceWalk,
    UIBankAccount,
    UICashflowEntry,
    UICashflowForecast,
    UICashflowScenario,
    UIDocument,
    UIExpense,
    UIExpenseBudget,
    UIInvoiceItem,
    UIPayment,
    UIRecord,
    walk_balances,
)

__all__ = [
    # Enumerations
    "BankAccountType",
    "BudgetPeriod",
    "CashflowEntryState",
    "CashflowEntryType",
    "DocumentStatus",
    "DocumentType",
    "ExpenseCategory",
    "ExpensePaymentMethod",
    "ExpenseStatus",
    "ExpenseType",
    "PaymentMethod",
    "RecurrenceFrequency",
    # Persisted shape
    "CashflowData",
    "ClientInfo",
    "CompanyInfo",
    "FinancesData",
    "ServiceBankAccount",
    "ServiceCashflowEntry",
    "ServiceCashflowForecast",
    "ServiceCashflowScenario",
    "ServiceDocument",
    "ServiceExpense",
    "ServiceExpenseBudget",
    "ServiceInvoiceItem",
    "ServicePayment",
    "ServiceRecord",
    # Presentation shape
    "BalanceWalk",
    "UIBankAccount",
    "UICashflowEntry",
    "UICashflowForecast",
    "UICashflowScenario",
    "UIDocument",
    "UIExpense",
    "UIExpenseBudget",
    "UIInvoiceItem",
    "UIPayment",
    "UIRecord",
    "walk_balances",
    # Stats and filters
    "CashflowStats",
    "CategoryShare",
    "ExpenseFilter",
    "ExpenseStats",
    "InvoiceFilter",
    "InvoiceStats",
    "MonthlyAmount",
    "MonthlyCashflow",
    "MonthlyReport",
    "MonthlyRevenue",
    "UpcomingExpenses",
    "UpcomingInvoices",
]
