"""Fixed vocabularies for the finances domain.

The string values are the identifiers found in persisted business plans and
must not change. Every enum exposes ``parse()`` which maps an arbitrary stored
value onto a member, falling back to the family's canonical default for
anything unknown. Parsing never raises.

Usage:
    from devinde_finances.models.enums import DocumentStatus

    DocumentStatus.parse("partial")    # DocumentStatus.PARTIALLY_PAID
    DocumentStatus.parse("bogus")      # DocumentStatus.DRAFT
"""

from enum import Enum
from typing import Any


class _ParsableEnum(str, Enum):
    """String enum with a lenient ``parse`` classmethod."""

    @classmethod
    def default(cls) -> "_ParsableEnum":
        """Canonical fallback member. The first declared member unless overridden."""
        return next(iter(cls))

    @classmethod
    def parse(cls, value: Any) -> "_ParsableEnum":
        """Return the member matching ``value`` or the family default."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.default()


# =============================================================================
# INVOICING
# =============================================================================

class DocumentType(_ParsableEnum):
    """Kind of commercial document."""

    INVOICE = "invoice"
    QUOTE = "quote"


class DocumentStatus(_ParsableEnum):
    """Lifecycle status of an invoice or quote."""

    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    PARTIALLY_PAID = "partial"
    PAID = "paid"
    REJECTED = "rejected"
    OVERDUE = "overdue"
    IN_DISPUTE = "dispute"
    IN_COLLECTION = "collection"

    @classmethod
    def _missing_(cls, value: object) -> "DocumentStatus | None":
        if value == "partially_paid":
            return cls.PARTIALLY_PAID
        return None


class PaymentMethod(_ParsableEnum):
    """How a client settled an invoice."""

    BANK_TRANSFER = "transfer"
    CREDIT_CARD = "card"
    CHECK = "check"
    CASH = "cash"
    PAYPAL = "paypal"
    OTHER = "other"

    @classmethod
    def default(cls) -> "PaymentMethod":
        return cls.OTHER


# =============================================================================
# EXPENSES
# =============================================================================

class ExpenseType(_ParsableEnum):
    """Nature of an expense."""

    PURCHASE = "purchase"
    SUBSCRIPTION = "subscription"
    TRAVEL = "travel"
    MEAL = "meal"
    ACCOMMODATION = "accommodation"
    OFFICE = "office"
    SOFTWARE = "software"
    HARDWARE = "hardware"
    SERVICE = "service"
    TAX = "tax"
    INSURANCE = "insurance"
    TRAINING = "training"
    OTHER = "other"

    @classmethod
    def default(cls) -> "ExpenseType":
        return cls.OTHER


class ExpenseCategory(_ParsableEnum):
    """Accounting category used for budgets and reporting."""

    EQUIPMENT = "equipment"
    SUPPLIES = "supplies"
    RENT = "rent"
    UTILITIES = "utilities"
    MARKETING = "marketing"
    TRAVEL = "travel"
    MEALS = "meals"
    ENTERTAINMENT = "entertainment"
    INSURANCE = "insurance"
    TAXES = "taxes"
    SALARIES = "salaries"
    SOFTWARE = "software"
    EDUCATION = "education"
    FEES = "fees"
    OTHER = "other"

    @classmethod
    def default(cls) -> "ExpenseCategory":
        return cls.OTHER


class ExpenseStatus(_ParsableEnum):
    """Approval and payment status of an expense."""

    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    REJECTED = "rejected"
    REIMBURSED = "reimbursed"
    CANCELLED = "cancelled"


class ExpensePaymentMethod(_ParsableEnum):
    """How an expense was paid. Distinct from invoice payment methods."""

    BANK_TRANSFER = "transfer"
    CREDIT_CARD = "credit_card"
    CASH = "cash"
    CHECK = "check"
    DIRECT_DEBIT = "direct_debit"
    PAYPAL = "paypal"
    OTHER = "other"

    @classmethod
    def default(cls) -> "ExpensePaymentMethod":
        return cls.OTHER


class RecurrenceFrequency(_ParsableEnum):
    """Repeat interval of a recurring expense."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    CUSTOM = "custom"

    @classmethod
    def default(cls) -> "RecurrenceFrequency":
        return cls.MONTHLY


class BudgetPeriod(_ParsableEnum):
    """Period covered by an expense budget."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


# =============================================================================
# CASH FLOW
# =============================================================================

class CashflowEntryType(_ParsableEnum):
    """Direction of a cash movement."""

    INCOME = "income"
    EXPENSE = "expense"
    TAX = "tax"
    TRANSFER = "transfer"

    @classmethod
    def default(cls) -> "CashflowEntryType":
        return cls.EXPENSE


class CashflowEntryState(_ParsableEnum):
    """Certainty of a cash movement."""

    PROJECTED = "projected"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BankAccountType(_ParsableEnum):
    """Kind of bank account."""

    CHECKING = "checking"
    SAVINGS = "savings"
    BUSINESS = "business"
    TAX = "tax"
    CREDIT = "credit"
    OTHER = "other"

    @classmethod
    def default(cls) -> "BankAccountType":
        return cls.OTHER


__all__ = [
    "DocumentType",
    "DocumentStatus",
    "PaymentMethod",
    "ExpenseType",
    "ExpenseCategory",
    "ExpenseStatus",
    "ExpensePaymentMethod",
    "RecurrenceFrequency",
    "BudgetPeriod",
    "CashflowEntryType",
    "CashflowEntryState",
    "BankAccountType",
]
