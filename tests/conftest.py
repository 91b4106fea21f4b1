"""Shared fixtures for the finances test suite."""

from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from devinde_finances.adapter import FinancesAdapter
from devinde_finances.calculations import calculate_document_totals
from devinde_finances.config import DefaultsConfig, FinancesConfig
from devinde_finances.manager import FinancesManager
from devinde_finances.models.enums import (
    CashflowEntryType,
    DocumentStatus,
    ExpenseCategory,
    ExpenseStatus,
)
from devinde_finances.models.ui import (
    UICashflowEntry,
    UIDocument,
    UIExpense,
    UIInvoiceItem,
)
from devinde_finances.storage import InMemoryBusinessPlanStore

PLAN_ID = "bp-1"


@pytest.fixture
def adapter() -> FinancesAdapter:
    """Adapter with explicit defaults so the environment cannot leak in."""
    return FinancesAdapter(DefaultsConfig(currency="EUR", invoice_due_days=30))


@pytest.fixture
def config() -> FinancesConfig:
    return FinancesConfig(env="test")


@pytest.fixture
def stored_finances() -> dict[str, Any]:
    """Persisted finances as written by the tracker (camelCase keys, string enums)."""
    return {
        "invoices": [
            {
                "id": "invoice-1",
                "type": "invoice",
                "status": "sent",
                "number": "F2024-001",
                "issueDate": "2024-03-01",
                "dueDate": "2024-03-31",
                "clientInfo": {"id": "client-1", "name": "Atelier Dupont"},
                "items": [
                    {"id": "item-1", "description": "Audit", "quantity": 2, "unitPrice": 450, "taxRate": 0.2}
                ],
                "payments": [],
                "amountPaid": 0,
                "subtotal": 900,
                "taxAmount": 180,
                "total": 1080,
                "businessPlanId": PLAN_ID,
                "createdAt": "2024-03-01T09:00:00.000Z",
                "updatedAt": "2024-03-01T09:00:00.000Z",
            }
        ],
        "expenses": [
            {
                "id": "expense-1",
                "title": "Laptop",
                "type": "hardware",
                "category": "equipment",
                "amount": 1200,
                "expenseDate": "2024-03-05",
                "status": "paid",
                "recurring": False,
                "vendorVAT": "FR123",
                "businessPlanId": PLAN_ID,
            }
        ],
        "expenseBudgets": [
            {
                "id": "budget-1",
                "category": "equipment",
                "amount": 2000,
                "period": "monthly",
                "startDate": "2024-03-01",
                "endDate": "2024-03-31",
                "businessPlanId": PLAN_ID,
            }
        ],
        "cashflow": {
            "entries": [
                {
                    "id": "entry-1",
                    "type": "income",
                    "amount": 1080,
                    "description": "Invoice F2024-001",
                    "date": "2024-03-31",
                    "state": "projected",
                    "category": "sales",
                }
            ],
            "accounts": [
                {
                    "id": "account-1",
                    "name": "Main",
                    "type": "business",
                    "balance": 5000,
                    "currency": "EUR",
                    "isPrimary": True,
                }
            ],
            "forecasts": [],
            "scenarios": [],
        },
    }


@pytest.fixture
def business_plan(stored_finances: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": PLAN_ID,
        "name": "Freelance studio",
        "pitch": {"title": "Design for small shops"},
        "standardized": {"finances": stored_finances},
    }


@pytest.fixture
def store(business_plan: dict[str, Any]) -> InMemoryBusinessPlanStore:
    return InMemoryBusinessPlanStore([business_plan])


@pytest.fixture
def manager(store: InMemoryBusinessPlanStore, config: FinancesConfig) -> FinancesManager:
    return FinancesManager(store, config=config)


def make_invoice(
    invoice_id: str = "",
    *,
    unit_price: str = "100",
    tax_rate: str = "0",
    status: DocumentStatus = DocumentStatus.SENT,
    issue_date: date = date(2024, 3, 1),
    **fields: Any,
) -> UIDocument:
    """Single-line invoice whose total equals ``unit_price * (1 + tax_rate)``."""
    document = UIDocument(
        id=invoice_id,
        status=status,
        issue_date=issue_date,
        items=[
            UIInvoiceItem(
                id=f"{invoice_id or 'new'}-item",
                description="Service",
                quantity=Decimal("1"),
                unit_price=Decimal(unit_price),
                tax_rate=Decimal(tax_rate),
            )
        ],
        **fields,
    )
    return calculate_document_totals(document)


def make_expense(
    expense_id: str,
    amount: str,
    *,
    category: ExpenseCategory = ExpenseCategory.OTHER,
    status: ExpenseStatus = ExpenseStatus.PAID,
    expense_date: date = date(2024, 3, 10),
    **fields: Any,
) -> UIExpense:
    return UIExpense(
        id=expense_id,
        amount=Decimal(amount),
        category=category,
        status=status,
        expense_date=expense_date,
        **fields,
    )


def make_entry(
    entry_id: str,
    entry_type: CashflowEntryType,
    amount: str,
    entry_date: date,
    **fields: Any,
) -> UICashflowEntry:
    return UICashflowEntry(
        id=entry_id,
        type=entry_type,
        amount=Decimal(amount),
        date=entry_date,
        **fields,
    )
