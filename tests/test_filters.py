"""Tests for invoice and expense filtering."""

from datetime import date
from decimal import Decimal

import pytest

from devinde_finances.filters import filter_expenses, filter_invoices
from devinde_finances.models.enums import (
    DocumentStatus,
    ExpenseCategory,
    ExpenseStatus,
    ExpenseType,
)
from devinde_finances.models.service import ClientInfo
from devinde_finances.models.stats import ExpenseFilter, InvoiceFilter

from conftest import make_expense, make_invoice


@pytest.fixture
def invoices():
    return [
        make_invoice(
            "a",
            unit_price="100",
            status=DocumentStatus.SENT,
            issue_date=date(2024, 1, 10),
            number="F2024-001",
            client_info=ClientInfo(id="client-1", name="Atelier Dupont"),
        ),
        make_invoice(
            "b",
            unit_price="2500",
            status=DocumentStatus.PAID,
            issue_date=date(2024, 2, 10),
            number="F2024-002",
            client_info=ClientInfo(id="client-2", name="Boulangerie Martin"),
            notes="Rush job for the DUPONT group",
        ),
        make_invoice(
            "c",
            unit_price="900",
            status=DocumentStatus.OVERDUE,
            issue_date=date(2024, 3, 10),
            number="F2024-003",
            client_info=ClientInfo(id="client-1", name="Atelier Dupont"),
        ),
    ]


@pytest.fixture
def expenses():
    return [
        make_expense(
            "laptop",
            "1200",
            category=ExpenseCategory.EQUIPMENT,
            type=ExpenseType.HARDWARE,
            title="Laptop",
            vendor_name="Fnac",
        ),
        make_expense(
            "saas",
            "29",
            category=ExpenseCategory.SOFTWARE,
            type=ExpenseType.SUBSCRIPTION,
            title="Design tool",
            recurring=True,
            status=ExpenseStatus.PENDING,
        ),
        make_expense(
            "train",
            "85",
            category=ExpenseCategory.TRAVEL,
            type=ExpenseType.TRAVEL,
            title="Train to Lyon",
            description="Client workshop",
            expense_date=date(2024, 4, 3),
        ),
    ]


def _ids(records):
    return [r.id for r in records]


class TestFilterInvoices:
    """Test suite for filter_invoices."""

    def test_no_criteria_returns_input(self, invoices):
        """An empty filter returns the input unchanged and in order."""
        assert filter_invoices(invoices) == invoices
        assert filter_invoices(invoices, InvoiceFilter()) == invoices

    def test_status(self, invoices):
        criteria = InvoiceFilter(status=[DocumentStatus.SENT, DocumentStatus.OVERDUE])

        assert _ids(filter_invoices(invoices, criteria)) == ["a", "c"]

    def test_client_and_amount_combined(self, invoices):
        """Criteria are AND-combined."""
        criteria = InvoiceFilter(client_id="client-1", min_amount=Decimal("500"))

        assert _ids(filter_invoices(invoices, criteria)) == ["c"]

    def test_inclusive_date_range(self, invoices):
        criteria = InvoiceFilter(date_from=date(2024, 1, 10), date_to=date(2024, 2, 10))

        assert _ids(filter_invoices(invoices, criteria)) == ["a", "b"]

    def test_max_amount_inclusive(self, invoices):
        assert _ids(filter_invoices(invoices, InvoiceFilter(max_amount=Decimal("900")))) == ["a", "c"]

    def test_search_term(self, invoices):
        """Search is case-insensitive over number, client name and notes."""
        assert _ids(filter_invoices(invoices, InvoiceFilter(search_term="dupont"))) == ["a", "b", "c"]
        assert _ids(filter_invoices(invoices, InvoiceFilter(search_term="2024-002"))) == ["b"]

    def test_result_is_subset(self, invoices):
        criteria = InvoiceFilter(status=[DocumentStatus.PAID], search_term="nothing matches")

        assert filter_invoices(invoices, criteria) == []
        assert len(invoices) == 3


class TestFilterExpenses:
    """Test suite for filter_expenses."""

    def test_no_criteria_returns_input(self, expenses):
        assert filter_expenses(expenses) == expenses
        assert filter_expenses(expenses, ExpenseFilter()) == expenses

    def test_category_and_type(self, expenses):
        criteria = ExpenseFilter(
            category=[ExpenseCategory.SOFTWARE, ExpenseCategory.TRAVEL],
            type=[ExpenseType.TRAVEL],
        )

        assert _ids(filter_expenses(expenses, criteria)) == ["train"]

    def test_status(self, expenses):
        criteria = ExpenseFilter(status=[ExpenseStatus.PENDING])

        assert _ids(filter_expenses(expenses, criteria)) == ["saas"]

    def test_recurring_flag(self, expenses):
        assert _ids(filter_expenses(expenses, ExpenseFilter(recurring=True))) == ["saas"]
        assert _ids(filter_expenses(expenses, ExpenseFilter(recurring=False))) == ["laptop", "train"]

    def test_amount_range(self, expenses):
        criteria = ExpenseFilter(min_amount=Decimal("29"), max_amount=Decimal("85"))

        assert _ids(filter_expenses(expenses, criteria)) == ["saas", "train"]

    def test_date_from(self, expenses):
        assert _ids(filter_expenses(expenses, ExpenseFilter(date_from=date(2024, 4, 1)))) == ["train"]

    def test_search_term(self, expenses):
        """Search covers title, description and vendor name."""
        assert _ids(filter_expenses(expenses, ExpenseFilter(search_term="WORKSHOP"))) == ["train"]
        assert _ids(filter_expenses(expenses, ExpenseFilter(search_term="fnac"))) == ["laptop"]
