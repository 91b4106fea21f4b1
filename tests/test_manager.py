"""Tests for FinancesManager orchestration."""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from devinde_finances.config import FinancesConfig
from devinde_finances.manager import FinancesManager
from devinde_finances.models.enums import (
    CashflowEntryType,
    DocumentStatus,
    ExpenseCategory,
    PaymentMethod,
)
from devinde_finances.models.stats import ExpenseFilter, InvoiceFilter
from devinde_finances.models.ui import (
    UIBankAccount,
    UICashflowForecast,
    UICashflowScenario,
    UIPayment,
)
from devinde_finances.storage import (
    STORAGE_UPDATE_ERROR,
    InMemoryBusinessPlanStore,
    StoreResult,
)

from conftest import PLAN_ID, make_entry, make_expense, make_invoice


class FailingUpdateStore(InMemoryBusinessPlanStore):
    """Reads normally, refuses every write."""

    def __init__(self, plans=None) -> None:
        super().__init__(plans)
        self.update_calls = 0

    async def update(self, plan_id: str, record: dict[str, Any]) -> StoreResult:
        self.update_calls += 1
        return StoreResult.fail(STORAGE_UPDATE_ERROR, "disk full")


class SlowStore(InMemoryBusinessPlanStore):
    """Yields to the event loop during writes so mutations can interleave."""

    async def update(self, plan_id: str, record: dict[str, Any]) -> StoreResult:
        await asyncio.sleep(0.01)
        return await super().update(plan_id, record)


def _stored_finances(store: InMemoryBusinessPlanStore, plan_id: str = PLAN_ID) -> dict:
    return store._plans[plan_id]["standardized"]["finances"]


class TestLoading:
    """Test suite for load()."""

    @pytest.mark.asyncio
    async def test_load_populates_collections(self, manager):
        assert await manager.load(PLAN_ID) is True

        assert manager.error is None
        assert manager.is_loading is False
        assert manager.plan_id == PLAN_ID
        assert [i.id for i in manager.invoices] == ["invoice-1"]
        assert [e.id for e in manager.expenses] == ["expense-1"]
        assert [a.id for a in manager.bank_accounts] == ["account-1"]
        assert len(manager.cashflow_entries) == 1

    @pytest.mark.asyncio
    async def test_load_computes_stats_and_budget_usage(self, manager):
        await manager.load(PLAN_ID)

        assert manager.invoice_stats.total_outstanding == Decimal("1080")
        assert manager.expense_stats.total_expenses == Decimal("1200")
        assert manager.cashflow_stats.current_balance == Decimal("5000")

        budget = manager.expense_budgets[0]
        assert budget.spent == Decimal("1200")
        assert budget.remaining == Decimal("800")
        assert budget.percent_used == Decimal("60")

    @pytest.mark.asyncio
    async def test_load_without_id(self, manager):
        assert await manager.load("") is False
        assert manager.error == "No business plan ID provided"

    @pytest.mark.asyncio
    async def test_load_missing_plan(self, manager):
        assert await manager.load("nope") is False

        assert manager.error == "Loading error: Business plan with ID nope not found"
        assert manager.business_plan is None
        assert manager.is_loading is False

    @pytest.mark.asyncio
    async def test_plan_without_finances(self, config):
        manager = FinancesManager(InMemoryBusinessPlanStore([{"id": "empty"}]), config=config)

        assert await manager.load("empty") is True

        assert manager.invoices == []
        assert manager.invoice_stats is None
        assert manager.expense_stats is None
        assert manager.cashflow_stats.current_balance == Decimal("0")
        assert manager.cashflow_stats.projected_balance_30_days == Decimal("0")

    @pytest.mark.asyncio
    async def test_records_without_ids_can_be_deleted(self, config):
        """Stored records lacking an id get one on load that delete can address."""
        plan = {
            "id": "legacy",
            "standardized": {"finances": {"expenses": [{"title": "Laptop", "amount": 1200}]}},
        }
        store = InMemoryBusinessPlanStore([plan])
        manager = FinancesManager(store, config=config)
        await manager.load("legacy")

        expense_id = manager.expenses[0].id
        assert expense_id.startswith("expense-")
        assert manager.adapter.expense_to_ui(manager.finances.expenses[0]).id == expense_id

        assert await manager.delete_expense(expense_id) is True
        assert manager.expenses == []
        assert _stored_finances(store, "legacy")["expenses"] == []

    @pytest.mark.asyncio
    async def test_records_without_ids_are_updated_in_place(self, config):
        plan = {
            "id": "legacy",
            "standardized": {
                "finances": {"expenses": [{"title": "Laptop", "amount": 1200}, {"title": "Desk"}]}
            },
        }
        store = InMemoryBusinessPlanStore([plan])
        manager = FinancesManager(store, config=config)
        await manager.load("legacy")
        desk_id = manager.expenses[1].id

        edited = manager.expenses[0].model_copy(update={"amount": Decimal("999")})
        assert await manager.save_expense(edited) is True

        assert [e.title for e in manager.expenses] == ["Laptop", "Desk"]
        assert manager.expenses[0].amount == Decimal("999")
        assert manager.expenses[0].id == edited.id
        stored = _stored_finances(store, "legacy")["expenses"]
        assert [e["id"] for e in stored] == [edited.id, desk_id]

    @pytest.mark.asyncio
    async def test_load_aliases(self, manager):
        assert await manager.load_invoices(PLAN_ID) is True
        assert await manager.load_expenses(PLAN_ID) is True
        assert await manager.load_cashflow(PLAN_ID) is True


class TestNoPlanLoaded:
    """Mutations before load() are refused without touching the store."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "operation,argument",
        [
            ("save_invoice", make_invoice("x")),
            ("delete_invoice", "invoice-1"),
            ("add_payment", "invoice-1"),
            ("save_expense", make_expense("x", "10")),
            ("delete_expense", "expense-1"),
            ("save_bank_account", UIBankAccount(id="x")),
            ("delete_cashflow_entry", "entry-1"),
            ("save_cashflow_scenario", UICashflowScenario(id="x")),
        ],
    )
    async def test_mutation_refused(self, store, config, operation, argument):
        manager = FinancesManager(store, config=config)
        before = await store.get(PLAN_ID)

        method = getattr(manager, operation)
        if operation == "add_payment":
            result = await method(argument, UIPayment(amount=Decimal("10")))
        else:
            result = await method(argument)

        assert result is False
        assert manager.error == "No business plan data available"
        assert manager.is_saving is False
        assert (await store.get(PLAN_ID)).data == before.data


class TestInvoices:
    """Test suite for invoice operations."""

    @pytest.mark.asyncio
    async def test_save_new_invoice_is_numbered(self, manager, store):
        await manager.load(PLAN_ID)

        invoice = make_invoice("invoice-2", unit_price="250", issue_date=date(2024, 3, 10))
        assert await manager.save_invoice(invoice) is True

        saved = next(i for i in manager.invoices if i.id == "invoice-2")
        assert saved.number == "F2024-002"
        assert saved.total == Decimal("250")
        assert [i["id"] for i in _stored_finances(store)["invoices"]] == ["invoice-1", "invoice-2"]
        assert manager.invoice_stats.total_outstanding == Decimal("1330")

    @pytest.mark.asyncio
    async def test_save_replaces_by_id(self, manager, store):
        await manager.load(PLAN_ID)
        invoice = manager.invoices[0].model_copy(update={"notes": "Updated"})

        assert await manager.save_invoice(invoice) is True

        assert len(manager.invoices) == 1
        assert manager.invoices[0].notes == "Updated"
        assert manager.invoices[0].number == "F2024-001"

    @pytest.mark.asyncio
    async def test_save_default_invoice(self, manager):
        await manager.load(PLAN_ID)

        assert await manager.save_invoice(manager.adapter.invoice_to_ui(None)) is True
        assert len(manager.invoices) == 2

    @pytest.mark.asyncio
    async def test_delete_invoice(self, manager, store):
        await manager.load(PLAN_ID)

        assert await manager.delete_invoice("invoice-1") is True

        assert manager.invoices == []
        assert manager.invoice_stats is None
        assert _stored_finances(store)["invoices"] == []

    @pytest.mark.asyncio
    async def test_full_payment_marks_paid(self, manager):
        await manager.load(PLAN_ID)
        await manager.save_invoice(make_invoice("inv-100", unit_price="100"))

        payment = UIPayment(amount=Decimal("100"), method=PaymentMethod.CHECK, date=date(2024, 4, 1))
        assert await manager.add_payment("inv-100", payment) is True

        invoice = next(i for i in manager.invoices if i.id == "inv-100")
        assert invoice.status == DocumentStatus.PAID
        assert invoice.amount_paid == Decimal("100")
        assert invoice.remaining_amount == Decimal("0")
        assert invoice.last_payment_date == date(2024, 4, 1)
        assert invoice.payments[0].document_id == "inv-100"
        assert invoice.payments[0].id

    @pytest.mark.asyncio
    async def test_partial_payments_accumulate(self, manager):
        await manager.load(PLAN_ID)
        await manager.save_invoice(make_invoice("inv-100", unit_price="100"))

        assert await manager.add_payment("inv-100", UIPayment(amount=Decimal("40"))) is True

        invoice = next(i for i in manager.invoices if i.id == "inv-100")
        assert invoice.status == DocumentStatus.PARTIALLY_PAID
        assert invoice.amount_paid == Decimal("40")
        assert invoice.remaining_amount == Decimal("60")

        assert await manager.add_payment("inv-100", UIPayment(amount=Decimal("60"))) is True

        invoice = next(i for i in manager.invoices if i.id == "inv-100")
        assert invoice.status == DocumentStatus.PAID
        assert len(invoice.payments) == 2

    @pytest.mark.asyncio
    async def test_payment_for_unknown_invoice(self, manager, store):
        await manager.load(PLAN_ID)
        before = await store.get(PLAN_ID)

        assert await manager.add_payment("missing", UIPayment(amount=Decimal("1"))) is False

        assert manager.error == "Payment error: Invoice with ID missing not found"
        assert (await store.get(PLAN_ID)).data == before.data

    @pytest.mark.asyncio
    async def test_filter_invoices(self, manager):
        await manager.load(PLAN_ID)

        assert len(manager.filter_invoices()) == 1
        assert manager.filter_invoices(InvoiceFilter(status=[DocumentStatus.PAID])) == []


class TestExpensesAndBudgets:
    """Test suite for expense and budget operations."""

    @pytest.mark.asyncio
    async def test_save_expense_updates_budget_usage(self, manager):
        await manager.load(PLAN_ID)

        expense = make_expense(
            "expense-2", "300", category=ExpenseCategory.EQUIPMENT, expense_date=date(2024, 3, 20)
        )
        assert await manager.save_expense(expense) is True

        assert manager.expense_budgets[0].spent == Decimal("1500")
        assert manager.expense_stats.total_expenses == Decimal("1500")

    @pytest.mark.asyncio
    async def test_delete_expense_releases_budget(self, manager, store):
        await manager.load(PLAN_ID)

        assert await manager.delete_expense("expense-1") is True

        assert manager.expenses == []
        assert manager.expense_stats is None
        assert manager.expense_budgets[0].spent == Decimal("0")
        assert _stored_finances(store)["expenses"] == []

    @pytest.mark.asyncio
    async def test_save_and_delete_budget(self, manager, store):
        await manager.load(PLAN_ID)
        budget = manager.adapter.expense_budget_to_ui(None).model_copy(
            update={
                "id": "budget-2",
                "category": ExpenseCategory.EQUIPMENT,
                "amount": Decimal("5000"),
                "start_date": date(2024, 1, 1),
                "end_date": date(2024, 12, 31),
            }
        )

        assert await manager.save_budget(budget) is True
        saved = next(b for b in manager.expense_budgets if b.id == "budget-2")
        assert saved.spent == Decimal("1200")

        assert await manager.delete_budget("budget-2") is True
        assert [b.id for b in manager.expense_budgets] == ["budget-1"]
        assert [b["id"] for b in _stored_finances(store)["expenseBudgets"]] == ["budget-1"]

    @pytest.mark.asyncio
    async def test_filter_expenses(self, manager):
        await manager.load(PLAN_ID)

        criteria = ExpenseFilter(category=[ExpenseCategory.EQUIPMENT])
        assert [e.id for e in manager.filter_expenses(criteria)] == ["expense-1"]


class TestCashflow:
    """Test suite for cash flow operations."""

    @pytest.mark.asyncio
    async def test_primary_account_is_exclusive(self, manager, store):
        await manager.load(PLAN_ID)

        account = UIBankAccount(id="account-2", name="Savings", balance=Decimal("100"), is_primary=True)
        assert await manager.save_bank_account(account) is True

        primaries = [a.id for a in manager.bank_accounts if a.is_primary]
        assert primaries == ["account-2"]
        stored = _stored_finances(store)["cashflow"]["accounts"]
        assert [a["isPrimary"] for a in stored] == [False, True]
        assert manager.cashflow_stats.current_balance == Decimal("5100")

    @pytest.mark.asyncio
    async def test_non_primary_account_keeps_existing_primary(self, manager):
        await manager.load(PLAN_ID)

        await manager.save_bank_account(UIBankAccount(id="account-2", name="Tax reserve"))

        assert [a.id for a in manager.bank_accounts if a.is_primary] == ["account-1"]

    @pytest.mark.asyncio
    async def test_resaving_primary_account(self, manager):
        await manager.load(PLAN_ID)
        account = manager.bank_accounts[0].model_copy(update={"balance": Decimal("6000")})

        assert await manager.save_bank_account(account) is True

        assert len(manager.bank_accounts) == 1
        assert manager.bank_accounts[0].is_primary is True
        assert manager.bank_accounts[0].balance == Decimal("6000")

    @pytest.mark.asyncio
    async def test_delete_bank_account(self, manager):
        await manager.load(PLAN_ID)

        assert await manager.delete_bank_account("account-1") is True
        assert manager.bank_accounts == []

    @pytest.mark.asyncio
    async def test_save_and_delete_entry(self, manager):
        await manager.load(PLAN_ID)
        entry = make_entry("entry-2", CashflowEntryType.EXPENSE, "200", date(2024, 3, 15))

        assert await manager.save_cashflow_entry(entry) is True
        assert [e.id for e in manager.cashflow_entries] == ["entry-1", "entry-2"]

        assert await manager.delete_cashflow_entry("entry-1") is True
        assert [e.id for e in manager.cashflow_entries] == ["entry-2"]

    @pytest.mark.asyncio
    async def test_forecast_lifecycle(self, manager, store):
        await manager.load(PLAN_ID)
        forecast = UICashflowForecast(
            id="forecast-1",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 3, 31),
            initial_balance=Decimal("1000"),
            entries=[
                make_entry("a", CashflowEntryType.INCOME, "500", date(2024, 1, 5)),
                make_entry("b", CashflowEntryType.EXPENSE, "300", date(2024, 1, 10)),
                make_entry("c", CashflowEntryType.INCOME, "200", date(2024, 1, 20)),
            ],
        )

        assert await manager.save_cashflow_forecast(forecast) is True
        saved = manager.cashflow_forecasts[0]
        assert saved.final_balance == Decimal("1400")
        assert saved.lowest_balance == Decimal("1200")
        assert saved.highest_balance == Decimal("1500")
        assert "finalBalance" not in _stored_finances(store)["cashflow"]["forecasts"][0]

        assert await manager.delete_cashflow_forecast("forecast-1") is True
        assert manager.cashflow_forecasts == []

    @pytest.mark.asyncio
    async def test_scenario_lifecycle(self, manager):
        await manager.load(PLAN_ID)
        scenario = UICashflowScenario(
            id="scenario-1",
            name="Big contract",
            initial_balance=Decimal("5000"),
            assumptions={"new_clients": 2},
            is_favorite=True,
        )

        assert await manager.save_cashflow_scenario(scenario) is True
        assert manager.cashflow_scenarios[0].assumptions == {"new_clients": 2}
        assert manager.cashflow_scenarios[0].is_favorite is True

        assert await manager.delete_cashflow_scenario("scenario-1") is True
        assert manager.cashflow_scenarios == []

    @pytest.mark.asyncio
    async def test_monthly_report(self, manager):
        await manager.load(PLAN_ID)

        report = manager.get_monthly_report(2024, 3)

        assert report.month == "March"
        assert report.total_income == Decimal("1080")
        assert report.starting_balance == Decimal("5000")
        assert report.income_by_category == {"sales": Decimal("1080")}


class TestFailureHandling:
    """A failed write leaves the in-memory state untouched."""

    @pytest.mark.asyncio
    async def test_store_failure_keeps_state(self, business_plan, config):
        store = FailingUpdateStore([business_plan])
        manager = FinancesManager(store, config=config)
        await manager.load(PLAN_ID)
        plan_before = manager.business_plan
        invoices_before = list(manager.invoices)

        assert await manager.save_invoice(make_invoice("invoice-2")) is False

        assert store.update_calls == 1
        assert manager.error == "Save error: disk full"
        assert manager.invoices == invoices_before
        assert manager.business_plan is plan_before
        assert manager.is_saving is False

    @pytest.mark.asyncio
    async def test_delete_failure_prefix(self, business_plan, config):
        manager = FinancesManager(FailingUpdateStore([business_plan]), config=config)
        await manager.load(PLAN_ID)

        assert await manager.delete_expense("expense-1") is False
        assert manager.error == "Delete error: disk full"
        assert [e.id for e in manager.expenses] == ["expense-1"]

    @pytest.mark.asyncio
    async def test_error_cleared_by_next_success(self, manager):
        await manager.load("nope")
        assert manager.error

        assert await manager.load(PLAN_ID) is True
        assert manager.error is None

    @pytest.mark.asyncio
    async def test_dirty_flag(self, business_plan, config):
        manager = FinancesManager(FailingUpdateStore([business_plan]), config=config)
        await manager.load(PLAN_ID)
        manager.mark_dirty()

        await manager.save_expense(make_expense("x", "1"))
        assert manager.dirty is True

        await manager.load(PLAN_ID)
        assert manager.dirty is False


class TestConcurrency:
    """Test suite for mutation serialization."""

    @pytest.mark.asyncio
    async def test_concurrent_saves_are_all_persisted(self, business_plan, config):
        store = SlowStore([business_plan])
        manager = FinancesManager(store, config=config)
        await manager.load(PLAN_ID)

        results = await asyncio.gather(
            manager.save_expense(make_expense("expense-a", "10")),
            manager.save_expense(make_expense("expense-b", "20")),
            manager.save_cashflow_entry(
                make_entry("entry-a", CashflowEntryType.INCOME, "30", date(2024, 3, 1))
            ),
        )

        assert results == [True, True, True]
        stored = _stored_finances(store)
        assert [e["id"] for e in stored["expenses"]] == ["expense-1", "expense-a", "expense-b"]
        assert [e["id"] for e in stored["cashflow"]["entries"]] == ["entry-1", "entry-a"]
        assert [e.id for e in manager.expenses] == ["expense-1", "expense-a", "expense-b"]

    @pytest.mark.asyncio
    async def test_unserialized_mode_last_write_wins(self, business_plan):
        store = SlowStore([business_plan])
        manager = FinancesManager(
            store, config=FinancesConfig(env="test", serialize_mutations=False)
        )
        await manager.load(PLAN_ID)

        await asyncio.gather(
            manager.save_expense(make_expense("expense-a", "10")),
            manager.save_expense(make_expense("expense-b", "20")),
        )

        stored_ids = [e["id"] for e in _stored_finances(store)["expenses"]]
        assert stored_ids == ["expense-1", "expense-b"]
