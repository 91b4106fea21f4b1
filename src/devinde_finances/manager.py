"""Orchestration of one business plan's finances.

``FinancesManager`` owns the in-memory state behind the finances screens:
the loaded business-plan record, its persisted finances sub-tree, the typed
presentation collections and the derived stats. Every save/delete follows the
same cycle:

1. Refuse immediately when no business plan is loaded.
2. Extract a private copy of the persisted finances (or the empty skeleton).
3. Convert the incoming record to the persisted shape and upsert it by id
   (or filter the target out, for deletes).
4. Write the finances back into a copy of the plan and persist the whole plan.
5. On success only, swap in the new plan and finances, reconvert the touched
   collection and recompute the dependent stats.

Public operations never raise for expected failures: they return ``False``
and describe the problem in ``error``, leaving the previous state untouched.

Usage:
    store = InMemoryBusinessPlanStore([plan])
    manager = FinancesManager(store)

    if await manager.load(plan["id"]):
        invoice = manager.adapter.invoice_to_ui(None)
        invoice.client_info.name = "Atelier Dupont"
        await manager.save_invoice(invoice)
        print(manager.invoice_stats.total_outstanding)
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator, Callable, Iterable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Protocol, TypeVar

import structlog

from devinde_finances.adapter import FinancesAdapter, format_timestamp
from devinde_finances.aggregation import (
    build_monthly_report,
    calculate_cashflow_stats,
    calculate_expense_stats,
    calculate_invoice_stats,
)
from devinde_finances.calculations import calculate_budget_usage, generate_document_number
from devinde_finances.config import FinancesConfig
from devinde_finances.exceptions import (
    EntityNotFoundError,
    FinancesError,
    NoBusinessPlanLoadedError,
    PersistenceError,
)
from devinde_finances.filters import filter_expenses, filter_invoices
from devinde_finances.models.enums import DocumentStatus, DocumentType
from devinde_finances.models.service import FinancesData, ServiceDocument
from devinde_finances.models.stats import (
    CashflowStats,
    ExpenseFilter,
    ExpenseStats,
    InvoiceFilter,
    InvoiceStats,
    MonthlyReport,
)
from devinde_finances.models.ui import (
    UIBankAccount,
    UICashflowEntry,
    UICashflowForecast,
    UICashflowScenario,
    UIDocument,
    UIExpense,
    UIExpenseBudget,
    UIPayment,
)
from devinde_finances.storage.base import BusinessPlanStore

logger = structlog.get_logger()


class _Identified(Protocol):
    id: str


RecordT = TypeVar("RecordT", bound=_Identified)

# Collections of the finances sub-tree, used to scope refreshes
INVOICES = "invoices"
EXPENSES = "expenses"
BUDGETS = "budgets"
ENTRIES = "entries"
ACCOUNTS = "accounts"
FORECASTS = "forecasts"
SCENARIOS = "scenarios"
ALL_COLLECTIONS = frozenset({INVOICES, EXPENSES, BUDGETS, ENTRIES, ACCOUNTS, FORECASTS, SCENARIOS})
_CASHFLOW_INPUTS = frozenset({INVOICES, EXPENSES, ENTRIES, ACCOUNTS, FORECASTS})


def _upsert(records: list[RecordT], record: RecordT) -> None:
    """Replace the record with the same id in place, or append it."""
    for index, existing in enumerate(records):
        if existing.id == record.id:
            records[index] = record
            return
    records.append(record)


def _remove(records: list[RecordT], record_id: str) -> None:
    records[:] = [r for r in records if r.id != record_id]


class FinancesManager:
    """Stateful controller for the finances of one business plan."""

    def __init__(
        self,
        store: BusinessPlanStore,
        *,
        config: Optional[FinancesConfig] = None,
        adapter: Optional[FinancesAdapter] = None,
    ) -> None:
        """
        Initialize the manager.

        Args:
            store: Persistence backend for whole business-plan records.
            config: Settings; loaded from the environment when omitted.
            adapter: Record converter; built from ``config.defaults`` when omitted.
        """
        self.store = store
        self.config = config or FinancesConfig()
        self.adapter = adapter or FinancesAdapter(self.config.defaults)
        self._mutation_lock: Optional[asyncio.Lock] = (
            asyncio.Lock() if self.config.serialize_mutations else None
        )

        self.business_plan: Optional[dict[str, Any]] = None
        self.finances: Optional[FinancesData] = None

        self.invoices: list[UIDocument] = []
        self.expenses: list[UIExpense] = []
        self.expense_budgets: list[UIExpenseBudget] = []
        self.cashflow_entries: list[UICashflowEntry] = []
        self.bank_accounts: list[UIBankAccount] = []
        self.cashflow_forecasts: list[UICashflowForecast] = []
        self.cashflow_scenarios: list[UICashflowScenario] = []

        self.invoice_stats: Optional[InvoiceStats] = None
        self.expense_stats: Optional[ExpenseStats] = None
        self.cashflow_stats: Optional[CashflowStats] = None

        self.is_loading = False
        self.is_saving = False
        self.error: Optional[str] = None
        self.dirty = False

    @property
    def plan_id(self) -> Optional[str]:
        """Identifier of the loaded business plan, if any."""
        if self.business_plan is None:
            return None
        return str(self.business_plan.get("id") or "")

    def mark_dirty(self) -> None:
        """Flag unsaved edits; cleared by the next successful load or mutation."""
        self.dirty = True

    # =========================================================================
    # LOADING
    # =========================================================================

    async def load(self, plan_id: str) -> bool:
        """Load a business plan and derive every collection and stat from it."""
        if not plan_id:
            self.error = "No business plan ID provided"
            return False

        self.is_loading = True
        self.error = None
        try:
            result = await self.store.get(plan_id)
            if not result.is_success or not isinstance(result.data, dict):
                raise PersistenceError(
                    result.error_message or f"Business plan {plan_id} could not be read",
                    operation="load",
                    plan_id=plan_id,
                    code=result.error.code if result.error else None,
                )

            finances = self.adapter.extract_finances(result.data)
            assigned = self.adapter.assign_missing_ids(finances)
            if assigned:
                # Written back with the next successful mutation
                self.business_plan = self.adapter.update_plan_with_finances(result.data, finances)
                logger.info("finances_ids_assigned", plan_id=plan_id, count=assigned)
            else:
                self.business_plan = result.data
            self.finances = finances
            self._refresh(ALL_COLLECTIONS)
            self.dirty = False

            logger.info(
                "finances_loaded",
                plan_id=plan_id,
                invoices=len(self.invoices),
                expenses=len(self.expenses),
                cashflow_entries=len(self.cashflow_entries),
                bank_accounts=len(self.bank_accounts),
            )
            return True
        except FinancesError as e:
            self.error = f"Loading error: {e}"
            logger.warning("finances_load_failed", plan_id=plan_id, error=str(e))
            return False
        except Exception as e:
            self.error = f"Loading error: {e}"
            logger.exception("finances_load_failed", plan_id=plan_id)
            return False
        finally:
            self.is_loading = False

    async def load_invoices(self, plan_id: str) -> bool:
        return await self.load(plan_id)

    async def load_expenses(self, plan_id: str) -> bool:
        return await self.load(plan_id)

    async def load_cashflow(self, plan_id: str) -> bool:
        return await self.load(plan_id)

    # =========================================================================
    # MUTATION CYCLE
    # =========================================================================

    @contextlib.asynccontextmanager
    async def _mutation_slot(self) -> AsyncIterator[None]:
        if self._mutation_lock is None:
            yield
            return
        async with self._mutation_lock:
            yield

    async def _commit(
        self,
        operation: str,
        mutate: Callable[[FinancesData], None],
        touched: Iterable[str],
        *,
        error_prefix: str = "Save error",
    ) -> bool:
        """Run one read-modify-write cycle against the loaded business plan.

        ``mutate`` edits a private copy of the persisted finances in place. The
        manager's state only changes once the store has accepted the new plan.
        """
        async with self._mutation_slot():
            self.is_saving = True
            self.error = None
            try:
                if self.business_plan is None:
                    raise NoBusinessPlanLoadedError()

                finances = self.adapter.extract_finances(self.business_plan)
                mutate(finances)
                updated_plan = self.adapter.update_plan_with_finances(self.business_plan, finances)

                plan_id = self.plan_id or ""
                result = await self.store.update(plan_id, updated_plan)
                if not result.is_success:
                    raise PersistenceError(
                        result.error_message or f"Error during {operation}",
                        operation=operation,
                        plan_id=plan_id,
                        code=result.error.code if result.error else None,
                    )

                self.business_plan = result.data if isinstance(result.data, dict) else updated_plan
                self.finances = finances
                self._refresh(touched)
                self.dirty = False

                logger.info("finances_saved", operation=operation, plan_id=plan_id)
                return True
            except NoBusinessPlanLoadedError as e:
                self.error = e.message
                logger.warning("finances_mutation_rejected", operation=operation, error=e.message)
                return False
            except FinancesError as e:
                self.error = f"{error_prefix}: {e}"
                logger.warning(
                    "finances_mutation_failed",
                    operation=operation,
                    error=str(e),
                    details=e.details,
                )
                return False
            except Exception as e:
                self.error = f"{error_prefix}: {e}"
                logger.exception("finances_mutation_failed", operation=operation)
                return False
            finally:
                self.is_saving = False

    def _refresh(self, touched: Iterable[str]) -> None:
        """Reconvert the touched collections and recompute what depends on them."""
        touched = frozenset(touched)
        finances = self.finances or FinancesData()
        adapter = self.adapter

        if INVOICES in touched:
            self.invoices = [adapter.invoice_to_ui(doc) for doc in finances.invoices]
        if EXPENSES in touched:
            self.expenses = [adapter.expense_to_ui(e) for e in finances.expenses]
        if BUDGETS in touched:
            self.expense_budgets = [
                calculate_budget_usage(adapter.expense_budget_to_ui(b), self.expenses)
                for b in finances.expense_budgets
            ]
        elif EXPENSES in touched:
            self.expense_budgets = [
                calculate_budget_usage(b, self.expenses) for b in self.expense_budgets
            ]
        if ENTRIES in touched:
            self.cashflow_entries = [
                adapter.cashflow_entry_to_ui(e) for e in finances.cashflow.entries
            ]
        if ACCOUNTS in touched:
            self.bank_accounts = [adapter.bank_account_to_ui(a) for a in finances.cashflow.accounts]
        if FORECASTS in touched:
            self.cashflow_forecasts = [
                adapter.cashflow_forecast_to_ui(f) for f in finances.cashflow.forecasts
            ]
        if SCENARIOS in touched:
            self.cashflow_scenarios = [
                adapter.cashflow_scenario_to_ui(s) for s in finances.cashflow.scenarios
            ]

        if INVOICES in touched:
            self.invoice_stats = calculate_invoice_stats(self.invoices) if self.invoices else None
        if EXPENSES in touched:
            self.expense_stats = calculate_expense_stats(self.expenses) if self.expenses else None
        if touched & _CASHFLOW_INPUTS:
            self.cashflow_stats = self._calculate_cashflow_stats()

    def _calculate_cashflow_stats(self) -> CashflowStats:
        stats_config = self.config.stats
        return calculate_cashflow_stats(
            self.cashflow_entries,
            self.bank_accounts,
            self.cashflow_forecasts,
            invoices=self.invoices,
            expenses=self.expenses,
            trailing_months=stats_config.trailing_months,
            short_window_days=stats_config.short_window_days,
            long_window_days=stats_config.long_window_days,
        )

    # =========================================================================
    # INVOICES
    # =========================================================================

    async def save_invoice(self, invoice: UIDocument) -> bool:
        """Create or replace an invoice/quote; unnumbered documents get the next number."""

        def mutate(finances: FinancesData) -> None:
            service = self.adapter.invoice_to_service(invoice)
            if not service.number:
                service.number = self._next_document_number(finances.invoices, service)
            _upsert(finances.invoices, service)

        return await self._commit("save_invoice", mutate, {INVOICES})

    @staticmethod
    def _next_document_number(
        documents: list[ServiceDocument], document: ServiceDocument
    ) -> str:
        document_type = DocumentType.parse(document.type)
        year = int(document.issue_date[:4]) if document.issue_date[:4].isdigit() else None
        year = year or datetime.now(timezone.utc).year
        same_series = [
            d
            for d in documents
            if d.id != document.id
            and DocumentType.parse(d.type) == document_type
            and d.issue_date.startswith(str(year))
        ]
        return generate_document_number(document_type, len(same_series) + 1, year)

    async def delete_invoice(self, invoice_id: str) -> bool:
        return await self._commit(
            "delete_invoice",
            lambda finances: _remove(finances.invoices, invoice_id),
            {INVOICES},
            error_prefix="Delete error",
        )

    async def add_payment(self, invoice_id: str, payment: UIPayment) -> bool:
        """Record a payment against an invoice and update its payment tracking.

        ``amount_paid`` becomes the sum of all payments, ``remaining_amount``
        the total minus that sum. The status moves to paid once the total is
        covered, to partially paid for any positive amount, and is otherwise
        left unchanged.
        """

        def mutate(finances: FinancesData) -> None:
            index = next(
                (i for i, doc in enumerate(finances.invoices) if doc.id == invoice_id),
                None,
            )
            if index is None:
                raise EntityNotFoundError(entity_type="Invoice", entity_id=invoice_id)

            document = finances.invoices[index]
            recorded = self.adapter.payment_to_service(
                payment.model_copy(update={"document_id": invoice_id})
            )
            payments = [*document.payments, recorded]
            amount_paid = sum((Decimal(str(p.amount)) for p in payments), Decimal("0"))
            total = Decimal(str(document.total))

            status = document.status
            if amount_paid >= total:
                status = DocumentStatus.PAID.value
            elif amount_paid > 0:
                status = DocumentStatus.PARTIALLY_PAID.value

            finances.invoices[index] = document.model_copy(
                update={
                    "payments": payments,
                    "amount_paid": float(amount_paid),
                    "remaining_amount": float(total - amount_paid),
                    "last_payment_date": recorded.date,
                    "status": status,
                    "updated_at": format_timestamp(datetime.now(timezone.utc)),
                }
            )
            logger.info(
                "payment_recorded",
                invoice_id=invoice_id,
                amount=recorded.amount,
                amount_paid=float(amount_paid),
                status=status,
            )

        return await self._commit("add_payment", mutate, {INVOICES}, error_prefix="Payment error")

    def filter_invoices(self, criteria: Optional[InvoiceFilter] = None) -> list[UIDocument]:
        return filter_invoices(self.invoices, criteria)

    # =========================================================================
    # EXPENSES AND BUDGETS
    # =========================================================================

    async def save_expense(self, expense: UIExpense) -> bool:
        def mutate(finances: FinancesData) -> None:
            _upsert(finances.expenses, self.adapter.expense_to_service(expense))

        return await self._commit("save_expense", mutate, {EXPENSES})

    async def delete_expense(self, expense_id: str) -> bool:
        return await self._commit(
            "delete_expense",
            lambda finances: _remove(finances.expenses, expense_id),
            {EXPENSES},
            error_prefix="Delete error",
        )

    async def save_budget(self, budget: UIExpenseBudget) -> bool:
        def mutate(finances: FinancesData) -> None:
            _upsert(finances.expense_budgets, self.adapter.expense_budget_to_service(budget))

        return await self._commit("save_budget", mutate, {BUDGETS})

    async def delete_budget(self, budget_id: str) -> bool:
        return await self._commit(
            "delete_budget",
            lambda finances: _remove(finances.expense_budgets, budget_id),
            {BUDGETS},
            error_prefix="Delete error",
        )

    def filter_expenses(self, criteria: Optional[ExpenseFilter] = None) -> list[UIExpense]:
        return filter_expenses(self.expenses, criteria)

    # =========================================================================
    # CASH FLOW
    # =========================================================================

    async def save_cashflow_entry(self, entry: UICashflowEntry) -> bool:
        def mutate(finances: FinancesData) -> None:
            _upsert(finances.cashflow.entries, self.adapter.cashflow_entry_to_service(entry))

        return await self._commit("save_cashflow_entry", mutate, {ENTRIES})

    async def delete_cashflow_entry(self, entry_id: str) -> bool:
        return await self._commit(
            "delete_cashflow_entry",
            lambda finances: _remove(finances.cashflow.entries, entry_id),
            {ENTRIES},
            error_prefix="Delete error",
        )

    async def save_bank_account(self, account: UIBankAccount) -> bool:
        """Create or replace an account; a primary account demotes all the others."""

        def mutate(finances: FinancesData) -> None:
            service = self.adapter.bank_account_to_service(account)
            if service.is_primary:
                finances.cashflow.accounts = [
                    a.model_copy(update={"is_primary": False}) if a.id != service.id else a
                    for a in finances.cashflow.accounts
                ]
            _upsert(finances.cashflow.accounts, service)

        return await self._commit("save_bank_account", mutate, {ACCOUNTS})

    async def delete_bank_account(self, account_id: str) -> bool:
        return await self._commit(
            "delete_bank_account",
            lambda finances: _remove(finances.cashflow.accounts, account_id),
            {ACCOUNTS},
            error_prefix="Delete error",
        )

    async def save_cashflow_forecast(self, forecast: UICashflowForecast) -> bool:
        def mutate(finances: FinancesData) -> None:
            _upsert(finances.cashflow.forecasts, self.adapter.cashflow_forecast_to_service(forecast))

        return await self._commit("save_cashflow_forecast", mutate, {FORECASTS})

    async def delete_cashflow_forecast(self, forecast_id: str) -> bool:
        return await self._commit(
            "delete_cashflow_forecast",
            lambda finances: _remove(finances.cashflow.forecasts, forecast_id),
            {FORECASTS},
            error_prefix="Delete error",
        )

    async def save_cashflow_scenario(self, scenario: UICashflowScenario) -> bool:
        def mutate(finances: FinancesData) -> None:
            _upsert(finances.cashflow.scenarios, self.adapter.cashflow_scenario_to_service(scenario))

        return await self._commit("save_cashflow_scenario", mutate, {SCENARIOS})

    async def delete_cashflow_scenario(self, scenario_id: str) -> bool:
        return await self._commit(
            "delete_cashflow_scenario",
            lambda finances: _remove(finances.cashflow.scenarios, scenario_id),
            {SCENARIOS},
            error_prefix="Delete error",
        )

    def get_monthly_report(self, year: int, month: int) -> MonthlyReport:
        """Cash movements of one month from the loaded entries.

        The starting balance is today's total account balance, not the
        historical balance at the start of that month.
        """
        return build_monthly_report(self.cashflow_entries, self.bank_accounts, year, month)
