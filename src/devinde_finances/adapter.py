"""Conversion between persisted and presentation finance records.

The adapter is the single authority for turning a persisted record (as stored
in the business plan) into its typed presentation counterpart and back. It is
total: it never raises, whatever the stored data looks like.

- ``None`` input produces a fresh default record with a generated id.
- Stored ids are kept as they are; ``assign_missing_ids`` fills the gaps once.
- Missing optional fields get empty defaults.
- Unknown enum strings map to the family's canonical default.
- Unparsable dates fall back to today (required dates) or ``None`` (optional ones).
- Non-list collections are treated as empty.

Derived values are never trusted from the input: document totals are
recomputed from the items, forecast and scenario balances are replayed from
their entries, and ``updated_at`` is stamped on every conversion to the
persisted shape.

Usage:
    from devinde_finances.adapter import FinancesAdapter

    adapter = FinancesAdapter()
    finances = adapter.extract_finances(business_plan)
    invoices = [adapter.invoice_to_ui(doc) for doc in finances.invoices]

    new_invoice = adapter.invoice_to_ui(None)   # default record
    stored = adapter.invoice_to_service(new_invoice)
"""

import copy
import random
import string
import time
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, TypeVar, Union

import structlog
from pydantic import BaseModel, ValidationError

from devinde_finances.calculations import add_months, calculate_document_totals
from devinde_finances.config import DefaultsConfig
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
)
from devinde_finances.models.ui import (
    UIBankAccount,
    UICashflowEntry,
    UICashflowForecast,
    UICashflowScenario,
    UIDocument,
    UIExpense,
    UIExpenseBudget,
    UIInvoiceItem,
    UIPayment,
)

logger = structlog.get_logger()

RecordT = TypeVar("RecordT", bound=BaseModel)

_ID_ALPHABET = string.ascii_lowercase + string.digits


# =============================================================================
# PRIMITIVE CONVERSIONS
# =============================================================================

def generate_id(prefix: str) -> str:
    """Return ``{prefix}-{epoch_ms}-{9 random base36 chars}``.

    Uniqueness is best effort; this is not a cryptographic identifier.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def _utc_now() -> datetime:
    """Return current UTC datetime with timezone info."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp the way stored plans do: ``2024-05-01T08:30:00.000Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    rendered = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp (or bare date) into an aware UTC datetime."""
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse the calendar date of an ISO date or timestamp string."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _to_decimal(value: Optional[float]) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


def _to_optional_decimal(value: Optional[float]) -> Optional[Decimal]:
    return None if value is None else _to_decimal(value)


def _to_float(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


def _coerce(model: type[RecordT], data: Any) -> Optional[RecordT]:
    """Validate raw persisted data into ``model``; ``None`` means "use defaults"."""
    if data is None:
        return None
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if not isinstance(data, Mapping):
        logger.warning(
            "malformed_record_replaced",
            record_type=model.__name__,
            received=type(data).__name__,
        )
        return None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(
            "malformed_record_replaced",
            record_type=model.__name__,
            error=str(e),
        )
        return None


# =============================================================================
# ADAPTER
# =============================================================================

class FinancesAdapter:
    """Stateless converter between persisted and presentation records.

    Each family ``x`` exposes ``x_to_ui`` and ``x_to_service``. The only state is
    the immutable ``DefaultsConfig`` used to build new records.
    """

    def __init__(self, defaults: Optional[DefaultsConfig] = None) -> None:
        """
        Initialize the adapter.

        Args:
            defaults: Defaults for new records (due delay, currency, horizons).
                Loaded from the environment when omitted.
        """
        self.defaults = defaults or DefaultsConfig()

    @staticmethod
    def _timestamps(ui: BaseModel) -> dict[str, str]:
        created_at = getattr(ui, "created_at", None) or _utc_now()
        return {
            "created_at": format_timestamp(created_at),
            "updated_at": format_timestamp(_utc_now()),
        }

    # -------------------------------------------------------------------------
    # Invoice items and payments
    # -------------------------------------------------------------------------

    def invoice_item_to_ui(
        self, service: Union[ServiceInvoiceItem, Mapping, None]
    ) -> UIInvoiceItem:
        item = _coerce(ServiceInvoiceItem, service)
        if item is None:
            return UIInvoiceItem(id=generate_id("item"), is_editing=True)

        now = _utc_now()
        return UIInvoiceItem(
            id=item.id,
            description=item.description,
            quantity=_to_decimal(item.quantity),
            unit_price=_to_decimal(item.unit_price),
            tax_rate=_to_decimal(item.tax_rate),
            discount=_to_optional_decimal(item.discount),
            notes=item.notes,
            service_id=item.service_id,
            created_at=parse_timestamp(item.created_at) or now,
            updated_at=parse_timestamp(item.updated_at) or now,
        )

    def invoice_item_to_service(self, ui: Optional[UIInvoiceItem]) -> ServiceInvoiceItem:
        if ui is None:
            ui = self.invoice_item_to_ui(None)
        return ServiceInvoiceItem(
            id=ui.id or generate_id("item"),
            description=ui.description,
            quantity=float(ui.quantity),
            unit_price=float(ui.unit_price),
            tax_rate=float(ui.tax_rate),
            discount=_to_float(ui.discount),
            notes=ui.notes,
            service_id=ui.service_id,
            **self._timestamps(ui),
        )

    def payment_to_ui(self, service: Union[ServicePayment, Mapping, None]) -> UIPayment:
        payment = _coerce(ServicePayment, service)
        if payment is None:
            return UIPayment(
                id=generate_id("payment"),
                method=PaymentMethod.BANK_TRANSFER,
                is_editing=True,
            )

        now = _utc_now()
        return UIPayment(
            id=payment.id,
            document_id=payment.document_id,
            date=parse_date(payment.date) or date.today(),
            amount=_to_decimal(payment.amount),
            method=PaymentMethod.parse(payment.method),
            reference=payment.reference,
            notes=payment.notes,
            receipt_number=payment.receipt_number,
            receipt_sent=payment.receipt_sent,
            created_at=parse_timestamp(payment.created_at) or now,
            updated_at=parse_timestamp(payment.updated_at) or now,
        )

    def payment_to_service(self, ui: Optional[UIPayment]) -> ServicePayment:
        if ui is None:
            ui = self.payment_to_ui(None)
        return ServicePayment(
            id=ui.id or generate_id("payment"),
            document_id=ui.document_id,
            date=ui.date.isoformat(),
            amount=float(ui.amount),
            method=ui.method.value,
            reference=ui.reference,
            notes=ui.notes,
            receipt_number=ui.receipt_number,
            receipt_sent=ui.receipt_sent,
            **self._timestamps(ui),
        )

    # -------------------------------------------------------------------------
    # Documents (invoices and quotes)
    # -------------------------------------------------------------------------

    def invoice_to_ui(self, service: Union[ServiceDocument, Mapping, None]) -> UIDocument:
        """Convert a persisted document; ``None`` yields a new draft invoice."""
        doc = _coerce(ServiceDocument, service)
        if doc is None:
            today = date.today()
            return UIDocument(
                id=generate_id("invoice"),
                issue_date=today,
                due_date=today + timedelta(days=self.defaults.invoice_due_days),
                is_expanded=True,
            )

        now = _utc_now()
        ui = UIDocument(
            id=doc.id,
            type=DocumentType.parse(doc.type),
            status=DocumentStatus.parse(doc.status),
            number=doc.number,
            issue_date=parse_date(doc.issue_date) or date.today(),
            due_date=parse_date(doc.due_date),
            valid_until=parse_date(doc.valid_until),
            client_info=doc.client_info.model_copy(),
            company_info=doc.company_info.model_copy(),
            items=[self.invoice_item_to_ui(item) for item in doc.items],
            notes=doc.notes or "",
            payment_terms=doc.payment_terms or "",
            business_plan_id=doc.business_plan_id,
            service_id=doc.service_id,
            payments=[self.payment_to_ui(payment) for payment in doc.payments],
            amount_paid=_to_decimal(doc.amount_paid),
            remaining_amount=_to_optional_decimal(doc.remaining_amount),
            last_payment_date=parse_date(doc.last_payment_date),
            last_reminder_date=parse_date(doc.last_reminder_date),
            reminder_count=max(doc.reminder_count, 0),
            client_risk_flag=doc.client_risk_flag,
            subtotal=_to_decimal(doc.subtotal),
            tax_amount=_to_decimal(doc.tax_amount),
            total=_to_decimal(doc.total),
            created_at=parse_timestamp(doc.created_at) or now,
            updated_at=parse_timestamp(doc.updated_at) or now,
        )
        # Documents imported without line items keep their stored totals
        return calculate_document_totals(ui) if ui.items else ui

    def invoice_to_service(self, ui: Optional[UIDocument]) -> ServiceDocument:
        if ui is None:
            ui = self.invoice_to_ui(None)
        if ui.items:
            ui = calculate_document_totals(ui)

        return ServiceDocument(
            id=ui.id or generate_id("invoice"),
            type=ui.type.value,
            status=ui.status.value,
            number=ui.number,
            issue_date=ui.issue_date.isoformat(),
            due_date=_format_date(ui.due_date),
            valid_until=_format_date(ui.valid_until),
            client_info=ui.client_info.model_copy(),
            company_info=ui.company_info.model_copy(),
            items=[self.invoice_item_to_service(item) for item in ui.items],
            notes=ui.notes,
            payment_terms=ui.payment_terms,
            business_plan_id=ui.business_plan_id,
            service_id=ui.service_id,
            payments=[self.payment_to_service(payment) for payment in ui.payments],
            amount_paid=float(ui.amount_paid),
            remaining_amount=_to_float(ui.remaining_amount),
            last_payment_date=_format_date(ui.last_payment_date),
            last_reminder_date=_format_date(ui.last_reminder_date),
            reminder_count=ui.reminder_count,
            client_risk_flag=ui.client_risk_flag,
            subtotal=float(ui.subtotal),
            tax_amount=float(ui.tax_amount),
            total=float(ui.total),
            **self._timestamps(ui),
        )

    # -------------------------------------------------------------------------
    # Expenses and budgets
    # -------------------------------------------------------------------------

    def expense_to_ui(self, service: Union[ServiceExpense, Mapping, None]) -> UIExpense:
        expense = _coerce(ServiceExpense, service)
        if expense is None:
            return UIExpense(
                id=generate_id("expense"),
                expense_date=date.today(),
                is_editing=True,
            )

        now = _utc_now()
        return UIExpense(
            id=expense.id,
            title=expense.title,
            description=expense.description or "",
            type=ExpenseType.parse(expense.type),
            category=ExpenseCategory.parse(expense.category),
            amount=_to_decimal(expense.amount),
            tax_amount=_to_optional_decimal(expense.tax_amount),
            tax_rate=_to_optional_decimal(expense.tax_rate),
            tax1_name=expense.tax1_name,
            tax1_rate=_to_optional_decimal(expense.tax1_rate),
            tax1_amount=_to_optional_decimal(expense.tax1_amount),
            tax2_name=expense.tax2_name,
            tax2_rate=_to_optional_decimal(expense.tax2_rate),
            tax2_amount=_to_optional_decimal(expense.tax2_amount),
            expense_date=parse_date(expense.expense_date) or date.today(),
            payment_date=parse_date(expense.payment_date),
            status=ExpenseStatus.parse(expense.status),
            payment_method=(
                ExpensePaymentMethod.parse(expense.payment_method)
                if expense.payment_method
                else None
            ),
            recurring=expense.recurring,
            recurrence_frequency=(
                RecurrenceFrequency.parse(expense.recurrence_frequency)
                if expense.recurrence_frequency
                else None
            ),
            recurrence_end_date=parse_date(expense.recurrence_end_date),
            vendor_name=expense.vendor_name,
            vendor_vat=expense.vendor_vat,
            invoice_number=expense.invoice_number,
            receipt_url=expense.receipt_url,
            notes=expense.notes,
            business_plan_id=expense.business_plan_id,
            project_id=expense.project_id,
            created_at=parse_timestamp(expense.created_at) or now,
            updated_at=parse_timestamp(expense.updated_at) or now,
        )

    def expense_to_service(self, ui: Optional[UIExpense]) -> ServiceExpense:
        if ui is None:
            ui = self.expense_to_ui(None)
        return ServiceExpense(
            id=ui.id or generate_id("expense"),
            title=ui.title,
            description=ui.description or None,
            type=ui.type.value,
            category=ui.category.value,
            amount=float(ui.amount),
            tax_amount=_to_float(ui.tax_amount),
            tax_rate=_to_float(ui.tax_rate),
            tax1_name=ui.tax1_name,
            tax1_rate=_to_float(ui.tax1_rate),
            tax1_amount=_to_float(ui.tax1_amount),
            tax2_name=ui.tax2_name,
            tax2_rate=_to_float(ui.tax2_rate),
            tax2_amount=_to_float(ui.tax2_amount),
            expense_date=ui.expense_date.isoformat(),
            payment_date=_format_date(ui.payment_date),
            status=ui.status.value,
            payment_method=ui.payment_method.value if ui.payment_method else None,
            recurring=ui.recurring,
            recurrence_frequency=(
                ui.recurrence_frequency.value if ui.recurrence_frequency else None
            ),
            recurrence_end_date=_format_date(ui.recurrence_end_date),
            vendor_name=ui.vendor_name,
            vendor_vat=ui.vendor_vat,
            invoice_number=ui.invoice_number,
            receipt_url=ui.receipt_url,
            notes=ui.notes,
            business_plan_id=ui.business_plan_id,
            project_id=ui.project_id,
            **self._timestamps(ui),
        )

    def expense_budget_to_ui(
        self, service: Union[ServiceExpenseBudget, Mapping, None]
    ) -> UIExpenseBudget:
        """Convert a persisted budget; usage fields start from an untouched budget."""
        budget = _coerce(ServiceExpenseBudget, service)
        if budget is None:
            start = date.today()
            return UIExpenseBudget(
                id=generate_id("budget"),
                period=BudgetPeriod.MONTHLY,
                start_date=start,
                end_date=add_months(start, self.defaults.budget_months),
                is_editing=True,
            )

        now = _utc_now()
        start = parse_date(budget.start_date) or date.today()
        amount = _to_decimal(budget.amount)
        return UIExpenseBudget(
            id=budget.id,
            category=ExpenseCategory.parse(budget.category),
            amount=amount,
            period=BudgetPeriod.parse(budget.period),
            start_date=start,
            end_date=(
                parse_date(budget.end_date)
                or add_months(start, self.defaults.budget_months)
            ),
            business_plan_id=budget.business_plan_id,
            created_at=parse_timestamp(budget.created_at) or now,
            updated_at=parse_timestamp(budget.updated_at) or now,
            spent=Decimal("0"),
            remaining=amount,
            percent_used=Decimal("0"),
        )

    def expense_budget_to_service(self, ui: Optional[UIExpenseBudget]) -> ServiceExpenseBudget:
        if ui is None:
            ui = self.expense_budget_to_ui(None)
        return ServiceExpenseBudget(
            id=ui.id or generate_id("budget"),
            category=ui.category.value,
            amount=float(ui.amount),
            period=ui.period.value,
            start_date=ui.start_date.isoformat(),
            end_date=ui.end_date.isoformat(),
            business_plan_id=ui.business_plan_id,
            **self._timestamps(ui),
        )

    # -------------------------------------------------------------------------
    # Cash flow
    # -------------------------------------------------------------------------

    def cashflow_entry_to_ui(
        self, service: Union[ServiceCashflowEntry, Mapping, None]
    ) -> UICashflowEntry:
        entry = _coerce(ServiceCashflowEntry, service)
        if entry is None:
            return UICashflowEntry(
                id=generate_id("entry"),
                type=CashflowEntryType.INCOME,
                state=CashflowEntryState.PROJECTED,
                date=date.today(),
                is_editing=True,
            )

        now = _utc_now()
        return UICashflowEntry(
            id=entry.id,
            type=CashflowEntryType.parse(entry.type),
            amount=_to_decimal(entry.amount),
            description=entry.description,
            date=parse_date(entry.date) or date.today(),
            state=CashflowEntryState.parse(entry.state),
            source_id=entry.source_id,
            source_type=entry.source_type,
            destination_id=entry.destination_id,
            destination_account=entry.destination_account,
            category=entry.category,
            business_plan_id=entry.business_plan_id,
            created_at=parse_timestamp(entry.created_at) or now,
            updated_at=parse_timestamp(entry.updated_at) or now,
        )

    def cashflow_entry_to_service(self, ui: Optional[UICashflowEntry]) -> ServiceCashflowEntry:
        if ui is None:
            ui = self.cashflow_entry_to_ui(None)
        return ServiceCashflowEntry(
            id=ui.id or generate_id("entry"),
            type=ui.type.value,
            amount=float(ui.amount),
            description=ui.description,
            date=ui.date.isoformat(),
            state=ui.state.value,
            source_id=ui.source_id,
            source_type=ui.source_type,
            destination_id=ui.destination_id,
            destination_account=ui.destination_account,
            category=ui.category,
            business_plan_id=ui.business_plan_id,
            **self._timestamps(ui),
        )

    def bank_account_to_ui(
        self, service: Union[ServiceBankAccount, Mapping, None]
    ) -> UIBankAccount:
        account = _coerce(ServiceBankAccount, service)
        if account is None:
            return UIBankAccount(
                id=generate_id("account"),
                type=BankAccountType.CHECKING,
                currency=self.defaults.currency,
                is_editing=True,
            )

        now = _utc_now()
        return UIBankAccount(
            id=account.id,
            name=account.name,
            type=BankAccountType.parse(account.type),
            balance=_to_decimal(account.balance),
            currency=account.currency or self.defaults.currency,
            account_number=account.account_number,
            iban=account.iban,
            swift=account.swift,
            bank=account.bank,
            description=account.description,
            is_primary=account.is_primary,
            business_plan_id=account.business_plan_id,
            created_at=parse_timestamp(account.created_at) or now,
            updated_at=parse_timestamp(account.updated_at) or now,
        )

    def bank_account_to_service(self, ui: Optional[UIBankAccount]) -> ServiceBankAccount:
        if ui is None:
            ui = self.bank_account_to_ui(None)
        return ServiceBankAccount(
            id=ui.id or generate_id("account"),
            name=ui.name,
            type=ui.type.value,
            balance=float(ui.balance),
            currency=ui.currency or self.defaults.currency,
            account_number=ui.account_number,
            iban=ui.iban,
            swift=ui.swift,
            bank=ui.bank,
            description=ui.description,
            is_primary=ui.is_primary,
            business_plan_id=ui.business_plan_id,
            **self._timestamps(ui),
        )

    def cashflow_forecast_to_ui(
        self, service: Union[ServiceCashflowForecast, Mapping, None]
    ) -> UICashflowForecast:
        """Convert a persisted forecast. Balances are replayed from the entries."""
        forecast = _coerce(ServiceCashflowForecast, service)
        if forecast is None:
            start = date.today()
            return UICashflowForecast(
                id=generate_id("forecast"),
                start_date=start,
                end_date=add_months(start, self.defaults.forecast_months),
                is_editing=True,
            )

        now = _utc_now()
        start = parse_date(forecast.start_date) or date.today()
        return UICashflowForecast(
            id=forecast.id,
            start_date=start,
            end_date=(
                parse_date(forecast.end_date)
                or add_months(start, self.defaults.forecast_months)
            ),
            initial_balance=_to_decimal(forecast.initial_balance),
            entries=[self.cashflow_entry_to_ui(entry) for entry in forecast.entries],
            business_plan_id=forecast.business_plan_id,
            created_at=parse_timestamp(forecast.created_at) or now,
            updated_at=parse_timestamp(forecast.updated_at) or now,
        )

    def cashflow_forecast_to_service(
        self, ui: Optional[UICashflowForecast]
    ) -> ServiceCashflowForecast:
        if ui is None:
            ui = self.cashflow_forecast_to_ui(None)
        return ServiceCashflowForecast(
            id=ui.id or generate_id("forecast"),
            start_date=ui.start_date.isoformat(),
            end_date=ui.end_date.isoformat(),
            initial_balance=float(ui.initial_balance),
            entries=[self.cashflow_entry_to_service(entry) for entry in ui.entries],
            business_plan_id=ui.business_plan_id,
            **self._timestamps(ui),
        )

    def cashflow_scenario_to_ui(
        self, service: Union[ServiceCashflowScenario, Mapping, None]
    ) -> UICashflowScenario:
        scenario = _coerce(ServiceCashflowScenario, service)
        if scenario is None:
            start = date.today()
            return UICashflowScenario(
                id=generate_id("scenario"),
                start_date=start,
                end_date=add_months(start, self.defaults.scenario_months),
                assumptions={},
                is_editing=True,
            )

        now = _utc_now()
        start = parse_date(scenario.start_date) or date.today()
        return UICashflowScenario(
            id=scenario.id,
            name=scenario.name,
            description=scenario.description,
            start_date=start,
            end_date=(
                parse_date(scenario.end_date)
                or add_months(start, self.defaults.scenario_months)
            ),
            initial_balance=_to_decimal(scenario.initial_balance),
            assumptions=copy.deepcopy(scenario.assumptions),
            entries=[self.cashflow_entry_to_ui(entry) for entry in scenario.entries],
            is_favorite=scenario.is_favorite,
            business_plan_id=scenario.business_plan_id,
            created_at=parse_timestamp(scenario.created_at) or now,
            updated_at=parse_timestamp(scenario.updated_at) or now,
        )

    def cashflow_scenario_to_service(
        self, ui: Optional[UICashflowScenario]
    ) -> ServiceCashflowScenario:
        if ui is None:
            ui = self.cashflow_scenario_to_ui(None)
        return ServiceCashflowScenario(
            id=ui.id or generate_id("scenario"),
            name=ui.name,
            description=ui.description,
            start_date=ui.start_date.isoformat(),
            end_date=ui.end_date.isoformat(),
            initial_balance=float(ui.initial_balance),
            assumptions=copy.deepcopy(ui.assumptions),
            entries=[self.cashflow_entry_to_service(entry) for entry in ui.entries],
            is_favorite=ui.is_favorite,
            business_plan_id=ui.business_plan_id,
            **self._timestamps(ui),
        )

    # -------------------------------------------------------------------------
    # Business plan
    # -------------------------------------------------------------------------

    @staticmethod
    def assign_missing_ids(finances: FinancesData) -> int:
        """Give every persisted record without an id a generated one, in place.

        Returns the number of ids assigned so callers know the finances need
        to be written back.
        """
        assigned = 0

        def stamp(records: list[Any], prefix: str) -> None:
            nonlocal assigned
            for record in records:
                if not record.id:
                    record.id = generate_id(prefix)
                    assigned += 1

        stamp(finances.invoices, "invoice")
        for doc in finances.invoices:
            stamp(doc.items, "item")
            stamp(doc.payments, "payment")
        stamp(finances.expenses, "expense")
        stamp(finances.expense_budgets, "budget")
        cashflow = finances.cashflow
        stamp(cashflow.entries, "entry")
        stamp(cashflow.accounts, "account")
        stamp(cashflow.forecasts, "forecast")
        stamp(cashflow.scenarios, "scenario")
        for forecast in [*cashflow.forecasts, *cashflow.scenarios]:
            stamp(forecast.entries, "entry")
        return assigned

    @staticmethod
    def extract_finances(business_plan: Optional[Mapping[str, Any]]) -> FinancesData:
        """Read ``standardized.finances`` from a business plan.

        Returns the empty skeleton (every collection present and empty) when
        the plan has no finances yet or they are unreadable.
        """
        if not isinstance(business_plan, Mapping):
            return FinancesData()
        standardized = business_plan.get("standardized")
        if not isinstance(standardized, Mapping):
            return FinancesData()
        finances = _coerce(FinancesData, standardized.get("finances"))
        if finances is None:
            return FinancesData()
        return finances.model_copy(deep=True)

    @staticmethod
    def update_plan_with_finances(
        business_plan: Mapping[str, Any], finances: FinancesData
    ) -> dict[str, Any]:
        """Return a copy of the plan with ``standardized.finances`` replaced.

        The input plan is left untouched so a failed write cannot leak into it.
        """
        updated = copy.deepcopy(dict(business_plan))
        standardized = updated.get("standardized")
        standardized = dict(standardized) if isinstance(standardized, Mapping) else {}
        standardized["finances"] = finances.to_storage()
        updated["standardized"] = standardized
        return updated


__all__ = [
    "FinancesAdapter",
    "generate_id",
    "format_timestamp",
    "parse_timestamp",
    "parse_date",
]
