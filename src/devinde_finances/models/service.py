"""Persisted ("service") shape of the finances records.

These models describe exactly what is stored inside a business plan under
``standardized.finances``. Enum fields are their canonical string values,
amounts are plain floats and dates are ISO strings, so that data written by
earlier versions of the tracker loads unchanged. Attributes are snake_case and
serialize to the camelCase keys of the stored JSON.

Every field is lenient: malformed stored values (a string where a number is
expected, an object where a list is expected, ...) degrade to an empty default
instead of failing validation. Conversion into typed presentation records is
the adapter's job.
"""

import math
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# LENIENT FIELD TYPES
# =============================================================================

def _parse_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _to_float(value: Any) -> float:
    number = _parse_number(value)
    return number if number is not None else 0.0


def _to_int(value: Any) -> int:
    number = _parse_number(value)
    return int(number) if number is not None else 0


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _to_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = _to_text(value)
    return text if text else None


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    if isinstance(value, (int, float)):
        return value != 0
    return False


def _to_mapping(value: Any) -> Any:
    if isinstance(value, (dict, BaseModel)):
        return value
    return {}


def _to_record_list(value: Any) -> list:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, (dict, BaseModel))]


Amount = Annotated[float, BeforeValidator(_to_float)]
OptionalAmount = Annotated[Optional[float], BeforeValidator(_parse_number)]
Count = Annotated[int, BeforeValidator(_to_int)]
Text = Annotated[str, BeforeValidator(_to_text)]
OptionalText = Annotated[Optional[str], BeforeValidator(_to_optional_text)]
Flag = Annotated[bool, BeforeValidator(_to_bool)]
JsonObject = Annotated[dict[str, Any], BeforeValidator(_to_mapping)]


class ServiceRecord(BaseModel):
    """Base for persisted records: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_storage(self) -> dict[str, Any]:
        """Dump to the JSON-compatible dict stored in the business plan."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# =============================================================================
# PARTIES
# =============================================================================

class ClientInfo(ServiceRecord):
    """Billed client, shared by both record shapes."""

    id: OptionalText = None
    name: Text = ""
    address: Text = ""
    city: Text = ""
    zip_code: Text = ""
    country: Text = ""
    email: OptionalText = None
    phone: OptionalText = None
    vat_number: OptionalText = None


class CompanyInfo(ServiceRecord):
    """Issuing company, shared by both record shapes."""

    name: Text = ""
    address: Text = ""
    city: Text = ""
    zip_code: Text = ""
    country: Text = ""
    email: OptionalText = None
    phone: OptionalText = None
    website: OptionalText = None
    siret: OptionalText = None
    vat_number: OptionalText = None
    logo: OptionalText = None


# =============================================================================
# INVOICING
# =============================================================================

class ServiceInvoiceItem(ServiceRecord):
    """Line of a document. ``tax_rate`` is a fraction, ``discount`` a percentage."""

    id: Text = ""
    description: Text = ""
    quantity: Amount = 0.0
    unit_price: Amount = 0.0
    tax_rate: Amount = 0.0
    discount: OptionalAmount = None
    notes: OptionalText = None
    service_id: OptionalText = None
    created_at: OptionalText = None
    updated_at: OptionalText = None


class ServicePayment(ServiceRecord):
    id: Text = ""
    document_id: Text = ""
    date: Text = ""
    amount: Amount = 0.0
    method: Text = ""
    reference: OptionalText = None
    notes: OptionalText = None
    receipt_number: OptionalText = None
    receipt_sent: Flag = False
    created_at: OptionalText = None
    updated_at: OptionalText = None


class ServiceDocument(ServiceRecord):
    """Persisted invoice or quote."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "id": "invoice-1718000000000-k3j9x0a1b",
                    "type": "invoice",
                    "status": "sent",
                    "number": "F2024-001",
                    "issueDate": "2024-06-10",
                    "dueDate": "2024-07-10",
                    "clientInfo": {"name": "Atelier Dupont", "city": "Lyon"},
                    "items": [
                        {"description": "Audit", "quantity": 2, "unitPrice": 450, "taxRate": 0.2}
                    ],
                    "subtotal": 900,
                    "taxAmount": 180,
                    "total": 1080,
                }
            ]
        }
    )

    id: Text = ""
    type: Text = ""
    status: Text = ""
    number: Text = ""
    issue_date: Text = ""
    due_date: OptionalText = None
    valid_until: OptionalText = None
    client_info: Annotated[ClientInfo, BeforeValidator(_to_mapping)] = Field(
        default_factory=ClientInfo
    )
    company_info: Annotated[CompanyInfo, BeforeValidator(_to_mapping)] = Field(
        default_factory=CompanyInfo
    )
    items: Annotated[list[ServiceInvoiceItem], BeforeValidator(_to_record_list)] = Field(
        default_factory=list
    )
    notes: OptionalText = None
    payment_terms: OptionalText = None
    business_plan_id: Text = ""
    service_id: OptionalText = None
    payments: Annotated[list[ServicePayment], BeforeValidator(_to_record_list)] = Field(
        default_factory=list
    )
    amount_paid: Amount = 0.0
    remaining_amount: OptionalAmount = None
    last_payment_date: OptionalText = None
    last_reminder_date: OptionalText = None
    reminder_count: Count = 0
    client_risk_flag: Flag = False
    subtotal: Amount = 0.0
    tax_amount: Amount = 0.0
    total: Amount = 0.0
    created_at: Text = ""
    updated_at: Text = ""


# =============================================================================
# EXPENSES
# =============================================================================

class ServiceExpense(ServiceRecord):
    """Persisted expense. Tax rates are fractions."""

    id: Text = ""
    title: Text = ""
    description: OptionalText = None
    type: Text = ""
    category: Text = ""
    amount: Amount = 0.0
    tax_amount: OptionalAmount = None
    tax_rate: OptionalAmount = None
    tax1_name: OptionalText = None
    tax1_rate: OptionalAmount = None
    tax1_amount: OptionalAmount = None
    tax2_name: OptionalText = None
    tax2_rate: OptionalAmount = None
    tax2_amount: OptionalAmount = None
    expense_date: Text = ""
    payment_date: OptionalText = None
    status: Text = ""
    payment_method: OptionalText = None
    recurring: Flag = False
    recurrence_frequency: OptionalText = None
    recurrence_end_date: OptionalText = None
    vendor_name: OptionalText = None
    vendor_vat: OptionalText = Field(default=None, alias="vendorVAT")
    invoice_number: OptionalText = None
    receipt_url: OptionalText = None
    notes: OptionalText = None
    business_plan_id: Text = ""
    project_id: OptionalText = None
    created_at: Text = ""
    updated_at: Text = ""


class ServiceExpenseBudget(ServiceRecord):
    id: Text = ""
    category: Text = ""
    amount: Amount = 0.0
    period: Text = ""
    start_date: Text = ""
    end_date: Text = ""
    business_plan_id: Text = ""
    created_at: Text = ""
    updated_at: Text = ""


# =============================================================================
# CASH FLOW
# =============================================================================

class ServiceCashflowEntry(ServiceRecord):
    id: Text = ""
    type: Text = ""
    amount: Amount = 0.0
    description: Text = ""
    date: Text = ""
    state: Text = ""
    source_id: OptionalText = None
    source_type: OptionalText = None
    destination_id: OptionalText = None
    destination_account: OptionalText = None
    category: OptionalText = None
    business_plan_id: Text = ""
    created_at: Text = ""
    updated_at: Text = ""


class ServiceBankAccount(ServiceRecord):
    id: Text = ""
    name: Text = ""
    type: Text = ""
    balance: Amount = 0.0
    currency: Text = ""
    account_number: OptionalText = None
    iban: OptionalText = None
    swift: OptionalText = None
    bank: OptionalText = None
    description: OptionalText = None
    is_primary: Flag = False
    business_plan_id: Text = ""
    created_at: Text = ""
    updated_at: Text = ""


class ServiceCashflowForecast(ServiceRecord):
    """Persisted forecast. Derived balances are never stored."""

    id: Text = ""
    start_date: Text = ""
    end_date: Text = ""
    initial_balance: Amount = 0.0
    entries: Annotated[list[ServiceCashflowEntry], BeforeValidator(_to_record_list)] = Field(
        default_factory=list
    )
    business_plan_id: Text = ""
    created_at: Text = ""
    updated_at: Text = ""


class ServiceCashflowScenario(ServiceCashflowForecast):
    name: Text = ""
    description: OptionalText = None
    assumptions: JsonObject = Field(default_factory=dict)
    is_favorite: Flag = False


class CashflowData(ServiceRecord):
    entries: Annotated[list[ServiceCashflowEntry], BeforeValidator(_to_record_list)] = Field(
        default_factory=list
    )
    accounts: Annotated[list[ServiceBankAccount], BeforeValidator(_to_record_list)] = Field(
        default_factory=list
    )
    forecasts: Annotated[list[ServiceCashflowForecast], BeforeValidator(_to_record_list)] = Field(
        default_factory=list
    )
    scenarios: Annotated[list[ServiceCashflowScenario], BeforeValidator(_to_record_list)] = Field(
        default_factory=list
    )


class FinancesData(ServiceRecord):
    """The ``standardized.finances`` sub-tree of a business plan.

    A default instance is the empty skeleton: every collection present and empty.
    """

    invoices: Annotated[list[ServiceDocument], BeforeValidator(_to_record_list)] = Field(
        default_factory=list
    )
    expenses: Annotated[list[ServiceExpense], BeforeValidator(_to_record_list)] = Field(
        default_factory=list
    )
    expense_budgets: Annotated[list[ServiceExpenseBudget], BeforeValidator(_to_record_list)] = Field(
        default_factory=list
    )
    cashflow: Annotated[CashflowData, BeforeValidator(_to_mapping)] = Field(
        default_factory=CashflowData
    )


__all__ = [
    "ServiceRecord",
    "ClientInfo",
    "CompanyInfo",
    "ServiceInvoiceItem",
    "ServicePayment",
    "ServiceDocument",
    "ServiceExpense",
    "ServiceExpenseBudget",
    "ServiceCashflowEntry",
    "ServiceBankAccount",
    "ServiceCashflowForecast",
    "ServiceCashflowScenario",
    "CashflowData",
    "FinancesData",
]
