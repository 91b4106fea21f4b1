"""DevIndé Finances - invoices, expenses and cash flow for business plans."""

__version__ = "0.1.0"

from devinde_finances.adapter import FinancesAdapter
from devinde_finances.config import FinancesConfig
from devinde_finances.exceptions import (
    ConfigurationError,
    EntityNotFoundError,
    FinancesError,
    NoBusinessPlanLoadedError,
    PersistenceError,
)
from devinde_finances.manager import FinancesManager
from devinde_finances.storage import (
    BusinessPlanStore,
    InMemoryBusinessPlanStore,
    JsonFileBusinessPlanStore,
    create_store,
)

__all__ = [
    "FinancesAdapter",
    "FinancesConfig",
    "FinancesManager",
    "BusinessPlanStore",
    "InMemoryBusinessPlanStore",
    "JsonFileBusinessPlanStore",
    "create_store",
    "FinancesError",
    "NoBusinessPlanLoadedError",
    "EntityNotFoundError",
    "PersistenceError",
    "ConfigurationError",
]
