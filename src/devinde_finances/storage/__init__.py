"""Business-plan stores.

- ``BusinessPlanStore``: the async protocol consumed by ``FinancesManager``
- ``InMemoryBusinessPlanStore``: dict-backed, for tests and embedding
- ``JsonFileBusinessPlanStore``: one JSON array per storage key on disk
"""

from pathlib import Path
from typing import Optional, Union

from devinde_finances.config import FinancesConfig, StorageBackend
from devinde_finances.exceptions import ConfigurationError
from devinde_finances.storage.base import (
    ITEM_NOT_FOUND,
    STORAGE_CREATE_ERROR,
    STORAGE_GET_ERROR,
    STORAGE_UPDATE_ERROR,
    BusinessPlanStore,
    StoreError,
    StoreResult,
)
from devinde_finances.storage.json_file import JsonFileBusinessPlanStore
from devinde_finances.storage.memory import InMemoryBusinessPlanStore


def create_store(
    config: Optional[FinancesConfig] = None,
) -> Union[InMemoryBusinessPlanStore, JsonFileBusinessPlanStore]:
    """Build the store selected by ``config.storage.backend``.

    Raises:
        ConfigurationError: If the JSON backend's data_dir exists but is not
            a directory.
    """
    config = config or FinancesConfig()
    storage = config.storage

    if storage.backend == StorageBackend.JSON:
        data_dir = Path(storage.data_dir)
        if data_dir.exists() and not data_dir.is_dir():
            raise ConfigurationError(
                "Storage data_dir is not a directory",
                config_key="DEVINDE_STORAGE_DATA_DIR",
                expected="A directory path",
                actual=str(data_dir),
            )
        return JsonFileBusinessPlanStore.from_directory(data_dir, storage.storage_key)

    return InMemoryBusinessPlanStore()


__all__ = [
    "ITEM_NOT_FOUND",
    "STORAGE_CREATE_ERROR",
    "STORAGE_GET_ERROR",
    "STORAGE_UPDATE_ERROR",
    "BusinessPlanStore",
    "StoreError",
    "StoreResult",
    "InMemoryBusinessPlanStore",
    "JsonFileBusinessPlanStore",
    "create_store",
]
