"""JSON-file business-plan store.

All plans are kept as one JSON array in ``{data_dir}/{storage_key}.json``,
the same layout the browser tracker used under its storage key. File access
runs in a worker thread and writes go through a temporary file followed by an
atomic rename.
"""

import asyncio
import copy
import json
import os
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Union

import structlog

from devinde_finances.adapter import format_timestamp, generate_id
from devinde_finances.storage.base import (
    ITEM_NOT_FOUND,
    STORAGE_CREATE_ERROR,
    STORAGE_GET_ERROR,
    STORAGE_UPDATE_ERROR,
    StoreResult,
)

logger = structlog.get_logger()


class JsonFileBusinessPlanStore:
    """File-backed implementation of ``BusinessPlanStore``."""

    def __init__(self, path: Union[str, Path]) -> None:
        """
        Initialize the store.

        Args:
            path: JSON file holding the array of plans. Created on first write.
        """
        self.path = Path(path)
        self._lock = asyncio.Lock()

    @classmethod
    def from_directory(
        cls, data_dir: Union[str, Path], storage_key: str
    ) -> "JsonFileBusinessPlanStore":
        return cls(Path(data_dir) / f"{storage_key}.json")

    # -------------------------------------------------------------------------
    # File access
    # -------------------------------------------------------------------------

    def _read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            content = json.load(f)
        if not isinstance(content, list):
            raise ValueError(f"Expected a JSON array of business plans in {self.path}")
        return [plan for plan in content if isinstance(plan, dict)]

    def _write(self, plans: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(plans, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    @staticmethod
    def _find(plans: list[dict[str, Any]], plan_id: str) -> int:
        for index, plan in enumerate(plans):
            if str(plan.get("id")) == plan_id:
                return index
        return -1

    # -------------------------------------------------------------------------
    # BusinessPlanStore
    # -------------------------------------------------------------------------

    async def get(self, plan_id: str) -> StoreResult[dict[str, Any]]:
        try:
            plans = await asyncio.to_thread(self._read)
        except (OSError, ValueError) as e:
            logger.error("business_plan_read_failed", path=str(self.path), error=str(e))
            return StoreResult.fail(STORAGE_GET_ERROR, f"Failed to read business plans: {e}")

        index = self._find(plans, plan_id)
        if index < 0:
            return StoreResult.fail(ITEM_NOT_FOUND, f"Business plan with ID {plan_id} not found")
        return StoreResult.ok(plans[index])

    async def update(
        self, plan_id: str, record: dict[str, Any]
    ) -> StoreResult[dict[str, Any]]:
        async with self._lock:
            try:
                plans = await asyncio.to_thread(self._read)
                index = self._find(plans, plan_id)
                if index < 0:
                    return StoreResult.fail(
                        ITEM_NOT_FOUND, f"Business plan with ID {plan_id} not found"
                    )

                merged = {
                    **plans[index],
                    **copy.deepcopy(record),
                    "id": plans[index].get("id", plan_id),
                    "updatedAt": format_timestamp(datetime.now(timezone.utc)),
                }
                plans[index] = merged
                await asyncio.to_thread(self._write, plans)
            except (OSError, ValueError, TypeError) as e:
                logger.error("business_plan_write_failed", path=str(self.path), error=str(e))
                return StoreResult.fail(
                    STORAGE_UPDATE_ERROR, f"Failed to update business plan: {e}"
                )

        logger.debug("business_plan_updated", plan_id=plan_id, backend="json")
        return StoreResult.ok(copy.deepcopy(merged))

    async def create(self, record: Mapping[str, Any]) -> StoreResult[dict[str, Any]]:
        """Append a new plan, generating its id when missing."""
        now = format_timestamp(datetime.now(timezone.utc))
        plan = {"createdAt": now, **copy.deepcopy(dict(record)), "updatedAt": now}
        plan["id"] = str(plan.get("id") or generate_id("bp"))

        async with self._lock:
            try:
                plans = await asyncio.to_thread(self._read)
                plans.append(plan)
                await asyncio.to_thread(self._write, plans)
            except (OSError, ValueError, TypeError) as e:
                logger.error("business_plan_write_failed", path=str(self.path), error=str(e))
                return StoreResult.fail(
                    STORAGE_CREATE_ERROR, f"Failed to create business plan: {e}"
                )
        return StoreResult.ok(copy.deepcopy(plan))
