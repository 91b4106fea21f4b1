"""In-memory business-plan store.

Mirrors the browser key-value storage the tracker was built around: records
live in a dict keyed by plan id and are copied on the way in and out so
callers can never alias stored state.
"""

import copy
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from devinde_finances.adapter import format_timestamp, generate_id
from devinde_finances.storage.base import ITEM_NOT_FOUND, StoreResult

logger = structlog.get_logger()


class InMemoryBusinessPlanStore:
    """Dict-backed implementation of ``BusinessPlanStore``."""

    def __init__(self, plans: Optional[Iterable[Mapping[str, Any]]] = None) -> None:
        self._plans: dict[str, dict[str, Any]] = {}
        for plan in plans or ():
            self._plans[str(plan["id"])] = copy.deepcopy(dict(plan))

    def __len__(self) -> int:
        return len(self._plans)

    async def get(self, plan_id: str) -> StoreResult[dict[str, Any]]:
        plan = self._plans.get(plan_id)
        if plan is None:
            return StoreResult.fail(ITEM_NOT_FOUND, f"Business plan with ID {plan_id} not found")
        return StoreResult.ok(copy.deepcopy(plan))

    async def update(
        self, plan_id: str, record: dict[str, Any]
    ) -> StoreResult[dict[str, Any]]:
        existing = self._plans.get(plan_id)
        if existing is None:
            return StoreResult.fail(ITEM_NOT_FOUND, f"Business plan with ID {plan_id} not found")

        merged = {
            **existing,
            **copy.deepcopy(record),
            "id": plan_id,
            "updatedAt": format_timestamp(datetime.now(timezone.utc)),
        }
        self._plans[plan_id] = merged
        logger.debug("business_plan_updated", plan_id=plan_id, backend="memory")
        return StoreResult.ok(copy.deepcopy(merged))

    async def create(self, record: Mapping[str, Any]) -> StoreResult[dict[str, Any]]:
        """Store a new plan, generating its id when missing."""
        now = format_timestamp(datetime.now(timezone.utc))
        plan = {
            "createdAt": now,
            **copy.deepcopy(dict(record)),
            "updatedAt": now,
        }
        plan["id"] = str(plan.get("id") or generate_id("bp"))
        self._plans[plan["id"]] = plan
        return StoreResult.ok(copy.deepcopy(plan))
