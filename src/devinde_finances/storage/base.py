"""Business-plan persistence contract.

The finances pipeline persists whole business-plan records through a small
async key-value interface: ``get(plan_id)`` and ``update(plan_id, record)``.
Stores never raise for expected failures; they return a ``StoreResult`` with
an error code and a human-readable message instead.

Any class with matching method signatures satisfies ``BusinessPlanStore``, no
inheritance required:

    class RemoteStore:
        async def get(self, plan_id: str) -> StoreResult:
            ...

        async def update(self, plan_id: str, record: dict[str, Any]) -> StoreResult:
            ...

    assert isinstance(RemoteStore(), BusinessPlanStore)
"""

from __future__ import annotations

from typing import Any, Generic, Optional, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, Field

ResultT = TypeVar("ResultT")
"""Type variable for result data types."""


# =============================================================================
# ERROR CODES
# =============================================================================

ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
STORAGE_GET_ERROR = "STORAGE_GET_ERROR"
STORAGE_UPDATE_ERROR = "STORAGE_UPDATE_ERROR"
STORAGE_CREATE_ERROR = "STORAGE_CREATE_ERROR"


# =============================================================================
# RESULT MODELS
# =============================================================================

class StoreError(BaseModel):
    """Failure reported by a store."""

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")


class StoreResult(BaseModel, Generic[ResultT]):
    """Standardized wrapper for store operation results.

    Example:
        ```python
        result = await store.get("bp-1")
        if result.is_success:
            plan = result.data
        else:
            print(result.error.code, result.error.message)
        ```
    """

    success: bool = Field(
        default=True,
        description="Whether the operation succeeded",
    )
    data: Optional[Any] = Field(
        default=None,
        description="The record returned by the store",
    )
    error: Optional[StoreError] = Field(
        default=None,
        description="Failure details when success is False",
    )

    @property
    def is_success(self) -> bool:
        """Check if the result indicates success."""
        return self.success

    @property
    def is_error(self) -> bool:
        """Check if the result indicates an error occurred."""
        return not self.success

    @property
    def error_message(self) -> str:
        """Return the error message, or an empty string on success."""
        return self.error.message if self.error else ""

    @classmethod
    def ok(cls, data: Any) -> StoreResult[Any]:
        """Create a successful result with the given data."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str) -> StoreResult[Any]:
        """Create a failed result with an error code and message."""
        return cls(success=False, error=StoreError(code=code, message=message))


# =============================================================================
# STORE PROTOCOL
# =============================================================================

@runtime_checkable
class BusinessPlanStore(Protocol):
    """Protocol for business-plan persistence backends.

    Implementations:
        - ``get`` returns the full record, or ``ITEM_NOT_FOUND``.
        - ``update`` merges ``record`` into the stored plan, stamps
          ``updatedAt`` and returns the merged record.

    Neither method should raise for storage failures; errors are returned as
    a failed ``StoreResult``.
    """

    async def get(self, plan_id: str) -> StoreResult[dict[str, Any]]:
        """Fetch the business plan stored under ``plan_id``."""
        ...

    async def update(
        self, plan_id: str, record: dict[str, Any]
    ) -> StoreResult[dict[str, Any]]:
        """Replace the business plan stored under ``plan_id``."""
        ...


__all__ = [
    "ITEM_NOT_FOUND",
    "STORAGE_GET_ERROR",
    "STORAGE_UPDATE_ERROR",
    "STORAGE_CREATE_ERROR",
    "StoreError",
    "StoreResult",
    "BusinessPlanStore",
]
