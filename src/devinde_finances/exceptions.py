"""Custom exceptions for the DevIndé finances pipeline.

All exceptions inherit from FinancesError, making it easy to catch every
application-specific failure in one place. The orchestration layer never lets
these escape its public methods; it turns them into the human-readable
``error`` string exposed on the manager.

Example:
    result = await store.update(plan_id, plan)
    try:
        if not result.is_success:
            raise PersistenceError(result.error_message, code=result.error.code)
    except PersistenceError as e:
        if e.recoverable:
            # The user may simply retry the action
            ...
    except FinancesError as e:
        logger.error("finances_operation_failed", error=str(e))
"""

from typing import Any, Optional


class FinancesError(Exception):
    """Base exception for all finances pipeline errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.

    Example:
        >>> raise FinancesError("Something went wrong", details={"plan_id": "bp-1"})
        FinancesError: Something went wrong
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        """Initialize FinancesError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context about the error.
            recoverable: Whether the error is potentially recoverable by
                re-invoking the action. Defaults to False.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class NoBusinessPlanLoadedError(FinancesError):
    """Raised when a mutation is attempted before any business plan was loaded.

    This is a precondition failure: no persistence is attempted and retrying
    without calling ``load()`` first cannot succeed.
    """

    def __init__(
        self,
        message: str = "No business plan data available",
        *,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=False)


class EntityNotFoundError(FinancesError):
    """Raised when an operation targets a record id that does not exist.

    Attributes:
        entity_type: Kind of record looked up (e.g. "Invoice").
        entity_id: The id that was not found.

    Example:
        >>> raise EntityNotFoundError(entity_type="Invoice", entity_id="invoice-1")
        EntityNotFoundError: Invoice with ID invoice-1 not found
    """

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        entity_type: str,
        entity_id: str,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(
            message or f"{entity_type} with ID {entity_id} not found",
            details=details,
            recoverable=recoverable,
        )
        self.entity_type = entity_type
        self.entity_id = entity_id

        self.details["entity_type"] = entity_type
        self.details["entity_id"] = entity_id


class PersistenceError(FinancesError):
    """Raised when the business-plan store reports a failure.

    Attributes:
        operation: The manager operation that attempted to persist.
        plan_id: Identifier of the business plan being written.
        code: Error code reported by the store (if any).
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        plan_id: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        """Initialize PersistenceError.

        Args:
            message: Human-readable error description, usually the store's own.
            operation: Name of the manager operation (e.g. "save_expense").
            plan_id: Business plan identifier.
            code: Store error code such as ``STORAGE_UPDATE_ERROR``.
            details: Optional dictionary with additional context.
            recoverable: Defaults to True since storage failures are often
                transient and the in-memory state is left untouched.
        """
        super().__init__(message, details=details, recoverable=recoverable)
        self.operation = operation
        self.plan_id = plan_id
        self.code = code

        if operation:
            self.details["operation"] = operation
        if plan_id:
            self.details["plan_id"] = plan_id
        if code:
            self.details["code"] = code


class ConfigurationError(FinancesError):
    """Error raised when configuration is invalid or unusable.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.
        actual: The actual value found (if any).

    Example:
        >>> raise ConfigurationError(
        ...     "Storage data_dir is not a directory",
        ...     config_key="DEVINDE_STORAGE_DATA_DIR",
        ...     expected="A directory path",
        ...     actual="./data.txt",
        ... )
        ConfigurationError: Storage data_dir is not a directory
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.config_key = config_key
        self.expected = expected
        self.actual = actual

        if config_key:
            self.details["config_key"] = config_key
        if expected:
            self.details["expected"] = expected
        if actual is not None:
            self.details["actual"] = actual


__all__ = [
    "FinancesError",
    "NoBusinessPlanLoadedError",
    "EntityNotFoundError",
    "PersistenceError",
    "ConfigurationError",
]
