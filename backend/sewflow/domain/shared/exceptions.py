"""
Domain Exceptions

Custom exceptions for production engine errors, discriminated by ErrorType.
Every rejection carries enough structure for the calling layer to render an
actionable message; none of these conditions are auto-repaired.
"""

from enum import Enum
from typing import Any
from uuid import UUID


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    STAGE_BLOCKED = "stage_blocked"
    INCOMPLETE_VARIANTS = "incomplete_variants"
    INCOMPLETE_OPERATIONS = "incomplete_operations"
    OVERLOAD = "overload"
    NOT_FOUND = "not_found"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when domain validation rules are violated."""

    def __init__(
        self,
        field_name: str,
        value: Any,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.error_code = error_code or "VALIDATION_ERROR"

        full_message = f"Validation failed for field '{field_name}': {message}"
        details = dict(details or {})
        details.update(
            {
                "field": field_name,
                "value": str(value) if value is not None else None,
                "error_code": self.error_code,
            }
        )

        super().__init__(full_message, ErrorType.VALIDATION, details)


class BusinessRuleError(DomainError):
    """Raised when business rules are violated."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, ErrorType.BUSINESS_RULE, details)


class EntityNotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity_type: str, entity_id: UUID | int | str) -> None:
        details = {"entity_type": entity_type, "entity_id": str(entity_id)}
        super().__init__(
            f"{entity_type} not found: {entity_id}", ErrorType.NOT_FOUND, details
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class StatusTransitionError(BusinessRuleError):
    """Raised when an operation status transition is not allowed."""

    def __init__(
        self,
        assignment_id: UUID,
        current_status: str,
        attempted_status: str,
        message: str | None = None,
    ) -> None:
        details = {
            "assignment_id": str(assignment_id),
            "current_status": current_status,
            "attempted_status": attempted_status,
        }
        super().__init__(
            message
            or f"Cannot change operation {assignment_id} from {current_status} to {attempted_status}",
            details,
        )
        self.assignment_id = assignment_id
        self.current_status = current_status
        self.attempted_status = attempted_status


class FloorLockedError(BusinessRuleError):
    """Raised when an operation cannot be placed on the requested floor."""

    def __init__(self, operation_name: str, floor_id: int, reason: str) -> None:
        super().__init__(
            f"Operation '{operation_name}' cannot be moved to floor {floor_id}: {reason}",
            {"operation": operation_name, "floor_id": floor_id},
        )
        self.operation_name = operation_name
        self.floor_id = floor_id


class StageBlockedError(DomainError):
    """Raised when an operation is touched before an earlier stage is done."""

    def __init__(self, operation_name: str, blocking_stage: str) -> None:
        super().__init__(
            f"Operation '{operation_name}' is blocked: stage {blocking_stage} is not done",
            ErrorType.STAGE_BLOCKED,
            {"operation": operation_name, "blocking_stage": blocking_stage},
        )
        self.operation_name = operation_name
        self.blocking_stage = blocking_stage


class IncompleteVariantsError(DomainError):
    """Raised when actual quantities do not reach the plan."""

    def __init__(self, rows: list[dict[str, Any]], message: str | None = None) -> None:
        operations = sorted({row["operation"] for row in rows if row.get("operation")})
        super().__init__(
            message or "Fill actuals for: " + ", ".join(operations),
            ErrorType.INCOMPLETE_VARIANTS,
            {"rows": rows},
        )
        self.rows = rows

    @property
    def operations(self) -> list[str]:
        return sorted({row["operation"] for row in self.rows if row.get("operation")})


class IncompleteOperationsError(DomainError):
    """Raised when an order is completed while some operations are not done."""

    def __init__(self, operations: list[str], message: str | None = None) -> None:
        super().__init__(
            message
            or "Not all operations are done. Finish the chain cutting -> sewing -> finish: "
            + ", ".join(operations),
            ErrorType.INCOMPLETE_OPERATIONS,
            {"operations": operations},
        )
        self.operations = operations


class OverloadError(DomainError):
    """Raised when demand exceeds the capacity of the requested period."""

    def __init__(self, percent: int, requested: int, capacity: int) -> None:
        super().__init__(
            f"Capacity overload: {requested} units requested, {capacity} available "
            f"({percent}%). Increase the period or reduce scope.",
            ErrorType.OVERLOAD,
            {"percent": percent, "requested": requested, "capacity": capacity},
        )
        self.percent = percent
        self.requested = requested
        self.capacity = capacity
