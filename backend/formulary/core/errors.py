"""Error Hierarchy — typed, categorized exceptions for all Formulary failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Input errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope used by the API error handlers
    - Store-level conflicts are classified into UniqueConstraintViolation, so callers
      branch on the type and never on message text

Design Decisions:
    - Single hierarchy with FormularyError base: FastAPI global handler catches all
    - ErrorContext as dataclass: carries formula/file/operation for structured logs
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    formula_name: str | None = None
    file_path: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class FormularyError(Exception):
    """Base exception for all Formulary errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "formula_name": self.context.formula_name,
                    "file_path": self.context.file_path,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Input & Domain Errors (400-level) ──────────────────────────

class MalformedInputError(FormularyError):
    """Import document is unparseable or incomplete."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "MALFORMED_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class DuplicateFormulaError(FormularyError):
    """A formula with the same name already exists."""
    def __init__(self, name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Formula '{name}' already exists",
            "DUPLICATE_FORMULA", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )
        self.name = name


class ResourceNotFoundError(FormularyError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Concurrency Errors (409) ───────────────────────────────────

class UniqueConstraintViolation(FormularyError):
    """Store rejected an insert because a row with the same unique key exists."""
    def __init__(self, table: str, key: str, context: ErrorContext | None = None):
        super().__init__(
            f"Unique constraint violated on {table} for '{key}'",
            "UNIQUE_CONSTRAINT_VIOLATION", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.table = table
        self.key = key


class ConflictUnresolvedError(FormularyError):
    """Raw material creation collided and the winning row never became visible."""
    def __init__(self, name: str, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Raw material '{name}' conflict unresolved after {attempts} lookups",
            "CONFLICT_UNRESOLVED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.name = name
        self.attempts = attempts


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(FormularyError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
