"""Tests for the error hierarchy and its REST envelope."""

from formulary.core.errors import (
    ConflictUnresolvedError, DatabaseError, DuplicateFormulaError, ErrorCategory,
    ErrorContext, FormularyError, MalformedInputError, ResourceNotFoundError,
    UniqueConstraintViolation,
)


def test_all_errors_share_the_base():
    for error in (
        MalformedInputError("bad"),
        DuplicateFormulaError("Cream"),
        ResourceNotFoundError("Formula", "7"),
        UniqueConstraintViolation("raw_materials", "Water"),
        ConflictUnresolvedError("Water", 3),
        DatabaseError("down", "execute"),
    ):
        assert isinstance(error, FormularyError)


def test_http_status_per_error():
    assert MalformedInputError("bad").http_status == 400
    assert ResourceNotFoundError("Formula", "7").http_status == 404
    assert DuplicateFormulaError("Cream").http_status == 409
    assert ConflictUnresolvedError("Water", 3).http_status == 409
    assert DatabaseError("down", "execute").http_status == 503


def test_response_envelope_carries_context():
    error = DuplicateFormulaError(
        "Cream", ErrorContext(formula_name="Cream", operation="import"),
    )
    body = error.to_response()["error"]
    assert body["code"] == "DUPLICATE_FORMULA"
    assert body["category"] == ErrorCategory.BUSINESS_RULE.value
    assert body["context"]["formula_name"] == "Cream"
    assert body["context"]["operation"] == "import"
    assert "Cream" in body["message"]


def test_conflict_unresolved_reports_attempts():
    error = ConflictUnresolvedError("Water", 3)
    assert error.attempts == 3
    assert error.code == "CONFLICT_UNRESOLVED"
