"""Schema-level acceptance of candidate job records.

Both entry points share the rules defined on JobRecord; they differ only in
how a failure is signalled.
"""

from typing import Any

from pydantic import ValidationError

from src.core.schemas import JobRecord


class JobValidationError(ValueError):
    """Raised by parse_job; ``errors`` lists every failing field."""

    def __init__(self, errors: list[dict[str, str]]) -> None:
        self.errors = errors
        fields = ", ".join(e["field"] for e in errors)
        super().__init__(f"Invalid job record ({fields})")


def parse_job(data: Any) -> JobRecord:
    """Validate loose input into a JobRecord, raising JobValidationError."""
    try:
        return JobRecord.model_validate(data)
    except ValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"]) or "__root__",
                "message": err["msg"],
            }
            for err in e.errors()
        ]
        raise JobValidationError(errors) from e


def safe_parse_job(data: Any) -> JobRecord | None:
    """Like parse_job, but returns None instead of raising."""
    try:
        return parse_job(data)
    except JobValidationError:
        return None
