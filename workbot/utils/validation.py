"""Compact rendering of pydantic validation errors."""

from pydantic import ValidationError


def describe_validation_error(exc: ValidationError) -> str:
    """Join a ValidationError into one line: '"field" message; ...'."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "params"
        parts.append(f'"{location}" {err["msg"].lower()}')
    return "; ".join(parts)
