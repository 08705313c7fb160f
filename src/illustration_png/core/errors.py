from __future__ import annotations

from dataclasses import dataclass

SVG_NOT_FOUND = "SVG not found"


@dataclass(frozen=True)
class FieldIssue:
    field: str
    message: str


class ConversionError(Exception):
    """Base class for every failure raised by the conversion pipeline."""


class RequestValidationError(ConversionError):
    def __init__(self, issues: list[FieldIssue]) -> None:
        self.issues = issues
        fields = ", ".join(issue.field for issue in issues)
        super().__init__(f"Invalid conversion request: {fields}")


class SourceNotFound(ConversionError):
    def __init__(self, svg_path: str) -> None:
        self.svg_path = svg_path
        super().__init__(SVG_NOT_FOUND)


class ConversionFailed(ConversionError):
    """Rendering or source retrieval failed; the cause is chained."""
