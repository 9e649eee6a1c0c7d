"""
Validation results returned by REST PKI.

A validation result is a tree: each item (error, warning or passed check)
may carry the results of a nested validation, e.g. the validation of the
issuer certificate while validating a signer certificate.
"""

from __future__ import annotations

__all__ = ["ValidationItem", "ValidationResults"]

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def _convert_items(items: Any) -> tuple[ValidationItem, ...]:
    if not items:
        return ()
    return tuple(ValidationItem.from_model(item) for item in items)


def _join_items(items: tuple[ValidationItem, ...], indentation_level: int) -> str:
    tab = "\t" * indentation_level
    return "\n".join(f"{tab}- {item.to_string(indentation_level)}" for item in items)


@dataclass(frozen=True)
class ValidationItem:
    """A single check performed by the server."""

    type: str
    message: str
    detail: str | None = None
    inner_validation_results: ValidationResults | None = None

    @classmethod
    def from_model(cls, model: Mapping[str, Any]) -> ValidationItem:
        inner = model.get("innerValidationResults")
        return cls(
            type=model.get("type") or "",
            message=model.get("message") or "",
            detail=model.get("detail") or None,
            inner_validation_results=ValidationResults.from_model(inner) if inner else None,
        )

    def to_string(self, indentation_level: int = 0) -> str:
        text = self.message
        if self.detail:
            text += f" ({self.detail})"
        if self.inner_validation_results is not None:
            text += "\n"
            text += self.inner_validation_results.to_string(indentation_level + 1)
        return text

    def __str__(self) -> str:
        return self.to_string(0)


@dataclass(frozen=True)
class ValidationResults:
    """Errors, warnings and passed checks of a server-side validation.

    Instances are immutable once built from the server model.
    """

    errors: tuple[ValidationItem, ...] = field(default_factory=tuple)
    warnings: tuple[ValidationItem, ...] = field(default_factory=tuple)
    passed_checks: tuple[ValidationItem, ...] = field(default_factory=tuple)

    @classmethod
    def from_model(cls, model: Mapping[str, Any] | None) -> ValidationResults:
        """Build the tree from the API's ``validationResults`` JSON object."""
        if not model:
            return cls()
        return cls(
            errors=_convert_items(model.get("errors")),
            warnings=_convert_items(model.get("warnings")),
            passed_checks=_convert_items(model.get("passedChecks")),
        )

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def checks_performed(self) -> int:
        return len(self.errors) + len(self.warnings) + len(self.passed_checks)

    def summary(self, indentation_level: int = 0) -> str:
        """One-line summary, e.g. ``Validation results: 5 checks performed, all passed``."""
        tab = "\t" * indentation_level
        text = f"{tab}Validation results: "
        if self.checks_performed == 0:
            return text + "no checks performed"

        text += f"{self.checks_performed} checks performed"
        if self.has_errors:
            text += f", {len(self.errors)} errors"
        if self.has_warnings:
            text += f", {len(self.warnings)} warnings"
        if self.passed_checks:
            if not self.has_errors and not self.has_warnings:
                text += ", all passed"
            else:
                text += f", {len(self.passed_checks)} passed"
        return text

    def to_string(self, indentation_level: int = 0) -> str:
        tab = "\t" * indentation_level
        text = self.summary(indentation_level)
        if self.has_errors:
            text += f"\n{tab}Errors:\n"
            text += _join_items(self.errors, indentation_level)
        if self.has_warnings:
            text += f"\n{tab}Warnings:\n"
            text += _join_items(self.warnings, indentation_level)
        if self.passed_checks:
            text += f"\n{tab}Passed checks:\n"
            text += _join_items(self.passed_checks, indentation_level)
        return text

    def __str__(self) -> str:
        return self.to_string(0)
