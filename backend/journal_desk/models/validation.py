"""Server validation results and the client-side validation state machine."""
from __future__ import annotations

import dataclasses

from journal_desk.models.base import CamelModel, Money


class ValidationResult(CamelModel):
    """Outcome of ``POST journal-entries/validate``."""
    is_valid: bool
    is_balanced: bool = False
    errors: list[str] = []
    warnings: list[str] = []
    total_debits: Money | None = None
    total_credits: Money | None = None


# ---------------------------------------------------------------------------
# Validation state (one of four variants)
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class Unvalidated:
    """Nothing has been sent yet, or the draft has too few lines."""


@dataclasses.dataclass(frozen=True)
class Validating:
    sequence: int


@dataclasses.dataclass(frozen=True)
class Validated:
    result: ValidationResult
    sequence: int

    @property
    def has_errors(self) -> bool:
        return not self.result.is_valid


@dataclasses.dataclass(frozen=True)
class ValidationUnavailable:
    """The validation call failed in transport or with a non-success status."""
    reason: str
    sequence: int


ValidationState = Unvalidated | Validating | Validated | ValidationUnavailable
