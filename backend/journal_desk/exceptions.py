"""Exception hierarchy for journal composition, validation and submission.

Local problems (structure, balance) are ``JournalValidationError`` subclasses
and never reach the ledger API.  Anything the API or the network reports is a
``LedgerAPIError``; the posting pipeline wraps those in ``SubmissionFailure``.
"""
from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from journal_desk.models.validation import ValidationResult
    from journal_desk.services.balance import BalanceSummary


@dataclasses.dataclass(frozen=True)
class FieldError:
    """One structural problem, addressed by a dotted field path."""
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class JournalDeskError(Exception):
    """Base class for every error raised by journal-desk."""


# ---------------------------------------------------------------------------
# Client-side validation
# ---------------------------------------------------------------------------


class JournalValidationError(JournalDeskError):
    """A draft was rejected before it reached the ledger."""


class StructuralInvalid(JournalValidationError):
    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors) or "Invalid journal entry")

    def for_path(self, path: str) -> list[str]:
        return [e.message for e in self.errors if e.path == path]

    @property
    def paths(self) -> set[str]:
        return {e.path for e in self.errors}


class Unbalanced(JournalValidationError):
    def __init__(self, summary: BalanceSummary):
        self.summary = summary
        super().__init__(
            f"Debits ({summary.total_debits}) must equal credits ({summary.total_credits})"
            if summary.total_debits != summary.total_credits
            else "Journal entry totals must be greater than zero"
        )


class ServerValidationFailed(JournalValidationError):
    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.errors) or "Ledger rejected the journal entry")


class AccountNotPostable(JournalValidationError):
    def __init__(self, account_id: str, reason: str):
        self.account_id = account_id
        self.reason = reason
        super().__init__(f"Account {account_id!r} cannot receive postings: {reason}")


# ---------------------------------------------------------------------------
# Ledger API
# ---------------------------------------------------------------------------


class LedgerAPIError(JournalDeskError):
    """The ledger API answered with a non-success status."""

    def __init__(self, status_code: int | None, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Ledger API error {status_code}: {detail}")


class LedgerUnavailable(LedgerAPIError):
    """The ledger API could not be reached at all."""

    def __init__(self, detail: Any = None):
        super().__init__(None, detail)

    def __str__(self) -> str:
        return f"Ledger API unavailable: {self.detail}"


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class SubmissionFailure(JournalDeskError):
    """Create or update failed; the draft is left untouched for a retry."""

    def __init__(self, cause: LedgerAPIError):
        self.cause = cause
        self.status_code = cause.status_code
        self.detail = cause.detail
        super().__init__(f"Failed to save journal entry: {cause}")


class SubmissionInProgress(JournalDeskError):
    """A second submit was attempted while one is still in flight."""
