"""Journal entry builder: draft construction, edits and structural checks.

Every edit is a pure function from one ``JournalEntryDraft`` to the next.
``reduce`` dispatches the action values below onto those functions so a
session can record and replay edits without caring which one it got.
"""
from __future__ import annotations

import dataclasses
import datetime
import logging
from typing import TYPE_CHECKING, Any

from journal_desk.config import settings
from journal_desk.exceptions import FieldError, StructuralInvalid
from journal_desk.models.base import ZERO
from journal_desk.models.draft import DraftLine, JournalEntryDraft
from journal_desk.models.journal import (
    EntrySide,
    JournalEntry,
    JournalEntryPayload,
    JournalEntryType,
    JournalLinePayload,
)
from journal_desk.services.balance import fits_currency_precision, quantize_amount

if TYPE_CHECKING:
    from journal_desk.services.registry import AccountRegistry

logger = logging.getLogger(__name__)

LINE_FIELDS = ("account_id", "description", "reference")
HEADER_FIELDS = ("date", "type", "description", "reference")
# Fixed once the entry exists on the ledger; corrections go through a new entry.
LOCKED_WHEN_EDITING = ("date", "type")


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class AddLine:
    pass


@dataclasses.dataclass(frozen=True)
class RemoveLine:
    index: int


@dataclasses.dataclass(frozen=True)
class SetLineAmount:
    index: int
    side: EntrySide
    value: Any


@dataclasses.dataclass(frozen=True)
class SetLineField:
    index: int
    field: str
    value: str


@dataclasses.dataclass(frozen=True)
class SetHeader:
    field: str
    value: Any


@dataclasses.dataclass(frozen=True)
class Reset:
    existing: JournalEntry | None = None


Action = AddLine | RemoveLine | SetLineAmount | SetLineField | SetHeader | Reset


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def initialize(
    existing: JournalEntry | None = None,
    today: datetime.date | None = None,
) -> JournalEntryDraft:
    """Return a blank two-line draft, or one hydrated from ``existing``."""
    if existing is None:
        return JournalEntryDraft(
            date=today or datetime.date.today(),
            type=JournalEntryType.STANDARD,
            lines=tuple(DraftLine() for _ in range(settings.MIN_LINES)),
        )

    return JournalEntryDraft(
        date=existing.date,
        type=existing.type,
        description=existing.description,
        reference=existing.reference or "",
        lines=tuple(
            DraftLine(
                account_id=line.account_id,
                description=line.description,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                reference=line.reference or "",
            )
            for line in existing.lines
        ),
        entry_id=existing.id,
    )


def reversing_draft(
    entry: JournalEntry,
    reversal_date: datetime.date | None = None,
    description: str | None = None,
) -> JournalEntryDraft:
    """New REVERSING draft that undoes ``entry`` by swapping every line's sides."""
    return JournalEntryDraft(
        date=reversal_date or datetime.date.today(),
        type=JournalEntryType.REVERSING,
        description=(description or f"Reversal of JE #{entry.entry_number}: {entry.description}")[
            : settings.DESCRIPTION_MAX_LENGTH
        ],
        reference=f"reversal:{entry.id}",
        lines=tuple(
            DraftLine(
                account_id=line.account_id,
                description=f"Reversal: {line.description}",
                debit_amount=line.credit_amount,  # swapped
                credit_amount=line.debit_amount,  # swapped
                reference=line.reference or "",
            )
            for line in entry.lines
        ),
    )


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


def add_line(draft: JournalEntryDraft) -> JournalEntryDraft:
    return dataclasses.replace(draft, lines=draft.lines + (DraftLine(),))


def remove_line(draft: JournalEntryDraft, index: int) -> JournalEntryDraft:
    """Drop a line unless that would leave fewer than the minimum."""
    _check_index(draft, index)
    if len(draft.lines) <= settings.MIN_LINES:
        logger.debug(f"Refusing to remove line {index}: entry already at {len(draft.lines)} lines")
        return draft
    lines = draft.lines[:index] + draft.lines[index + 1:]
    return dataclasses.replace(draft, lines=lines)


def set_line_amount(
    draft: JournalEntryDraft, index: int, side: EntrySide | str, value: Any
) -> JournalEntryDraft:
    """Set one side of a line, rounded to the currency precision.

    The other side of that line is forced to zero.
    """
    _check_index(draft, index)
    side = EntrySide(side)
    amount = quantize_amount(value)
    line = draft.lines[index]
    if side == EntrySide.DEBIT:
        line = dataclasses.replace(line, debit_amount=amount, credit_amount=ZERO)
    else:
        line = dataclasses.replace(line, credit_amount=amount, debit_amount=ZERO)
    return draft.replace_line(index, line)


def set_line_field(
    draft: JournalEntryDraft, index: int, field: str, value: str
) -> JournalEntryDraft:
    _check_index(draft, index)
    if field not in LINE_FIELDS:
        raise ValueError(f"Unknown line field {field!r}; must be one of {', '.join(LINE_FIELDS)}")
    line = dataclasses.replace(draft.lines[index], **{field: value or ""})
    return draft.replace_line(index, line)


def set_header(draft: JournalEntryDraft, field: str, value: Any) -> JournalEntryDraft:
    if field not in HEADER_FIELDS:
        raise ValueError(f"Unknown header field {field!r}; must be one of {', '.join(HEADER_FIELDS)}")
    if draft.is_editing and field in LOCKED_WHEN_EDITING:
        logger.debug(f"Ignoring change to read-only field {field!r} on entry {draft.entry_id}")
        return draft

    if field == "date":
        value = _coerce_date(value)
    elif field == "type":
        value = JournalEntryType(value) if value else None
    else:
        value = value or ""
    return dataclasses.replace(draft, **{field: value})


def reduce(draft: JournalEntryDraft, action: Action) -> JournalEntryDraft:
    """Apply one action and return the next draft."""
    match action:
        case AddLine():
            return add_line(draft)
        case RemoveLine(index=index):
            return remove_line(draft, index)
        case SetLineAmount(index=index, side=side, value=value):
            return set_line_amount(draft, index, side, value)
        case SetLineField(index=index, field=field, value=value):
            return set_line_field(draft, index, field, value)
        case SetHeader(field=field, value=value):
            return set_header(draft, field, value)
        case Reset(existing=existing):
            return initialize(existing)
    raise TypeError(f"Unsupported action: {action!r}")


# ---------------------------------------------------------------------------
# Structural validation
# ---------------------------------------------------------------------------


def structure_errors(
    draft: JournalEntryDraft,
    registry: AccountRegistry | None = None,
) -> list[FieldError]:
    """Every structural problem in ``draft``; empty when it may be submitted."""
    errors: list[FieldError] = []

    if draft.date is None:
        errors.append(FieldError("date", "Date is required"))
    if draft.type is None:
        errors.append(FieldError("type", "Entry type is required"))

    description = draft.description.strip()
    if not description:
        errors.append(FieldError("description", "Description is required"))
    elif len(draft.description) > settings.DESCRIPTION_MAX_LENGTH:
        errors.append(FieldError(
            "description",
            f"Description must be {settings.DESCRIPTION_MAX_LENGTH} characters or less",
        ))

    if len(draft.lines) < settings.MIN_LINES:
        errors.append(FieldError("lines", f"At least {settings.MIN_LINES} lines are required"))

    for i, line in enumerate(draft.lines):
        prefix = f"lines.{i}"
        if not line.account_id:
            errors.append(FieldError(f"{prefix}.account_id", "Account is required"))
        elif registry is not None:
            reason = registry.unpostable_reason(line.account_id)
            if reason:
                errors.append(FieldError(f"{prefix}.account_id", reason))
        if not line.description.strip():
            errors.append(FieldError(f"{prefix}.description", "Line description is required"))
        if line.debit_amount < 0:
            errors.append(FieldError(f"{prefix}.debit_amount", "Debit amount must be positive"))
        if line.credit_amount < 0:
            errors.append(FieldError(f"{prefix}.credit_amount", "Credit amount must be positive"))
        for field, label in (("debit_amount", "Debit"), ("credit_amount", "Credit")):
            if not fits_currency_precision(getattr(line, field)):
                errors.append(FieldError(
                    f"{prefix}.{field}",
                    f"{label} amount cannot have more than "
                    f"{settings.CURRENCY_DECIMALS} decimal places",
                ))
        if not line.is_one_sided:
            errors.append(FieldError(
                prefix,
                "Each line must have either a debit or credit amount, but not both",
            ))

    return errors


def validate_structure(
    draft: JournalEntryDraft,
    registry: AccountRegistry | None = None,
) -> JournalEntryDraft:
    """Raise ``StructuralInvalid`` unless the draft is structurally complete."""
    errors = structure_errors(draft, registry)
    if errors:
        raise StructuralInvalid(errors)
    return draft


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def to_payload(draft: JournalEntryDraft) -> JournalEntryPayload:
    """Request body for validate/create/update; blank references are dropped."""
    return JournalEntryPayload(
        date=draft.date,
        type=draft.type,
        description=draft.description,
        reference=draft.reference or None,
        lines=[
            JournalLinePayload(
                account_id=line.account_id,
                description=line.description,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                reference=line.reference or None,
            )
            for line in draft.lines
        ],
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _check_index(draft: JournalEntryDraft, index: int) -> None:
    if not 0 <= index < len(draft.lines):
        raise IndexError(f"Line index {index} out of range for {len(draft.lines)} lines")


def _coerce_date(value: Any) -> datetime.date | None:
    if not value:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value).split("T", 1)[0])
