"""In-progress journal entry held by the composer.

A draft is an immutable value; every edit goes through
``journal_desk.services.builder.reduce`` and yields a new draft.
"""
from __future__ import annotations

import dataclasses
import datetime
from decimal import Decimal

from journal_desk.models.base import ZERO
from journal_desk.models.journal import EntrySide, JournalEntryType


@dataclasses.dataclass(frozen=True)
class DraftLine:
    account_id: str = ""
    description: str = ""
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO
    reference: str = ""

    def amount(self, side: EntrySide) -> Decimal:
        return self.debit_amount if side == EntrySide.DEBIT else self.credit_amount

    @property
    def is_one_sided(self) -> bool:
        return (self.debit_amount > 0 and self.credit_amount == 0) or (
            self.credit_amount > 0 and self.debit_amount == 0
        )


@dataclasses.dataclass(frozen=True)
class JournalEntryDraft:
    date: datetime.date | None
    type: JournalEntryType | None = JournalEntryType.STANDARD
    description: str = ""
    reference: str = ""
    lines: tuple[DraftLine, ...] = (DraftLine(), DraftLine())
    entry_id: str | None = None

    @property
    def is_editing(self) -> bool:
        return self.entry_id is not None

    def replace_line(self, index: int, line: DraftLine) -> JournalEntryDraft:
        lines = list(self.lines)
        lines[index] = line
        return dataclasses.replace(self, lines=tuple(lines))
