"""Entry session: one user composing one journal entry.

The session owns the draft and wires the pieces together.  Every dispatched
edit recomputes the balance synchronously, notifies listeners, and
schedules a server validation in the background.
"""
from __future__ import annotations

import datetime
import logging
from collections.abc import Callable

from journal_desk.client import LedgerClient
from journal_desk.exceptions import (
    FieldError,
    JournalDeskError,
    JournalValidationError,
    SubmissionFailure,
)
from journal_desk.models.draft import JournalEntryDraft
from journal_desk.models.journal import EntrySide, JournalEntry
from journal_desk.models.validation import ValidationState
from journal_desk.services import builder
from journal_desk.services.balance import BalanceSummary, compute_balance
from journal_desk.services.posting import PostingPipeline
from journal_desk.services.registry import AccountRegistry
from journal_desk.services.validation_bridge import ValidationBridge

logger = logging.getLogger(__name__)

SessionListener = Callable[["EntrySession"], None]


class EntrySession:
    def __init__(self, client: LedgerClient, block_on_server_errors: bool | None = None):
        self.client = client
        self.registry = AccountRegistry()
        self.bridge = ValidationBridge(client)
        self.pipeline = PostingPipeline(client, self.registry, block_on_server_errors)
        self.draft: JournalEntryDraft = builder.initialize()
        self.balance: BalanceSummary = compute_balance(self.draft.lines)
        self.last_error: JournalDeskError | None = None
        self.is_open = False
        self._listeners: list[SessionListener] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(
        self,
        entry_id: str | None = None,
        today: datetime.date | None = None,
    ) -> JournalEntryDraft:
        """Load the chart of accounts and start a new or existing entry."""
        self.registry = await AccountRegistry.load(self.client)
        self.pipeline.registry = self.registry

        existing = await self.client.get_journal_entry(entry_id) if entry_id else None

        self.bridge.close()
        self.bridge = ValidationBridge(self.client)
        self.bridge.subscribe(self._on_validation)
        self.draft = builder.initialize(existing, today)
        self.balance = compute_balance(self.draft.lines)
        self.last_error = None
        self.is_open = True
        logger.debug(f"Opened entry session ({'edit ' + entry_id if entry_id else 'new'})")
        return self.draft

    def close(self) -> None:
        """Abandon outstanding validations and reset local state."""
        self.is_open = False
        self.draft = builder.initialize()
        self.balance = compute_balance(self.draft.lines)
        self.last_error = None
        self.bridge.close()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _on_validation(self, state: ValidationState) -> None:
        self._notify()

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def dispatch(self, action: builder.Action) -> JournalEntryDraft:
        if not self.is_open:
            raise RuntimeError("Entry session is not open")

        draft = builder.reduce(self.draft, action)
        if draft == self.draft:
            return self.draft

        self.draft = draft
        self.balance = compute_balance(draft.lines)
        # dropping a previous verdict already notifies through _on_validation
        if not self.bridge.invalidate():
            self._notify()
        self.bridge.schedule(draft)
        return draft

    def add_line(self) -> JournalEntryDraft:
        return self.dispatch(builder.AddLine())

    def remove_line(self, index: int) -> JournalEntryDraft:
        return self.dispatch(builder.RemoveLine(index))

    def set_amount(self, index: int, side: EntrySide | str, value) -> JournalEntryDraft:
        return self.dispatch(builder.SetLineAmount(index, EntrySide(side), value))

    def set_line_field(self, index: int, field: str, value: str) -> JournalEntryDraft:
        return self.dispatch(builder.SetLineField(index, field, value))

    def set_header(self, field: str, value) -> JournalEntryDraft:
        return self.dispatch(builder.SetHeader(field, value))

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def validation_state(self) -> ValidationState:
        return self.bridge.state

    @property
    def field_errors(self) -> list[FieldError]:
        return builder.structure_errors(self.draft, self.registry)

    @property
    def can_submit(self) -> bool:
        return (
            self.is_open
            and self.balance.is_balanced
            and not self.pipeline.in_flight
            and not self.pipeline.blocked_by(self.validation_state)
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self) -> JournalEntry:
        """Save the draft; on success the session is closed and reset.

        On failure the error is kept in ``last_error`` and re-raised, and the
        draft stays as it was so the user can correct it and retry.
        """
        if not self.is_open:
            raise RuntimeError("Entry session is not open")

        try:
            entry = await self.pipeline.submit(self.draft, self.validation_state)
        except (JournalValidationError, SubmissionFailure) as e:
            self.last_error = e
            self._notify()
            raise

        self.close()
        self._notify()
        return entry
