"""Posting pipeline: hands a balanced, structurally valid draft to the ledger."""
from __future__ import annotations

import datetime
import logging

from journal_desk.client import LedgerClient
from journal_desk.config import settings
from journal_desk.exceptions import (
    LedgerAPIError,
    ServerValidationFailed,
    SubmissionFailure,
    SubmissionInProgress,
)
from journal_desk.models.draft import JournalEntryDraft
from journal_desk.models.journal import JournalEntry
from journal_desk.models.validation import Validated, ValidationState
from journal_desk.services.balance import require_balanced
from journal_desk.services.builder import to_payload, validate_structure
from journal_desk.services.registry import AccountRegistry

logger = logging.getLogger(__name__)


class PostingPipeline:
    def __init__(
        self,
        client: LedgerClient,
        registry: AccountRegistry | None = None,
        block_on_server_errors: bool | None = None,
    ):
        self.client = client
        self.registry = registry
        self.block_on_server_errors = (
            settings.BLOCK_ON_SERVER_ERRORS if block_on_server_errors is None
            else block_on_server_errors
        )
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def blocked_by(self, validation_state: ValidationState | None) -> bool:
        """True when the last server validation must stop a submission."""
        return (
            self.block_on_server_errors
            and isinstance(validation_state, Validated)
            and validation_state.has_errors
        )

    def check(
        self,
        draft: JournalEntryDraft,
        validation_state: ValidationState | None = None,
    ) -> None:
        """Re-run every local gate against exactly the draft about to be sent."""
        validate_structure(draft, self.registry)
        require_balanced(draft.lines)
        if self.blocked_by(validation_state):
            raise ServerValidationFailed(validation_state.result)

    async def submit(
        self,
        draft: JournalEntryDraft,
        validation_state: ValidationState | None = None,
    ) -> JournalEntry:
        """Create the entry, or update it when the draft came from an existing one.

        Raises the local validation errors unchanged, ``SubmissionInProgress``
        for overlapping calls and ``SubmissionFailure`` for anything the
        ledger rejects.  The draft itself is never modified.
        """
        if self._in_flight:
            raise SubmissionInProgress("A journal entry submission is already in progress")

        self.check(draft, validation_state)
        payload = to_payload(draft)

        self._in_flight = True
        try:
            if draft.entry_id:
                entry = await self.client.update_journal_entry(draft.entry_id, payload)
            else:
                entry = await self.client.create_journal_entry(payload)
        except LedgerAPIError as e:
            logger.error(f"Failed to save journal entry: {e}")
            raise SubmissionFailure(e) from e
        finally:
            self._in_flight = False

        action = "updated" if draft.entry_id else "created"
        logger.info(f"Journal entry #{entry.entry_number} {action} ({entry.id})")
        return entry

    async def post(self, entry_id: str) -> JournalEntry:
        try:
            entry = await self.client.post_journal_entry(entry_id)
        except LedgerAPIError as e:
            logger.error(f"Failed to post journal entry {entry_id}: {e}")
            raise SubmissionFailure(e) from e
        logger.info(f"Journal entry #{entry.entry_number} posted")
        return entry

    async def reverse(
        self,
        entry_id: str,
        reversal_date: datetime.date | None = None,
        description: str | None = None,
    ) -> JournalEntry:
        try:
            entry = await self.client.reverse_journal_entry(
                entry_id, reversal_date or datetime.date.today(), description
            )
        except LedgerAPIError as e:
            logger.error(f"Failed to reverse journal entry {entry_id}: {e}")
            raise SubmissionFailure(e) from e
        logger.info(f"Journal entry {entry_id} reversed by #{entry.entry_number}")
        return entry
