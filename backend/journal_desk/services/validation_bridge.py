"""Server-side validation of the in-progress entry.

Each request is tagged with a monotonically increasing sequence number and
its answer is applied only if no newer request (or edit, or close) has
happened since.  Transport and API failures never raise to the caller;
they become the ``ValidationUnavailable`` state.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from journal_desk.client import LedgerClient
from journal_desk.config import settings
from journal_desk.exceptions import LedgerAPIError
from journal_desk.models.draft import JournalEntryDraft
from journal_desk.models.validation import (
    Unvalidated,
    Validated,
    ValidationState,
    ValidationUnavailable,
    Validating,
)
from journal_desk.services.builder import to_payload

logger = logging.getLogger(__name__)

StateListener = Callable[[ValidationState], None]


class ValidationBridge:
    def __init__(self, client: LedgerClient):
        self._client = client
        self._sequence = 0
        self._state: ValidationState = Unvalidated()
        self._closed = False
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ValidationState:
        return self._state

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _apply(self, state: ValidationState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def invalidate(self) -> bool:
        """Make every outstanding request stale and drop the last verdict.

        A result for an older draft never outlives the edit that replaced
        it.  Returns True when listeners were notified of the reset.
        """
        self._sequence += 1
        if isinstance(self._state, Unvalidated):
            return False
        self._apply(Unvalidated())
        return True

    async def validate(self, draft: JournalEntryDraft) -> ValidationState:
        """Validate ``draft`` on the server and return the resulting state.

        The returned state is the bridge's current state, which is not the
        answer to this request if a newer one was issued meanwhile.
        """
        if self._closed:
            return self._state

        if len(draft.lines) < settings.MIN_LINES:
            self.invalidate()
            return self._state

        self._sequence += 1
        sequence = self._sequence
        self._apply(Validating(sequence))

        try:
            result = await self._client.validate_journal_entry(to_payload(draft))
        except LedgerAPIError as e:
            logger.warning(f"Journal entry validation unavailable (request {sequence}): {e}")
            outcome: ValidationState = ValidationUnavailable(str(e), sequence)
        except Exception as e:
            # Runs as a background task; nothing else would see this error
            logger.exception(f"Journal entry validation failed (request {sequence})")
            outcome = ValidationUnavailable(str(e) or e.__class__.__name__, sequence)
        else:
            outcome = Validated(result, sequence)

        if self._closed or sequence != self._sequence:
            logger.debug(
                f"Discarding stale validation response {sequence} (latest {self._sequence})"
            )
            return self._state

        self._apply(outcome)
        return outcome

    def schedule(self, draft: JournalEntryDraft) -> asyncio.Task | None:
        """Run ``validate`` in the background; returns ``None`` outside an event loop."""
        if self._closed:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; skipping server validation")
            return None

        task = loop.create_task(self.validate(draft))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled validation to finish."""
        pending = [t for t in self._tasks if not t.done()]
        while pending:
            await asyncio.gather(*pending, return_exceptions=True)
            pending = [t for t in self._tasks if not t.done()]

    def close(self) -> None:
        """Stop applying results and cancel scheduled validations."""
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        self.invalidate()
        self._listeners.clear()
