"""
Server-Side Validation Bridge — states, staleness guard and failure handling.

Overlapping requests are issued against the stub ledger with artificial
delays so that responses arrive out of order.
Tests 501-520.
"""
import asyncio
from datetime import date

import httpx

from conftest import BASE_URL, CASH, RENT, line, make_draft
from journal_desk.client import LedgerClient
from journal_desk.models import Unvalidated, Validated, ValidationUnavailable, Validating
from journal_desk.services.validation_bridge import ValidationBridge


class TestValidationStates:

    async def test_501_starts_unvalidated(self, client):
        assert isinstance(ValidationBridge(client).state, Unvalidated)

    async def test_502_valid_entry(self, client):
        bridge = ValidationBridge(client)
        state = await bridge.validate(make_draft())
        assert isinstance(state, Validated)
        assert state.result.is_valid
        assert state.has_errors is False
        assert bridge.state is state

    async def test_503_server_errors_surface_in_result(self, client, ledger_state):
        """isValid false is a successful response carrying errors, not a failure."""
        ledger_state.closed_before = date(2026, 4, 1)
        state = await ValidationBridge(client).validate(make_draft())
        assert isinstance(state, Validated)
        assert state.has_errors
        assert state.result.errors == ["Fiscal period for 2026-03-15 is closed"]

    async def test_504_warnings_pass_through(self, client):
        draft = make_draft(line(RENT, debit="25000"), line(CASH, credit="25000"))
        state = await ValidationBridge(client).validate(draft)
        assert state.result.is_valid
        assert state.result.warnings == [
            "Line 1: unusually large amount",
            "Line 2: unusually large amount",
        ]

    async def test_505_fewer_than_two_lines_not_sent(self, client, ledger_state):
        draft = make_draft(line(RENT, debit="10"))
        state = await ValidationBridge(client).validate(draft)
        assert isinstance(state, Unvalidated)
        assert ledger_state.validate_calls == []

    async def test_506_listeners_see_every_applied_state(self, client):
        bridge = ValidationBridge(client)
        seen = []
        unsubscribe = bridge.subscribe(seen.append)
        await bridge.validate(make_draft())
        assert [type(s) for s in seen] == [Validating, Validated]
        unsubscribe()
        await bridge.validate(make_draft())
        assert len(seen) == 2


class TestValidationFailures:

    async def test_507_transport_failure_is_unavailable(self, offline_client):
        """Network failures never raise; they become ValidationUnavailable."""
        state = await ValidationBridge(offline_client).validate(make_draft())
        assert isinstance(state, ValidationUnavailable)
        assert "Connection refused" in state.reason

    async def test_508_server_error_is_unavailable(self, client, ledger_state):
        ledger_state.validate_status = 503
        state = await ValidationBridge(client).validate(make_draft())
        assert isinstance(state, ValidationUnavailable)
        assert "503" in state.reason

    async def test_509_failure_logged_as_warning(self, offline_client, caplog):
        with caplog.at_level("WARNING", logger="journal_desk.services.validation_bridge"):
            await ValidationBridge(offline_client).validate(make_draft())
        assert "validation unavailable" in caplog.text


class TestStaleness:

    async def test_510_slow_older_response_is_discarded(self, client, ledger_state, caplog):
        """A slow first request must not overwrite the newer second answer."""
        ledger_state.validate_delays = {"slow": 0.05}
        bridge = ValidationBridge(client)
        unbalanced = make_draft(line(RENT, debit="100"), line(CASH, credit="50"), description="slow")
        balanced = make_draft()

        with caplog.at_level("DEBUG", logger="journal_desk.services.validation_bridge"):
            first = bridge.schedule(unbalanced)
            second = bridge.schedule(balanced)
            await asyncio.gather(first, second)

        assert "Discarding stale validation response 1 (latest 2)" in caplog.text
        assert isinstance(bridge.state, Validated)
        assert bridge.state.sequence == 2
        assert bridge.state.result.is_balanced is True
        assert len(ledger_state.validate_calls) == 2

    async def test_511_invalidate_discards_in_flight_response(self, client, ledger_state):
        ledger_state.validate_delays = {"Monthly rent": 0.02}
        bridge = ValidationBridge(client)
        task = bridge.schedule(make_draft())
        await asyncio.sleep(0)
        bridge.invalidate()
        await task
        assert isinstance(bridge.state, Unvalidated)

    async def test_512_close_cancels_and_ignores(self, client, ledger_state):
        ledger_state.validate_delays = {"Monthly rent": 0.05}
        bridge = ValidationBridge(client)
        task = bridge.schedule(make_draft())
        await asyncio.sleep(0)
        bridge.close()
        await bridge.drain()
        assert task.cancelled() or task.done()
        assert isinstance(bridge.state, Unvalidated)
        assert bridge.schedule(make_draft()) is None
        assert isinstance(await bridge.validate(make_draft()), Unvalidated)

    def test_513_schedule_without_event_loop(self):
        """Synchronous callers get no background validation."""
        bridge = ValidationBridge(client=None)
        assert bridge.schedule(make_draft()) is None
        assert isinstance(bridge.state, Unvalidated)

    async def test_514_sequence_increases_per_request(self, client):
        bridge = ValidationBridge(client)
        await bridge.validate(make_draft())
        await bridge.validate(make_draft())
        assert bridge.sequence == 2
        assert bridge.state.sequence == 2

    async def test_515_invalidate_drops_previous_verdict(self, client, ledger_state):
        """An edit clears the old answer immediately, before any new request runs."""
        ledger_state.closed_before = date(2026, 4, 1)
        bridge = ValidationBridge(client)
        seen = []
        bridge.subscribe(seen.append)
        await bridge.validate(make_draft())
        assert bridge.state.has_errors

        assert bridge.invalidate() is True
        assert isinstance(bridge.state, Unvalidated)
        assert isinstance(seen[-1], Unvalidated)
        assert bridge.invalidate() is False

    async def test_516_close_notifies_subscribers(self, client):
        bridge = ValidationBridge(client)
        seen = []
        bridge.subscribe(seen.append)
        await bridge.validate(make_draft())
        bridge.close()
        assert isinstance(seen[-1], Unvalidated)
        assert isinstance(bridge.state, Unvalidated)


class TestMalformedResponses:

    async def test_517_non_json_body_is_unavailable(self, caplog):
        """A 200 proxy page never leaves the bridge stuck in Validating."""
        def handler(request):
            return httpx.Response(200, text="<html>proxy</html>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL) as http:
            bridge = ValidationBridge(LedgerClient(http))
            with caplog.at_level("WARNING", logger="journal_desk.services.validation_bridge"):
                task = bridge.schedule(make_draft())
                state = await task
        assert isinstance(state, ValidationUnavailable)
        assert isinstance(bridge.state, ValidationUnavailable)
        assert "Invalid JSON" in state.reason
        assert "validation unavailable" in caplog.text

    async def test_518_unexpected_error_in_background_is_unavailable(self, caplog):
        class BrokenClient:
            async def validate_journal_entry(self, payload):
                raise RuntimeError("boom")

        bridge = ValidationBridge(BrokenClient())
        with caplog.at_level("ERROR", logger="journal_desk.services.validation_bridge"):
            state = await bridge.schedule(make_draft())
        assert isinstance(state, ValidationUnavailable)
        assert state.reason == "boom"
        assert "validation failed" in caplog.text
