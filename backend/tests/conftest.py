"""
Test fixtures for journal-desk.

Tests talk to an in-process FastAPI stub of the ledger API (see
``ledger_stub.py``) through ``httpx.ASGITransport``; nothing leaves the
process.  Each test gets a freshly seeded ledger.
"""
from datetime import date
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from journal_desk.client import LedgerClient
from journal_desk.models import DraftLine, JournalEntryDraft, JournalEntryType
from journal_desk.services.registry import AccountRegistry
from ledger_stub import PREFIX, LedgerState, build_ledger_app

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
BASE_URL = f"http://ledger.test{PREFIX}"
TODAY = date(2026, 3, 15)

CASH = "acc-1010"
RECEIVABLE = "acc-1200"
PAYABLE = "acc-2000"
EQUITY = "acc-3000"
REVENUE = "acc-4000"
RENT = "acc-5000"
ARCHIVED = "acc-5900"
INACTIVE = "acc-6000"
HEADER = "acc-1000"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def line(account_id="", debit="0", credit="0", description="Line", reference=""):
    """Build a draft line from string amounts."""
    return DraftLine(
        account_id=account_id,
        description=description,
        debit_amount=Decimal(debit),
        credit_amount=Decimal(credit),
        reference=reference,
    )


def make_draft(*lines, description="Monthly rent", entry_id=None, **header):
    """A draft dated ``TODAY``; defaults to a balanced 100.00 rent payment."""
    if not lines:
        lines = (
            line(RENT, debit="100", description="Rent March"),
            line(CASH, credit="100", description="Paid from cash"),
        )
    return JournalEntryDraft(
        date=header.pop("date", TODAY),
        type=header.pop("type", JournalEntryType.STANDARD),
        description=description,
        reference=header.pop("reference", ""),
        lines=tuple(lines),
        entry_id=entry_id,
    )


def offline_transport() -> httpx.MockTransport:
    """Transport whose every request fails to connect."""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)
    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Ledger fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def ledger_state():
    """Seeded in-memory ledger backing the stub API."""
    return LedgerState.seeded()


@pytest.fixture
def ledger_app(ledger_state):
    return build_ledger_app(ledger_state)


@pytest_asyncio.fixture
async def http(ledger_app):
    """httpx client routed to the stub app."""
    transport = httpx.ASGITransport(app=ledger_app)
    async with httpx.AsyncClient(transport=transport, base_url=BASE_URL) as c:
        yield c


@pytest_asyncio.fixture
async def client(http):
    """LedgerClient bound to the stub ledger."""
    return LedgerClient(http)


@pytest_asyncio.fixture
async def offline_client():
    """LedgerClient whose requests never reach a server."""
    async with httpx.AsyncClient(transport=offline_transport(), base_url=BASE_URL) as c:
        yield LedgerClient(c)


@pytest_asyncio.fixture
async def registry(client):
    """Registry of postable accounts, loaded the way a session loads it."""
    return await AccountRegistry.load(client)


@pytest.fixture
def draft():
    return make_draft()
