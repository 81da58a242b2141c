"""Async client for the ledger API (accounts, journal entries, trial balance)."""
from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import ValidationError

from journal_desk.config import settings
from journal_desk.exceptions import LedgerAPIError, LedgerUnavailable
from journal_desk.models.account import Account, AccountStatus, AccountType
from journal_desk.models.journal import JournalEntry, JournalEntryPayload, ReversalRequest
from journal_desk.models.reports import TrialBalance
from journal_desk.models.validation import ValidationResult

logger = logging.getLogger(__name__)


def _error_detail(resp: httpx.Response) -> Any:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return body.get("detail") or body.get("message") or body
    return body


def _unwrap_list(body: Any) -> list:
    # Collections come back bare or wrapped as {"data": [...]} / {"items": [...]}.
    if isinstance(body, dict):
        return body.get("data") or body.get("items") or []
    return body or []


class LedgerClient:
    """Thin typed wrapper over the ledger HTTP API.

    Pass an existing ``httpx.AsyncClient`` to share a connection pool (or to
    route requests through an in-process transport); otherwise one is
    created from settings and closed by ``aclose()``.
    """

    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        token: str | None = None,
    ):
        self._owns_http = http is None
        if http is None:
            http = httpx.AsyncClient(
                base_url=base_url or settings.LEDGER_API_URL,
                timeout=settings.HTTP_TIMEOUT,
            )
        self._http = http
        self._token = token if token is not None else settings.LEDGER_API_TOKEN

    async def __aenter__(self) -> LedgerClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        if self._token:
            return {"Authorization": f"Bearer {self._token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        parse: Callable[[Any], Any] | None = None,
        **kwargs,
    ) -> Any:
        """Send one request and return its JSON body, passed through ``parse``.

        Every failure surfaces as ``LedgerAPIError``: transport errors, error
        statuses, bodies that are not JSON and bodies of the wrong shape.
        """
        try:
            resp = await self._http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TransportError as e:
            raise LedgerUnavailable(str(e) or e.__class__.__name__) from e

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            logger.debug(f"{method} {path} -> {resp.status_code}: {detail}")
            raise LedgerAPIError(resp.status_code, detail)

        body = None
        if resp.content:
            try:
                body = resp.json()
            except ValueError as e:
                logger.warning(f"{method} {path} -> {resp.status_code}: response is not JSON")
                raise LedgerAPIError(resp.status_code, "Invalid JSON in ledger response") from e

        if parse is None:
            return body
        try:
            return parse(body)
        except ValidationError as e:
            logger.warning(f"{method} {path} -> {resp.status_code}: unexpected response shape: {e}")
            raise LedgerAPIError(
                resp.status_code, f"Unexpected ledger response ({e.error_count()} invalid fields)"
            ) from e

    # ------------------------------------------------------------------
    # Chart of accounts
    # ------------------------------------------------------------------

    async def list_accounts(
        self,
        status: AccountStatus | None = None,
        allow_transactions: bool | None = None,
        account_type: AccountType | None = None,
    ) -> list[Account]:
        params: dict[str, Any] = {}
        if status is not None:
            params["status"] = status.value
        if allow_transactions is not None:
            params["allowTransactions"] = "true" if allow_transactions else "false"
        if account_type is not None:
            params["type"] = account_type.value

        return await self._request(
            "GET", "/accounts",
            parse=lambda body: [Account.model_validate(a) for a in _unwrap_list(body)],
            params=params,
        )

    # ------------------------------------------------------------------
    # Journal entries
    # ------------------------------------------------------------------

    async def get_journal_entry(self, entry_id: str) -> JournalEntry:
        return await self._request(
            "GET", f"/journal-entries/{entry_id}", parse=JournalEntry.model_validate
        )

    async def validate_journal_entry(self, payload: JournalEntryPayload) -> ValidationResult:
        return await self._request(
            "POST", "/journal-entries/validate",
            parse=ValidationResult.model_validate, json=payload.to_wire(),
        )

    async def create_journal_entry(self, payload: JournalEntryPayload) -> JournalEntry:
        return await self._request(
            "POST", "/journal-entries",
            parse=JournalEntry.model_validate, json=payload.to_wire(),
        )

    async def update_journal_entry(self, entry_id: str, payload: JournalEntryPayload) -> JournalEntry:
        return await self._request(
            "PATCH", f"/journal-entries/{entry_id}",
            parse=JournalEntry.model_validate, json=payload.to_wire(),
        )

    async def post_journal_entry(self, entry_id: str) -> JournalEntry:
        return await self._request(
            "POST", f"/journal-entries/{entry_id}/post", parse=JournalEntry.model_validate
        )

    async def reverse_journal_entry(
        self,
        entry_id: str,
        reversal_date: datetime.date,
        description: str | None = None,
    ) -> JournalEntry:
        request = ReversalRequest(reversal_date=reversal_date, description=description)
        return await self._request(
            "POST", f"/journal-entries/{entry_id}/reverse",
            parse=JournalEntry.model_validate, json=request.to_wire(),
        )

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def get_trial_balance(self, as_of_date: datetime.date | None = None) -> TrialBalance:
        params = {"asOfDate": as_of_date.isoformat()} if as_of_date else {}
        return await self._request(
            "GET", "/trial-balance", parse=TrialBalance.model_validate, params=params
        )
