"""
Tests for HorizonClient — canned Horizon responses, no network.

Uses a FakeTransport that returns pre-built HttpResponses, exercising
the parsing logic in horizon_client.py.

Test plan:
- load_account: 200 parses sequence + balances, 404 → found=False,
  5xx / 429 raise ServiceResponseError, malformed body raises
- submit: 200 → accepted with hash, 400 → result codes parsed,
  400 without extras keeps detail, malformed result codes ignored,
  504 raises, form field is "tx"
- Transport: exceptions propagate to the caller
"""

import httpx
import pytest
from fakes import SOURCE, ErrorTransport, FakeTransport

from stellar_pay.errors import ServiceResponseError
from stellar_pay.ledger.horizon_client import HorizonClient
from stellar_pay.ledger.transport import HttpResponse

HORIZON = "https://horizon-testnet.stellar.org"
TX_HASH = "3389e9f0f1a65f19736cacf544c2e825313e8447f569233bb8db39aa607c8889"

ACCOUNT_OK = {
    "id": SOURCE,
    "account_id": SOURCE,
    "sequence": "4295032832",
    "balances": [
        {
            "balance": "12.5000000",
            "asset_type": "credit_alphanum4",
            "asset_code": "USDC",
        },
        {"balance": "10000.0000000", "asset_type": "native"},
    ],
}

ACCOUNT_NOT_FOUND = {
    "type": "https://stellar.org/horizon-errors/not_found",
    "title": "Resource Missing",
    "status": 404,
    "detail": "The resource at the url requested was not found.",
}

SUBMIT_OK = {"hash": TX_HASH, "successful": True, "ledger": 123456}

SUBMIT_UNDERFUNDED = {
    "type": "https://stellar.org/horizon-errors/transaction_failed",
    "title": "Transaction Failed",
    "status": 400,
    "detail": "The transaction failed when submitted to the stellar network.",
    "extras": {
        "envelope_xdr": "AAAA...",
        "result_codes": {"transaction": "tx_failed", "operations": ["op_underfunded"]},
        "result_xdr": "AAAA...",
        "hash": TX_HASH,
    },
}

SUBMIT_BAD_SEQ = {
    "title": "Transaction Failed",
    "status": 400,
    "extras": {"result_codes": {"transaction": "tx_bad_seq"}},
}

SUBMIT_MALFORMED = {
    "type": "https://stellar.org/horizon-errors/transaction_malformed",
    "title": "Transaction Malformed",
    "status": 400,
    "detail": "Horizon could not decode the transaction envelope in this request.",
}

SUBMIT_TIMEOUT = {
    "type": "https://stellar.org/horizon-errors/timeout",
    "title": "Timeout",
    "status": 504,
    "detail": "Your request timed out before completing.",
}


def _client(*responses: HttpResponse) -> tuple[HorizonClient, FakeTransport]:
    transport = FakeTransport(*responses)
    return HorizonClient(HORIZON + "/", transport), transport


class TestLoadAccount:
    @pytest.mark.asyncio
    async def test_parses_sequence_and_balances(self) -> None:
        client, transport = _client(HttpResponse(200, ACCOUNT_OK))
        state = await client.load_account(SOURCE)

        assert state.found
        assert state.sequence == 4295032832
        assert state.native_balance() == "10000.0000000"
        assert len(state.balances) == 2
        assert transport.calls[0][:2] == ("GET", f"{HORIZON}/accounts/{SOURCE}")

    @pytest.mark.asyncio
    async def test_no_native_entry(self) -> None:
        body = {"sequence": "1", "balances": [{"balance": "1.0", "asset_type": "credit_alphanum4"}]}
        client, _ = _client(HttpResponse(200, body))
        state = await client.load_account(SOURCE)
        assert state.found
        assert state.native_balance() is None

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        client, _ = _client(HttpResponse(404, ACCOUNT_NOT_FOUND))
        state = await client.load_account(SOURCE)
        assert not state.found
        assert state.account_id == SOURCE
        assert state.balances == ()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_unexpected_status_raises(self, status: int) -> None:
        client, _ = _client(HttpResponse(status, {"detail": "try later"}))
        with pytest.raises(ServiceResponseError) as exc_info:
            await client.load_account(SOURCE)
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self) -> None:
        client, _ = _client(HttpResponse(200, {"sequence": 12, "balances": "none"}))
        with pytest.raises(ServiceResponseError, match="malformed"):
            await client.load_account(SOURCE)

    @pytest.mark.asyncio
    async def test_empty_body_raises(self) -> None:
        client, _ = _client(HttpResponse(200, None))
        with pytest.raises(ServiceResponseError):
            await client.load_account(SOURCE)


class TestSubmit:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        client, transport = _client(HttpResponse(200, SUBMIT_OK))
        result = await client.submit("AAAAsigned")

        assert result.accepted
        assert result.tx_hash == TX_HASH
        method, url, kwargs = transport.calls[0]
        assert (method, url) == ("POST", f"{HORIZON}/transactions")
        assert kwargs["data"] == {"tx": "AAAAsigned"}

    @pytest.mark.asyncio
    async def test_rejection_codes_parsed(self) -> None:
        client, _ = _client(HttpResponse(400, SUBMIT_UNDERFUNDED))
        result = await client.submit("AAAA")

        assert not result.accepted
        assert result.status_code == 400
        assert result.transaction_code == "tx_failed"
        assert result.operation_codes == ("op_underfunded",)
        assert result.tx_hash == TX_HASH
        assert result.detail == SUBMIT_UNDERFUNDED["detail"]

    @pytest.mark.asyncio
    async def test_transaction_code_only(self) -> None:
        client, _ = _client(HttpResponse(400, SUBMIT_BAD_SEQ))
        result = await client.submit("AAAA")
        assert result.transaction_code == "tx_bad_seq"
        assert result.operation_codes == ()
        assert result.detail == "Transaction Failed"

    @pytest.mark.asyncio
    async def test_rejection_without_extras(self) -> None:
        client, _ = _client(HttpResponse(400, SUBMIT_MALFORMED))
        result = await client.submit("garbage")
        assert not result.accepted
        assert result.transaction_code is None
        assert result.detail == SUBMIT_MALFORMED["detail"]

    @pytest.mark.asyncio
    async def test_malformed_result_codes_ignored(self) -> None:
        body = {"title": "Transaction Failed", "extras": {"result_codes": {"operations": "nope"}}}
        client, _ = _client(HttpResponse(400, body))
        result = await client.submit("AAAA")
        assert not result.accepted
        assert result.operation_codes == ()

    @pytest.mark.asyncio
    async def test_gateway_timeout_raises(self) -> None:
        client, _ = _client(HttpResponse(504, SUBMIT_TIMEOUT))
        with pytest.raises(ServiceResponseError, match="timed out"):
            await client.submit("AAAA")

    @pytest.mark.asyncio
    async def test_malformed_success_raises(self) -> None:
        client, _ = _client(HttpResponse(200, {"hash": "not-a-hash"}))
        with pytest.raises(ServiceResponseError):
            await client.submit("AAAA")


class TestTransportErrors:
    @pytest.mark.asyncio
    async def test_load_propagates(self) -> None:
        client = HorizonClient(HORIZON, ErrorTransport(httpx.ConnectError("refused")))
        with pytest.raises(httpx.ConnectError):
            await client.load_account(SOURCE)

    @pytest.mark.asyncio
    async def test_submit_propagates(self) -> None:
        client = HorizonClient(HORIZON, ErrorTransport(httpx.ReadTimeout("slow")))
        with pytest.raises(httpx.ReadTimeout):
            await client.submit("AAAA")

    def test_url_trailing_slash_stripped(self) -> None:
        assert HorizonClient(HORIZON + "/", FakeTransport()).url == HORIZON
