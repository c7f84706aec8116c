"""Tests for the Solana RPC fallback adapter."""

import json

import httpx
import pytest

from conftest import SYSTEM_PROGRAM, WALLET, RpcStub
from wallet_intel.errors import AccountNotFoundError, AdapterError, UpstreamRateLimitError
from wallet_intel.solana_client import TOKEN_PROGRAM_ID, SolanaRPCClient


def _client(transport, retries=0):
    return SolanaRPCClient(
        rpc_url='https://rpc.test',
        timeout_s=5,
        signature_limit=1000,
        retries=retries,
        backoff_s=0,
        transport=transport,
    )


@pytest.mark.asyncio
async def test_fetch_calls_rpc_methods_in_order(rpc_results):
    stub = RpcStub(rpc_results)
    payload = await _client(stub.transport).fetch(WALLET)

    assert stub.methods == ['getAccountInfo', 'getTokenAccountsByOwner', 'getSignaturesForAddress']
    assert payload.source == 'fallback'
    assert payload.account['owner'] == SYSTEM_PROGRAM
    assert len(payload.tokens) == 2
    assert len(payload.transactions) == 3


@pytest.mark.asyncio
async def test_fetch_sends_token_program_filter_and_signature_cap(rpc_results):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(200, json={'jsonrpc': '2.0', 'id': body['id'], 'result': rpc_results[body['method']]})

    await _client(httpx.MockTransport(handler)).fetch(WALLET)

    token_params = bodies[1]['params']
    assert token_params[0] == WALLET
    assert token_params[1] == {'programId': TOKEN_PROGRAM_ID}
    assert token_params[2] == {'encoding': 'jsonParsed'}
    assert bodies[2]['params'] == [WALLET, {'limit': 1000}]


@pytest.mark.asyncio
async def test_missing_account_stops_before_other_calls(rpc_results):
    rpc_results['getAccountInfo'] = {'context': {'slot': 1}, 'value': None}
    stub = RpcStub(rpc_results)

    with pytest.raises(AccountNotFoundError) as excinfo:
        await _client(stub.transport).fetch(WALLET)

    assert stub.methods == ['getAccountInfo']
    assert excinfo.value.source == 'fallback'
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_rate_limited_after_retries(rpc_results):
    stub = RpcStub(rpc_results, status_by_method={'getAccountInfo': 429})

    with pytest.raises(UpstreamRateLimitError):
        await _client(stub.transport, retries=2).fetch(WALLET)

    assert stub.methods == ['getAccountInfo'] * 3


@pytest.mark.asyncio
async def test_http_error_carries_status(rpc_results):
    stub = RpcStub(rpc_results, status_by_method={'getTokenAccountsByOwner': 500})

    with pytest.raises(AdapterError) as excinfo:
        await _client(stub.transport).fetch(WALLET)

    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_rpc_error_object_is_adapter_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={'jsonrpc': '2.0', 'id': 1, 'error': {'code': -32602, 'message': 'bad'}})

    with pytest.raises(AdapterError, match='Solana RPC error'):
        await _client(httpx.MockTransport(handler)).fetch(WALLET)


@pytest.mark.asyncio
async def test_transport_error_is_adapter_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout('timed out', request=request)

    with pytest.raises(AdapterError, match='transport error'):
        await _client(httpx.MockTransport(handler), retries=1).fetch(WALLET)
