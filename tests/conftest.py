"""
Shared fixtures: sample addresses, upstream payload builders and mock transports.

No test touches the network; every upstream is an httpx.MockTransport.
"""

from __future__ import annotations

import json

import httpx
import pytest

WALLET = '9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM'
USDC_MINT = 'EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v'
USDT_MINT = 'Es9vMFrzaCER3EJmqvQC2Uo9qowWP1h1xFh3Le7YpR1V'
JUP_MINT = 'JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN'
SYSTEM_PROGRAM = '11111111111111111111111111111111'


def rpc_token_account(mint: str, amount: str, decimals: int) -> dict:
    return {
        'pubkey': 'ATA' + mint[:20],
        'account': {
            'data': {
                'parsed': {
                    'info': {
                        'mint': mint,
                        'tokenAmount': {
                            'amount': amount,
                            'decimals': decimals,
                            'uiAmount': int(amount) / 10**decimals,
                        },
                    }
                }
            }
        },
    }


class RpcStub:
    """Answers JSON-RPC calls from a method -> result table and records the call order."""

    def __init__(self, results: dict, status_by_method: dict | None = None) -> None:
        self.results = results
        self.status_by_method = status_by_method or {}
        self.methods: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method = body['method']
        self.methods.append(method)
        status = self.status_by_method.get(method, 200)
        if status != 200:
            return httpx.Response(status, json={'error': 'upstream'})
        return httpx.Response(200, json={'jsonrpc': '2.0', 'id': body['id'], 'result': self.results[method]})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def rpc_results():
    return {
        'getAccountInfo': {
            'context': {'slot': 1},
            'value': {
                'lamports': 2_500_000_000,
                'executable': False,
                'owner': SYSTEM_PROGRAM,
                'data': ['', 'base64'],
            },
        },
        'getTokenAccountsByOwner': {
            'context': {'slot': 1},
            'value': [
                rpc_token_account(USDC_MINT, '1500000', 6),
                rpc_token_account(USDT_MINT, '250000000', 6),
            ],
        },
        'getSignaturesForAddress': [
            {'signature': 'sig1', 'blockTime': 1_700_000_000},
            {'signature': 'sig2', 'blockTime': 1_690_000_000},
            {'signature': 'sig3', 'blockTime': None},
        ],
    }


@pytest.fixture
def token_list():
    return {
        'name': 'Solana Token List',
        'tokens': [
            {'address': USDC_MINT, 'symbol': 'USDC', 'name': 'USD Coin', 'decimals': 6},
            {'address': USDT_MINT, 'symbol': 'USDT', 'name': 'USDT', 'decimals': 6},
        ],
    }


@pytest.fixture
def registry_transport(token_list):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(200, json=token_list)

    transport = httpx.MockTransport(handler)
    transport.calls = calls
    return transport
