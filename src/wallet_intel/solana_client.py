import asyncio
import logging
from typing import Any

import httpx

from .errors import AccountNotFoundError, AdapterError, UpstreamRateLimitError
from .schemas import RawAccountPayload, SourceLabel

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = 'TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA'


class SolanaRPCClient:
    source: SourceLabel = 'fallback'

    def __init__(
        self,
        rpc_url: str,
        timeout_s: float,
        signature_limit: int = 1000,
        retries: int = 2,
        backoff_s: float = 0.4,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.timeout_s = timeout_s
        self.signature_limit = signature_limit
        self.retries = retries
        self.backoff_s = backoff_s
        self._transport = transport

    async def _rpc(self, client: httpx.AsyncClient, method: str, params: list[Any], request_id: int = 1) -> Any:
        payload = {'jsonrpc': '2.0', 'id': request_id, 'method': method, 'params': params}
        for attempt in range(self.retries + 1):
            retrying = attempt < self.retries
            try:
                response = await client.post(self.rpc_url, json=payload)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status == 429:
                    if retrying:
                        await asyncio.sleep(self.backoff_s * (attempt + 1))
                        continue
                    raise UpstreamRateLimitError(self.source, 'Solana RPC rate limited (HTTP 429)') from exc
                raise AdapterError(self.source, f'Solana RPC HTTP error: {status}', status_code=status) from exc
            except httpx.HTTPError as exc:
                if retrying:
                    await asyncio.sleep(self.backoff_s * (attempt + 1))
                    continue
                raise AdapterError(self.source, f'Solana RPC transport error: {exc}') from exc
            except ValueError as exc:
                raise AdapterError(self.source, f'Solana RPC returned invalid JSON for {method}') from exc

            if not isinstance(data, dict):
                raise AdapterError(self.source, f'Unexpected {method} response format')
            if data.get('error'):
                raise AdapterError(self.source, f'Solana RPC error: {data["error"]}')
            return data.get('result')
        raise AdapterError(self.source, f'Solana RPC {method} failed')

    async def fetch(self, wallet: str) -> RawAccountPayload:
        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
            account_info = await self._rpc(client, 'getAccountInfo', [wallet, {'encoding': 'base64'}], 1)
            account = account_info.get('value') if isinstance(account_info, dict) else None
            if not account:
                raise AccountNotFoundError(self.source, wallet)

            token_accounts = await self._rpc(
                client,
                'getTokenAccountsByOwner',
                [wallet, {'programId': TOKEN_PROGRAM_ID}, {'encoding': 'jsonParsed'}],
                2,
            )
            signatures = await self._rpc(
                client,
                'getSignaturesForAddress',
                [wallet, {'limit': self.signature_limit}],
                3,
            )

        tokens = token_accounts.get('value') if isinstance(token_accounts, dict) else None
        tokens = tokens or []
        signatures = signatures or []
        if not isinstance(account, dict) or not isinstance(tokens, list) or not isinstance(signatures, list):
            raise AdapterError(self.source, 'Malformed account, token account or signature response')

        logger.debug(
            'rpc fetch wallet=%s token_accounts=%d signatures=%d', wallet, len(tokens), len(signatures)
        )
        return RawAccountPayload(source=self.source, account=account, tokens=tokens, transactions=signatures)
