import asyncio
import logging
from typing import Any

import httpx

from .errors import AdapterError, UpstreamRateLimitError
from .schemas import RawAccountPayload, SourceLabel

logger = logging.getLogger(__name__)


def _unwrap(payload: Any) -> Any:
    # Newer Solscan endpoints wrap results as {"success": true, "data": ...}.
    if isinstance(payload, dict) and 'data' in payload and ('success' in payload or len(payload) == 1):
        return payload['data']
    return payload


class SolscanClient:
    source: SourceLabel = 'primary'

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        timeout_s: float,
        signature_limit: int = 1000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.signature_limit = signature_limit
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout_s,
            transport=self._transport,
        )

    async def _get(self, client: httpx.AsyncClient, path: str, params: dict[str, Any]) -> Any:
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
            return _unwrap(response.json())
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 429:
                raise UpstreamRateLimitError(self.source, f'Solscan rate limited on {path}') from exc
            raise AdapterError(self.source, f'Solscan HTTP error {status} on {path}', status_code=status) from exc
        except httpx.HTTPError as exc:
            raise AdapterError(self.source, f'Solscan transport error on {path}: {exc}') from exc
        except ValueError as exc:
            raise AdapterError(self.source, f'Solscan returned invalid JSON on {path}') from exc

    async def fetch(self, wallet: str) -> RawAccountPayload:
        async with self._client() as client:
            results = await asyncio.gather(
                self._get(client, '/account', {'address': wallet}),
                self._get(client, '/account/tokens', {'address': wallet}),
                self._get(
                    client,
                    '/account/transactions',
                    {'address': wallet, 'limit': self.signature_limit},
                ),
                return_exceptions=True,
            )

        for result in results:
            if isinstance(result, BaseException):
                raise result

        account, tokens, transactions = results
        if not isinstance(account, dict):
            raise AdapterError(self.source, 'Malformed Solscan account response')
        if tokens is None:
            tokens = []
        if not isinstance(tokens, list) or not isinstance(transactions, list):
            raise AdapterError(self.source, 'Malformed Solscan token or transaction response')
        # Solscan may ignore `limit`; the count reported downstream is capped like the RPC sample.
        transactions = transactions[: self.signature_limit]

        logger.debug('solscan fetch wallet=%s tokens=%d transactions=%d', wallet, len(tokens), len(transactions))
        return RawAccountPayload(source=self.source, account=account, tokens=tokens, transactions=transactions)

    async def fetch_token_meta(self, mint: str) -> dict[str, Any] | None:
        async with self._client() as client:
            meta = await self._get(client, '/token/meta', {'address': mint})
        if meta is None:
            return None
        if not isinstance(meta, dict):
            raise AdapterError(self.source, f'Malformed Solscan token meta for {mint}')
        return meta
