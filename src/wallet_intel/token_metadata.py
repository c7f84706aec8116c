import asyncio
import logging
from functools import lru_cache
from typing import Any

import httpx

from .errors import AdapterError
from .schemas import TokenMetadataEntry
from .settings import settings
from .solscan_client import SolscanClient

logger = logging.getLogger(__name__)


def _clean(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _decimals(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _entry(mint: str, meta: dict[str, Any]) -> TokenMetadataEntry:
    return TokenMetadataEntry(
        mint=mint,
        symbol=_clean(meta.get('symbol')),
        name=_clean(meta.get('name')),
        decimals=_decimals(meta.get('decimals')),
    )


class TokenMetadataResolver:
    """Mint -> symbol/name/decimals with a tiered lookup and a process-lifetime cache.

    Lookup order on a cache miss: the Solscan token meta endpoint (while its
    consecutive failure count stays at or below ``failure_threshold``), then
    the static token registry, then an empty entry. Every outcome is cached,
    so a mint is looked up at most once. Entries are never evicted.
    """

    def __init__(
        self,
        primary: SolscanClient | None,
        registry_url: str,
        timeout_s: float,
        failure_threshold: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.primary = primary
        self.registry_url = registry_url
        self.timeout_s = timeout_s
        self.failure_threshold = failure_threshold
        self.primary_failures = 0
        self._transport = transport
        self._cache: dict[str, TokenMetadataEntry] = {}
        self._registry: dict[str, dict[str, Any]] | None = None
        self._registry_lock = asyncio.Lock()

    @property
    def primary_enabled(self) -> bool:
        # Never reset: once tripped the primary stays off for the process lifetime.
        return (
            self.primary is not None
            and bool(self.primary.api_key)
            and self.primary_failures <= self.failure_threshold
        )

    def cached(self, mint: str) -> TokenMetadataEntry | None:
        return self._cache.get(mint)

    async def _from_primary(self, mint: str) -> TokenMetadataEntry | None:
        if not self.primary_enabled:
            return None
        try:
            meta = await self.primary.fetch_token_meta(mint)
        except AdapterError as exc:
            self.primary_failures += 1
            logger.warning(
                'Solscan token meta fetch failed for %s: %s (failures=%d)',
                mint,
                exc.status_code or exc,
                self.primary_failures,
            )
            return None
        if not meta:
            return None
        return _entry(mint, meta)

    async def _fetch_registry(self) -> dict[str, dict[str, Any]]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                response = await client.get(self.registry_url)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error('Failed to load Solana token list: %s', exc)
            return {}

        tokens = payload.get('tokens') if isinstance(payload, dict) else None
        registry: dict[str, dict[str, Any]] = {}
        for token in tokens or []:
            if isinstance(token, dict) and isinstance(token.get('address'), str):
                registry[token['address']] = token
        logger.info('Loaded %d tokens from registry', len(registry))
        return registry

    async def load_registry(self) -> dict[str, dict[str, Any]]:
        async with self._registry_lock:
            if self._registry is None:
                self._registry = await self._fetch_registry()
        return self._registry

    async def resolve_metadata(self, mint: str) -> TokenMetadataEntry:
        cached = self._cache.get(mint)
        if cached is not None:
            return cached

        entry = await self._from_primary(mint)
        if entry is None or (entry.symbol is None and entry.name is None):
            token_info = (await self.load_registry()).get(mint)
            if token_info:
                registry_entry = _entry(mint, token_info)
                if entry is not None and registry_entry.decimals is None:
                    registry_entry.decimals = entry.decimals
                entry = registry_entry
        if entry is None:
            entry = TokenMetadataEntry(mint=mint)

        # Another task may have resolved the same mint while this one was suspended.
        return self._cache.setdefault(mint, entry)


@lru_cache(maxsize=1)
def get_metadata_resolver() -> TokenMetadataResolver:
    primary = SolscanClient(
        base_url=settings.solscan_api_url,
        api_key=settings.solscan_api_key,
        timeout_s=settings.request_timeout_seconds,
    )
    return TokenMetadataResolver(
        primary=primary,
        registry_url=settings.token_list_url,
        timeout_s=settings.request_timeout_seconds,
        failure_threshold=settings.metadata_failure_threshold,
    )
