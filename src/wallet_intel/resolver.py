from collections.abc import Sequence
from decimal import Decimal
import logging
import math
from typing import Any, Protocol

from .errors import AdapterError, ResolutionError
from .observability import TraceCollector
from .schemas import (
    CanonicalAccount,
    RawAccountPayload,
    SourceLabel,
    TokenHolding,
    TransactionRecord,
    placeholder_symbol,
)
from .settings import settings
from .solana_client import SolanaRPCClient
from .solscan_client import SolscanClient
from .token_metadata import TokenMetadataResolver, get_metadata_resolver

logger = logging.getLogger(__name__)


class WalletAdapter(Protocol):
    source: SourceLabel

    async def fetch(self, wallet: str) -> RawAccountPayload: ...


def _first(mapping: Any, *keys: str) -> Any:
    if not isinstance(mapping, dict):
        return None
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def _dig(mapping: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(mapping, dict):
            return None
        mapping = mapping.get(key)
    return mapping


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f'expected a finite number, got {value!r}')
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip('-').isdigit():
            return int(stripped)
    raise ValueError(f'expected an integer, got {value!r}')


def _float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float | str):
        try:
            number = float(value)
        except (ValueError, OverflowError):
            return None
        return number if math.isfinite(number) else None
    return None


def scale_amount(raw_amount: str, decimals: int) -> float:
    """Shift a base-unit amount by ``decimals``; amounts too large for a float are rejected."""
    amount = float(Decimal(raw_amount).scaleb(-decimals))
    if not math.isfinite(amount):
        raise ValueError(f'token amount {raw_amount[:16]}... out of range')
    return amount


def _display_amount(raw_amount: str, decimals: int | None, ui_amount: float | None) -> float:
    if decimals is not None and raw_amount != '0':
        return scale_amount(raw_amount, decimals)
    if ui_amount is not None:
        return ui_amount
    return 0.0


def _normalize_holding(token: Any) -> TokenHolding:
    # RPC token accounts nest the useful part under account.data.parsed.info.
    info = _dig(token, 'account', 'data', 'parsed', 'info')
    if not isinstance(info, dict):
        info = token
    if not isinstance(info, dict):
        raise ValueError(f'token entry is not an object: {token!r}')

    mint = _text(_first(info, 'mint', 'tokenAddress', 'mintAddress', 'token_address'))
    if mint is None:
        raise ValueError('token entry without a mint')

    amount = info.get('tokenAmount')
    raw = _int(_first(amount, 'amount'))
    if raw is None:
        raw = _int(_first(info, 'amount', 'rawAmount'))
    decimals = _int(_first(amount, 'decimals'))
    if decimals is None:
        decimals = _int(_first(info, 'decimals', 'tokenDecimals'))
    ui_amount = _float(_first(amount, 'uiAmount'))
    if ui_amount is None:
        ui_amount = _float(_first(info, 'uiAmount'))

    raw_amount = str(max(raw or 0, 0))
    return TokenHolding(
        mint=mint,
        raw_amount=raw_amount,
        display_amount=_display_amount(raw_amount, decimals, ui_amount),
        decimals=decimals,
        symbol=_text(_first(info, 'tokenSymbol', 'symbol')),
        name=_text(_first(info, 'tokenName', 'name')),
        unit_price_usd=_float(_first(info, 'tokenPrice', 'priceUsdt', 'price_usdt', 'priceUsd')),
    )


def _normalize_transaction(tx: Any) -> TransactionRecord | None:
    signature = _text(_first(tx, 'signature', 'txHash', 'tx_hash', 'transactionHash'))
    if signature is None:
        return None
    return TransactionRecord(signature=signature, block_time=_int(_first(tx, 'blockTime', 'block_time')))


def normalize_payload(payload: RawAccountPayload) -> CanonicalAccount:
    account = payload.account

    holdings: dict[str, TokenHolding] = {}
    for token in payload.tokens:
        holding = _normalize_holding(token)
        holdings[holding.mint] = holding

    transactions = [
        record
        for record in (_normalize_transaction(tx) for tx in payload.transactions)
        if record is not None
    ]

    return CanonicalAccount(
        balance_minor_units=max(_int(_first(account, 'lamports', 'balance')) or 0, 0),
        is_executable=bool(_first(account, 'executable')),
        owning_program=_text(_first(account, 'owner', 'ownerProgram', 'owner_program')),
        holdings=list(holdings.values()),
        transaction_count=len(payload.transactions),
        transactions=transactions,
        source_label=payload.source,
    )


class WalletDataResolver:
    def __init__(self, adapters: Sequence[WalletAdapter], metadata: TokenMetadataResolver) -> None:
        self.adapters = list(adapters)
        self.metadata = metadata

    async def resolve(self, wallet: str, trace: TraceCollector | None = None) -> CanonicalAccount:
        trace = trace if trace is not None else TraceCollector()
        causes: list[AdapterError] = []
        for adapter in self.adapters:
            try:
                with trace.step(f'fetch_{adapter.source}', source=adapter.source):
                    payload = await adapter.fetch(wallet)
                    try:
                        account = normalize_payload(payload)
                    except (ValueError, OverflowError) as exc:
                        raise AdapterError(adapter.source, f'Malformed {adapter.source} payload: {exc}') from exc
            except AdapterError as exc:
                causes.append(exc)
                logger.warning('%s adapter failed for %s: %s', adapter.source, wallet, exc)
                continue

            with trace.step('enrich_holdings', detail=f'holdings={len(account.holdings)}', source=adapter.source):
                await self.enrich(account)
            logger.info(
                'Resolved %s via %s: holdings=%d transactions=%d',
                wallet,
                account.source_label,
                len(account.holdings),
                account.transaction_count,
            )
            return account

        error = ResolutionError(wallet, causes)
        logger.error('%s', error)
        raise error from (causes[-1] if causes else None)

    async def enrich(self, account: CanonicalAccount) -> None:
        for holding in account.holdings:
            try:
                meta = await self.metadata.resolve_metadata(holding.mint)
            except Exception:
                logger.warning('Metadata enrichment failed for %s', holding.mint, exc_info=True)
                meta = None

            if meta is not None:
                holding.symbol = meta.symbol or holding.symbol
                holding.name = meta.name or holding.name
                if holding.decimals is None and meta.decimals is not None:
                    holding.decimals = meta.decimals
                    if holding.raw_amount != '0':
                        try:
                            holding.display_amount = scale_amount(holding.raw_amount, meta.decimals)
                        except ValueError:
                            logger.warning('Keeping source amount for %s: %s', holding.mint, holding.raw_amount[:16])

            if not holding.symbol:
                holding.symbol = placeholder_symbol(holding.mint)
            if not holding.name:
                holding.name = holding.mint


def build_default_resolver() -> WalletDataResolver:
    adapters: list[WalletAdapter] = []
    if settings.solscan_api_key:
        adapters.append(
            SolscanClient(
                base_url=settings.solscan_api_url,
                api_key=settings.solscan_api_key,
                timeout_s=settings.request_timeout_seconds,
                signature_limit=settings.solana_signature_limit,
            )
        )
    else:
        logger.info('SOLSCAN_API_KEY not set; resolving wallets through Solana RPC only')
    adapters.append(
        SolanaRPCClient(
            rpc_url=settings.solana_rpc_url,
            timeout_s=settings.request_timeout_seconds,
            signature_limit=settings.solana_signature_limit,
            retries=settings.solana_rpc_retries,
        )
    )
    return WalletDataResolver(adapters, get_metadata_resolver())
