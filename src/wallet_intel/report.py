"""Derived wallet metrics and the text report handed to the chat layer.

Everything here is pure: no I/O, and inputs are never mutated. Temporal
metrics only look at transactions that carry a block time; the rest still
count towards ``transaction_count``.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal

from .schemas import LAMPORTS_PER_SOL, CanonicalAccount, TokenHolding, TransactionRecord, placeholder_symbol

SECONDS_PER_MINUTE = 60
SECONDS_PER_DAY = 86_400
RECENT_WINDOW_DAYS = 30
MAX_LISTED_TOKENS = 8
ACTIVITY_TIERS = ('Very Low', 'Low', 'Medium', 'High', 'Very High')
SOURCE_NAMES = {'primary': 'Solscan API', 'fallback': 'Solana RPC'}


def explorer_url(wallet: str) -> str:
    return f'https://solscan.io/account/{wallet}'


def _now_ts(now: datetime | None) -> float:
    return (now or datetime.now(UTC)).timestamp()


def _plural(count: int, unit: str) -> str:
    return f'{count} {unit}{"" if count == 1 else "s"}'


def _block_times(transactions: Sequence[TransactionRecord]) -> list[int]:
    return [tx.block_time for tx in transactions if tx.block_time is not None]


def wallet_age(transactions: Sequence[TransactionRecord], now: datetime | None = None) -> str:
    times = _block_times(transactions)
    if not times:
        return 'Unknown'
    days = int(max(_now_ts(now) - min(times), 0) // SECONDS_PER_DAY)
    if days >= 365:
        return f'{_plural(days // 365, "year")} old'
    if days >= 30:
        return f'{_plural(days // 30, "month")} old'
    if days >= 1:
        return f'{_plural(days, "day")} old'
    return 'Less than a day old'


def last_activity(transactions: Sequence[TransactionRecord], now: datetime | None = None) -> str:
    times = _block_times(transactions)
    if not times:
        return 'Unknown'
    minutes = int(max(_now_ts(now) - max(times), 0) // SECONDS_PER_MINUTE)
    if minutes < 60:
        return f'{_plural(minutes, "minute")} ago'
    hours = minutes // 60
    if hours < 24:
        return f'{_plural(hours, "hour")} ago'
    days = hours // 24
    if days < 30:
        return f'{_plural(days, "day")} ago'
    return f'{_plural(days // 30, "month")} ago'


def recent_transaction_count(
    transactions: Sequence[TransactionRecord], now: datetime | None = None, days: int = RECENT_WINDOW_DAYS
) -> int:
    cutoff = _now_ts(now) - days * SECONDS_PER_DAY
    return sum(1 for t in _block_times(transactions) if t >= cutoff)


def activity_level(
    transaction_count: int, transactions: Sequence[TransactionRecord], now: datetime | None = None
) -> str:
    if transaction_count > 1000:
        tier = 4
    elif transaction_count > 500:
        tier = 3
    elif transaction_count > 100:
        tier = 2
    elif transaction_count > 10:
        tier = 1
    else:
        tier = 0

    recent = recent_transaction_count(transactions, now)
    if recent > 50:
        tier = max(tier, 4)
    elif recent > 20:
        tier = max(tier, 3)
    elif recent > 5:
        tier = max(tier, 2)
    return ACTIVITY_TIERS[tier]


def format_sol_balance(lamports: int) -> str:
    return f'{Decimal(lamports) / LAMPORTS_PER_SOL:.6f}'


def _format_amount(value: float) -> str:
    text = f'{value:,.3f}'.rstrip('0').rstrip('.')
    return text or '0'


def format_token_holdings(
    holdings: Sequence[TokenHolding], limit: int = MAX_LISTED_TOKENS
) -> tuple[str, float | None]:
    """Render the top holdings by balance.

    Returns the text block and the aggregate USD value over every priced
    holding, or ``None`` when no holding carries a price.
    """
    if not holdings:
        return 'No tokens found', None

    ranked = sorted(holdings, key=lambda h: h.display_amount, reverse=True)
    lines = []
    for holding in ranked[:limit]:
        symbol = holding.symbol or placeholder_symbol(holding.mint)
        line = f'• {symbol}: {_format_amount(holding.display_amount)}'
        if holding.unit_price_usd is not None:
            line += f' (${holding.display_amount * holding.unit_price_usd:,.2f})'
        lines.append(line)
    if len(ranked) > limit:
        lines.append(f'... and {len(ranked) - limit} more tokens')

    priced = [h for h in holdings if h.unit_price_usd is not None]
    total = sum(h.display_amount * h.unit_price_usd for h in priced) if priced else None
    return '\n'.join(lines), total


def format_transaction_count(count: int, sample_cap: int) -> str:
    text = f'{count:,}'
    if count >= sample_cap:
        text += f' (sampled: most recent {sample_cap:,})'
    return text


def render(
    account: CanonicalAccount,
    transactions: Sequence[TransactionRecord],
    identifier: str,
    now: datetime | None = None,
    sample_cap: int = 1000,
) -> str:
    now = now or datetime.now(UTC)
    token_block, total_usd = format_token_holdings(account.holdings)
    account_type = 'Executable' if account.is_executable else 'Non-executable'

    lines = [
        '🔍 **Wallet Analysis Report**',
        '',
        f'📍 **Address:** `{identifier}`',
        '',
        f'💰 **SOL Balance:** {format_sol_balance(account.balance_minor_units)} SOL',
        '',
        f'🪙 **Token Holdings:** {len(account.holdings)} tokens',
        token_block,
        '',
    ]
    if total_usd is not None:
        lines.append(f'💎 **Total Token Value:** ${total_usd:,.2f}')
    lines += [
        f'📊 **Transaction Count:** {format_transaction_count(account.transaction_count, sample_cap)}',
        f'📈 **Activity Level:** {activity_level(account.transaction_count, transactions, now)}',
        f'⏰ **Wallet Age:** {wallet_age(transactions, now)}',
        f'🕐 **Last Activity:** {last_activity(transactions, now)}',
        '',
        f'🔗 **Account Type:** {account_type}',
        '',
        f'📡 **Data Source:** {SOURCE_NAMES[account.source_label]}',
    ]
    return '\n'.join(lines)
