from datetime import UTC, datetime

import httpx

from .schemas import CanonicalAccount, TraceStep
from .settings import settings


def datadog_logs_enabled() -> bool:
    return bool(settings.dd_api_key and settings.dd_send_logs)


async def send_report_log(
    wallet: str,
    account: CanonicalAccount,
    classification: str,
    trace: list[TraceStep],
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    if not datadog_logs_enabled():
        return

    url = f'https://http-intake.logs.{settings.dd_site}/api/v2/logs'
    payload = {
        'ddsource': 'python',
        'service': settings.dd_service,
        'ddtags': f'env:{settings.dd_env},version:{settings.dd_version},source:{account.source_label}',
        'hostname': 'wallet-intel',
        'timestamp': datetime.now(UTC).isoformat(),
        'message': 'wallet_report_completed',
        'wallet': wallet,
        'source': account.source_label,
        'classification': classification,
        'holdings': len(account.holdings),
        'transaction_count': account.transaction_count,
        'trace': [step.model_dump() for step in trace],
    }
    headers = {'Content-Type': 'application/json', 'DD-API-KEY': settings.dd_api_key}

    async with httpx.AsyncClient(timeout=settings.request_timeout_seconds, transport=transport) as client:
        resp = await client.post(url, headers=headers, json=[payload])
        resp.raise_for_status()
