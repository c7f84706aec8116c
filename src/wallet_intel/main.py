from functools import lru_cache
import logging

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request

from .classifier import classify
from .datadog_client import send_report_log
from .errors import InvalidIdentifierError, ResolutionError, user_message
from .observability import TraceCollector, configure_logging
from .rate_limit import SlidingWindowRateLimiter
from .report import explorer_url, render
from .resolver import WalletDataResolver, build_default_resolver
from .schemas import WalletReportRequest, WalletReportResponse, WalletScanRequest, WalletScanResponse
from .settings import settings
from .validation import find_identifier, require_identifier

logger = logging.getLogger(__name__)

app = FastAPI(title='wallet intel API', version='0.1.0')
configure_logging()

RATE_LIMITED_DETAIL = 'Rate limit exceeded. Please wait a moment before making another request.'
STATUS_BY_KIND = {'not_found': 404, 'rate_limited': 503, 'unavailable': 502}


@lru_cache(maxsize=1)
def get_resolver() -> WalletDataResolver:
    return build_default_resolver()


@lru_cache(maxsize=1)
def get_rate_limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


@app.get('/health')
def health() -> dict[str, str]:
    return {'status': 'ok'}


async def build_wallet_report(wallet: str, resolver: WalletDataResolver) -> WalletReportResponse:
    try:
        require_identifier(wallet)
    except InvalidIdentifierError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    trace = TraceCollector()
    try:
        account = await resolver.resolve(wallet, trace=trace)
    except ResolutionError as exc:
        raise HTTPException(status_code=STATUS_BY_KIND[exc.kind], detail=user_message(exc)) from exc

    with trace.step('render_report', source=account.source_label):
        report = render(account, account.transactions, wallet, sample_cap=settings.solana_signature_limit)
    classification = classify(account)

    try:
        await send_report_log(wallet, account, classification, trace.as_list())
    except httpx.HTTPError as exc:
        logger.warning('Datadog log shipping failed: %s', exc)

    return WalletReportResponse(
        wallet=wallet,
        source=account.source_label,
        classification=classification,
        report=report,
        explorer_url=explorer_url(wallet),
        account=account,
        trace=trace.as_list(),
    )


@app.post('/v1/wallet/report', response_model=WalletReportResponse)
async def wallet_report(
    payload: WalletReportRequest,
    resolver: WalletDataResolver = Depends(get_resolver),
) -> WalletReportResponse:
    return await build_wallet_report(payload.wallet, resolver)


@app.post('/v1/wallet/scan', response_model=WalletScanResponse)
async def wallet_scan(
    payload: WalletScanRequest,
    request: Request,
    resolver: WalletDataResolver = Depends(get_resolver),
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> WalletScanResponse:
    wallet = find_identifier(payload.text)
    if wallet is None:
        return WalletScanResponse()

    caller = payload.caller_id or (request.client.host if request.client else 'anonymous')
    if not limiter.allow(caller):
        raise HTTPException(status_code=429, detail=RATE_LIMITED_DETAIL)

    return WalletScanResponse(wallet=wallet, result=await build_wallet_report(wallet, resolver))
