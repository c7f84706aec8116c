from contextlib import contextmanager
import logging
import time
from typing import Any
from urllib.parse import urlparse

from .schemas import SourceLabel, TraceStep
from .settings import settings

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)


def _load_tracer() -> Any:
    if not settings.dd_trace_enabled:
        return None
    try:
        from ddtrace import tracer as dd_tracer
    except ImportError:  # pragma: no cover
        logger.warning('ddtrace unavailable; tracing disabled')
        return None

    agent = urlparse(settings.dd_trace_agent_url or '')
    if agent.scheme in {'http', 'https'} and agent.hostname:
        dd_tracer.configure(hostname=agent.hostname, port=agent.port or 8126, https=agent.scheme == 'https')
    elif agent.scheme == 'unix' and agent.path:
        dd_tracer.configure(uds_path=agent.path)
    return dd_tracer


tracer = _load_tracer()


class TraceCollector:
    """Timed steps of one wallet request: which upstream was tried, which won, how long each took."""

    def __init__(self) -> None:
        self.steps: list[TraceStep] = []

    def _open_span(self, name: str, detail: str | None, source: SourceLabel | None) -> Any:
        if tracer is None:
            return None
        span = tracer.trace(f'wallet_intel.{name}', service=settings.dd_service, resource=name)
        span.set_tags({'env': settings.dd_env, 'version': settings.dd_version})
        if source:
            span.set_tag('wallet.source', source)
        if detail:
            span.set_tag('detail', detail)
        return span

    @contextmanager
    def step(self, name: str, detail: str | None = None, source: SourceLabel | None = None):
        span = self._open_span(name, detail, source)
        started = time.perf_counter()
        record = TraceStep(step=name, duration_ms=0, ok=True, detail=detail, source=source)
        try:
            yield record
        except Exception as exc:
            record.ok = False
            record.detail = str(exc)
            if span is not None:
                span.error = 1
                span.set_tag('error.msg', record.detail)
            raise
        finally:
            record.duration_ms = int((time.perf_counter() - started) * 1000)
            self.steps.append(record)
            if span is not None:
                span.finish()

    def as_list(self) -> list[TraceStep]:
        return list(self.steps)
