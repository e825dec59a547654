from __future__ import annotations

import asyncio
import logging
import time

import httpx

from status_api.checks.normalize import display_domain
from status_api.checks.results import ProbeResult
from status_api.config import settings

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


async def run_http(
    url: str,
    timeout_s: float,
    connect_timeout_s: float | None = None,
    start: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProbeResult:
    if start is None:
        start = time.perf_counter()
    try:
        connect_timeout = timeout_s if connect_timeout_s is None else connect_timeout_s
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_s, connect=connect_timeout),
            follow_redirects=True,
            http2=True,
            transport=transport,
        ) as client:
            async with client.stream("GET", url) as r:
                status_code = r.status_code
        return ProbeResult.from_status(status_code, _elapsed_ms(start))
    except Exception as e:
        logger.debug("Transport error for %s: %s: %s", url, e.__class__.__name__, e)
        return ProbeResult.unreachable(_elapsed_ms(start))


def _discard_late_result(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Discarded late probe error: %s", exc)
        return
    logger.debug("Discarded late probe result: %s", task.result())


class HttpProber:
    """Issues one GET per probe on the running event loop under a hard deadline.

    httpx timeouts bound connect and each read; ``deadline_s`` caps the whole
    probe from the moment ``probe`` is called. When it fires the request task
    is cancelled and anything it still produces is dropped.
    """

    def __init__(
        self,
        timeout_s: float = settings.PROBE_TIMEOUT_MS / 1000,
        connect_timeout_s: float = settings.CONNECT_TIMEOUT_MS / 1000,
        deadline_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.connect_timeout_s = connect_timeout_s
        self.deadline_s = timeout_s if deadline_s is None else deadline_s
        self._transport = transport

    async def probe(self, url: str) -> ProbeResult:
        start = time.perf_counter()
        task = asyncio.ensure_future(
            run_http(
                url,
                self.timeout_s,
                self.connect_timeout_s,
                start=start,
                transport=self._transport,
            )
        )
        try:
            done, _ = await asyncio.wait({task}, timeout=self.deadline_s)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task in done:
            result = task.result()
            logger.debug(
                "Probe %s -> code=%s online=%s in %sms",
                display_domain(url),
                result.code,
                result.online,
                result.elapsed_ms,
            )
            return result

        task.add_done_callback(_discard_late_result)
        task.cancel()
        logger.warning(
            "Probe %s exceeded %ss deadline", display_domain(url), self.deadline_s
        )
        return ProbeResult.unreachable(int(self.deadline_s * 1000))
