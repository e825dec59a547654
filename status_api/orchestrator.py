from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Iterator, Protocol, Sequence

from status_api.cache import ResultCache
from status_api.checks.normalize import target_url
from status_api.checks.results import ProbeResult
from status_api.config import settings
from status_api.ops_logic import summarize_results

logger = logging.getLogger(__name__)


class CheckRequestError(ValueError):
    pass


class Prober(Protocol):
    async def probe(self, url: str) -> ProbeResult: ...


@dataclass(frozen=True)
class CheckOutcome:
    url: str
    result: ProbeResult
    cached: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "online": self.result.online,
            "code": self.result.code,
            "time": self.result.elapsed_ms,
            "cached": self.cached,
        }


def chunked(items: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


class StatusChecker:
    def __init__(
        self,
        cache: ResultCache,
        prober: Prober,
        chunk_size: int = settings.BATCH_CHUNK_SIZE,
    ) -> None:
        self.cache = cache
        self.prober = prober
        self.chunk_size = chunk_size

    async def check_one(self, url: str) -> CheckOutcome:
        cached = self.cache.get(url)
        if cached is not None:
            return CheckOutcome(url=url, result=cached, cached=True)

        result = await self.prober.probe(target_url(url))
        self.cache.put(url, result)
        return CheckOutcome(url=url, result=result, cached=False)

    async def check_many(self, urls: Any) -> list[CheckOutcome]:
        if not isinstance(urls, (list, tuple)):
            raise CheckRequestError("urls must be a list")
        if not all(isinstance(u, str) for u in urls):
            raise CheckRequestError("urls must contain only strings")

        outcomes: list[CheckOutcome] = []
        for chunk in chunked(urls, self.chunk_size):
            results = await asyncio.gather(
                *(self.check_one(url) for url in chunk), return_exceptions=True
            )
            for url, res in zip(chunk, results):
                if isinstance(res, BaseException):
                    if not isinstance(res, Exception):
                        raise res
                    logger.error("Check for %s failed", url, exc_info=res)
                    res = CheckOutcome(
                        url=url, result=ProbeResult.unreachable(0), cached=False
                    )
                outcomes.append(res)
        return outcomes


def summarize(outcomes: list[CheckOutcome]) -> dict[str, int]:
    return summarize_results(o.to_dict() for o in outcomes)
