from __future__ import annotations

from typing import Any, Iterable


def is_online(code: int) -> bool:
    return 0 < code < 500 and code != 404


def is_fresh(stored_at: float, now: float, ttl_ms: int) -> bool:
    age_ms = (now - stored_at) * 1000
    return age_ms < ttl_ms


def age_ms(stored_at: float, now: float) -> int:
    return max(0, int((now - stored_at) * 1000))


def summarize_results(results: Iterable[dict[str, Any]]) -> dict[str, int]:
    total = 0
    online = 0
    for result in results:
        total += 1
        if result.get("online") is True:
            online += 1

    return {"total": total, "online": online, "offline": total - online}
