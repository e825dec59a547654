from __future__ import annotations

from dataclasses import dataclass

from status_api.ops_logic import is_online


@dataclass(frozen=True)
class ProbeResult:
    online: bool
    code: int
    elapsed_ms: int

    @classmethod
    def from_status(cls, code: int, elapsed_ms: int) -> ProbeResult:
        return cls(online=is_online(code), code=code, elapsed_ms=elapsed_ms)

    @classmethod
    def unreachable(cls, elapsed_ms: int) -> ProbeResult:
        return cls(online=False, code=0, elapsed_ms=elapsed_ms)
