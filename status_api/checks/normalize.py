from __future__ import annotations

import re

_DOMAIN_RE = re.compile(r"^(?:https?://)?([^:/]+)")


def target_url(url: str) -> str:
    """Return a connectable URL, defaulting to https:// when no scheme is given."""
    if url.startswith(("http://", "https://")):
        return url
    return f"https://{url}"


def display_domain(url: str) -> str:
    match = _DOMAIN_RE.match(url)
    return match.group(1) if match else url
