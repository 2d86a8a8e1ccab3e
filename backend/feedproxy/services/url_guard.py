"""Admission check for URLs the proxy is asked to fetch.

This is a best-effort SSRF filter. It inspects the URL text only: hostnames are
not resolved, IPv6 ranges other than the ``::1`` literal are not checked, and
IPv4-mapped IPv6 or decimal/octal/hex IPv4 spellings pass through. Callers that
need a hard boundary must enforce it at the network layer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

_ALLOWED_SCHEMES = frozenset({"http", "https"})
_BLOCKED_HOSTS = frozenset(
    {
        "localhost",
        "0.0.0.0",
        "127.0.0.1",
        "::1",
        "169.254.169.254",  # cloud metadata
        "metadata.google.internal",
    }
)
_IPV4_RE = re.compile(r"^(?:[0-9]{1,3}\.){3}[0-9]{1,3}$")


@dataclass(frozen=True)
class AdmissionDecision:
    allowed: bool
    reason: str | None = None


def _deny(reason: str) -> AdmissionDecision:
    return AdmissionDecision(allowed=False, reason=reason)


def _is_private_ipv4(host: str) -> bool:
    if not _IPV4_RE.match(host):
        return False
    a, b, _c, _d = (int(part) for part in host.split("."))
    return (
        a == 10
        or (a == 172 and 16 <= b <= 31)
        or (a == 192 and b == 168)
        or a == 127
        or (a == 169 and b == 254)
    )


def check_url(raw: str) -> AdmissionDecision:
    try:
        parts = urlsplit((raw or "").strip())
        # urlsplit strips IPv6 brackets and lower-cases the host.
        host = parts.hostname or ""
        # Non-numeric or out-of-range ports only surface here.
        parts.port
    except ValueError:
        return _deny("Invalid URL")

    scheme = parts.scheme.lower()
    if not scheme:
        return _deny("Invalid URL")
    if scheme not in _ALLOWED_SCHEMES:
        return _deny("Only http/https allowed")
    if not host:
        return _deny("Invalid URL")

    host = host.lower()
    if host in _BLOCKED_HOSTS:
        return _deny("Blocked host")
    if _is_private_ipv4(host):
        return _deny("Private IP blocked")
    return AdmissionDecision(allowed=True)
