"""Host and address normalisation for link targets."""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Iterable
from email.utils import parseaddr
from urllib.parse import unquote, urlparse

HOST_RE = re.compile(r"^[a-z0-9.-]+$")


def normalize_address(address: str) -> str | None:
    """Return a lower-cased ``local@domain`` mailbox, or None when unusable."""

    _, email_addr = parseaddr(address or "")
    if not email_addr and address:
        email_addr = address.strip()
    email_addr = email_addr.strip().lower()
    if "@" not in email_addr:
        return None
    local, _, domain = email_addr.rpartition("@")
    host = normalize_host(domain)
    if not local or not host:
        return None
    return f"{local}@{host}"


def link_target(link: str) -> str | None:
    """Return the host (or mailbox for ``mailto:``) a link points at."""

    candidate = (link or "").strip()
    if not candidate:
        return None
    parsed = urlparse(candidate)
    scheme = parsed.scheme.lower()
    if scheme == "mailto":
        return normalize_address(unquote(parsed.path).split("?", 1)[0])
    if scheme and scheme not in {"http", "https", "ftp"}:
        return None
    host = parsed.hostname
    if not host and not scheme and parsed.path and not candidate.startswith(("/", "#", ".")):
        # Scheme-less links such as "example.com/offer"
        host = urlparse(f"http://{candidate}").hostname
    return normalize_host(host)


def link_targets(links: Iterable[str]) -> list[str]:
    """Extract normalised targets for each link, preserving order."""

    targets: list[str] = []
    for link in links:
        target = link_target(link)
        if target:
            targets.append(target)
    return targets


def normalize_host(host: str | None) -> str | None:
    if not host:
        return None
    candidate = host.strip().lower().rstrip(".")
    if candidate.startswith("[") and candidate.endswith("]"):
        candidate = candidate[1:-1]
    if not candidate:
        return None

    # IPv4/IPv6 literals retain their exact string.
    try:
        ipaddress.ip_address(candidate)
        return candidate
    except ValueError:
        pass

    if not HOST_RE.match(candidate):
        return None
    labels = [label for label in candidate.split(".") if label]
    if not labels:
        return None
    return ".".join(labels)


__all__ = ["link_target", "link_targets", "normalize_address", "normalize_host"]
