"""Filtering of scan results by a free-text search term."""

from __future__ import annotations

import re
from typing import Iterable

from .hosts import ip_to_int
from .models import HostInfo

_IP_PATTERN_RE = re.compile(r"^[0-9.]+$")
_LETTER_RE = re.compile(r"[A-Za-z]")

MAX_LISTED_VENDORS = 5


def fuzzy_match(text: str, pattern: str) -> bool:
    """Return ``True`` if ``pattern`` is a substring or subsequence of ``text``."""

    if not pattern or pattern in text:
        return True
    it = iter(text)
    return all(ch in it for ch in pattern)


def matches_search(host: HostInfo, term: str) -> bool:
    """Match ``term`` against every textual field of ``host``."""

    term = term.lower()
    fields = [host.ip, host.hostname, host.vendor, host.mac]
    for service in host.services:
        fields.extend((service.service, service.version, service.banner))
    return any(value and fuzzy_match(value.lower(), term) for value in fields)


def matches_focused_search(host: HostInfo, term: str) -> bool:
    """Match ``term`` against the IP address and vendor only."""

    term = term.lower()
    if fuzzy_match(host.ip.lower(), term):
        return True
    return bool(host.vendor) and fuzzy_match(host.vendor.lower(), term)


def is_ip_pattern(term: str) -> bool:
    return bool(_IP_PATTERN_RE.match(term))


def is_vendor_pattern(term: str) -> bool:
    return bool(_LETTER_RE.search(term))


def _focused_match(host: HostInfo, term: str) -> bool:
    # Unambiguous terms use a plain substring test on one field.
    if is_ip_pattern(term):
        return term in host.ip.lower()
    if is_vendor_pattern(term):
        return bool(host.vendor) and term in host.vendor.lower()
    return matches_focused_search(host, term)


def filter_hosts(
    hosts: Iterable[HostInfo], term: str, *, focused: bool = False
) -> list[HostInfo]:
    """Return the hosts matching ``term`` ordered by numeric IP.

    An empty or blank ``term`` matches every host. ``focused`` restricts
    matching to IP and vendor.
    """

    term = term.strip().lower()
    if not term:
        selected = list(hosts)
    elif focused:
        selected = [h for h in hosts if _focused_match(h, term)]
    else:
        selected = [h for h in hosts if matches_search(h, term)]
    return sorted(selected, key=lambda h: ip_to_int(h.ip))


def unique_vendors(hosts: Iterable[HostInfo]) -> str:
    """Summarise the distinct known vendors among ``hosts``.

    At most five names are listed, followed by ``"and N more"``.
    """

    vendors: list[str] = []
    for host in hosts:
        if host.vendor and host.vendor != "Unknown" and host.vendor not in vendors:
            vendors.append(host.vendor)
    if not vendors:
        return "None detected"
    if len(vendors) > MAX_LISTED_VENDORS:
        shown = ", ".join(vendors[:MAX_LISTED_VENDORS])
        return f"{shown} and {len(vendors) - MAX_LISTED_VENDORS} more"
    return ", ".join(vendors)


__all__ = [
    "fuzzy_match",
    "matches_search",
    "matches_focused_search",
    "is_ip_pattern",
    "is_vendor_pattern",
    "filter_hosts",
    "unique_vendors",
]
