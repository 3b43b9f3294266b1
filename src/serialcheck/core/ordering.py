"""Deterministic orderings used for sorted reports.

Two comparators: DNS canonical order for server names (RFC 4034 section 6.1)
and an address-family order for the responses of a single server.
"""

from functools import cmp_to_key
from typing import Iterable, List, Optional, TypeVar

import dns.name

from .models import IPAddress, SerialResult

T = TypeVar('T')


def _to_name(domain: str) -> dns.name.Name:
    if not domain.endswith('.'):
        domain += '.'
    return dns.name.from_text(domain).canonicalize()


def canonical_domain_order(d1: str, d2: str) -> int:
    """Compare two domain names in DNS canonical order.

    Labels are compared case-insensitively from the rightmost label leftwards;
    a name that is a suffix of the other sorts first.

    Returns -1, 0 or 1 as ``d1`` sorts before, equal to, or after ``d2``.
    """
    _, order, _ = _to_name(d1).fullcompare(_to_name(d2))
    return (order > 0) - (order < 0)


def ip_version_order(a1: Optional[IPAddress], a2: Optional[IPAddress]) -> int:
    """Compare two addresses: missing first, then IPv6, then IPv4, each by value."""
    if a1 is None or a2 is None:
        return (a1 is not None) - (a2 is not None)
    if a1.version != a2.version:
        return -1 if a1.version > a2.version else 1
    p1, p2 = a1.packed, a2.packed
    return (p1 > p2) - (p1 < p2)


def sort_domains(names: Iterable[str]) -> List[str]:
    """Return ``names`` in canonical DNS order (stable)."""
    return sorted(names, key=cmp_to_key(canonical_domain_order))


def sort_by_ip_version(results: Iterable[SerialResult]) -> List[SerialResult]:
    """Return ``results`` ordered by their address (stable)."""
    return sorted(results, key=cmp_to_key(lambda r1, r2: ip_version_order(r1.address, r2.address)))
