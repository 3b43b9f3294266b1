"""Data records passed between the resolver, fetcher, aggregator and reporters."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..exceptions import SerialCheckException

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def parse_address(text: str) -> Optional[IPAddress]:
    """Return the IP address for an address literal, or None for anything else."""
    try:
        return ipaddress.ip_address(text.strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class QueryTarget:
    """One (server name, address) pair to query.

    ``address`` is None when the name did not resolve; ``cause`` then says why.
    """

    server_name: str
    address: Optional[IPAddress]
    cause: Optional[str] = None


@dataclass(frozen=True)
class ResolvedServer:
    """A server name together with its deduplicated addresses."""

    name: str
    addresses: List[IPAddress] = field(default_factory=list)
    error: Optional[str] = None

    def targets(self) -> List[QueryTarget]:
        if not self.addresses:
            return [QueryTarget(self.name, None, self.error)]
        return [QueryTarget(self.name, address) for address in self.addresses]


@dataclass(frozen=True)
class SerialResult:
    """Outcome of one SOA query; ``serial`` is meaningful only when ``error`` is None."""

    server_name: str
    address: Optional[IPAddress]
    serial: int = 0
    elapsed: float = 0.0
    nsid: Optional[str] = None
    delta: Optional[int] = None
    error: Optional[SerialCheckException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    @property
    def resptime_ms(self) -> float:
        return self.elapsed * 1000.0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.server_name,
            "ip": str(self.address) if self.address is not None else "",
            "serial": self.serial,
        }
        if self.delta is not None:
            data["delta"] = self.delta
        data["resptime"] = self.resptime_ms
        if self.nsid:
            data["nsid"] = self.nsid
        if self.error is not None:
            data["error"] = self.error_message
        return data


@dataclass(frozen=True)
class MasterResult(SerialResult):
    """The reference server's result; compared first and reported first."""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.server_name,
            "ip": str(self.address) if self.address is not None else "",
            "serial": self.serial,
            "resptime": self.resptime_ms,
        }
        if self.error is not None:
            data["error"] = self.error_message
        return data


@dataclass
class CheckReport:
    """Everything a reporter needs after one checking pass."""

    zone: str
    timestamp: str
    status: int = 0
    error: Optional[str] = None
    master: Optional[MasterResult] = None
    responses: List[SerialResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": int(self.status)}
        if self.error:
            data["error"] = self.error
        data["zone"] = self.zone
        data["timestamp"] = self.timestamp
        if self.master is not None:
            data["master"] = self.master.to_dict()
        data["responses"] = [r.to_dict() for r in self.responses]
        return data
