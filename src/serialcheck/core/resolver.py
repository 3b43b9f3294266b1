"""Turns a zone's nameservers (and any extra servers) into query targets."""

import asyncio
from typing import Iterable, List, Optional, Sequence

import dns.exception
import dns.name
import dns.rcode
import dns.rdatatype
import dns.resolver

from .models import IPAddress, QueryTarget, ResolvedServer, parse_address
from .query import QueryOptions, QueryTransport
from .. import constants
from ..exceptions import (
    AddressResolutionError,
    MasterError,
    NameResolutionError,
    ResolverConfigError,
    TransportError,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


def fqdn(name: str) -> str:
    """Return ``name`` with a trailing dot."""
    return name if name.endswith('.') else name + '.'


def check_name(name: str) -> str:
    """Return ``name`` fully-qualified after checking it parses as a domain name.

    Raises:
        ValueError: empty label, over-long label or name, or other malformed text.
    """
    name = fqdn(name)
    try:
        dns.name.from_text(name)
    except dns.exception.DNSException as e:
        raise ValueError(f"{name}: invalid domain name: {e}") from e
    return name


def load_resolvers(resolv_conf: Optional[str] = None) -> List[str]:
    """Read recursive resolver addresses from resolv.conf.

    Raises:
        ResolverConfigError: the file is unreadable or lists no usable nameserver.
    """
    path = resolv_conf or constants.DEFAULT_RESOLV_CONF
    try:
        resolver = dns.resolver.Resolver(filename=path, configure=True)
    except (dns.resolver.NoResolverConfiguration, OSError) as e:
        raise ResolverConfigError(f"{path}: {e}") from e

    addresses = []
    for nameserver in resolver.nameservers:
        address = parse_address(str(nameserver))
        if address is None:
            logger.debug(f"Skipping non-address nameserver entry {nameserver!r}")
            continue
        addresses.append(str(address))
    if not addresses:
        raise ResolverConfigError(f"{path}: no nameservers found")
    logger.debug(f"Using resolvers {addresses} from {path}")
    return addresses


def parse_additional(entries: Iterable[str] | str) -> List[str]:
    """Normalize additional servers: address literals as-is, hostnames fully-qualified.

    Raises:
        ValueError: an entry is neither an address nor a valid domain name.
    """
    if isinstance(entries, str):
        entries = entries.split(',')
    servers = []
    for item in entries:
        item = item.strip()
        if not item:
            continue
        address = parse_address(item)
        servers.append(str(address) if address is not None else check_name(item))
    return servers


class ServerResolver:
    """Discovers a zone's servers and their addresses through recursive resolvers."""

    def __init__(self, transport: QueryTransport, resolvers: Sequence[str],
                 options: QueryOptions, v4_only: bool = False, v6_only: bool = False):
        self.transport = transport
        self.resolvers = list(resolvers)
        self.options = options.with_recursion(True)
        self.v4_only = v4_only
        self.v6_only = v6_only

    @property
    def families(self) -> List[dns.rdatatype.RdataType]:
        """Address record types to look up, AAAA first."""
        rdtypes = []
        if not self.v4_only:
            rdtypes.append(dns.rdatatype.AAAA)
        if not self.v6_only:
            rdtypes.append(dns.rdatatype.A)
        return rdtypes

    async def get_ns_names(self, zone: str) -> List[str]:
        """Return the zone's advertised nameserver names.

        Raises:
            NameResolutionError: the NS set is unavailable, empty, or the zone does not exist.
        """
        try:
            response = await self.transport.send(zone, dns.rdatatype.NS, self.resolvers, self.options)
        except TransportError as e:
            raise NameResolutionError(f"{zone} NS query failed: {e}") from e

        rcode = response.rcode()
        if rcode == dns.rcode.NXDOMAIN:
            raise NameResolutionError(f"{zone} doesn't exist")
        if rcode != dns.rcode.NOERROR:
            raise NameResolutionError(f"{zone} response code: {dns.rcode.to_text(rcode)}")

        names = [
            rdata.target.to_text()
            for rrset in response.answer if rrset.rdtype == dns.rdatatype.NS
            for rdata in rrset
        ]
        if not names:
            raise NameResolutionError(f"{zone} no nameserver records found")
        logger.debug(f"{zone} nameservers: {names}")
        return names

    async def lookup_addresses(self, name: str, rdtype) -> List[IPAddress]:
        """Look up the A or AAAA records of ``name``.

        Raises:
            AddressResolutionError: no response, or a non-success response code.
        """
        rdtype = dns.rdatatype.RdataType.make(rdtype)
        if rdtype not in (dns.rdatatype.A, dns.rdatatype.AAAA):
            raise ValueError(f"{dns.rdatatype.to_text(rdtype)}: invalid address record type")
        try:
            response = await self.transport.send(name, rdtype, self.resolvers, self.options)
        except TransportError as e:
            raise AddressResolutionError(f"{name} {rdtype.name} lookup failed: {e}") from e

        rcode = response.rcode()
        if rcode != dns.rcode.NOERROR:
            raise AddressResolutionError(f"{name} {rdtype.name} lookup: {dns.rcode.to_text(rcode)}")
        return [
            parse_address(rdata.address)
            for rrset in response.answer if rrset.rdtype == rdtype
            for rdata in rrset
        ]

    async def resolve_name(self, name: str) -> ResolvedServer:
        """Resolve one server name; address literals are used without lookup."""
        literal = parse_address(name)
        if literal is not None:
            return ResolvedServer(name, [literal])

        addresses: List[IPAddress] = []
        errors: List[str] = []
        for rdtype in self.families:
            try:
                found = await self.lookup_addresses(name, rdtype)
            except AddressResolutionError as e:
                errors.append(str(e))
                continue
            addresses.extend(a for a in found if a not in addresses)

        if addresses:
            return ResolvedServer(name, addresses)
        error = "; ".join(errors) or f"{name}: no addresses found"
        logger.warning(f"Couldn't resolve nameserver {name}: {error}")
        return ResolvedServer(name, [], error)

    async def resolve(self, zone: str, additional: Iterable[str] = (),
                      skip_advertised: bool = False) -> List[ResolvedServer]:
        """Return the servers to check, sorted by name, each with its addresses."""
        names = parse_additional(additional)
        if not skip_advertised:
            names.extend(await self.get_ns_names(zone))
        names = sorted(set(names))
        return list(await asyncio.gather(*(self.resolve_name(name) for name in names)))

    async def resolve_targets(self, zone: str, additional: Iterable[str] = (),
                              skip_advertised: bool = False) -> List[QueryTarget]:
        """Like :meth:`resolve`, flattened into one target per address."""
        return [
            target
            for server in await self.resolve(zone, additional, skip_advertised)
            for target in server.targets()
        ]

    async def resolve_master(self, master: str) -> IPAddress:
        """Return the address to query for the master server.

        Raises:
            MasterError: the master name has no usable address.
        """
        literal = parse_address(master)
        if literal is not None:
            return literal
        name = fqdn(master)
        for rdtype in self.families:
            try:
                found = await self.lookup_addresses(name, rdtype)
            except AddressResolutionError as e:
                logger.debug(f"Master lookup: {e}")
                continue
            if found:
                return found[0]
        raise MasterError(f"couldn't resolve master name: {name}")
