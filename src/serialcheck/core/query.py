"""DNS query construction and the UDP/TCP query transport."""

from dataclasses import dataclass, replace
from typing import Awaitable, Callable, List, Optional, Sequence

import dns.asyncquery
import dns.edns
import dns.exception
import dns.flags
import dns.message
import dns.name
import dns.rdataclass
import dns.rdatatype

from .. import constants
from ..exceptions import TransportError
from ..utils.logger import get_logger

logger = get_logger(__name__)

Exchange = Callable[..., Awaitable[dns.message.Message]]


@dataclass(frozen=True)
class QueryOptions:
    """Per-query header flags, EDNS settings and retry policy."""

    # Header flags
    recursion_desired: bool = False
    authenticated_data: bool = False
    checking_disabled: bool = False

    # EDNS options
    bufsize: int = constants.DEFAULT_BUFSIZE
    nsid: bool = False

    # Transport
    timeout: float = constants.DEFAULT_TIMEOUT
    retries: int = constants.DEFAULT_RETRIES
    tcp: bool = False
    port: int = constants.DEFAULT_PORT

    def with_recursion(self, recursion_desired: bool) -> 'QueryOptions':
        """Return a copy with the RD flag set as given."""
        return replace(self, recursion_desired=recursion_desired)


def make_query(qname: str, rdtype, options: QueryOptions) -> dns.message.QueryMessage:
    """Build a query message with the flags and EDNS0 OPT record from ``options``."""
    if isinstance(qname, str) and not qname.endswith('.'):
        qname += '.'
    edns_options = []
    if options.nsid:
        edns_options.append(dns.edns.GenericOption(dns.edns.OptionType.NSID, b''))

    msg = dns.message.make_query(
        dns.name.from_text(qname) if isinstance(qname, str) else qname,
        dns.rdatatype.RdataType.make(rdtype),
        dns.rdataclass.IN,
        use_edns=0,
        payload=options.bufsize,
        options=edns_options,
    )

    msg.flags &= ~(dns.flags.RD | dns.flags.AD | dns.flags.CD)
    if options.recursion_desired:
        msg.flags |= dns.flags.RD
    if options.authenticated_data:
        msg.flags |= dns.flags.AD
    if options.checking_disabled:
        msg.flags |= dns.flags.CD
    return msg


def extract_nsid(response: dns.message.Message) -> Optional[str]:
    """Return the NSID carried in a response's OPT record, if any."""
    for option in response.options or ():
        if option.otype != dns.edns.OptionType.NSID:
            continue
        raw = getattr(option, 'nsid', None)
        if raw is None:
            raw = getattr(option, 'data', b'')
        if isinstance(raw, str):
            return raw
        raw = bytes(raw)
        try:
            text = raw.decode('ascii')
        except UnicodeDecodeError:
            return raw.hex()
        return text if text.isprintable() else raw.hex()
    return None


class QueryTransport:
    """Sends one question to a list of candidate addresses.

    UDP is tried first, ``retries`` rounds over every address; a timeout moves
    on to the next address, any other network error abandons UDP. A truncated
    UDP answer is re-asked over TCP. TCP tries each address once.

    Calls share no state and may run concurrently.
    """

    def __init__(self, udp: Optional[Exchange] = None, tcp: Optional[Exchange] = None):
        self._udp = udp or dns.asyncquery.udp
        self._tcp = tcp or dns.asyncquery.tcp

    async def send(self, qname: str, rdtype, addresses: Sequence, options: QueryOptions) -> dns.message.Message:
        """Send the question and return the first response obtained.

        Raises:
            TransportError: no address produced a response.
        """
        targets = [str(address) for address in addresses]
        if not targets:
            raise TransportError(f"{qname}: no server addresses to query")

        query = make_query(qname, rdtype, options)

        if options.tcp:
            return await self.send_tcp(query, targets, options)

        response = await self.send_udp(query, targets, options)
        if response.flags & dns.flags.TC:
            logger.info(f"Truncated response for {qname}, retrying over TCP")
            return await self.send_tcp(query, targets, options)
        return response

    async def send_udp(self, query: dns.message.Message, targets: List[str],
                       options: QueryOptions) -> dns.message.Message:
        last_error: Optional[Exception] = None
        for attempt in range(max(1, options.retries)):
            for target in targets:
                try:
                    return await self._udp(query, target, timeout=options.timeout, port=options.port)
                except dns.exception.Timeout as e:
                    logger.debug(f"UDP timeout from {target} (attempt {attempt + 1}/{options.retries})")
                    last_error = e
                except (OSError, dns.exception.DNSException) as e:
                    logger.debug(f"UDP query to {target} failed: {e}")
                    raise TransportError(f"{target}: {_describe(e)}") from e
        raise TransportError(f"{', '.join(targets)}: {_describe(last_error)}") from last_error

    async def send_tcp(self, query: dns.message.Message, targets: List[str],
                       options: QueryOptions) -> dns.message.Message:
        last_error: Optional[Exception] = None
        for target in targets:
            try:
                return await self._tcp(query, target, timeout=options.timeout, port=options.port)
            except (OSError, EOFError, dns.exception.DNSException) as e:
                logger.debug(f"TCP query to {target} failed: {e}")
                last_error = e
        raise TransportError(f"{', '.join(targets)}: {_describe(last_error)}") from last_error


def _describe(error: Optional[Exception]) -> str:
    if error is None:
        return "no response"
    if isinstance(error, dns.exception.Timeout):
        return "i/o timeout"
    return str(error) or type(error).__name__
