"""Shared fakes for the DNS Serial Check tests."""

import dns.edns
import dns.flags
import dns.message
import dns.rcode
import dns.rdatatype
import dns.rrset
import pytest

from serialcheck.core.query import make_query


def soa_rrset(zone: str, serial: int) -> dns.rrset.RRset:
    return dns.rrset.from_text(
        zone, 300, 'IN', 'SOA',
        f'ns1.{zone} hostmaster.{zone} {serial} 7200 3600 1209600 3600',
    )


class FakeDNS:
    """A transport answering from tables instead of the network.

    ``soa`` maps server address -> serial, rcode, or exception to raise.
    ``ns`` maps zone -> list of names, rcode, or exception.
    ``addresses`` maps (name, 'A'|'AAAA') -> list of address strings.
    """

    def __init__(self, soa=None, ns=None, addresses=None, nsid=None):
        self.soa = dict(soa or {})
        self.ns = dict(ns or {})
        self.addresses = dict(addresses or {})
        self.nsid = dict(nsid or {})
        self.calls = []

    async def send(self, qname, rdtype, addresses, options):
        rdtype = dns.rdatatype.RdataType.make(rdtype)
        targets = [str(a) for a in addresses]
        self.calls.append((qname, rdtype, targets, options))
        query = make_query(qname, rdtype, options)
        response = dns.message.make_response(query)

        if rdtype == dns.rdatatype.SOA:
            behaviour = self.soa[targets[0]]
            nsid = self.nsid.get(targets[0])
            if nsid is not None:
                response.use_edns(0, options=[dns.edns.GenericOption(dns.edns.OptionType.NSID, nsid)])
        elif rdtype == dns.rdatatype.NS:
            behaviour = self.ns.get(qname, dns.rcode.NXDOMAIN)
        else:
            behaviour = self.addresses.get((qname, rdtype.name), [])

        if isinstance(behaviour, Exception):
            raise behaviour
        if isinstance(behaviour, dns.rcode.Rcode):
            response.set_rcode(behaviour)
        elif rdtype == dns.rdatatype.SOA:
            if behaviour is not None:
                response.answer.append(soa_rrset(qname, behaviour))
        elif rdtype == dns.rdatatype.NS:
            response.answer.append(dns.rrset.from_text(qname, 300, 'IN', 'NS', *behaviour))
        elif behaviour:
            response.answer.append(dns.rrset.from_text(qname, 300, 'IN', rdtype.name, *behaviour))
        return response

    def queried(self, rdtype):
        rdtype = dns.rdatatype.RdataType.make(rdtype)
        return [call for call in self.calls if call[1] == rdtype]


@pytest.fixture
def example_dns():
    """example.com. with three nameservers all serving serial 2024010100."""
    return FakeDNS(
        ns={'example.com.': ['ns1.example.com.', 'ns2.example.com.', 'ns3.example.com.']},
        addresses={
            ('ns1.example.com.', 'A'): ['192.0.2.1'],
            ('ns2.example.com.', 'A'): ['192.0.2.2'],
            ('ns3.example.com.', 'A'): ['192.0.2.3'],
            ('master.example.com.', 'A'): ['192.0.2.10'],
        },
        soa={
            '192.0.2.1': 2024010100,
            '192.0.2.2': 2024010100,
            '192.0.2.3': 2024010100,
            '192.0.2.10': 2024010100,
        },
    )
