"""Tests for the concurrent serial fetcher."""

import asyncio
import ipaddress

import dns.rcode
import pytest

from conftest import FakeDNS
from serialcheck.core.fetcher import SerialFetcher
from serialcheck.core.models import QueryTarget
from serialcheck.core.query import QueryOptions
from serialcheck.exceptions import (
    AddressResolutionError,
    MissingRecordError,
    ProtocolError,
    TransportError,
    ZoneNotFoundError,
)

ZONE = "example.com."


def targets_for(count):
    return [QueryTarget(f"ns{i}.example.com.", ipaddress.ip_address(f"10.0.{i // 256}.{i % 256}"))
            for i in range(count)]


class TrackingDNS(FakeDNS):
    """FakeDNS that yields control and records the peak number of in-flight queries."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.in_flight = 0
        self.peak = 0

    async def send(self, qname, rdtype, addresses, options):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.001)
            return await super().send(qname, rdtype, addresses, options)
        finally:
            self.in_flight -= 1


class TestFetchAll:
    """Fan-out/fan-in invariants."""

    @pytest.mark.parametrize("count", [0, 1, 20, 100])
    def test_one_result_per_target(self, count):
        targets = targets_for(count)
        fake = TrackingDNS(soa={str(t.address): 1000 + i for i, t in enumerate(targets)})
        fetcher = SerialFetcher(fake, QueryOptions(), concurrency=20)

        results = asyncio.run(fetcher.fetch_all(ZONE, targets))

        assert len(results) == count
        assert sorted((r.server_name, r.address) for r in results) == \
            sorted((t.server_name, t.address) for t in targets)
        assert len(fake.calls) == count

    @pytest.mark.parametrize("concurrency", [1, 5, 20])
    def test_concurrency_ceiling(self, concurrency):
        targets = targets_for(60)
        fake = TrackingDNS(soa={str(t.address): 1 for t in targets})
        fetcher = SerialFetcher(fake, QueryOptions(), concurrency=concurrency)

        asyncio.run(fetcher.fetch_all(ZONE, targets))

        assert 1 <= fake.peak <= concurrency

    def test_slow_consumer_receives_every_result(self):
        targets = targets_for(30)
        fake = TrackingDNS(soa={str(t.address): 1 for t in targets})
        fetcher = SerialFetcher(fake, QueryOptions(), concurrency=2)

        async def drain():
            received = []
            async for result in fetcher.stream(ZONE, targets):
                await asyncio.sleep(0.002)
                received.append(result)
            return received

        results = asyncio.run(drain())

        assert len(results) == 30
        assert fake.peak <= 2

    def test_failures_do_not_stop_fan_out(self):
        targets = targets_for(10)
        soa = {str(t.address): 5 for t in targets}
        soa[str(targets[3].address)] = TransportError("10.0.0.3: i/o timeout")
        fetcher = SerialFetcher(TrackingDNS(soa=soa), QueryOptions())

        results = asyncio.run(fetcher.fetch_all(ZONE, targets))

        assert len(results) == 10
        failed = [r for r in results if not r.ok]
        assert len(failed) == 1
        assert failed[0].address == targets[3].address
        assert isinstance(failed[0].error, TransportError)

    def test_queries_without_recursion(self):
        fake = FakeDNS(soa={"10.0.0.0": 1})
        fetcher = SerialFetcher(fake, QueryOptions(recursion_desired=True))

        asyncio.run(fetcher.fetch_all(ZONE, targets_for(1)))

        assert not fake.calls[0][3].recursion_desired

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            SerialFetcher(FakeDNS(), QueryOptions(), concurrency=0)


class TestFetchOne:
    """Per-target result contents."""

    def _fetch(self, behaviour, master_serial=None, nsid=None):
        target = QueryTarget("ns1.example.com.", ipaddress.ip_address("192.0.2.1"))
        fake = FakeDNS(soa={"192.0.2.1": behaviour}, nsid={"192.0.2.1": nsid} if nsid else None)
        fetcher = SerialFetcher(fake, QueryOptions(nsid=nsid is not None))
        return asyncio.run(fetcher.fetch_one(ZONE, target, master_serial))

    def test_serial(self):
        result = self._fetch(2024010100)

        assert result.ok
        assert result.serial == 2024010100
        assert result.delta is None
        assert result.elapsed >= 0

    def test_delta_from_master(self):
        result = self._fetch(2024010100, master_serial=2024010200)

        assert result.delta == 100

    def test_nsid(self):
        result = self._fetch(7, nsid=b"auth-1.fra")

        assert result.nsid == "auth-1.fra"

    def test_nxdomain(self):
        result = self._fetch(dns.rcode.NXDOMAIN)

        assert isinstance(result.error, ZoneNotFoundError)
        assert result.error_message == "NXDOMAIN: example.com.: name doesn't exist"

    def test_other_rcode(self):
        result = self._fetch(dns.rcode.SERVFAIL)

        assert isinstance(result.error, ProtocolError)
        assert not isinstance(result.error, ZoneNotFoundError)
        assert result.error_message == "response code: SERVFAIL"
        assert result.error.rcode == dns.rcode.SERVFAIL

    def test_missing_soa(self):
        result = self._fetch(None)

        assert isinstance(result.error, MissingRecordError)
        assert result.error_message == "SOA record not found at 192.0.2.1"

    def test_transport_error(self):
        result = self._fetch(TransportError("192.0.2.1: i/o timeout"))

        assert isinstance(result.error, TransportError)
        assert "i/o timeout" in result.error_message
        assert result.delta is None

    def test_unresolved_target(self):
        fake = FakeDNS()
        fetcher = SerialFetcher(fake, QueryOptions())
        target = QueryTarget("lame.example.net.", None, "lame.example.net. A lookup: NXDOMAIN")

        result = asyncio.run(fetcher.fetch_one(ZONE, target))

        assert isinstance(result.error, AddressResolutionError)
        assert result.error_message == "lame.example.net. A lookup: NXDOMAIN"
        assert fake.calls == []
