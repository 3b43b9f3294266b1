"""Bounded-parallel SOA serial fetching.

The dispatcher acquires a concurrency slot before it launches each task, so at
most ``concurrency`` queries are in flight and launching is throttled rather
than queued. Every task puts exactly one result on a queue bounded by the same
limit; the queue is closed with a sentinel once all tasks have finished.
"""

import asyncio
import time
from typing import AsyncIterator, Iterable, List, Optional, Tuple

import dns.exception
import dns.rcode
import dns.rdatatype

from .consistency import serial_delta
from .models import IPAddress, MasterResult, QueryTarget, SerialResult
from .query import QueryOptions, QueryTransport, extract_nsid
from .. import constants
from ..exceptions import (
    AddressResolutionError,
    MissingRecordError,
    ProtocolError,
    SerialCheckException,
    TransportError,
    ZoneNotFoundError,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

_DONE = object()


class SerialFetcher:
    """Queries SOA serials from many servers concurrently."""

    def __init__(self, transport: QueryTransport, options: QueryOptions,
                 concurrency: int = constants.DEFAULT_CONCURRENCY):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.transport = transport
        self.options = options.with_recursion(False)
        self.concurrency = concurrency

    async def get_serial(self, zone: str, address: IPAddress) -> Tuple[int, float, Optional[str]]:
        """Query one address for the zone's SOA serial.

        Returns:
            (serial, elapsed seconds, nsid)

        Raises:
            TransportError, ZoneNotFoundError, ProtocolError, MissingRecordError
        """
        started = time.perf_counter()
        response = await self.transport.send(zone, dns.rdatatype.SOA, [address], self.options)
        elapsed = time.perf_counter() - started

        rcode = response.rcode()
        if rcode == dns.rcode.NXDOMAIN:
            raise ZoneNotFoundError(f"NXDOMAIN: {zone}: name doesn't exist", rcode)
        if rcode != dns.rcode.NOERROR:
            raise ProtocolError(f"response code: {dns.rcode.to_text(rcode)}", rcode)

        nsid = extract_nsid(response)
        for rrset in response.answer:
            if rrset.rdtype == dns.rdatatype.SOA:
                return rrset[0].serial, elapsed, nsid
        raise MissingRecordError(f"SOA record not found at {address}")

    async def fetch_one(self, zone: str, target: QueryTarget,
                        master_serial: Optional[int] = None) -> SerialResult:
        """Query one target; failures are captured on the result, never raised."""
        if target.address is None:
            cause = target.cause or f"{target.server_name}: no addresses found"
            return SerialResult(target.server_name, None, error=AddressResolutionError(cause))

        started = time.perf_counter()
        try:
            serial, elapsed, nsid = await self.get_serial(zone, target.address)
        except (SerialCheckException, dns.exception.DNSException) as e:
            error = e if isinstance(e, SerialCheckException) else TransportError(str(e))
            logger.debug(f"{target.server_name} {target.address}: {error}")
            return SerialResult(target.server_name, target.address,
                                elapsed=time.perf_counter() - started, error=error)

        delta = serial_delta(master_serial, serial) if master_serial is not None else None
        logger.debug(f"{target.server_name} {target.address}: serial {serial} in {elapsed * 1000:.2f}ms")
        return SerialResult(target.server_name, target.address, serial=serial,
                            elapsed=elapsed, nsid=nsid, delta=delta)

    async def fetch_master(self, zone: str, name: str, address: IPAddress) -> MasterResult:
        """Query the master; failures are captured on the result."""
        result = await self.fetch_one(zone, QueryTarget(name, address))
        return MasterResult(result.server_name, result.address, serial=result.serial,
                            elapsed=result.elapsed, nsid=result.nsid, error=result.error)

    async def stream(self, zone: str, targets: Iterable[QueryTarget],
                     master_serial: Optional[int] = None) -> AsyncIterator[SerialResult]:
        """Yield one result per target, in completion order."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.concurrency)
        slots = asyncio.Semaphore(self.concurrency)

        async def worker(target: QueryTarget) -> None:
            try:
                result = await self.fetch_one(zone, target, master_serial)
            finally:
                slots.release()
            await queue.put(result)

        async def dispatch() -> None:
            tasks = []
            try:
                for target in targets:
                    await slots.acquire()
                    tasks.append(asyncio.create_task(worker(target)))
                logger.debug(f"Dispatched {len(tasks)} SOA queries for {zone}")
                await asyncio.gather(*tasks)
            finally:
                await queue.put(_DONE)

        dispatcher = asyncio.create_task(dispatch())
        while True:
            item = await queue.get()
            if item is _DONE:
                break
            yield item
        await dispatcher

    async def fetch_all(self, zone: str, targets: Iterable[QueryTarget],
                        master_serial: Optional[int] = None) -> List[SerialResult]:
        """Collect every result; order is not significant."""
        return [result async for result in self.stream(zone, targets, master_serial)]
