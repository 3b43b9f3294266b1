"""One complete SOA serial consistency pass over a zone."""

import asyncio
import time
from typing import List, Optional, Protocol

from .aggregator import ResultAggregator
from .config import CheckConfig
from .consistency import ConsistencyEvaluator, Status
from .fetcher import SerialFetcher
from .models import CheckReport, MasterResult, QueryTarget, SerialResult
from .query import QueryTransport
from .resolver import ServerResolver, load_resolvers
from .. import constants
from ..exceptions import MasterError, NameResolutionError, ResolverConfigError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Reporter(Protocol):
    """Receives results as the check progresses."""

    def begin(self, zone: str, timestamp: str) -> None: ...

    def master(self, result: MasterResult) -> None: ...

    def result(self, result: SerialResult) -> None: ...

    def finish(self, report: CheckReport) -> None: ...


class SerialChecker:
    """Runs resolver, master query, fan-out and evaluation for one zone."""

    def __init__(self, config: CheckConfig, transport: Optional[QueryTransport] = None,
                 reporter: Optional[Reporter] = None):
        self.config = config
        self.transport = transport or QueryTransport()
        self.reporter = reporter
        self.fetcher = SerialFetcher(self.transport, config.query_options(), config.concurrency)
        self.evaluator = ConsistencyEvaluator(config.drift_policy())

    def _resolver(self) -> ServerResolver:
        resolvers = self.config.resolvers or load_resolvers(self.config.resolv_conf)
        return ServerResolver(self.transport, resolvers, self.config.query_options(True),
                              v4_only=self.config.v4_only, v6_only=self.config.v6_only)

    def _finish(self, report: CheckReport, status: Status, error: Optional[str] = None) -> CheckReport:
        report.status = status
        report.error = error or status.description or None
        if status != Status.OK:
            logger.info(f"{report.zone}: status {status.value} ({report.error})")
        if self.reporter is not None:
            self.reporter.finish(report)
        return report

    async def run(self) -> CheckReport:
        """Check the zone and return the report; fatal errors end up in the report."""
        cfg = self.config
        report = CheckReport(zone=cfg.zone, timestamp=time.strftime(constants.TIMESTAMP_FORMAT))

        try:
            resolver = self._resolver()
            targets: List[QueryTarget] = await resolver.resolve_targets(
                cfg.zone, cfg.additional, skip_advertised=cfg.no_query_ns)
        except ResolverConfigError as e:
            return self._finish(report, Status.SERVER_ERROR, f"Error getting resolver: {e}")
        except NameResolutionError as e:
            return self._finish(report, Status.SERVER_ERROR, str(e))
        logger.info(f"{cfg.zone}: {len(targets)} server addresses to query")

        if self.reporter is not None:
            self.reporter.begin(report.zone, report.timestamp)

        serials: List[int] = []
        master_serial: Optional[int] = None
        if cfg.master:
            try:
                report.master = await self._check_master(resolver)
            except MasterError as e:
                report.master = e.result or MasterResult(cfg.master, None, error=e)
                return self._finish(report, Status.MASTER_ERROR, str(e))
            master_serial = report.master.serial
            serials.append(master_serial)
            if self.reporter is not None:
                self.reporter.master(report.master)

        relay = None
        if self.reporter is not None and not cfg.buffered:
            relay = self.reporter.result
        aggregator = ResultAggregator(on_result=relay)
        async for result in self.fetcher.stream(cfg.zone, targets, master_serial):
            aggregator.add(result)

        if cfg.buffered:
            report.responses = aggregator.ordered()
            if self.reporter is not None:
                for result in report.responses:
                    self.reporter.result(result)
        else:
            report.responses = aggregator.arrival_order()

        serials.extend(aggregator.serials)
        if not serials:
            return self._finish(report, Status.SERVER_ERROR, "no SOA serials obtained")
        return self._finish(report, self.evaluator.evaluate(serials, aggregator.failures))

    async def _check_master(self, resolver: ServerResolver) -> MasterResult:
        """Resolve and query the master before any other server.

        Raises:
            MasterError: the master could not be resolved or did not return a serial.
        """
        master = self.config.master
        address = await resolver.resolve_master(master)
        result = await self.fetcher.fetch_master(self.config.zone, master, address)
        if not result.ok:
            raise MasterError(f"{master} {address}: couldn't obtain serial: {result.error_message}",
                              result) from result.error
        logger.info(f"Master {master} {address}: serial {result.serial}")
        return result


def run_check(config: CheckConfig, transport: Optional[QueryTransport] = None,
              reporter: Optional[Reporter] = None) -> CheckReport:
    """Run a check synchronously."""
    return asyncio.run(SerialChecker(config, transport, reporter).run())
