"""Collects per-server results as they arrive from the fetcher."""

from collections import defaultdict
from typing import Callable, Dict, List, Optional

from .models import SerialResult
from .ordering import sort_by_ip_version, sort_domains
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ResultAggregator:
    """Groups results by server name.

    Only the single task draining the fetcher mutates the grouping. When an
    ``on_result`` callback is given every result is also relayed to it
    immediately, in arrival order.
    """

    def __init__(self, on_result: Optional[Callable[[SerialResult], None]] = None):
        self.on_result = on_result
        self.by_name: Dict[str, List[SerialResult]] = defaultdict(list)
        self.serials: List[int] = []
        self.failures = 0

    def add(self, result: SerialResult) -> None:
        """Record one result."""
        self.by_name[result.server_name].append(result)
        if result.ok:
            self.serials.append(result.serial)
        else:
            self.failures += 1
            logger.debug(f"{result.server_name} {result.address}: couldn't obtain serial: {result.error_message}")
        if self.on_result is not None:
            self.on_result(result)

    def arrival_order(self) -> List[SerialResult]:
        """All results, grouped by name in first-seen order."""
        return [r for results in self.by_name.values() for r in results]

    def ordered(self) -> List[SerialResult]:
        """All results, names in canonical order, addresses IPv6 first."""
        ordered: List[SerialResult] = []
        for name in sort_domains(self.by_name):
            ordered.extend(sort_by_ip_version(self.by_name[name]))
        return ordered
