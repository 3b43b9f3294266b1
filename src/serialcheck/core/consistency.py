"""Serial drift evaluation and the run's status codes."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence

from .. import constants
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Status(IntEnum):
    """Outcome of a checking run; the value is the process exit status."""

    OK = 0
    DRIFT = 1
    SERVER_ERROR = 2
    MASTER_ERROR = 3
    INVOCATION_ERROR = 4

    @property
    def description(self) -> str:
        return constants.STATUS_DESCRIPTIONS[self.value]


@dataclass(frozen=True)
class DriftPolicy:
    """How far apart serials may be before the zone counts as drifted."""

    allowed_delta: int = constants.DEFAULT_SERIAL_DRIFT

    def __post_init__(self):
        if self.allowed_delta < 0:
            raise ValueError(f"allowed_delta must be non-negative, got {self.allowed_delta}")


def serial_range(serials: Sequence[int]) -> int:
    """Plain difference between the highest and lowest serial.

    Serial number arithmetic (RFC 1982) is not applied; serials on either side
    of the 32-bit wraparound produce a large range.
    """
    return max(serials) - min(serials)


def serial_delta(master_serial: int, serial: int) -> int:
    """Signed ``master - serial`` difference, without wraparound handling."""
    return int(master_serial) - int(serial)


class ConsistencyEvaluator:
    """Derives the final Status from the collected serials."""

    def __init__(self, policy: DriftPolicy = DriftPolicy()):
        self.policy = policy

    def evaluate(self, serials: Sequence[int], failures: int = 0) -> Status:
        """Evaluate serials (master first, if any) and the count of failed queries."""
        if not serials:
            logger.warning("No SOA serials obtained")
            return Status.SERVER_ERROR
        if failures:
            return Status.SERVER_ERROR
        spread = serial_range(serials)
        if spread > self.policy.allowed_delta:
            logger.info(f"Serial range {spread} exceeds allowed drift {self.policy.allowed_delta}")
            return Status.DRIFT
        return Status.OK


def evaluate(serials: Sequence[int], allowed_delta: int = 0, failures: int = 0) -> Status:
    """Shortcut for ``ConsistencyEvaluator(DriftPolicy(allowed_delta)).evaluate(...)``."""
    return ConsistencyEvaluator(DriftPolicy(allowed_delta)).evaluate(serials, failures)
