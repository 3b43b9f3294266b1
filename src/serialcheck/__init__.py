"""DNS Serial Check - SOA serial number consistency checking for DNS zones."""

__version__ = "1.1.2"
__author__ = "DNS Serial Check Team"

from .core.checker import SerialChecker, run_check
from .core.config import CheckConfig
from .core.consistency import Status

__all__ = [
    "SerialChecker",
    "run_check",
    "CheckConfig",
    "Status",
]
