"""Exceptions module for DNS Serial Check."""


class SerialCheckException(Exception):
    """Base exception class for DNS Serial Check."""


class ConfigError(SerialCheckException):
    """Invalid invocation or configuration."""


class ResolverConfigError(SerialCheckException):
    """The recursive resolver configuration could not be loaded."""


class NameResolutionError(SerialCheckException):
    """The zone's NS set could not be obtained."""


class AddressResolutionError(SerialCheckException):
    """A server name did not resolve to any address."""


class TransportError(SerialCheckException):
    """No response was received (timeout or network error)."""


class ProtocolError(SerialCheckException):
    """A response carried a non-success response code."""

    def __init__(self, message: str, rcode: int | None = None):
        super().__init__(message)
        self.rcode = rcode


class ZoneNotFoundError(ProtocolError):
    """A response carried NXDOMAIN for the zone."""


class MissingRecordError(SerialCheckException):
    """A successful response had no SOA record in the answer section."""


class MasterError(SerialCheckException):
    """The master server could not be resolved or queried."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result
