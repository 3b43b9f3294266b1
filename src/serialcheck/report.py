"""Text and JSON rendering of check results."""

import json
from typing import Callable, Optional

import click

from . import constants
from .core.models import CheckReport, MasterResult, SerialResult


class TextReporter:
    """Prints one line per server as results become available."""

    def __init__(self, show_nsid: bool = False, show_delta: bool = False,
                 echo: Callable[[str], None] = click.echo):
        self.show_nsid = show_nsid
        self.show_delta = show_delta
        self.echo = echo

    def begin(self, zone: str, timestamp: str) -> None:
        self.echo(f"## {zone} {timestamp}")

    def master(self, result: MasterResult) -> None:
        line = f"{result.serial:15d} [{constants.MASTER_TAG:>8s}] {result.server_name} {result.address} {result.resptime_ms:.2f}ms"
        self.echo(self._with_nsid(line, result))

    def result(self, result: SerialResult) -> None:
        self.echo(format_result(result, self.show_delta, self.show_nsid))

    def finish(self, report: CheckReport) -> None:
        if report.status and report.error:
            self.echo(f"Error: {report.error}")

    def _with_nsid(self, line: str, result: SerialResult) -> str:
        if self.show_nsid and result.nsid:
            return f"{line} {result.nsid}"
        return line


def format_result(result: SerialResult, show_delta: bool = False, show_nsid: bool = False) -> str:
    """Render a single server's result line."""
    if not result.ok:
        return f"Error: {result.server_name} {result.address}: couldn't obtain serial: {result.error_message}"
    if show_delta and result.delta is not None:
        line = f"{result.serial:15d} [{result.delta:8d}] {result.server_name} {result.address} {result.resptime_ms:.2f}ms"
    else:
        line = f"{result.serial:15d} {result.server_name} {result.address} {result.resptime_ms:.2f}ms"
    if show_nsid and result.nsid:
        line = f"{line} {result.nsid}"
    return line


class JsonReporter:
    """Prints the complete report as one JSON object when the check finishes."""

    def __init__(self, echo: Callable[[str], None] = click.echo, indent: Optional[int] = None):
        self.echo = echo
        self.indent = indent

    def begin(self, zone: str, timestamp: str) -> None:
        pass

    def master(self, result: MasterResult) -> None:
        pass

    def result(self, result: SerialResult) -> None:
        pass

    def finish(self, report: CheckReport) -> None:
        self.echo(json.dumps(report.to_dict(), indent=self.indent))
