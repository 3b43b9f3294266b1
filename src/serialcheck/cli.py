"""Command-line interface for DNS Serial Check."""

import sys
from typing import Optional, Sequence

import click

from . import __version__, constants
from .core.checker import run_check
from .core.config import load_config
from .core.consistency import Status
from .exceptions import ConfigError
from .report import JsonReporter, TextReporter
from .utils.logger import setup_logger, get_logger

logger = get_logger(__name__)


def setup_logging(level: str, module_levels: dict = None) -> None:
    """Setup logging configuration using our custom logger."""
    setup_logger(level=level, module_levels=module_levels)
    logger.debug(f"Logging initialized with level: {level}")


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument('zone')
@click.option('-4', 'v4_only', is_flag=True, help='Use IPv4 transport only')
@click.option('-6', 'v6_only', is_flag=True, help='Use IPv6 transport only')
@click.option('--tcp', '-c', is_flag=True, help='Use TCP for queries (default: UDP with TCP on truncation)')
@click.option('--sort', '-s', 'sort_responses', is_flag=True,
              help='Print responses sorted by domain name and IP version')
@click.option('--json', '-j', 'json_output', is_flag=True, help='Print output as JSON')
@click.option('--master', '-m', help='Master server name/address to compare serial numbers with')
@click.option('--additional', '-a', help='Additional nameserver names/addresses to query: ns1,ns2,..')
@click.option('--no-query-ns', '-n', is_flag=True, help="Don't query advertised nameservers for the zone")
@click.option('--drift', '-d', 'allowed_drift', type=int,
              help=f'Allowed SOA serial number drift (default {constants.DEFAULT_SERIAL_DRIFT})')
@click.option('--timeout', '-t', type=float,
              help=f'Query timeout value in seconds (default {constants.DEFAULT_TIMEOUT:g})')
@click.option('--retries', '-r', type=int,
              help=f'Maximum # SOA query retries for each server (default {constants.DEFAULT_RETRIES})')
@click.option('--bufsize', '-b', type=int,
              help=f'EDNS0 UDP payload size (default {constants.DEFAULT_BUFSIZE})')
@click.option('--nsid', is_flag=True, help='Send NSID EDNS option and print NSID in responses')
@click.option('--parallel', '-p', 'concurrency', type=int,
              help=f'Maximum number of parallel queries (default {constants.DEFAULT_CONCURRENCY})')
@click.option('--port', type=int, help=f'Nameserver port (default {constants.DEFAULT_PORT})')
@click.option('--resolv-conf', type=click.Path(), help='Use alternate resolv.conf file')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Configuration file path')
@click.option('--log-level', '-l', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
              help='Logging level')
@click.version_option(__version__, '--version', '-v', prog_name='serialcheck')
@click.pass_context
def cli(ctx: click.Context, zone: str, v4_only: bool, v6_only: bool, tcp: bool,
        sort_responses: bool, json_output: bool, master: Optional[str], additional: Optional[str],
        no_query_ns: bool, allowed_drift: Optional[int], timeout: Optional[float],
        retries: Optional[int], bufsize: Optional[int], nsid: bool, concurrency: Optional[int],
        port: Optional[int], resolv_conf: Optional[str], config_path: Optional[str],
        log_level: Optional[str]) -> None:
    """Check SOA serial numbers of all nameservers of ZONE."""
    setup_logging((log_level or 'WARNING').upper())

    # Command line values override the configuration file; unset flags don't
    overrides = {
        'zone': zone,
        'master': master,
        'additional': additional,
        'allowed_drift': allowed_drift,
        'timeout': timeout,
        'retries': retries,
        'bufsize': bufsize,
        'concurrency': concurrency,
        'port': port,
        'resolv_conf': resolv_conf,
        'log_level': log_level.upper() if log_level else None,
    }
    flags = {
        'v4_only': v4_only,
        'v6_only': v6_only,
        'tcp': tcp,
        'sort_responses': sort_responses,
        'json_output': json_output,
        'no_query_ns': no_query_ns,
        'nsid': nsid,
    }
    overrides.update({name: True for name, value in flags.items() if value})

    try:
        config = load_config(config_path, **overrides)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo(ctx.get_usage(), err=True)
        ctx.exit(int(Status.INVOCATION_ERROR))

    setup_logging(config.log_level)

    if config.json_output:
        reporter = JsonReporter()
    else:
        reporter = TextReporter(show_nsid=config.nsid, show_delta=config.master is not None)

    report = run_check(config, reporter=reporter)
    ctx.exit(int(report.status))


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Console entry point; usage errors exit with the invocation error status."""
    try:
        rv = cli.main(args=argv, prog_name='serialcheck', standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(int(Status.INVOCATION_ERROR))
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(int(Status.INVOCATION_ERROR))
    sys.exit(rv or 0)


if __name__ == '__main__':
    main()
