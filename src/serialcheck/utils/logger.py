# logger.py
import logging
import sys
import os

import colorlog

from .. import constants


def setup_logger(level: str = "WARNING", module_levels: dict | None = None):
    """
    Configures the root logger for DNS Serial Check.

    Log records go to stderr so that report output on stdout stays parseable.

    Args:
        level: Root logging level name (DEBUG, INFO, WARNING, ...)
        module_levels: Dictionary mapping module names to log levels
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    # Prevent duplicate handlers if this function is called multiple times
    if logger.handlers:
        _apply_module_levels(module_levels)
        return

    # Respect NO_COLOR env var (https://no-color.org/)
    use_colors = sys.stderr.isatty() and not os.environ.get("NO_COLOR")

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.NOTSET)

    if use_colors:
        formatter = colorlog.ColoredFormatter(
            '%(log_color)s[%(levelname).4s]%(reset)s %(cyan)s%(name)s%(reset)s: %(message)s',
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            },
            reset=True,
            style='%'
        )
    else:
        formatter = logging.Formatter('[%(levelname).4s] %(name)s: %(message)s')

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    _apply_module_levels(module_levels)


def _apply_module_levels(module_levels: dict | None):
    """Apply per-module logger levels from mapping or env var SERIALCHECK_LOG_LEVELS.

    module_levels format: {"serialcheck.core.fetcher": "DEBUG", "query": "INFO"}
    Env var example: SERIALCHECK_LOG_LEVELS="fetcher=DEBUG,query=INFO"
    """
    if module_levels is None:
        env = os.environ.get(constants.LOG_LEVELS_ENV)
        if env:
            module_levels = {}
            for pair in env.split(','):
                pair = pair.strip()
                if not pair or '=' not in pair:
                    continue
                name, lvl = pair.split('=', 1)
                module_levels[name.strip()] = lvl.strip().upper()

    if not module_levels:
        return

    for name, lvl_str in module_levels.items():
        lvl = getattr(logging, lvl_str.upper(), None)
        if not isinstance(lvl, int):
            logging.getLogger(__name__).warning(f"Ignoring invalid log level {lvl_str!r} for {name}")
            continue
        logging.getLogger(_normalize_module_name(name)).setLevel(lvl)


def _normalize_module_name(name: str) -> str:
    """Normalize provided module name with alias and auto-prefix.

    - If name is an alias, expand to full module path.
    - If name ends with '.*', treat it as base logger (strip the wildcard).
    - If name does not start with 'serialcheck.' and begins with a known top module, prefix it.
    """
    if name in constants.LOG_ALIAS_MAP:
        return constants.LOG_ALIAS_MAP[name]
    if name.endswith('.*'):
        name = name[:-2]
    if not name.startswith('serialcheck.'):
        first = name.split('.', 1)[0]
        if first in constants.KNOWN_TOP_MODULES:
            name = f'serialcheck.{name}'
    return name


def get_logger(name: str = None) -> logging.Logger:
    """Get a logger instance for the given name.

    Args:
        name: Logger name, typically __name__ from the calling module

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
