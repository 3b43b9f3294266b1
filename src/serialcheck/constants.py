"""Constants for DNS Serial Check."""

# --- Log and Debug ---
# Short aliases for module names to keep CLI/env concise
LOG_ALIAS_MAP = {
    "core": "serialcheck.core",
    "query": "serialcheck.core.query",
    "transport": "serialcheck.core.query",
    "resolver": "serialcheck.core.resolver",
    "fetcher": "serialcheck.core.fetcher",
    "fetch": "serialcheck.core.fetcher",
    "checker": "serialcheck.core.checker",
    "config": "serialcheck.core.config",
    "conf": "serialcheck.core.config",
    "report": "serialcheck.report",
    "cli": "serialcheck.cli",
    "utils": "serialcheck.utils",
}

# Top-level modules within serialcheck for auto-prefixing
KNOWN_TOP_MODULES = {
    "core",
    "utils",
    "exceptions",
    "report",
    "cli",
}

LOG_LEVELS_ENV = "SERIALCHECK_LOG_LEVELS"

# --- Query defaults ---
DEFAULT_TIMEOUT = 3.0
DEFAULT_RETRIES = 3
DEFAULT_PORT = 53
DEFAULT_BUFSIZE = 1400
DEFAULT_SERIAL_DRIFT = 0
DEFAULT_CONCURRENCY = 20

# --- Resolver configuration ---
DEFAULT_RESOLV_CONF = "/etc/resolv.conf"

# --- Status descriptions, indexed by exit status ---
STATUS_DESCRIPTIONS = {
    0: "",
    1: "serial mismatch or exceeds drift",
    2: "server issues",
    3: "master server error",
    4: "program invocation error",
}

# --- Output ---
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S%Z"
MASTER_TAG = "MASTER"

# Config file locations searched when none is given
DEFAULT_CONFIG_PATHS = [
    "serialcheck.yaml",
    "~/.serialcheck.yaml",
    "/usr/local/etc/serialcheck.yaml",
]
