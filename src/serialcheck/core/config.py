"""Configuration management for DNS Serial Check."""

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .consistency import DriftPolicy
from .models import parse_address
from .query import QueryOptions
from .resolver import check_name, parse_additional
from .. import constants
from ..exceptions import ConfigError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CheckConfig(BaseModel):
    """Everything one checking pass needs."""
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    # Zone and servers
    zone: str = Field(..., min_length=1, description="Zone to check")
    master: Optional[str] = Field(default=None, description="Master server name or address")
    additional: List[str] = Field(default_factory=list, description="Additional nameservers to query")
    no_query_ns: bool = Field(default=False, description="Don't query the zone's advertised nameservers")

    # Query behaviour
    concurrency: int = Field(default=constants.DEFAULT_CONCURRENCY, ge=1, le=1000,
                             description="Maximum number of queries in flight")
    timeout: float = Field(default=constants.DEFAULT_TIMEOUT, gt=0.0, le=300.0,
                           description="Query timeout in seconds")
    retries: int = Field(default=constants.DEFAULT_RETRIES, ge=1, description="UDP query attempts per server")
    allowed_drift: int = Field(default=constants.DEFAULT_SERIAL_DRIFT, ge=0,
                               description="Allowed SOA serial number drift")
    v4_only: bool = Field(default=False, description="Use IPv4 only")
    v6_only: bool = Field(default=False, description="Use IPv6 only")
    tcp: bool = Field(default=False, description="Use TCP for queries")
    nsid: bool = Field(default=False, description="Request and print EDNS0 NSID")
    bufsize: int = Field(default=constants.DEFAULT_BUFSIZE, ge=512, le=65535,
                         description="EDNS0 UDP payload size")
    port: int = Field(default=constants.DEFAULT_PORT, ge=1, le=65535, description="Nameserver port")

    # Output
    sort_responses: bool = Field(default=False, description="Sort responses by name and IP version")
    json_output: bool = Field(default=False, description="Print a JSON report")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level"
    )

    # Recursive resolvers
    resolv_conf: Optional[str] = Field(default=None, description="Alternate resolv.conf file")
    resolvers: List[str] = Field(default_factory=list, description="Recursive resolver addresses")

    @field_validator('zone')
    @classmethod
    def validate_zone(cls, v: str) -> str:
        """Normalize the zone to a lower-case FQDN."""
        v = v.strip().lower()
        if not v or v == '.':
            return '.'
        return check_name(v)

    @field_validator('master')
    @classmethod
    def validate_master(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        address = parse_address(v)
        return str(address) if address is not None else check_name(v)

    @field_validator('additional', mode='before')
    @classmethod
    def validate_additional(cls, v: Any) -> List[str]:
        """Accept a list or a comma-separated string."""
        if v is None:
            return []
        if isinstance(v, (str, list, tuple)):
            return parse_additional(v)
        raise ValueError("additional must be a list or a comma-separated string")

    @field_validator('resolvers')
    @classmethod
    def validate_resolvers(cls, v: List[str]) -> List[str]:
        resolvers = []
        for server in v:
            address = parse_address(server)
            if address is None:
                raise ValueError(f"Invalid resolver address: {server}")
            resolvers.append(str(address))
        return resolvers

    @model_validator(mode='after')
    def validate_combinations(self) -> 'CheckConfig':
        if self.v4_only and self.v6_only:
            raise ValueError("Cannot specify both IPv4-only and IPv6-only")
        if self.no_query_ns and not self.additional:
            raise ValueError("Not querying advertised nameservers requires additional nameservers")
        return self

    @property
    def buffered(self) -> bool:
        """Whether output waits for every result (sorted or JSON)."""
        return self.sort_responses or self.json_output

    def query_options(self, recursion_desired: bool = False) -> QueryOptions:
        """Transport options derived from this configuration."""
        return QueryOptions(
            recursion_desired=recursion_desired,
            bufsize=self.bufsize,
            nsid=self.nsid,
            timeout=self.timeout,
            retries=self.retries,
            tcp=self.tcp,
            port=self.port,
        )

    def drift_policy(self) -> DriftPolicy:
        return DriftPolicy(self.allowed_drift)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CheckConfig':
        """Create configuration from dictionary with validation."""
        if not isinstance(data, dict):
            raise ConfigError("Configuration data must be a dictionary")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Configuration validation failed: {e}")
            raise ConfigError(f"Configuration validation failed: {e}") from e

    @classmethod
    def from_file(cls, config_path: str, **overrides: Any) -> 'CheckConfig':
        """Load configuration from a YAML file; ``overrides`` take precedence."""
        logger.info(f"Loading configuration from: {config_path}")
        data = read_config_file(config_path)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)

    def save_to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        path = Path(config_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False, indent=2, sort_keys=False)
        logger.info(f"Configuration saved to: {path}")


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Read a YAML configuration file into a dictionary."""
    path = Path(os.path.expanduser(str(config_path)))
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML format in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: configuration must be a mapping")
    logger.debug(f"Loaded raw configuration data: {data}")
    return data


def find_config_file() -> Optional[str]:
    """Return the first existing file among the default config locations."""
    for candidate in constants.DEFAULT_CONFIG_PATHS:
        path = Path(os.path.expanduser(candidate))
        if path.exists():
            return str(path)
    return None


def load_config(config_path: Optional[str] = None, **overrides: Any) -> CheckConfig:
    """Build a configuration from a file (explicit or default location) plus overrides."""
    if config_path is None:
        config_path = find_config_file()
    if config_path:
        return CheckConfig.from_file(config_path, **overrides)
    return CheckConfig.from_dict({k: v for k, v in overrides.items() if v is not None})
