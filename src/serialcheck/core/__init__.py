"""Core SOA serial checking components."""

from .query import QueryOptions, QueryTransport, make_query
from .resolver import ServerResolver, load_resolvers
from .fetcher import SerialFetcher
from .ordering import canonical_domain_order, ip_version_order
from .consistency import ConsistencyEvaluator, DriftPolicy, Status
from .aggregator import ResultAggregator
from .checker import SerialChecker, run_check

__all__ = [
    "QueryOptions",
    "QueryTransport",
    "make_query",
    "ServerResolver",
    "load_resolvers",
    "SerialFetcher",
    "canonical_domain_order",
    "ip_version_order",
    "ConsistencyEvaluator",
    "DriftPolicy",
    "Status",
    "ResultAggregator",
    "SerialChecker",
    "run_check",
]
