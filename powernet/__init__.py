"""
Power Network Load Balancing

This package assigns houses to capacity-bounded generators and searches for
an assignment that balances generator load while penalizing overload.

Key Features:
- Name-scoped houses and generators with upsert semantics
- Cost oracle: dispersion + lambda * surcharge
- Structural validation of a network
- Multi-start local search (greedy start + random restarts, hill-climbing)
- Text-format reader/writer for networks

Modules:
- data_models: Consumption levels, House, Generator, RestartRecord
- network: Network aggregate, cost formulas, validation
- optimizer: Multi-start stochastic local search
- io_utils: Network text format, restart log CSV, metadata YAML
- config_loader: YAML run configuration
- cli: Batch run driven by a YAML run configuration
"""

__version__ = "0.1.0"
__author__ = "Power Network Team"

from .data_models import ConsumptionLevel, Generator, House, RestartRecord
from .network import (
    Network,
    NetworkError,
    UnknownEntityError,
    NotConnectedToExpectedError,
    NotConnectedError,
    WrongGeneratorError,
    IssueKind,
    ValidationIssue,
)
from .optimizer import NetworkOptimizer, optimize_multi_start
from .io_utils import ParseError, read_network, write_network, parse_network, format_network

__all__ = [
    "ConsumptionLevel",
    "Generator",
    "House",
    "RestartRecord",
    "Network",
    "NetworkError",
    "UnknownEntityError",
    "NotConnectedToExpectedError",
    "NotConnectedError",
    "WrongGeneratorError",
    "IssueKind",
    "ValidationIssue",
    "NetworkOptimizer",
    "optimize_multi_start",
    "ParseError",
    "read_network",
    "write_network",
    "parse_network",
    "format_network",
]
