"""Tiered cloudlet allocation and utilization sampling simulator."""

__version__ = "0.1.0"
__author__ = "Cloud Project Team"

from loguru import logger

# Configure loguru for the entire package
logger.add(
    "logs/cloud_tiering_{time:YYYY-MM-DD}.log",
    rotation="1 day",
    retention="7 days",
    level="INFO",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
)

from .exceptions import ConfigurationError
from .core.resources import Fleet, HostSpec, VmSpec, TierLayout, build_fleet
from .core.workload import (
    CloudletSpec,
    UtilizationModel,
    WorkloadRecord,
    CustomerClassifier,
    TransactionClassifier,
    WorkloadGenerator,
)
from .scheduling.tiers import TierAssignmentPolicy, TierRule
from .evaluation.sampler import SampleStore, UtilizationSampler, sample_utilization
from .evaluation.metrics import ResultsAggregator, CloudletSummary
from .scenarios import get_scenario, run_scenario

__all__ = [
    "ConfigurationError",
    "Fleet",
    "HostSpec",
    "VmSpec",
    "TierLayout",
    "build_fleet",
    "CloudletSpec",
    "UtilizationModel",
    "WorkloadRecord",
    "CustomerClassifier",
    "TransactionClassifier",
    "WorkloadGenerator",
    "TierAssignmentPolicy",
    "TierRule",
    "SampleStore",
    "UtilizationSampler",
    "sample_utilization",
    "ResultsAggregator",
    "CloudletSummary",
    "get_scenario",
    "run_scenario",
]
