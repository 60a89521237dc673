"""Utilization sampling and results aggregation."""

from .sampler import (
    OwnerKind,
    UtilizationSample,
    ResourceView,
    EngineSnapshot,
    SampleStore,
    UtilizationSampler,
    sample_utilization,
    should_sample,
)
from .metrics import ResultsAggregator, CloudletSummary, UtilizationAverage

__all__ = [
    "OwnerKind",
    "UtilizationSample",
    "ResourceView",
    "EngineSnapshot",
    "SampleStore",
    "UtilizationSampler",
    "sample_utilization",
    "should_sample",
    "ResultsAggregator",
    "CloudletSummary",
    "UtilizationAverage",
]
