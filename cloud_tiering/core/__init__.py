"""Core simulation components."""

from .resources import Fleet, HostSpec, VmSpec, TierLayout, build_fleet
from .workload import (
    WorkloadRecord,
    UtilizationModel,
    CloudletSpec,
    CloudletStatus,
    FinishedCloudlet,
    WorkloadClassifier,
    CustomerClassifier,
    TransactionClassifier,
    TransactionType,
    WorkloadGenerator,
)
from .events import SimulationEvent, EventType, EventBus
from .simulator import CloudSimulator

__all__ = [
    "Fleet",
    "HostSpec",
    "VmSpec",
    "TierLayout",
    "build_fleet",
    "WorkloadRecord",
    "UtilizationModel",
    "CloudletSpec",
    "CloudletStatus",
    "FinishedCloudlet",
    "WorkloadClassifier",
    "CustomerClassifier",
    "TransactionClassifier",
    "TransactionType",
    "WorkloadGenerator",
    "SimulationEvent",
    "EventType",
    "EventBus",
    "CloudSimulator",
]
