"""Periodic per-host and per-VM utilization sampling."""

import math
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
import pandas as pd
from loguru import logger

CADENCE_TOLERANCE = 1e-9


class OwnerKind(Enum):
    """Kind of resource owner a sample sequence belongs to."""
    HOST = "host"
    VM = "vm"


@dataclass(frozen=True)
class UtilizationSample:
    """One observation, percentages on a 0-100 scale."""
    owner_id: int
    timestamp: float
    cpu: float
    ram: float
    bw: float


@dataclass(frozen=True)
class ResourceView:
    """Instantaneous state of a host or VM as reported by the engine."""
    owner_id: int
    cpu: float  # fraction 0-1
    ram: float
    bw: float
    is_created: bool = True


@dataclass(frozen=True)
class EngineSnapshot:
    """What the engine exposes to the sampler on a clock tick."""
    time: float
    is_running: bool
    hosts: List[ResourceView]
    vms: List[ResourceView]


class SampleStore:
    """Time-ordered sample sequences, one per host id and per VM id.

    Written only by the sampler during a run and read by the aggregator
    afterwards.
    """

    def __init__(self) -> None:
        self._series: Dict[OwnerKind, Dict[int, List[UtilizationSample]]] = {
            OwnerKind.HOST: {},
            OwnerKind.VM: {},
        }
        self._registered = False

    def register(self, kind: OwnerKind, owner_ids: Iterable[int]) -> None:
        """Create empty sequences for owners known up front."""
        for owner_id in owner_ids:
            self._series[kind].setdefault(owner_id, [])
        self._registered = True

    def append(self, kind: OwnerKind, sample: UtilizationSample) -> None:
        series = self._series[kind]
        if sample.owner_id not in series:
            if self._registered:
                logger.warning(f"No sample sequence for {kind.value} {sample.owner_id}, creating one")
            series[sample.owner_id] = []
        series[sample.owner_id].append(sample)

    def series(self, kind: OwnerKind, owner_id: int) -> List[UtilizationSample]:
        """Samples of one owner; empty if it was never observed."""
        return list(self._series[kind].get(owner_id, []))

    def owners(self, kind: OwnerKind) -> List[int]:
        return sorted(self._series[kind])

    def __len__(self) -> int:
        return sum(len(seq) for owners in self._series.values() for seq in owners.values())

    def to_frame(self) -> pd.DataFrame:
        """All samples as a long-format DataFrame."""
        rows: List[Dict[str, Any]] = []
        for kind, owners in self._series.items():
            for samples in owners.values():
                for sample in samples:
                    row = asdict(sample)
                    row['kind'] = kind.value
                    rows.append(row)
        columns = ['kind', 'owner_id', 'timestamp', 'cpu', 'ram', 'bw']
        return pd.DataFrame(rows, columns=columns)


def should_sample(current_time: float, interval: float) -> bool:
    """Sampling cadence: only on multiples of the interval.

    Tick times built from fractional intervals carry rounding error, so the
    remainder may land just above 0 or just below ``interval``.
    """
    remainder = current_time % interval
    return (math.isclose(remainder, 0.0, abs_tol=CADENCE_TOLERANCE) or
            math.isclose(remainder, interval, abs_tol=CADENCE_TOLERANCE))


def _to_sample(view: ResourceView, timestamp: float) -> UtilizationSample:
    return UtilizationSample(
        owner_id=view.owner_id,
        timestamp=timestamp,
        cpu=view.cpu * 100,
        ram=view.ram * 100,
        bw=view.bw * 100,
    )


def sample_utilization(
    current_time: float,
    snapshot: EngineSnapshot,
    store: SampleStore,
    interval: float,
) -> int:
    """Record one sample per host and per created VM on qualifying ticks.

    VMs the engine has not provisioned yet are skipped for this tick.

    Returns:
        Number of samples appended
    """
    if not should_sample(current_time, interval) or not snapshot.is_running:
        return 0

    appended = 0
    for host in snapshot.hosts:
        store.append(OwnerKind.HOST, _to_sample(host, current_time))
        appended += 1

    for vm in snapshot.vms:
        if not vm.is_created:
            continue
        store.append(OwnerKind.VM, _to_sample(vm, current_time))
        appended += 1

    logger.debug(f"Sampled {appended} owners at {current_time:.1f}s")
    return appended


class UtilizationSampler:
    """Clock-tick listener feeding a :class:`SampleStore`."""

    def __init__(self, interval: float, store: Optional[SampleStore] = None):
        if interval <= 0:
            raise ValueError(f"Sampling interval must be positive, got {interval}")
        self.interval = interval
        self.store = store if store is not None else SampleStore()
        self.ticks_sampled = 0

    def register_fleet(self, host_ids: Iterable[int], vm_ids: Iterable[int]) -> None:
        self.store.register(OwnerKind.HOST, host_ids)
        self.store.register(OwnerKind.VM, vm_ids)

    def __call__(self, current_time: float, engine: Any) -> None:
        if not should_sample(current_time, self.interval):
            return
        if sample_utilization(current_time, engine.snapshot(), self.store, self.interval):
            self.ticks_sampled += 1
