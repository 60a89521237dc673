"""Simulation results aggregation."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import numpy as np
import pandas as pd
from loguru import logger

from ..core.workload import CloudletStatus, FinishedCloudlet
from .sampler import OwnerKind, SampleStore


@dataclass(frozen=True)
class CloudletSummary:
    """Throughput, latency and cost of a run.

    ``average_latency`` and ``average_cost`` are ``None`` when no cloudlet
    completed, which is distinct from a measured 0.0.
    """
    total_submitted: int
    completed: int
    average_latency: Optional[float]
    average_cost: Optional[float]

    @property
    def has_completions(self) -> bool:
        return self.completed > 0


@dataclass(frozen=True)
class UtilizationAverage:
    """Mean utilization percentages of one resource owner."""
    cpu: float
    ram: float
    bw: float


class ResultsAggregator:
    """Turns finished cloudlets and sample sequences into summary metrics."""

    def __init__(self, cost_rate: float):
        if cost_rate < 0:
            raise ValueError(f"cost_rate must be non-negative, got {cost_rate}")
        self.cost_rate = cost_rate
        self.logger = logger.bind(component="ResultsAggregator")

    def summarize(
        self,
        finished: Sequence[FinishedCloudlet],
        submitted: Optional[int] = None,
    ) -> CloudletSummary:
        """Completion count, mean latency and mean cost over successful cloudlets.

        Args:
            finished: Cloudlets reported finished by the engine
            submitted: Number of cloudlets submitted; defaults to ``len(finished)``
        """
        total = len(finished) if submitted is None else submitted
        completed = [c for c in finished if c.status == CloudletStatus.SUCCESS]

        if not completed:
            self.logger.warning(f"No cloudlets completed successfully out of {total}")
            return CloudletSummary(
                total_submitted=total,
                completed=0,
                average_latency=None,
                average_cost=None,
            )

        latencies = np.array([c.latency for c in completed], dtype=float)
        costs = latencies * self.cost_rate

        summary = CloudletSummary(
            total_submitted=total,
            completed=len(completed),
            average_latency=float(np.mean(latencies)),
            average_cost=float(np.mean(costs)),
        )
        self.logger.info(f"{summary.completed}/{total} cloudlets completed, "
                         f"avg latency {summary.average_latency:.2f}s, "
                         f"avg cost {summary.average_cost:.4f}")
        return summary

    def average_utilization(
        self,
        store: SampleStore,
        kind: OwnerKind,
    ) -> Dict[int, Optional[UtilizationAverage]]:
        """Per-owner mean CPU/RAM/BW; ``None`` for owners without samples."""
        averages: Dict[int, Optional[UtilizationAverage]] = {}
        for owner_id in store.owners(kind):
            samples = store.series(kind, owner_id)
            if not samples:
                averages[owner_id] = None
                continue
            values = np.array([[s.cpu, s.ram, s.bw] for s in samples], dtype=float)
            cpu, ram, bw = values.mean(axis=0)
            averages[owner_id] = UtilizationAverage(cpu=float(cpu), ram=float(ram), bw=float(bw))
        return averages

    def utilization_frame(self, store: SampleStore) -> pd.DataFrame:
        """Per-owner averages for hosts and VMs.

        Owners without samples keep ``has_data=False`` and empty averages.
        """
        rows: List[Dict[str, object]] = []
        for kind in OwnerKind:
            for owner_id, average in self.average_utilization(store, kind).items():
                rows.append({
                    'kind': kind.value,
                    'owner_id': owner_id,
                    'samples': len(store.series(kind, owner_id)),
                    'has_data': average is not None,
                    'cpu': average.cpu if average else None,
                    'ram': average.ram if average else None,
                    'bw': average.bw if average else None,
                })
        columns = ['kind', 'owner_id', 'samples', 'has_data', 'cpu', 'ram', 'bw']
        return pd.DataFrame(rows, columns=columns)

    def finished_frame(self, finished: Sequence[FinishedCloudlet]) -> pd.DataFrame:
        """Finished cloudlets with latency and cost columns."""
        rows = [{
            'cloudlet_id': c.cloudlet_id,
            'vm_id': c.vm_id,
            'status': c.status.value,
            'start_time': c.start_time,
            'finish_time': c.finish_time,
            'latency': c.latency,
            'cost': c.latency * self.cost_rate if c.status == CloudletStatus.SUCCESS else None,
        } for c in finished]
        columns = ['cloudlet_id', 'vm_id', 'status', 'start_time', 'finish_time', 'latency', 'cost']
        return pd.DataFrame(rows, columns=columns)
