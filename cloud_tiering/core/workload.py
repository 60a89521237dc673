"""Workload records, cloudlet specifications and domain classifiers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, NamedTuple, Optional
from loguru import logger

from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from ..scheduling.tiers import TierAssignmentPolicy


@dataclass(frozen=True)
class WorkloadRecord:
    """Raw input row describing a customer job or a financial transaction.

    ``magnitude`` is the income or amount, ``score`` the spending score or
    priority, ``frequency`` the purchase frequency or data volume.
    """
    record_id: int
    magnitude: int
    score: int
    frequency: int
    category: Optional[int] = None
    age: Optional[int] = None


@dataclass(frozen=True)
class UtilizationModel:
    """Dynamic resource utilization of a cloudlet, as fractions in [0, 1]."""
    initial: float
    maximum: float = 1.0
    growth_per_second: float = 0.0

    def __post_init__(self) -> None:
        for name in ("initial", "maximum"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Utilization {name} must be within [0, 1], got {value}")

    def utilization_at(self, elapsed: float) -> float:
        """Utilization after running for ``elapsed`` seconds."""
        return min(self.maximum, self.initial + self.growth_per_second * max(0.0, elapsed))


@dataclass(frozen=True)
class CloudletSpec:
    """Unit of work submitted to a VM."""
    cloudlet_id: int
    length: int  # MI
    cores: int
    file_size: int
    output_size: int
    utilization: UtilizationModel
    vm_id: Optional[int] = None
    parent_id: Optional[int] = None

    @property
    def is_follow_up(self) -> bool:
        return self.parent_id is not None


class Classification(NamedTuple):
    primary: CloudletSpec
    follow_up: Optional[CloudletSpec]


def clamp_probability(value: float) -> float:
    """Clamp a derived utilization into [0, 1]."""
    clamped = max(0.0, min(1.0, value))
    if clamped != value:
        logger.debug(f"Utilization {value:.4f} clamped to {clamped:.1f}")
    return clamped


class WorkloadClassifier(ABC):
    """Maps a workload record onto cloudlet resource demands.

    Classification is pure: the same record always yields the same specs.
    The follow-up spec, when present, carries ``parent_id`` and the primary's
    id; the generator gives it its own id.
    """

    follow_up_divisor: int
    follow_up_utilization_divisor: float

    @abstractmethod
    def primary(self, record: WorkloadRecord) -> CloudletSpec:
        """Build the primary cloudlet for a record."""
        pass

    @abstractmethod
    def needs_follow_up(self, record: WorkloadRecord) -> bool:
        """Whether the record exceeds the intensity threshold."""
        pass

    def classify(self, record: WorkloadRecord) -> Classification:
        primary = self.primary(record)
        follow_up = None
        if self.needs_follow_up(record):
            follow_up = self._follow_up(primary)
        return Classification(primary, follow_up)

    def _follow_up(self, primary: CloudletSpec) -> CloudletSpec:
        divisor = self.follow_up_divisor
        return CloudletSpec(
            cloudlet_id=primary.cloudlet_id,
            length=primary.length // divisor,
            cores=primary.cores,
            file_size=primary.file_size // divisor,
            output_size=primary.output_size // divisor,
            utilization=UtilizationModel(
                initial=primary.utilization.initial / self.follow_up_utilization_divisor
            ),
            parent_id=primary.cloudlet_id,
        )


class CustomerClassifier(WorkloadClassifier):
    """Customer jobs sized from income, spending score and purchase frequency."""

    follow_up_divisor = 6
    follow_up_utilization_divisor = 3.0
    follow_up_frequency_threshold = 18

    def primary(self, record: WorkloadRecord) -> CloudletSpec:
        income = record.magnitude
        score = record.score
        frequency = record.frequency

        # Known anomaly: min(1, ...) pins this to 1 for every score.
        cores = max(1, min(1, int(score / 80.0)))

        length = (3000 + income // 300 + score * 30) // 2
        file_size = (150 + frequency * 20) // 2
        output_size = (150 + score * 2) // 2

        utilization = UtilizationModel(
            initial=clamp_probability((0.1 + score / 300.0) / 2),
            maximum=clamp_probability((0.6 + frequency / 150.0) / 2),
        )
        return CloudletSpec(
            cloudlet_id=record.record_id - 1,
            length=length,
            cores=cores,
            file_size=file_size,
            output_size=output_size,
            utilization=utilization,
        )

    def needs_follow_up(self, record: WorkloadRecord) -> bool:
        return record.frequency > self.follow_up_frequency_threshold


class TransactionType(Enum):
    """Financial transaction categories."""
    DEPOSIT = 0
    WITHDRAWAL = 1
    STOCK_TRADE = 2
    PAYMENT = 3
    BATCH_REPORT = 4


def transaction_type(record: WorkloadRecord) -> TransactionType:
    """Resolve a record's category, rejecting undefined ones."""
    try:
        return TransactionType(record.category)
    except ValueError:
        logger.error(f"Record {record.record_id} has undefined category {record.category!r}")
        raise ConfigurationError(
            f"Record {record.record_id} references undefined transaction category "
            f"{record.category!r}. Valid categories: {[t.value for t in TransactionType]}"
        ) from None


class TransactionClassifier(WorkloadClassifier):
    """Financial transactions sized by type, amount, priority and data volume."""

    follow_up_divisor = 5
    follow_up_utilization_divisor = 2.0
    follow_up_priority_threshold = 8

    def primary(self, record: WorkloadRecord) -> CloudletSpec:
        kind = transaction_type(record)
        amount = record.magnitude
        priority = record.score
        volume = record.frequency

        cores = 1
        file_size = volume
        output_size = volume // 2

        if kind in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL):
            length = 5000 + amount // 100
            initial = 0.4 + priority / 20.0
            maximum = 0.7 + priority / 30.0
        elif kind == TransactionType.STOCK_TRADE:
            length = 20000 + amount // 1000
            cores = max(1, int(priority / 5.0))
            initial = 0.6 + priority / 15.0
            maximum = 0.9 + priority / 20.0
        elif kind == TransactionType.PAYMENT:
            length = 3000 + amount // 50
            initial = 0.3 + priority / 25.0
            maximum = 0.6 + priority / 35.0
        else:  # end-of-day batch report
            length = 50000 + amount // 100
            cores = 2
            file_size = volume * 5
            output_size = volume * 3
            initial = 0.2 + priority / 40.0
            maximum = 0.5 + priority / 50.0

        return CloudletSpec(
            cloudlet_id=record.record_id - 1,
            length=length,
            cores=max(1, cores),
            file_size=file_size,
            output_size=output_size,
            utilization=UtilizationModel(
                initial=clamp_probability(initial),
                maximum=clamp_probability(maximum),
            ),
        )

    def needs_follow_up(self, record: WorkloadRecord) -> bool:
        # Settlement task for high-priority transactions and every stock trade
        return (record.score > self.follow_up_priority_threshold
                or transaction_type(record) == TransactionType.STOCK_TRADE)


class WorkloadGenerator:
    """Classifies and routes records into the full cloudlet set."""

    def __init__(self, classifier: WorkloadClassifier, policy: "TierAssignmentPolicy"):
        self.classifier = classifier
        self.policy = policy
        self.logger = logger.bind(component="WorkloadGenerator")

    def generate(self, records: Iterable[WorkloadRecord]) -> List[CloudletSpec]:
        """Produce primaries and follow-ups, each pinned to its assigned VM.

        Primary ids are ``record_id - 1``. Follow-ups are numbered after the
        largest primary id, in generation order.
        """
        pairs = []
        for record in records:
            classification = self.classifier.classify(record)
            vm_id = self.policy.assign(record)
            pairs.append((classification, vm_id))

        primaries = [replace(c.primary, vm_id=vm_id) for c, vm_id in pairs]
        seen_ids = set()
        for cloudlet in primaries:
            if cloudlet.cloudlet_id in seen_ids:
                raise ConfigurationError(f"Duplicate record id {cloudlet.cloudlet_id + 1}")
            seen_ids.add(cloudlet.cloudlet_id)

        next_id = max(seen_ids) + 1 if seen_ids else 0
        cloudlets: List[CloudletSpec] = []
        for primary, (classification, vm_id) in zip(primaries, pairs):
            cloudlets.append(primary)
            self.logger.debug(f"Cloudlet {primary.cloudlet_id} -> VM {vm_id} "
                              f"(length {primary.length}, {primary.cores} cores)")
            if classification.follow_up is not None:
                follow_up = replace(classification.follow_up, cloudlet_id=next_id, vm_id=vm_id)
                next_id += 1
                cloudlets.append(follow_up)
                self.logger.debug(f"Follow-up cloudlet {follow_up.cloudlet_id} for "
                                  f"{primary.cloudlet_id} -> VM {vm_id}")

        self.logger.info(f"Generated {len(cloudlets)} cloudlets from {len(pairs)} records "
                         f"({len(cloudlets) - len(pairs)} follow-ups)")
        return cloudlets


class CloudletStatus(Enum):
    """Terminal state reported by the engine."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class FinishedCloudlet:
    """Engine record of a cloudlet that left the system."""
    cloudlet_id: int
    vm_id: Optional[int]
    status: CloudletStatus
    start_time: float
    finish_time: float

    @property
    def latency(self) -> float:
        return self.finish_time - self.start_time
