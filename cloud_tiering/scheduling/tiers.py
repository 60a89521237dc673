"""Tier assignment policy: ordered threshold rules plus round-robin routing."""

from dataclasses import dataclass, fields
from typing import Callable, Iterable, List, Optional, Sequence
from loguru import logger

from ..core.resources import Fleet, TierLayout
from ..core.workload import WorkloadRecord
from ..exceptions import ConfigurationError

RoutingKey = Callable[[WorkloadRecord], int]

RECORD_ATTRIBUTES = frozenset(f.name for f in fields(WorkloadRecord))


@dataclass(frozen=True)
class Condition:
    """Named predicate on a workload record."""
    name: str
    test: Callable[[WorkloadRecord], bool]

    def __call__(self, record: WorkloadRecord) -> bool:
        return self.test(record)


def threshold(attribute: str, minimum: Optional[float] = None,
              maximum: Optional[float] = None) -> Condition:
    """Inclusive bound check on a record attribute."""
    if minimum is None and maximum is None:
        raise ValueError("threshold() needs a minimum or a maximum")
    if attribute not in RECORD_ATTRIBUTES:
        raise ConfigurationError(
            f"Unknown record attribute '{attribute}' in threshold. "
            f"Valid attributes: {sorted(RECORD_ATTRIBUTES)}"
        )

    def test(record: WorkloadRecord) -> bool:
        value = getattr(record, attribute)
        if value is None:
            return False
        if minimum is not None and value < minimum:
            return False
        if maximum is not None and value > maximum:
            return False
        return True

    parts = []
    if minimum is not None:
        parts.append(f"{attribute}>={minimum}")
    if maximum is not None:
        parts.append(f"{attribute}<={maximum}")
    return Condition(" and ".join(parts), test)


def category_is(*categories: int) -> Condition:
    """Match records whose category is one of ``categories``."""
    wanted = frozenset(categories)
    return Condition(f"category in {sorted(wanted)}", lambda record: record.category in wanted)


def all_of(*conditions: Condition) -> Condition:
    """Combine conditions with AND."""
    return Condition(
        " and ".join(f"({c.name})" for c in conditions),
        lambda record: all(c(record) for c in conditions),
    )


@dataclass(frozen=True)
class TierRule:
    """Route to ``tier`` when any of the conditions matches."""
    tier: str
    conditions: Sequence[Condition]

    def matches(self, record: WorkloadRecord) -> bool:
        return any(condition(record) for condition in self.conditions)


def record_id_key(record: WorkloadRecord) -> int:
    return record.record_id


class TierAssignmentPolicy:
    """Deterministic, load-oblivious VM selection.

    Rules are evaluated top-down and the first matching rule picks the tier;
    records matching none go to ``default_tier``. Inside the tier the VM is
    ``offset + key(record) % size``, a round-robin keyed by the record rather
    than by current occupancy.
    """

    def __init__(
        self,
        rules: Iterable[TierRule],
        default_tier: str,
        fleet: Fleet,
        key: RoutingKey = record_id_key,
    ):
        self.rules: List[TierRule] = list(rules)
        self.default_tier = default_tier
        self.fleet = fleet
        self.key = key

        # Every tier a record can land in must exist and hold VMs.
        routable = [rule.tier for rule in self.rules] + [default_tier]
        fleet.require_routable(routable)

        logger.info(f"Tier policy bound: {len(self.rules)} rules, default tier '{default_tier}'")

    def select_tier(self, record: WorkloadRecord) -> TierLayout:
        """Tier chosen by the first matching rule."""
        for rule in self.rules:
            if rule.matches(record):
                return self.fleet.tier(rule.tier)
        return self.fleet.tier(self.default_tier)

    def assign(self, record: WorkloadRecord) -> int:
        """VM id hosting the record's cloudlets."""
        layout = self.select_tier(record)
        vm_id = layout.offset + (self.key(record) % layout.size)
        logger.debug(f"Record {record.record_id} routed to tier '{layout.name}', VM {vm_id}")
        return vm_id
