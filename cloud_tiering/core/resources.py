"""Cloud resource models: hosts, tiered VMs and the fleet builder."""

from typing import Dict, Iterable, List
from dataclasses import dataclass, field
from loguru import logger

from ..exceptions import ConfigurationError
from ..utils.config import FleetConfig


@dataclass(frozen=True)
class HostSpec:
    """Physical host in the fleet."""
    host_id: int
    cores: int
    mips: float  # per core
    ram: int
    bw: int
    storage: int

    @property
    def total_mips(self) -> float:
        return self.cores * self.mips


@dataclass(frozen=True)
class VmSpec:
    """Virtual machine belonging to exactly one tier."""
    vm_id: int
    tier: str
    cores: int
    mips: float
    ram: int
    bw: int
    storage: int

    @property
    def total_mips(self) -> float:
        return self.cores * self.mips


@dataclass(frozen=True)
class TierLayout:
    """Position of a tier inside the contiguous VM id range."""
    name: str
    offset: int
    size: int

    @property
    def vm_ids(self) -> range:
        return range(self.offset, self.offset + self.size)


@dataclass
class Fleet:
    """Static host pool plus VM pool grouped by tier in declared order."""
    hosts: List[HostSpec]
    vms: List[VmSpec]
    tiers: List[TierLayout]
    _by_name: Dict[str, TierLayout] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._by_name = {tier.name: tier for tier in self.tiers}

    @property
    def total_vms(self) -> int:
        return len(self.vms)

    @property
    def tier_names(self) -> List[str]:
        return [tier.name for tier in self.tiers]

    def tier(self, name: str) -> TierLayout:
        """Look up a tier layout by name."""
        try:
            return self._by_name[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown tier '{name}'. Fleet declares {self.tier_names}"
            ) from None

    def require_routable(self, tier_names: Iterable[str]) -> None:
        """Fail if any tier that can receive cloudlets has no VMs."""
        for name in tier_names:
            layout = self.tier(name)
            if layout.size == 0:
                logger.error(f"Tier '{name}' is routable but has no VMs")
                raise ConfigurationError(
                    f"Tier '{name}' has zero VMs but the assignment policy can route to it"
                )


def build_fleet(config: FleetConfig) -> Fleet:
    """Create hosts and tiered VMs with contiguous ids.

    Host ids follow creation order across datacenters. VM ids are assigned in
    tier order, so every tier occupies one contiguous id range starting at
    its offset. A tier with a zero count contributes no VMs.
    """
    hosts: List[HostSpec] = []
    host_count = config.datacenters * config.hosts_per_datacenter
    for host_id in range(host_count):
        hosts.append(HostSpec(
            host_id=host_id,
            cores=config.host.cores,
            mips=config.host.mips,
            ram=config.host.ram,
            bw=config.host.bw,
            storage=config.host.storage,
        ))

    vms: List[VmSpec] = []
    tiers: List[TierLayout] = []
    seen = set()
    for tier in config.tiers:
        if tier.name in seen:
            raise ConfigurationError(f"Duplicate tier name: '{tier.name}'")
        seen.add(tier.name)

        tiers.append(TierLayout(name=tier.name, offset=len(vms), size=tier.count))
        for _ in range(tier.count):
            vms.append(VmSpec(
                vm_id=len(vms),
                tier=tier.name,
                cores=tier.profile.cores,
                mips=tier.profile.mips,
                ram=tier.profile.ram,
                bw=tier.profile.bw,
                storage=tier.profile.storage,
            ))
        if tier.count == 0:
            logger.warning(f"Tier '{tier.name}' declared with zero VMs")

    logger.info(f"Fleet built: {len(hosts)} hosts, {len(vms)} VMs in tiers "
                f"{', '.join(f'{t.name}={t.size}' for t in tiers)}")
    return Fleet(hosts=hosts, vms=vms, tiers=tiers)
