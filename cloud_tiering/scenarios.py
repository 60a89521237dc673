"""Ready-made workload domains and the scenario runner."""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
import pandas as pd
from loguru import logger

from .core.resources import Fleet, build_fleet
from .core.simulator import CloudSimulator
from .core.workload import (
    CloudletSpec,
    CustomerClassifier,
    FinishedCloudlet,
    TransactionClassifier,
    TransactionType,
    WorkloadClassifier,
    WorkloadGenerator,
    WorkloadRecord,
)
from .data.loaders import load_records
from .evaluation.metrics import CloudletSummary, ResultsAggregator, UtilizationAverage
from .evaluation.sampler import OwnerKind, SampleStore, UtilizationSampler
from .exceptions import ConfigurationError
from .scheduling.tiers import (
    RoutingKey,
    TierAssignmentPolicy,
    TierRule,
    all_of,
    category_is,
    record_id_key,
    threshold,
)
from .utils.config import (
    FleetConfig,
    HostProfile,
    ScenarioConfig,
    SimulationConfig,
    TierConfig,
    VmProfile,
    WorkloadConfig,
)


@dataclass
class Scenario:
    """Configuration plus the domain logic that goes with it."""
    config: ScenarioConfig
    classifier: WorkloadClassifier
    rules: List[TierRule]
    default_tier: str
    routing_key: RoutingKey = record_id_key


@dataclass
class SimulationReport:
    """Everything a run produced, ready for a reporting layer."""
    scenario: str
    fleet: Fleet
    cloudlets: List[CloudletSpec]
    finished: List[FinishedCloudlet]
    summary: CloudletSummary
    host_utilization: Dict[int, Optional[UtilizationAverage]]
    vm_utilization: Dict[int, Optional[UtilizationAverage]]
    samples: SampleStore
    utilization_table: pd.DataFrame = field(repr=False)
    cloudlet_table: pd.DataFrame = field(repr=False)


def customer_config() -> ScenarioConfig:
    """Customer workload: premium, standard and basic VMs on 4 hosts."""
    return ScenarioConfig(
        name="customer_workload",
        domain="customer",
        fleet=FleetConfig(
            datacenters=1,
            hosts_per_datacenter=4,
            host=HostProfile(cores=16, mips=3000, ram=131072, bw=40000, storage=1000000),
            tiers=[
                TierConfig(name="premium", count=2,
                           profile=VmProfile(cores=2, mips=1500, ram=16384, bw=2000, storage=5000)),
                TierConfig(name="standard", count=3,
                           profile=VmProfile(cores=1, mips=1000, ram=8192, bw=1000, storage=2500)),
                TierConfig(name="basic", count=2,
                           profile=VmProfile(cores=1, mips=500, ram=4096, bw=500, storage=1250)),
            ],
        ),
        simulation=SimulationConfig(sampling_interval=5.0, cost_rate=0.1),
        workload=WorkloadConfig(number_of_records=10),
    )


def financial_config() -> ScenarioConfig:
    """Financial transactions: HFT, retail banking and batch VMs on 4 hosts."""
    return ScenarioConfig(
        name="financial_transactions",
        domain="financial",
        fleet=FleetConfig(
            datacenters=1,
            hosts_per_datacenter=4,
            host=HostProfile(cores=32, mips=5000, ram=262144, bw=80000, storage=2000000),
            tiers=[
                TierConfig(name="hft", count=2,
                           profile=VmProfile(cores=4, mips=4000, ram=32768, bw=4000, storage=10000)),
                TierConfig(name="retail", count=3,
                           profile=VmProfile(cores=2, mips=2000, ram=16384, bw=2000, storage=5000)),
                TierConfig(name="batch", count=2,
                           profile=VmProfile(cores=1, mips=1000, ram=8192, bw=1000, storage=2500)),
            ],
        ),
        simulation=SimulationConfig(sampling_interval=10.0, cost_rate=0.05),
        workload=WorkloadConfig(number_of_records=20),
    )


def customer_rules() -> List[TierRule]:
    return [
        TierRule("premium", (
            threshold("magnitude", minimum=80000),
            threshold("score", minimum=80),
            threshold("frequency", minimum=16),
        )),
        TierRule("standard", (
            threshold("magnitude", minimum=40000),
            threshold("score", minimum=50),
            threshold("frequency", minimum=10),
        )),
    ]


def financial_rules() -> List[TierRule]:
    return [
        TierRule("hft", (
            all_of(category_is(TransactionType.STOCK_TRADE.value), threshold("score", minimum=8)),
        )),
        TierRule("batch", (
            category_is(TransactionType.BATCH_REPORT.value),
            threshold("score", maximum=3),
        )),
    ]


def priority_key(record: WorkloadRecord) -> int:
    """Transactions spread over a tier by priority rather than by id."""
    return record.score


def customer_scenario(config: Optional[ScenarioConfig] = None) -> Scenario:
    return Scenario(
        config=config or customer_config(),
        classifier=CustomerClassifier(),
        rules=customer_rules(),
        default_tier="basic",
    )


def financial_scenario(config: Optional[ScenarioConfig] = None) -> Scenario:
    return Scenario(
        config=config or financial_config(),
        classifier=TransactionClassifier(),
        rules=financial_rules(),
        default_tier="retail",
        routing_key=priority_key,
    )


SCENARIOS: Dict[str, Callable[[Optional[ScenarioConfig]], Scenario]] = {
    "customer": customer_scenario,
    "financial": financial_scenario,
}


def get_scenario(domain: str, config: Optional[ScenarioConfig] = None) -> Scenario:
    """Scenario for a workload domain, optionally with a loaded configuration."""
    if domain not in SCENARIOS:
        raise ConfigurationError(
            f"Unknown workload domain: '{domain}'. Must be one of {list(SCENARIOS)}"
        )
    if config is not None and config.domain != domain:
        raise ConfigurationError(
            f"Configuration '{config.name}' is for domain '{config.domain}', not '{domain}'"
        )
    return SCENARIOS[domain](config)


def run_scenario(
    scenario: Scenario,
    records: Optional[Sequence[WorkloadRecord]] = None,
) -> SimulationReport:
    """Build the fleet, generate cloudlets, run the engine and aggregate.

    Configuration problems surface before the engine starts.
    """
    config = scenario.config
    logger.info(f"Running scenario '{config.name}'")

    fleet = build_fleet(config.fleet)
    policy = TierAssignmentPolicy(
        scenario.rules, scenario.default_tier, fleet, key=scenario.routing_key
    )

    if records is None:
        records = load_records(
            config.domain,
            config.workload.records_path or None,
            limit=config.workload.number_of_records,
        )
    cloudlets = WorkloadGenerator(scenario.classifier, policy).generate(records)

    engine = CloudSimulator(fleet, cloudlets, config.simulation)
    sampler = UtilizationSampler(config.simulation.sampling_interval)
    sampler.register_fleet(
        (host.host_id for host in fleet.hosts),
        (vm.vm_id for vm in fleet.vms),
    )
    engine.add_on_clock_tick_listener(sampler)

    finished = engine.run()

    aggregator = ResultsAggregator(config.simulation.cost_rate)
    summary = aggregator.summarize(finished, submitted=len(cloudlets))
    report = SimulationReport(
        scenario=config.name,
        fleet=fleet,
        cloudlets=cloudlets,
        finished=finished,
        summary=summary,
        host_utilization=aggregator.average_utilization(sampler.store, OwnerKind.HOST),
        vm_utilization=aggregator.average_utilization(sampler.store, OwnerKind.VM),
        samples=sampler.store,
        utilization_table=aggregator.utilization_frame(sampler.store),
        cloudlet_table=aggregator.finished_frame(finished),
    )
    logger.info(f"Scenario '{config.name}' finished: {summary.completed}/"
                f"{summary.total_submitted} cloudlets completed, "
                f"{len(sampler.store)} utilization samples over {sampler.ticks_sampled} ticks")
    return report
