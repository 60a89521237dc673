"""Reference cloud engine using SimPy.

Stands in for the external simulation engine: it provisions the fleet's VMs
on hosts, runs pre-assigned cloudlets, publishes clock ticks and reports
finished cloudlets. Resource sharing is coarse: whole cores per cloudlet and
first-fit VM placement.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional
import simpy
from loguru import logger

from .events import EventBus, EventType, SimulationEvent
from .resources import Fleet, HostSpec, VmSpec
from .workload import CloudletSpec, CloudletStatus, FinishedCloudlet
from ..evaluation.sampler import EngineSnapshot, ResourceView
from ..exceptions import ConfigurationError
from ..utils.config import SimulationConfig

ENGINE_ID = -1

TickListener = Callable[[float, "CloudSimulator"], None]


@dataclass
class _HostState:
    spec: HostSpec
    free_cores: int
    free_ram: int
    free_bw: int
    free_storage: int
    vm_ids: List[int] = field(default_factory=list)

    def can_accommodate(self, vm: VmSpec) -> bool:
        return (
            self.free_cores >= vm.cores and
            self.free_ram >= vm.ram and
            self.free_bw >= vm.bw and
            self.free_storage >= vm.storage
        )

    def allocate(self, vm: VmSpec) -> None:
        self.free_cores -= vm.cores
        self.free_ram -= vm.ram
        self.free_bw -= vm.bw
        self.free_storage -= vm.storage
        self.vm_ids.append(vm.vm_id)

    def release(self, vm: VmSpec) -> None:
        self.free_cores += vm.cores
        self.free_ram += vm.ram
        self.free_bw += vm.bw
        self.free_storage += vm.storage
        self.vm_ids.remove(vm.vm_id)


@dataclass
class _Execution:
    cloudlet: CloudletSpec
    cores: int
    start_time: float


class _VmState:
    def __init__(self, env: simpy.Environment, spec: VmSpec):
        self.spec = spec
        self.host_id: Optional[int] = None
        self.is_created = False
        self.placed = env.event()  # value: True once created, False if no host fits
        self.cores = simpy.Container(env, capacity=spec.cores, init=spec.cores)
        self.running: Dict[int, _Execution] = {}


class CloudSimulator:
    """Runs one fleet and one cloudlet set to completion."""

    def __init__(self, fleet: Fleet, cloudlets: Iterable[CloudletSpec], config: SimulationConfig):
        self.fleet = fleet
        self.config = config
        self.cloudlets = list(cloudlets)
        self.env = simpy.Environment()
        self.event_bus = EventBus()

        for cloudlet in self.cloudlets:
            if cloudlet.vm_id is None or not 0 <= cloudlet.vm_id < fleet.total_vms:
                raise ConfigurationError(
                    f"Cloudlet {cloudlet.cloudlet_id} has no valid VM assignment "
                    f"(vm_id={cloudlet.vm_id}, fleet has {fleet.total_vms} VMs)"
                )

        self._hosts: Dict[int, _HostState] = {
            host.host_id: _HostState(
                spec=host,
                free_cores=host.cores,
                free_ram=host.ram,
                free_bw=host.bw,
                free_storage=host.storage,
            )
            for host in fleet.hosts
        }
        self._vms: Dict[int, _VmState] = {vm.vm_id: _VmState(self.env, vm) for vm in fleet.vms}

        self.finished_cloudlets: List[FinishedCloudlet] = []
        self._running = False
        self._has_run = False

        logger.info(f"CloudSimulator initialized with {len(fleet.hosts)} hosts, "
                    f"{fleet.total_vms} VMs and {len(self.cloudlets)} cloudlets")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def now(self) -> float:
        return self.env.now

    def add_on_clock_tick_listener(self, listener: TickListener) -> None:
        """Call ``listener(time, engine)`` on every clock tick."""
        self.event_bus.subscribe(
            EventType.CLOCK_TICK, lambda event: listener(event.timestamp, self)
        )

    def run(self) -> List[FinishedCloudlet]:
        """Run until every cloudlet finished and the VMs were destroyed."""
        if self._has_run:
            raise RuntimeError("CloudSimulator can only be run once")

        logger.info("Starting cloud simulation")
        start_time = time.time()
        self._running = True

        self.env.process(self._provision_vms())
        executions = [self.env.process(self._execute(cloudlet)) for cloudlet in self.cloudlets]
        lifecycle = self.env.process(self._lifecycle(executions))
        self.env.process(self._clock())

        self.env.run(until=lifecycle)

        self._running = False
        self._has_run = True
        self.event_bus.publish(SimulationEvent(
            timestamp=self.env.now,
            event_type=EventType.SIMULATION_END,
            resource_id=ENGINE_ID,
        ))

        elapsed_time = time.time() - start_time
        logger.info(f"Simulation completed in {elapsed_time:.2f}s "
                    f"(simulated {self.env.now:.1f}s, "
                    f"{len(self.finished_cloudlets)} cloudlets finished)")
        return list(self.finished_cloudlets)

    def snapshot(self) -> EngineSnapshot:
        """Instantaneous utilization of every host and VM."""
        vm_views = {vm_id: self._vm_view(vm) for vm_id, vm in self._vms.items()}
        host_views = [self._host_view(host, vm_views) for host in self._hosts.values()]
        return EngineSnapshot(
            time=self.env.now,
            is_running=self._running,
            hosts=host_views,
            vms=list(vm_views.values()),
        )

    def vm_host(self, vm_id: int) -> Optional[int]:
        """Host a VM was placed on, if any."""
        return self._vms[vm_id].host_id

    def _clock(self):
        ticks = 0
        while True:
            yield self.env.timeout(self.config.tick_interval)
            ticks += 1
            self.event_bus.publish(SimulationEvent(
                timestamp=ticks * self.config.tick_interval,
                event_type=EventType.CLOCK_TICK,
                resource_id=ENGINE_ID,
            ))

    def _provision_vms(self):
        yield self.env.timeout(self.config.vm_startup_delay)
        for vm in self._vms.values():
            host = self._first_fit(vm.spec)
            if host is None:
                logger.warning(f"No host can accommodate VM {vm.spec.vm_id} "
                               f"({vm.spec.tier}, {vm.spec.cores} cores, {vm.spec.ram}MB)")
                vm.placed.succeed(False)
                continue

            host.allocate(vm.spec)
            vm.host_id = host.spec.host_id
            vm.is_created = True
            vm.placed.succeed(True)
            self.event_bus.publish(SimulationEvent(
                timestamp=self.env.now,
                event_type=EventType.VM_CREATED,
                resource_id=vm.spec.vm_id,
                data={"host_id": host.spec.host_id},
            ))
            logger.debug(f"VM {vm.spec.vm_id} created on host {host.spec.host_id} "
                         f"at {self.env.now:.2f}s")

    def _first_fit(self, vm: VmSpec) -> Optional[_HostState]:
        for host_id in sorted(self._hosts):
            host = self._hosts[host_id]
            if host.can_accommodate(vm):
                return host
        return None

    def _execute(self, cloudlet: CloudletSpec):
        vm = self._vms[cloudlet.vm_id]
        created = yield vm.placed
        if not created:
            logger.warning(f"Cloudlet {cloudlet.cloudlet_id} failed: "
                           f"VM {cloudlet.vm_id} was never created")
            self._finish(cloudlet, CloudletStatus.FAILED, self.env.now)
            return

        cores = min(cloudlet.cores, vm.spec.cores)
        if cores < cloudlet.cores:
            logger.warning(f"Cloudlet {cloudlet.cloudlet_id} wants {cloudlet.cores} cores, "
                           f"VM {cloudlet.vm_id} has {vm.spec.cores}; running on {cores}")

        yield vm.cores.get(cores)
        start_time = self.env.now
        vm.running[cloudlet.cloudlet_id] = _Execution(cloudlet, cores, start_time)
        self.event_bus.publish(SimulationEvent(
            timestamp=start_time,
            event_type=EventType.CLOUDLET_STARTED,
            resource_id=cloudlet.cloudlet_id,
        ))

        yield self.env.timeout(cloudlet.length / (vm.spec.mips * cores))

        del vm.running[cloudlet.cloudlet_id]
        yield vm.cores.put(cores)
        self._finish(cloudlet, CloudletStatus.SUCCESS, start_time)

    def _finish(self, cloudlet: CloudletSpec, status: CloudletStatus, start_time: float) -> None:
        record = FinishedCloudlet(
            cloudlet_id=cloudlet.cloudlet_id,
            vm_id=cloudlet.vm_id,
            status=status,
            start_time=start_time,
            finish_time=self.env.now,
        )
        self.finished_cloudlets.append(record)
        self.event_bus.publish(SimulationEvent(
            timestamp=self.env.now,
            event_type=EventType.CLOUDLET_FINISHED,
            resource_id=cloudlet.cloudlet_id,
            data={"record": record},
        ))

    def _lifecycle(self, executions):
        yield self.env.all_of(executions)
        yield self.env.timeout(self.config.vm_destruction_delay)
        for vm in self._vms.values():
            if not vm.is_created:
                continue
            self._hosts[vm.host_id].release(vm.spec)
            vm.is_created = False
            self.event_bus.publish(SimulationEvent(
                timestamp=self.env.now,
                event_type=EventType.VM_DESTROYED,
                resource_id=vm.spec.vm_id,
            ))
        logger.debug(f"VMs destroyed at {self.env.now:.2f}s")

    def _vm_view(self, vm: _VmState) -> ResourceView:
        if not vm.is_created:
            return ResourceView(owner_id=vm.spec.vm_id, cpu=0.0, ram=0.0, bw=0.0, is_created=False)

        cpu = 0.0
        share = 0.0
        for execution in vm.running.values():
            u = execution.cloudlet.utilization.utilization_at(self.env.now - execution.start_time)
            cpu += u * execution.cores
            share += u
        return ResourceView(
            owner_id=vm.spec.vm_id,
            cpu=min(1.0, cpu / vm.spec.cores),
            ram=min(1.0, share),
            bw=min(1.0, share),
        )

    def _host_view(self, host: _HostState, vm_views: Dict[int, ResourceView]) -> ResourceView:
        spec = host.spec
        used_mips = sum(
            vm_views[vm_id].cpu * self._vms[vm_id].spec.total_mips for vm_id in host.vm_ids
        )
        return ResourceView(
            owner_id=spec.host_id,
            cpu=min(1.0, used_mips / spec.total_mips),
            ram=(spec.ram - host.free_ram) / spec.ram,
            bw=(spec.bw - host.free_bw) / spec.bw,
        )
