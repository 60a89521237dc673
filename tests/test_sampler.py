"""Utilization sampler tests."""

import pytest

from cloud_tiering.evaluation.sampler import (
    EngineSnapshot,
    OwnerKind,
    ResourceView,
    SampleStore,
    UtilizationSampler,
    sample_utilization,
    should_sample,
)


class FakeEngine:
    """Engine stand-in returning scripted snapshots."""

    def __init__(self, running=True):
        self.running = running
        self.snapshots = 0

    def snapshot(self):
        self.snapshots += 1
        return EngineSnapshot(
            time=float(self.snapshots),
            is_running=self.running,
            hosts=[ResourceView(0, 0.25, 0.5, 0.1), ResourceView(1, 0.0, 0.0, 0.0)],
            vms=[
                ResourceView(0, 0.8, 0.4, 0.4),
                ResourceView(1, 0.0, 0.0, 0.0, is_created=False),
            ],
        )


def snapshot(vm_created=True, running=True):
    return EngineSnapshot(
        time=0.0,
        is_running=running,
        hosts=[ResourceView(0, 0.25, 0.5, 0.125)],
        vms=[ResourceView(3, 0.5, 0.2, 0.2, is_created=vm_created)],
    )


@pytest.mark.parametrize("current_time, expected", [
    (5.0, True),
    (10.0, True),
    (0.0, True),
    (7.0, False),
    (12.5, False),
])
def test_sampling_cadence(current_time, expected):
    assert should_sample(current_time, 5.0) is expected


@pytest.mark.parametrize("ticks, expected", [
    (3, True),
    (6, True),
    (9, True),
    (4, False),
    (7, False),
])
def test_sampling_cadence_with_fractional_ticks(ticks, expected):
    # 3 * 0.1 is 0.30000000000000004, 6 * 0.1 is 0.6000000000000001
    assert should_sample(ticks * 0.1, 0.3) is expected


def test_off_cadence_tick_records_nothing():
    store = SampleStore()

    assert sample_utilization(7.0, snapshot(), store, 5.0) == 0
    assert len(store) == 0


def test_on_cadence_tick_records_every_owner_as_percent():
    store = SampleStore()

    assert sample_utilization(10.0, snapshot(), store, 5.0) == 2

    host, = store.series(OwnerKind.HOST, 0)
    assert (host.timestamp, host.cpu, host.ram, host.bw) == (10.0, 25.0, 50.0, 12.5)
    vm, = store.series(OwnerKind.VM, 3)
    assert (vm.cpu, vm.ram, vm.bw) == pytest.approx((50.0, 20.0, 20.0))


def test_unprovisioned_vm_is_skipped_until_created():
    store = SampleStore()

    sample_utilization(10.0, snapshot(vm_created=False), store, 5.0)
    assert store.series(OwnerKind.VM, 3) == []
    assert len(store.series(OwnerKind.HOST, 0)) == 1

    sample_utilization(15.0, snapshot(vm_created=True), store, 5.0)
    assert [s.timestamp for s in store.series(OwnerKind.VM, 3)] == [15.0]
    assert len(store.series(OwnerKind.HOST, 0)) == 2


def test_stopped_engine_records_nothing():
    store = SampleStore()

    assert sample_utilization(10.0, snapshot(running=False), store, 5.0) == 0
    assert len(store) == 0


def test_sequences_created_lazily():
    store = SampleStore()
    assert store.owners(OwnerKind.VM) == []

    sample_utilization(5.0, snapshot(), store, 5.0)

    assert store.owners(OwnerKind.HOST) == [0]
    assert store.owners(OwnerKind.VM) == [3]


def test_registered_owner_without_samples_has_empty_series():
    store = SampleStore()
    store.register(OwnerKind.VM, [3, 4])

    sample_utilization(5.0, snapshot(), store, 5.0)

    assert len(store.series(OwnerKind.VM, 3)) == 1
    assert store.series(OwnerKind.VM, 4) == []
    assert store.owners(OwnerKind.VM) == [3, 4]


def test_series_returns_a_copy():
    store = SampleStore()
    sample_utilization(5.0, snapshot(), store, 5.0)

    store.series(OwnerKind.HOST, 0).clear()

    assert len(store.series(OwnerKind.HOST, 0)) == 1


class TestUtilizationSampler:

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            UtilizationSampler(0)

    def test_snapshot_only_taken_on_cadence(self):
        engine = FakeEngine()
        sampler = UtilizationSampler(5.0)

        for tick in range(1, 11):
            sampler(float(tick), engine)

        assert engine.snapshots == 2
        assert sampler.ticks_sampled == 2
        # Two hosts and one created VM per sampled tick
        assert len(sampler.store) == 6
        assert [s.timestamp for s in sampler.store.series(OwnerKind.HOST, 0)] == [5.0, 10.0]

    def test_one_more_sample_per_qualifying_tick(self):
        engine = FakeEngine()
        sampler = UtilizationSampler(5.0)
        sampler.register_fleet([0, 1], [0, 1])

        for tick in (5.0, 10.0, 15.0):
            before = len(sampler.store.series(OwnerKind.VM, 0))
            sampler(tick, engine)
            assert len(sampler.store.series(OwnerKind.VM, 0)) == before + 1

        assert sampler.store.series(OwnerKind.VM, 1) == []

    def test_stopped_engine_not_counted(self):
        sampler = UtilizationSampler(5.0)
        sampler(5.0, FakeEngine(running=False))

        assert sampler.ticks_sampled == 0
        assert len(sampler.store) == 0

    def test_to_frame(self):
        sampler = UtilizationSampler(5.0)
        sampler(5.0, FakeEngine())

        frame = sampler.store.to_frame()

        assert list(frame.columns) == ['kind', 'owner_id', 'timestamp', 'cpu', 'ram', 'bw']
        assert len(frame) == 3
        assert sorted(frame['kind'].unique()) == ['host', 'vm']
