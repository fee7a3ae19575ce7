"""Tests for the resource pool: exclusive areas and tool capacity."""
from __future__ import annotations

import threading
import time

import pytest

from bakeoff_errors import ResourceInvariantViolation
from bakeoff_types import FRIDGES, KitchenArea, ToolKind
from kitchen.resources import ResourcePool

from conftest import assert_exclusive_history, start_thread, wait_until


class TestExclusiveAreas:

    def test_try_acquire_and_release(self):
        pool = ResourcePool()
        assert pool.try_acquire_exclusive(KitchenArea.PANTRY, 1)
        assert pool.holder_of(KitchenArea.PANTRY) == 1
        assert not pool.try_acquire_exclusive(KitchenArea.PANTRY, 2)
        pool.release_exclusive(KitchenArea.PANTRY, 1)
        assert pool.holder_of(KitchenArea.PANTRY) is None

    def test_release_by_non_holder_is_violation(self):
        pool = ResourcePool()
        pool.acquire_exclusive(KitchenArea.OVEN, 1)
        with pytest.raises(ResourceInvariantViolation):
            pool.release_exclusive(KitchenArea.OVEN, 2)
        with pytest.raises(ResourceInvariantViolation):
            pool.release_exclusive(KitchenArea.PANTRY, 1)

    def test_blocking_acquire_waits_for_release(self):
        pool = ResourcePool()
        pool.acquire_exclusive(KitchenArea.PANTRY, 1)
        thread = start_thread(pool.acquire_exclusive, KitchenArea.PANTRY, 2)
        time.sleep(0.05)
        assert pool.holder_of(KitchenArea.PANTRY) == 1
        pool.release_exclusive(KitchenArea.PANTRY, 1)
        thread.join(5)
        assert pool.holder_of(KitchenArea.PANTRY) == 2

    def test_any_fridge_prefers_first_free(self):
        pool = ResourcePool()
        assert pool.acquire_any_exclusive(FRIDGES, 1) == KitchenArea.FRIDGE_A
        assert pool.acquire_any_exclusive(FRIDGES, 2) == KitchenArea.FRIDGE_B

    def test_any_fridge_waits_for_either(self):
        pool = ResourcePool()
        pool.acquire_exclusive(KitchenArea.FRIDGE_A, 1)
        pool.acquire_exclusive(KitchenArea.FRIDGE_B, 2)
        got = []
        thread = start_thread(lambda: got.append(pool.acquire_any_exclusive(FRIDGES, 3)))
        time.sleep(0.05)
        assert got == []
        pool.release_exclusive(KitchenArea.FRIDGE_B, 2)
        thread.join(5)
        assert got == [KitchenArea.FRIDGE_B]

    def test_any_requires_interchangeable_areas(self):
        pool = ResourcePool()
        with pytest.raises(ValueError):
            pool.acquire_any_exclusive([KitchenArea.PANTRY, KitchenArea.FRIDGE_A], 1)

    def test_history_records_transitions(self):
        pool = ResourcePool(record_history=True)
        pool.acquire_exclusive(KitchenArea.OVEN, 3)
        pool.release_exclusive(KitchenArea.OVEN, 3)
        assert [(t.area, t.worker_id, t.acquired) for t in pool.history] == [
            (KitchenArea.OVEN, 3, True),
            (KitchenArea.OVEN, 3, False),
        ]

    def test_mutual_exclusion_under_contention(self):
        pool = ResourcePool(record_history=True)

        def worker(worker_id):
            for _ in range(100):
                area = pool.acquire_any_exclusive(FRIDGES, worker_id)
                pool.release_exclusive(area, worker_id)
                pool.acquire_exclusive(KitchenArea.PANTRY, worker_id)
                pool.release_exclusive(KitchenArea.PANTRY, worker_id)

        threads = [start_thread(worker, i) for i in range(6)]
        for thread in threads:
            thread.join(10)
        assert len(pool.history) == 6 * 100 * 4
        assert_exclusive_history(pool.history)
        assert pool.is_idle()


class TestCapacity:

    def test_default_capacities(self):
        pool = ResourcePool()
        assert pool.capacity(ToolKind.MIXER) == 2
        assert pool.capacity(ToolKind.BOWL) == 3
        assert pool.capacity(ToolKind.SPOON) == 5

    def test_acquire_blocks_at_capacity(self):
        pool = ResourcePool(mixers=2)
        pool.acquire_capacity(ToolKind.MIXER)
        pool.acquire_capacity(ToolKind.MIXER)
        thread = start_thread(pool.acquire_capacity, ToolKind.MIXER)
        time.sleep(0.05)
        assert pool.in_use(ToolKind.MIXER) == 2
        pool.release_capacity(ToolKind.MIXER)
        thread.join(5)
        assert pool.in_use(ToolKind.MIXER) == 2

    def test_release_below_zero_is_violation(self):
        pool = ResourcePool()
        with pytest.raises(ResourceInvariantViolation):
            pool.release_capacity(ToolKind.SPOON)
        assert pool.in_use(ToolKind.SPOON) == 0

    def test_concurrent_use_never_exceeds_capacity(self):
        pool = ResourcePool(bowls=3)
        lock = threading.Lock()
        state = {"current": 0, "peak": 0}

        def worker():
            for _ in range(50):
                pool.acquire_capacity(ToolKind.BOWL)
                with lock:
                    state["current"] += 1
                    state["peak"] = max(state["peak"], state["current"])
                time.sleep(0.0005)
                with lock:
                    state["current"] -= 1
                pool.release_capacity(ToolKind.BOWL)

        threads = [start_thread(worker) for _ in range(8)]
        for thread in threads:
            thread.join(20)
        assert 1 <= state["peak"] <= 3
        assert pool.in_use(ToolKind.BOWL) == 0

    def test_close_fails_waiters(self):
        pool = ResourcePool(mixers=1)
        pool.acquire_capacity(ToolKind.MIXER)
        errors = []

        def acquire():
            try:
                pool.acquire_capacity(ToolKind.MIXER)
            except ResourceInvariantViolation as e:
                errors.append(e)

        thread = start_thread(acquire)
        time.sleep(0.05)
        pool.close()
        thread.join(5)
        assert wait_until(lambda: len(errors) == 1)
        assert not pool.try_acquire_exclusive(KitchenArea.PANTRY, 1)

    def test_snapshot_reports_available_units(self):
        pool = ResourcePool(spoons=5)
        pool.acquire_capacity(ToolKind.SPOON)
        pool.acquire_capacity(ToolKind.SPOON)
        assert pool.snapshot()["tools"]["spoon"] == {"in_use": 2, "available": 3, "capacity": 5}
