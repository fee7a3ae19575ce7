"""
Resource pool: exclusive kitchen areas and counting tool pools.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from bakeoff_errors import ResourceInvariantViolation
from bakeoff_types import FRIDGES, KitchenArea, ToolKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AreaTransition:
    """One change of an exclusive area's holder."""
    area: KitchenArea
    worker_id: int
    acquired: bool
    timestamp: datetime


class ExclusiveArea:
    """An area at most one baker may hold."""

    def __init__(self, area: KitchenArea, condition: threading.Condition):
        self.area = area
        self.condition = condition
        self.held_by: Optional[int] = None

    @property
    def is_free(self) -> bool:
        return self.held_by is None


class CapacityPool:
    """A counting resource with a fixed number of interchangeable units."""

    def __init__(self, kind: ToolKind, capacity: int):
        if capacity < 1:
            raise ValueError(f"{kind.value} capacity must be at least 1")
        self.kind = kind
        self.capacity = capacity
        self.in_use = 0
        self.condition = threading.Condition()

    @property
    def available_capacity(self) -> int:
        return self.capacity - self.in_use


class ResourcePool:
    """Exclusive areas (pantry, fridges, oven) and tool capacities (mixers, bowls, spoons).

    Every area and every tool pool has its own condition. The two fridges
    share one so a baker can wait for whichever frees up first.
    """

    def __init__(
        self,
        mixers: int = 2,
        bowls: int = 3,
        spoons: int = 5,
        record_history: bool = False
    ):
        fridge_condition = threading.Condition()
        self._areas: Dict[KitchenArea, ExclusiveArea] = {}
        for area in KitchenArea:
            condition = fridge_condition if area in FRIDGES else threading.Condition()
            self._areas[area] = ExclusiveArea(area, condition)

        self._tools: Dict[ToolKind, CapacityPool] = {
            ToolKind.MIXER: CapacityPool(ToolKind.MIXER, mixers),
            ToolKind.BOWL: CapacityPool(ToolKind.BOWL, bowls),
            ToolKind.SPOON: CapacityPool(ToolKind.SPOON, spoons),
        }

        self.record_history = record_history
        self.history: List[AreaTransition] = []
        self._closed = False

    # Exclusive areas

    def acquire_exclusive(self, area: KitchenArea, holder: int):
        """Block until ``area`` is free, then take it for ``holder``."""
        slot = self._areas[area]
        with slot.condition:
            while not slot.is_free:
                self._check_open()
                slot.condition.wait()
            self._check_open()
            self._take(slot, holder)

    def try_acquire_exclusive(self, area: KitchenArea, holder: int) -> bool:
        """Take ``area`` if it is free right now."""
        slot = self._areas[area]
        with slot.condition:
            if self._closed or not slot.is_free:
                return False
            self._take(slot, holder)
            return True

    def acquire_any_exclusive(self, areas: Sequence[KitchenArea], holder: int) -> KitchenArea:
        """Block until one of several interchangeable areas is free and take it.

        The areas must share a condition; earlier entries win when several
        are free.
        """
        slots = [self._areas[area] for area in areas]
        if not slots:
            raise ValueError("No areas given")
        condition = slots[0].condition
        if any(slot.condition is not condition for slot in slots):
            raise ValueError(f"Areas {[a.value for a in areas]} are not interchangeable")
        with condition:
            while True:
                self._check_open()
                for slot in slots:
                    if slot.is_free:
                        self._take(slot, holder)
                        return slot.area
                condition.wait()

    def release_exclusive(self, area: KitchenArea, holder: int):
        slot = self._areas[area]
        with slot.condition:
            if slot.held_by != holder:
                logger.error(f"Baker {holder} released {area.value} held by {slot.held_by}")
                raise ResourceInvariantViolation(
                    f"Baker {holder} released {area.value} but it is held by {slot.held_by}"
                )
            slot.held_by = None
            if self.record_history:
                self.history.append(AreaTransition(area, holder, False, datetime.now()))
            # notify_all: waiters on a shared fridge condition may want the other fridge
            slot.condition.notify_all()

    def holder_of(self, area: KitchenArea) -> Optional[int]:
        slot = self._areas[area]
        with slot.condition:
            return slot.held_by

    def _take(self, slot: ExclusiveArea, holder: int):
        slot.held_by = holder
        if self.record_history:
            self.history.append(AreaTransition(slot.area, holder, True, datetime.now()))

    # Counting resources

    def acquire_capacity(self, kind: ToolKind):
        pool = self._tools[kind]
        with pool.condition:
            while pool.in_use >= pool.capacity:
                self._check_open()
                pool.condition.wait()
            self._check_open()
            pool.in_use += 1

    def release_capacity(self, kind: ToolKind):
        pool = self._tools[kind]
        with pool.condition:
            if pool.in_use <= 0:
                logger.error(f"{kind.value} released with none in use")
                raise ResourceInvariantViolation(f"{kind.value} released with none in use")
            pool.in_use -= 1
            if not 0 <= pool.in_use <= pool.capacity:
                raise ResourceInvariantViolation(
                    f"{kind.value} in use {pool.in_use} outside 0..{pool.capacity}"
                )
            pool.condition.notify()

    def in_use(self, kind: ToolKind) -> int:
        pool = self._tools[kind]
        with pool.condition:
            return pool.in_use

    def capacity(self, kind: ToolKind) -> int:
        return self._tools[kind].capacity

    # Status

    def snapshot(self) -> Dict[str, Dict]:
        return {
            "areas": {area.value: self.holder_of(area) for area in self._areas},
            "tools": {
                kind.value: self._tool_status(pool) for kind, pool in self._tools.items()
            },
        }

    def _tool_status(self, pool: CapacityPool) -> Dict[str, int]:
        with pool.condition:
            return {
                "in_use": pool.in_use,
                "available": pool.available_capacity,
                "capacity": pool.capacity,
            }

    def is_idle(self) -> bool:
        """No area held and no tool in use."""
        return (
            all(self.holder_of(area) is None for area in self._areas)
            and all(self.in_use(kind) == 0 for kind in self._tools)
        )

    def close(self):
        """Wake every waiter and make further blocking acquisitions fail."""
        self._closed = True
        conditions = {id(slot.condition): slot.condition for slot in self._areas.values()}
        conditions.update({id(pool.condition): pool.condition for pool in self._tools.values()})
        for condition in conditions.values():
            with condition:
                condition.notify_all()

    def _check_open(self):
        if self._closed:
            raise ResourceInvariantViolation("Kitchen shut down while waiting for a resource")
