"""
Acquisition of storage areas and ingredient reservations for one recipe attempt.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from bakeoff_errors import AbortedAttempt
from bakeoff_types import STORAGE_AREAS, EventKind, Ingredient, KitchenArea, StorageKind, WorkerPhase
from kitchen.holdings import Holdings
from kitchen.preemption import PreemptionController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stop:
    """One storage visit: the areas that can serve it, in priority order, and what to take there."""
    storage: StorageKind
    areas: Tuple[KitchenArea, ...]
    ingredients: Tuple[Ingredient, ...]

    @property
    def floor(self) -> int:
        """Lowest reservation rank among the stop's ingredients."""
        return self.ingredients[0].rank


class AcquisitionCoordinator:
    """Gathers every ingredient of a recipe, or none of them.

    Resources are ranked: pantry, pantry ingredients, fridges, fridge
    ingredients (then tools and the oven, taken later by the baker). A baker
    only ever blocks on something ranked above everything it holds, holds at
    most one area at a time, and leaves each area as soon as its
    ingredients are reserved. That rules out a waiting cycle.

    Within that rule the order is adaptive. The first sweep probes each
    stop without waiting on its area, so a busy pantry does not keep a baker
    away from a free fridge. Ingredients taken out of rank order are only
    ever taken without waiting; if the lower-ranked stop cannot then be
    served immediately, those out-of-order reservations are returned before
    the baker blocks.
    """

    def __init__(self, preemption: PreemptionController, emit: Optional[Callable] = None):
        self.preemption = preemption
        self._emit = emit or (lambda *args, **kwargs: None)

    def plan(self, ingredients: Sequence[Ingredient]) -> List[Stop]:
        """Split a recipe's ingredients into stops in rank order."""
        by_storage: Dict[StorageKind, List[Ingredient]] = {}
        for ingredient in sorted(set(ingredients), key=lambda i: i.rank):
            by_storage.setdefault(ingredient.storage, []).append(ingredient)
        stops = [
            Stop(storage, STORAGE_AREAS[storage], tuple(items))
            for storage, items in by_storage.items()
        ]
        return sorted(stops, key=lambda stop: stop.floor)

    def acquire(self, holdings: Holdings, recipe: str, ingredients: Sequence[Ingredient]) -> List[Ingredient]:
        """Reserve every ingredient of ``recipe`` for the baker owning ``holdings``.

        Returns the reserved ingredients. On preemption everything reserved
        for this attempt is released and ``AbortedAttempt`` propagates.
        """
        stops = self.plan(ingredients)
        try:
            self._gather_all(holdings, recipe, stops)
        except AbortedAttempt:
            holdings.release_all()
            raise
        return list(holdings.ingredients)

    def _gather_all(self, holdings: Holdings, recipe: str, stops: List[Stop]):
        pending = list(stops)
        gathered: List[Stop] = []

        # Opportunistic sweep: visit whatever is free right now
        for stop in list(pending):
            area = holdings.try_area(stop.areas)
            if area is None:
                continue
            if self._gather(holdings, recipe, stop, area, blocking=self._may_block(holdings, stop)):
                pending.remove(stop)
                gathered.append(stop)

        while pending:
            stop = pending[0]
            if self._may_block(holdings, stop):
                area = holdings.acquire_any_area(stop.areas)
                self._gather(holdings, recipe, stop, area, blocking=True)
                pending.pop(0)
                gathered.append(stop)
                continue

            area = holdings.try_area(stop.areas)
            if area is not None and self._gather(holdings, recipe, stop, area, blocking=False):
                pending.pop(0)
                gathered.append(stop)
                continue

            # Return what was taken out of order, then wait in order
            returned = [done for done in gathered if done.floor > stop.floor]
            self._back_off(holdings, recipe, returned)
            gathered = [done for done in gathered if done not in returned]
            pending = sorted(pending + returned, key=lambda s: s.floor)

    def _gather(self, holdings: Holdings, recipe: str, stop: Stop, area: KitchenArea, blocking: bool) -> bool:
        """Reserve a stop's ingredients while holding ``area``. Leaves the area either way."""
        worker_id = holdings.worker_id
        self._emit(worker_id, EventKind.AREA_ENTERED, recipe, area=area.value)
        taken: List[Ingredient] = []
        try:
            for ingredient in stop.ingredients:
                if not holdings.reserve(ingredient, timeout=None if blocking else 0):
                    logger.debug(f"Baker {worker_id} found no {ingredient.value} in {area.value}")
                    holdings.release_ingredients(taken)
                    return False
                taken.append(ingredient)
                self._emit(worker_id, EventKind.INGREDIENT_GATHERED, recipe,
                           ingredient=ingredient.value, area=area.value)
                self.preemption.checkpoint(holdings, WorkerPhase.ACQUIRING, recipe)
            return True
        finally:
            # A forced release may already have given the area back
            if area in holdings.areas:
                holdings.release_area(area)
            self._emit(worker_id, EventKind.AREA_LEFT, recipe, area=area.value)

    def _may_block(self, holdings: Holdings, stop: Stop) -> bool:
        return all(ingredient.rank < stop.floor for ingredient in holdings.ingredients)

    def _back_off(self, holdings: Holdings, recipe: str, stops: List[Stop]):
        returned = [ingredient for stop in stops for ingredient in stop.ingredients]
        logger.info(
            f"Baker {holdings.worker_id} backing off {recipe}: returning "
            f"{[ingredient.value for ingredient in returned]}"
        )
        holdings.release_ingredients(returned)
