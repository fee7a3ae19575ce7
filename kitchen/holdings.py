"""
Per-baker record of held resources.
"""

import logging
import threading
from typing import Dict, List, Optional, Sequence, Set

from bakeoff_errors import ResourceInvariantViolation
from bakeoff_types import Ingredient, KitchenArea, ToolKind
from kitchen.ledger import IngredientLedger
from kitchen.resources import ResourcePool

logger = logging.getLogger(__name__)


class Holdings:
    """Everything one baker currently holds.

    A baker acquires and releases through its holdings so a forced release
    can return exactly what that baker owns and nothing else. Only the
    owning baker's thread mutates it; other threads read it through
    ``to_dict``, which copies under the holdings lock.
    """

    def __init__(self, worker_id: int, pool: ResourcePool, ledger: IngredientLedger):
        self.worker_id = worker_id
        self.pool = pool
        self.ledger = ledger
        self.areas: Set[KitchenArea] = set()
        self.tools: List[ToolKind] = []
        self.ingredients: List[Ingredient] = []
        self._lock = threading.Lock()

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return not (self.areas or self.tools or self.ingredients)

    # Areas

    def acquire_area(self, area: KitchenArea):
        self.pool.acquire_exclusive(area, self.worker_id)
        with self._lock:
            self.areas.add(area)

    def try_area(self, areas: Sequence[KitchenArea]) -> Optional[KitchenArea]:
        """Take the first free area in priority order without waiting."""
        for area in areas:
            if self.pool.try_acquire_exclusive(area, self.worker_id):
                with self._lock:
                    self.areas.add(area)
                return area
        return None

    def acquire_any_area(self, areas: Sequence[KitchenArea]) -> KitchenArea:
        if len(areas) == 1:
            self.acquire_area(areas[0])
            return areas[0]
        area = self.pool.acquire_any_exclusive(areas, self.worker_id)
        with self._lock:
            self.areas.add(area)
        return area

    def release_area(self, area: KitchenArea):
        with self._lock:
            if area not in self.areas:
                raise ResourceInvariantViolation(
                    f"Baker {self.worker_id} does not hold {area.value}"
                )
            self.areas.discard(area)
        self.pool.release_exclusive(area, self.worker_id)

    # Ingredients

    def reserve(self, ingredient: Ingredient, timeout: Optional[float] = None) -> bool:
        if not self.ledger.try_reserve(ingredient, timeout=timeout):
            return False
        with self._lock:
            self.ingredients.append(ingredient)
        return True

    def release_ingredient(self, ingredient: Ingredient):
        with self._lock:
            if ingredient not in self.ingredients:
                raise ResourceInvariantViolation(
                    f"Baker {self.worker_id} has no reservation on {ingredient.value}"
                )
            self.ingredients.remove(ingredient)
        self.ledger.release(ingredient)

    def release_ingredients(self, ingredients: Optional[Sequence[Ingredient]] = None):
        """Release the given reservations, or all of them."""
        with self._lock:
            targets = list(self.ingredients if ingredients is None else ingredients)
        for ingredient in reversed(targets):
            self.release_ingredient(ingredient)

    # Tools

    def acquire_tools(self, kinds: Sequence[ToolKind] = tuple(ToolKind)):
        """Take one unit of each tool, in the given order."""
        for kind in kinds:
            self.pool.acquire_capacity(kind)
            with self._lock:
                self.tools.append(kind)

    def release_tools(self):
        while True:
            with self._lock:
                if not self.tools:
                    return
                kind = self.tools.pop()
            self.pool.release_capacity(kind)

    # Everything

    def release_all(self) -> Dict[str, List[str]]:
        """Return every held resource to the kitchen. Safe to call repeatedly."""
        released = self.to_dict()
        self.release_tools()
        with self._lock:
            areas = list(self.areas)
        for area in areas:
            self.release_area(area)
        self.release_ingredients()
        if any(released.values()):
            logger.debug(f"Baker {self.worker_id} released {released}")
        return released

    def to_dict(self) -> Dict[str, List[str]]:
        with self._lock:
            return {
                "areas": sorted(area.value for area in self.areas),
                "tools": [kind.value for kind in self.tools],
                "ingredients": [ingredient.value for ingredient in self.ingredients],
            }
