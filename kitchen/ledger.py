"""
Ingredient ledger: per-ingredient unit counters, each behind its own condition.
"""

import logging
import threading
from typing import Dict, Iterable, Optional

from bakeoff_errors import ResourceInvariantViolation
from bakeoff_types import Ingredient

logger = logging.getLogger(__name__)


class IngredientLedger:
    """Tracks how many units of each ingredient are on the shelf.

    A reservation waits on the ingredient's condition until a unit is free;
    a release puts the unit back and wakes one waiter. There is no lock
    shared between ingredients.
    """

    def __init__(self, initial_units: int = 1, ingredients: Optional[Iterable[Ingredient]] = None):
        if initial_units < 1:
            raise ValueError("initial_units must be at least 1")
        self.initial_units = initial_units
        kinds = list(ingredients) if ingredients is not None else list(Ingredient)
        self._available: Dict[Ingredient, int] = {kind: initial_units for kind in kinds}
        self._conditions: Dict[Ingredient, threading.Condition] = {
            kind: threading.Condition() for kind in kinds
        }
        self._closed = False

    def try_reserve(self, ingredient: Ingredient, timeout: Optional[float] = None) -> bool:
        """Take one unit of ``ingredient``.

        Blocks until a unit is available when ``timeout`` is None. With a
        timeout, gives up and returns False once it expires; ``timeout=0``
        never waits.
        """
        condition = self._conditions[ingredient]
        with condition:
            if timeout is None:
                while self._available[ingredient] <= 0:
                    self._check_open()
                    condition.wait()
            elif not condition.wait_for(
                lambda: self._available[ingredient] > 0 or self._closed, timeout=timeout
            ):
                return False
            self._check_open()
            self._available[ingredient] -= 1
            return True

    def release(self, ingredient: Ingredient):
        """Return one unit of ``ingredient``."""
        condition = self._conditions[ingredient]
        with condition:
            if self._available[ingredient] >= self.initial_units:
                logger.error(f"Release of {ingredient.value} without a matching reservation")
                raise ResourceInvariantViolation(
                    f"{ingredient.value} released without a matching reservation"
                )
            self._available[ingredient] += 1
            condition.notify_all()

    def available(self, ingredient: Ingredient) -> int:
        with self._conditions[ingredient]:
            return self._available[ingredient]

    def snapshot(self) -> Dict[str, int]:
        """Available units per ingredient name."""
        return {kind.value: self.available(kind) for kind in self._available}

    def is_fully_stocked(self) -> bool:
        return all(self.available(kind) == self.initial_units for kind in self._available)

    def close(self):
        """Wake every waiter and make further reservations fail."""
        self._closed = True
        for condition in self._conditions.values():
            with condition:
                condition.notify_all()

    def _check_open(self):
        if self._closed:
            raise ResourceInvariantViolation("Kitchen shut down while waiting for an ingredient")
