"""
Baker - one worker's state machine over its recipe list
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from bakeoff_errors import AbortedAttempt
from bakeoff_types import EventKind, KitchenArea, ToolKind, WorkerPhase
from kitchen.acquisition import AcquisitionCoordinator
from kitchen.engine import Kitchen
from recipes.catalog import Recipe

logger = logging.getLogger(__name__)


@dataclass
class BakerContext:
    """Progress of one baker through its recipes"""
    worker_id: int
    recipes: List[Recipe]
    phase: WorkerPhase = WorkerPhase.SELECTING_RECIPE
    current_recipe: Optional[str] = None
    phase_history: List[WorkerPhase] = field(default_factory=list)
    attempts: Dict[str, int] = field(default_factory=dict)
    aborts: int = 0
    completed: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def is_done(self) -> bool:
        return self.phase == WorkerPhase.ALL_RECIPES_DONE

    def to_dict(self) -> Dict[str, Any]:
        duration = None
        if self.started_at and self.finished_at:
            duration = (self.finished_at - self.started_at).total_seconds()
        return {
            'worker_id': self.worker_id,
            'phase': self.phase.value,
            'recipes': [r.name for r in self.recipes],
            'completed': list(self.completed),
            'attempts': dict(self.attempts),
            'aborts': self.aborts,
            'duration_seconds': duration
        }


class Baker:
    """Drives one baker through acquire, mix, bake and release for each recipe.

    An attempt aborted by preemption leaves the baker holding nothing and is
    retried from ACQUIRING with the same recipe.
    """

    def __init__(self, worker_id: int, recipes: Sequence[Recipe], kitchen: Kitchen):
        self.kitchen = kitchen
        self.context = BakerContext(worker_id=worker_id, recipes=list(recipes))
        self.holdings = kitchen.holdings_for(worker_id)
        self.coordinator = AcquisitionCoordinator(kitchen.preemption, emit=kitchen.emit)

    @property
    def worker_id(self) -> int:
        return self.context.worker_id

    def run(self) -> BakerContext:
        """Work through every recipe; returns the final context."""
        ctx = self.context
        ctx.started_at = datetime.now()
        logger.info(f"Baker {self.worker_id} starting {len(ctx.recipes)} recipes")

        for recipe in ctx.recipes:
            self._enter(WorkerPhase.SELECTING_RECIPE)
            ctx.current_recipe = recipe.name
            while True:
                try:
                    self._attempt(recipe)
                    break
                except AbortedAttempt:
                    self._enter(WorkerPhase.ABORTED)
                    ctx.aborts += 1
                    self.kitchen.emit(self.worker_id, EventKind.ATTEMPT_ABORTED, recipe.name)
                    logger.info(f"Baker {self.worker_id} retrying {recipe.name}")

        ctx.current_recipe = None
        self._enter(WorkerPhase.ALL_RECIPES_DONE)
        ctx.finished_at = datetime.now()
        self.kitchen.emit(self.worker_id, EventKind.WORKER_FINISHED, completed=len(ctx.completed))
        logger.info(f"Baker {self.worker_id} finished all recipes")
        return ctx

    def _attempt(self, recipe: Recipe):
        ctx = self.context
        ctx.attempts[recipe.name] = ctx.attempts.get(recipe.name, 0) + 1

        self._enter(WorkerPhase.ACQUIRING)
        self.kitchen.emit(self.worker_id, EventKind.ATTEMPT_STARTED, recipe.name,
                          attempt=ctx.attempts[recipe.name])
        self.coordinator.acquire(self.holdings, recipe.name, recipe.ingredients)

        try:
            self._mix(recipe)
            self._bake(recipe)
        except AbortedAttempt:
            self.holdings.release_all()
            raise

        # Ingredients go back on the shelf once the recipe is out of the oven
        self.holdings.release_ingredients()
        self._enter(WorkerPhase.COMPLETED)
        ctx.completed.append(recipe.name)
        self.kitchen.emit(self.worker_id, EventKind.RECIPE_COMPLETED, recipe.name)
        logger.info(f"Baker {self.worker_id} completed {recipe.name}")

    def _mix(self, recipe: Recipe):
        self._enter(WorkerPhase.MIXING)
        self.holdings.acquire_tools(tuple(ToolKind))
        self.kitchen.preemption.checkpoint(self.holdings, WorkerPhase.MIXING, recipe.name)
        self.kitchen.emit(self.worker_id, EventKind.MIXING_STARTED, recipe.name)
        self._hold(self.kitchen.settings.kitchen.mixing_seconds)
        self.holdings.release_tools()

    def _bake(self, recipe: Recipe):
        self._enter(WorkerPhase.BAKING)
        self.holdings.acquire_area(KitchenArea.OVEN)
        self.kitchen.preemption.checkpoint(self.holdings, WorkerPhase.BAKING, recipe.name)
        self.kitchen.emit(self.worker_id, EventKind.BAKING_STARTED, recipe.name)
        self._hold(self.kitchen.settings.kitchen.baking_seconds)
        self.holdings.release_area(KitchenArea.OVEN)

    def _hold(self, seconds: float):
        if seconds > 0:
            time.sleep(seconds)

    def _enter(self, phase: WorkerPhase):
        self.context.phase = phase
        self.context.phase_history.append(phase)
