"""
The run-wide interruption: fires at most once, against one chosen baker.
"""

import logging
import random
import threading
from typing import Callable, Optional

from bakeoff_errors import AbortedAttempt
from bakeoff_types import EventKind, WorkerPhase
from kitchen.holdings import Holdings

logger = logging.getLogger(__name__)


class PreemptionController:
    """Decides at checkpoints whether the interruption fires.

    The baker reaches a checkpoint after each gathered ingredient, after
    taking the mixing tools and after taking the oven. The controller fires
    when it has not fired before, the baker is the target, the phase matches
    ``trigger_phase`` (any phase when unset) and a draw from ``rng`` falls
    below ``probability``. Firing releases everything the target holds and
    raises ``AbortedAttempt`` in the target's thread.
    """

    def __init__(
        self,
        target: Optional[int],
        probability: float = 0.5,
        rng: Optional[random.Random] = None,
        trigger_phase: Optional[WorkerPhase] = None,
        emit: Optional[Callable] = None
    ):
        if not 0.0 <= probability <= 1.0:
            raise ValueError("probability must be within [0, 1]")
        self.target = target
        self.probability = probability
        self.rng = rng or random.Random()
        self.trigger_phase = trigger_phase
        self._emit = emit
        self._lock = threading.Lock()
        self._fired = False
        self.fired_at: Optional[WorkerPhase] = None

    @property
    def fired(self) -> bool:
        with self._lock:
            return self._fired

    def is_eligible(self, worker_id: int, phase: WorkerPhase) -> bool:
        if self.target is None or worker_id != self.target:
            return False
        if self.trigger_phase is not None and phase != self.trigger_phase:
            return False
        return not self.fired

    def checkpoint(self, holdings: Holdings, phase: WorkerPhase, recipe: str = ""):
        """Maybe fire against the baker owning ``holdings``."""
        if not self.is_eligible(holdings.worker_id, phase):
            return
        if not self._claim():
            return
        self.fired_at = phase

        released = holdings.release_all()
        logger.warning(
            f"Preemption fired for baker {holdings.worker_id} during {phase.value} "
            f"of {recipe or 'recipe'}, released {released}"
        )
        if self._emit is not None:
            self._emit(holdings.worker_id, EventKind.PREEMPTION_FIRED, recipe, phase=phase.value, released=released)
        raise AbortedAttempt(holdings.worker_id, recipe, phase)

    def _claim(self) -> bool:
        """Atomically draw and set the fired flag."""
        with self._lock:
            if self._fired:
                return False
            if self.rng.random() >= self.probability:
                return False
            self._fired = True
            return True
