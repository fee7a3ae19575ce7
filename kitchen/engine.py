"""
Kitchen aggregate: shared resources, preemption and the lifecycle event bus.
"""

from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
import logging
import random
import threading

from bakeoff_types import EventKind
from config import Settings, get_settings
from kitchen.holdings import Holdings
from kitchen.ledger import IngredientLedger
from kitchen.preemption import PreemptionController
from kitchen.resources import ResourcePool

logger = logging.getLogger(__name__)


@dataclass
class KitchenEvent:
    """One lifecycle event, as seen by reporters and metrics."""
    worker_id: int
    kind: EventKind
    recipe: str = ""
    detail: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "worker_id": self.worker_id,
            "kind": self.kind.value,
            "recipe": self.recipe,
            "detail": self.detail,
            "timestamp": self.timestamp.isoformat(),
        }


class Kitchen:
    """Everything bakers share for one run.

    Built once per run and handed to every baker; there is no module-level
    kitchen.
    """

    def __init__(
        self,
        worker_count: int,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None
    ):
        self.settings = settings or get_settings()
        self.worker_count = worker_count
        self.rng = rng or random.Random(self.settings.seed)

        kitchen_settings = self.settings.kitchen
        self.ledger = IngredientLedger(initial_units=kitchen_settings.ingredient_units)
        self.pool = ResourcePool(
            mixers=kitchen_settings.mixer_capacity,
            bowls=kitchen_settings.bowl_capacity,
            spoons=kitchen_settings.spoon_capacity,
            record_history=kitchen_settings.record_history
        )

        preemption_settings = self.settings.preemption
        self.preemption = PreemptionController(
            target=self._choose_target(),
            probability=preemption_settings.probability,
            rng=self.rng,
            trigger_phase=preemption_settings.trigger_phase,
            emit=self.emit
        )

        self._holdings: Dict[int, Holdings] = {}
        self._holdings_lock = threading.Lock()
        self.event_handlers: List[Callable[[KitchenEvent], Any]] = []

        logger.info(
            f"Kitchen initialized for {worker_count} bakers, "
            f"preemption target: {self.preemption.target}"
        )

    def _choose_target(self) -> Optional[int]:
        preemption_settings = self.settings.preemption
        if not preemption_settings.enabled:
            return None
        if preemption_settings.target is not None:
            return preemption_settings.target
        return self.rng.randrange(self.worker_count)

    def holdings_for(self, worker_id: int) -> Holdings:
        """The holdings record of one baker, created on first use."""
        with self._holdings_lock:
            if worker_id not in self._holdings:
                self._holdings[worker_id] = Holdings(worker_id, self.pool, self.ledger)
            return self._holdings[worker_id]

    # Events

    def register_event_handler(self, handler: Callable[[KitchenEvent], Any]):
        """Register a callable invoked with every KitchenEvent, on the emitting baker's thread."""
        self.event_handlers.append(handler)

    def emit(self, worker_id: int, kind: EventKind, recipe: str = "", **detail: Any) -> KitchenEvent:
        event = KitchenEvent(worker_id=worker_id, kind=kind, recipe=recipe, detail=detail)
        logger.debug(f"Baker {worker_id}: {kind.value} {recipe} {detail}")
        for handler in list(self.event_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler failed for {kind.value}: {e}")
        return event

    # Status

    def is_quiescent(self) -> bool:
        """Every ingredient on the shelf and no resource held."""
        return self.ledger.is_fully_stocked() and self.pool.is_idle()

    def shutdown(self):
        """Fail every blocked baker; used after an invariant violation."""
        logger.error("Shutting kitchen down")
        self.ledger.close()
        self.pool.close()

    def get_kitchen_status(self) -> Dict[str, Any]:
        """Get overall kitchen status."""
        with self._holdings_lock:
            holdings = {worker_id: h.to_dict() for worker_id, h in self._holdings.items()}
        pool_state = self.pool.snapshot()
        return {
            "worker_count": self.worker_count,
            "areas": pool_state["areas"],
            "tools": pool_state["tools"],
            "ingredients": self.ledger.snapshot(),
            "holdings": holdings,
            "preemption": {
                "target": self.preemption.target,
                "fired": self.preemption.fired,
                "phase": self.preemption.fired_at.value if self.preemption.fired_at else None,
            },
        }
