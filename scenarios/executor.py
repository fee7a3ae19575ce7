"""
Kitchen Supervisor - creates the kitchen, runs one thread per baker, collects the result
"""
import logging
import random
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from agents.baker import Baker, BakerContext
from bakeoff_errors import ConfigurationError, ResourceInvariantViolation
from bakeoff_types import RunStatus
from config import Settings, get_settings
from kitchen.engine import Kitchen, KitchenEvent
from metrics.collector import MetricsCollector
from recipes.catalog import Recipe, RecipeCatalog

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Results from one bake-off run"""
    status: RunStatus
    worker_count: int
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_seconds: float = 0.0
    seed: Optional[int] = None
    preemption_target: Optional[int] = None
    preemption_fired: bool = False
    bakers: Dict[int, Dict] = field(default_factory=dict)
    events: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def recipes_completed(self) -> int:
        return sum(len(b['completed']) for b in self.bakers.values())

    def to_dict(self) -> Dict:
        """Convert result to dictionary for storage"""
        return {
            'status': self.status.value,
            'worker_count': self.worker_count,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration_seconds': self.duration_seconds,
            'seed': self.seed,
            'preemption_target': self.preemption_target,
            'preemption_fired': self.preemption_fired,
            'recipes_completed': self.recipes_completed,
            'bakers': self.bakers,
            'events': self.events,
            'error': self.error
        }


class KitchenSupervisor:
    """Thin orchestration around the kitchen core.

    ``initialize`` builds the kitchen, ``spawn_worker`` starts a baker on
    its own thread and ``await_completion`` joins it. ``run`` does all three
    for the usual case of every baker working through the whole catalog.
    """

    def __init__(self, settings: Optional[Settings] = None, rng: Optional[random.Random] = None):
        self.settings = settings or get_settings()
        self.rng = rng
        self.kitchen: Optional[Kitchen] = None
        self.catalog: Optional[RecipeCatalog] = None
        self.metrics = MetricsCollector()
        self.executor: Optional[ThreadPoolExecutor] = None
        self.bakers: Dict[int, Baker] = {}
        self.handles: Dict[int, Future] = {}
        self._event_handlers: List[Callable[[KitchenEvent], Any]] = []

    def register_event_handler(self, handler: Callable[[KitchenEvent], Any]):
        """Register an event handler, before or after initialize"""
        self._event_handlers.append(handler)
        if self.kitchen is not None:
            self.kitchen.register_event_handler(handler)

    def initialize(self, worker_count: int, recipe_catalog: Optional[RecipeCatalog] = None) -> Kitchen:
        """Validate the worker count and build a fresh kitchen"""
        self.settings.validate_worker_count(worker_count)
        if self.executor is not None:
            raise ConfigurationError("Supervisor already initialized; create a new one per run")
        target = self.settings.preemption.target
        if self.settings.preemption.enabled and target is not None and target >= worker_count:
            raise ConfigurationError(f"Preemption target {target} is not one of {worker_count} bakers")

        self.catalog = recipe_catalog or RecipeCatalog.load(self.settings.recipes_file)
        rng = self.rng or random.Random(self.settings.seed)
        self.kitchen = Kitchen(worker_count, settings=self.settings, rng=rng)
        self.kitchen.register_event_handler(self.metrics)
        for handler in self._event_handlers:
            self.kitchen.register_event_handler(handler)

        self.executor = ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="baker")
        logger.info(f"Supervisor initialized: {worker_count} bakers, {len(self.catalog)} recipes")
        return self.kitchen

    def spawn_worker(self, worker_id: int, recipe_sequence: Optional[Sequence[Recipe]] = None) -> Future:
        """Start a baker on its own thread"""
        if self.kitchen is None or self.executor is None:
            raise ConfigurationError("Supervisor not initialized")
        if worker_id in self.bakers:
            raise ConfigurationError(f"Baker {worker_id} already spawned")
        if len(self.bakers) >= self.kitchen.worker_count:
            raise ConfigurationError(f"All {self.kitchen.worker_count} bakers already spawned")

        recipes = list(recipe_sequence) if recipe_sequence is not None else self.catalog.sequence()
        baker = Baker(worker_id, recipes, self.kitchen)
        self.bakers[worker_id] = baker
        handle = self.executor.submit(baker.run)
        self.handles[worker_id] = handle
        return handle

    def await_completion(self, handle: Future, timeout: Optional[float] = None) -> BakerContext:
        """Wait for one baker; re-raises whatever stopped it"""
        return handle.result(timeout=timeout)

    def run(self, worker_count: int, recipe_catalog: Optional[RecipeCatalog] = None,
            recipe_names: Optional[Sequence[str]] = None) -> RunResult:
        """Run every baker through the same recipe sequence and wait for all of them"""
        kitchen = self.initialize(worker_count, recipe_catalog)
        sequence = self.catalog.sequence(recipe_names)

        result = RunResult(
            status=RunStatus.RUNNING,
            worker_count=worker_count,
            start_time=datetime.now(),
            seed=self.settings.seed,
            preemption_target=kitchen.preemption.target
        )

        try:
            for worker_id in range(worker_count):
                self.spawn_worker(worker_id, sequence)

            done, not_done = wait(
                list(self.handles.values()),
                timeout=self.settings.run_timeout_seconds,
                return_when=FIRST_EXCEPTION
            )
            failed = [f for f in done if f.exception() is not None]
            if failed:
                error = failed[0].exception()
                logger.error(f"Baker failed, aborting run: {error}")
                kitchen.shutdown()
                wait(not_done)
                raise error
            if not_done:
                kitchen.shutdown()
                wait(not_done)
                raise ResourceInvariantViolation(
                    f"Bakers still running after {self.settings.run_timeout_seconds}s"
                )

            for worker_id, handle in sorted(self.handles.items()):
                result.bakers[worker_id] = self.await_completion(handle).to_dict()
            result.status = RunStatus.COMPLETED

        except Exception as e:
            result.status = RunStatus.FAILED
            result.error = str(e)
            raise

        finally:
            result.end_time = datetime.now()
            result.duration_seconds = (result.end_time - result.start_time).total_seconds()
            result.preemption_fired = kitchen.preemption.fired
            result.events = self.metrics.summary_dict()
            self.shutdown()
            logger.info(f"Run finished: {result.status.value} in {result.duration_seconds:.2f}s")

        return result

    def shutdown(self):
        if self.executor is not None:
            self.executor.shutdown(wait=True)
