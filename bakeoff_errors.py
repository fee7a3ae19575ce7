"""
Exception types for the bake-off kitchen
"""


class BakeOffError(Exception):
    """Base class for kitchen errors"""


class ConfigurationError(BakeOffError):
    """Bad worker count, recipe catalog or settings. Raised before any baker starts."""


class ResourceInvariantViolation(BakeOffError):
    """A coordination bug: a counter left its bounds or a release had no matching acquire.

    Fatal for the run.
    """


class AbortedAttempt(BakeOffError):
    """The current recipe attempt was preempted and its holdings released.

    The baker retries the same recipe.
    """

    def __init__(self, worker_id: int, recipe: str = "", phase=None):
        self.worker_id = worker_id
        self.recipe = recipe
        self.phase = phase
        where = f" during {phase.value}" if phase is not None else ""
        super().__init__(f"Baker {worker_id} attempt at {recipe or 'recipe'} aborted{where}")
