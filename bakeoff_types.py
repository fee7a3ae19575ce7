"""
Type definitions for the bake-off kitchen simulation
"""
from enum import Enum


class StorageKind(Enum):
    """Where an ingredient is kept"""
    PANTRY = "pantry"
    REFRIGERATOR = "refrigerator"


class Ingredient(Enum):
    """Ingredients stocked in the kitchen.

    Declaration order is the reservation rank: every pantry ingredient ranks
    below every refrigerator ingredient.
    """
    FLOUR = "flour"
    SUGAR = "sugar"
    YEAST = "yeast"
    BAKING_SODA = "baking_soda"
    SALT = "salt"
    CINNAMON = "cinnamon"
    EGG = "egg"
    MILK = "milk"
    BUTTER = "butter"

    @property
    def storage(self) -> StorageKind:
        if self in _REFRIGERATED:
            return StorageKind.REFRIGERATOR
        return StorageKind.PANTRY

    @property
    def rank(self) -> int:
        return _RANKS[self]


_REFRIGERATED = frozenset({Ingredient.EGG, Ingredient.MILK, Ingredient.BUTTER})
_RANKS = {ingredient: index for index, ingredient in enumerate(Ingredient)}


class KitchenArea(Enum):
    """Exclusive areas: one baker at a time"""
    PANTRY = "pantry"
    FRIDGE_A = "fridge_a"
    FRIDGE_B = "fridge_b"
    OVEN = "oven"


FRIDGES = (KitchenArea.FRIDGE_A, KitchenArea.FRIDGE_B)

STORAGE_AREAS = {
    StorageKind.PANTRY: (KitchenArea.PANTRY,),
    StorageKind.REFRIGERATOR: FRIDGES,
}


class ToolKind(Enum):
    """Counting resources needed for mixing, acquired in this order"""
    MIXER = "mixer"
    BOWL = "bowl"
    SPOON = "spoon"


class WorkerPhase(Enum):
    """Baker state machine phases"""
    SELECTING_RECIPE = "selecting_recipe"
    ACQUIRING = "acquiring"
    MIXING = "mixing"
    BAKING = "baking"
    COMPLETED = "completed"
    ABORTED = "aborted"
    ALL_RECIPES_DONE = "all_recipes_done"


class EventKind(Enum):
    """Lifecycle events emitted by the kitchen"""
    ATTEMPT_STARTED = "attempt_started"
    INGREDIENT_GATHERED = "ingredient_gathered"
    AREA_ENTERED = "area_entered"
    AREA_LEFT = "area_left"
    MIXING_STARTED = "mixing_started"
    BAKING_STARTED = "baking_started"
    RECIPE_COMPLETED = "recipe_completed"
    PREEMPTION_FIRED = "preemption_fired"
    ATTEMPT_ABORTED = "attempt_aborted"
    WORKER_FINISHED = "worker_finished"


class RunStatus(Enum):
    """Supervisor run status"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
