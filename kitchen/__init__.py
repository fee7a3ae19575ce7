"""
Kitchen package: shared resources and their coordination.
"""

from .engine import Kitchen, KitchenEvent
from .ledger import IngredientLedger
from .resources import ResourcePool, AreaTransition
from .holdings import Holdings
from .acquisition import AcquisitionCoordinator, Stop
from .preemption import PreemptionController

__all__ = [
    "Kitchen",
    "KitchenEvent",
    "IngredientLedger",
    "ResourcePool",
    "AreaTransition",
    "Holdings",
    "AcquisitionCoordinator",
    "Stop",
    "PreemptionController"
]
