"""
Run Supervision Module
"""
from .executor import KitchenSupervisor, RunResult

__all__ = ['KitchenSupervisor', 'RunResult']
