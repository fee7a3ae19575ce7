"""
Metrics and Analytics Module
"""
from .collector import MetricsCollector, EVENT_COLUMNS

__all__ = ['MetricsCollector', 'EVENT_COLUMNS']
