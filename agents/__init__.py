"""
Baker Module
"""
from .baker import Baker, BakerContext

__all__ = ['Baker', 'BakerContext']
