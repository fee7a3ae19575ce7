"""
Recipe Catalog Module
"""
from .catalog import RecipeCatalog, Recipe, DEFAULT_RECIPES, parse_ingredient

__all__ = ['RecipeCatalog', 'Recipe', 'DEFAULT_RECIPES', 'parse_ingredient']
