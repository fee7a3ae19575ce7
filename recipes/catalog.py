"""
Recipe catalog - the static recipe table bakers work through
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd
import yaml

from bakeoff_errors import ConfigurationError
from bakeoff_types import Ingredient, StorageKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipe:
    """A named set of required ingredients"""
    name: str
    ingredients: Tuple[Ingredient, ...]

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("Recipe name must not be empty")
        if not self.ingredients:
            raise ConfigurationError(f"Recipe {self.name} has no ingredients")
        if len(set(self.ingredients)) != len(self.ingredients):
            raise ConfigurationError(f"Recipe {self.name} lists an ingredient twice")

    def from_storage(self, storage: StorageKind) -> Tuple[Ingredient, ...]:
        return tuple(i for i in self.ingredients if i.storage is storage)

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'ingredients': [i.value for i in self.ingredients],
            'pantry': [i.value for i in self.from_storage(StorageKind.PANTRY)],
            'refrigerator': [i.value for i in self.from_storage(StorageKind.REFRIGERATOR)]
        }


DEFAULT_RECIPES: Dict[str, Tuple[Ingredient, ...]] = {
    'cookies': (Ingredient.FLOUR, Ingredient.SUGAR, Ingredient.MILK, Ingredient.BUTTER),
    'pancakes': (Ingredient.FLOUR, Ingredient.SUGAR, Ingredient.BAKING_SODA, Ingredient.SALT,
                 Ingredient.EGG, Ingredient.MILK, Ingredient.BUTTER),
    'pizza_dough': (Ingredient.YEAST, Ingredient.SUGAR, Ingredient.SALT),
    'soft_pretzels': (Ingredient.FLOUR, Ingredient.SUGAR, Ingredient.SALT, Ingredient.YEAST,
                      Ingredient.BAKING_SODA, Ingredient.EGG),
    'cinnamon_rolls': (Ingredient.FLOUR, Ingredient.SUGAR, Ingredient.SALT, Ingredient.BUTTER,
                       Ingredient.EGG, Ingredient.CINNAMON),
}


def parse_ingredient(value: Union[str, Ingredient]) -> Ingredient:
    if isinstance(value, Ingredient):
        return value
    key = str(value).strip().lower().replace(' ', '_').replace('-', '_')
    try:
        return Ingredient(key)
    except ValueError:
        raise ConfigurationError(f"Unknown ingredient: {value}") from None


class RecipeCatalog:
    """Read-only, ordered collection of recipes"""

    def __init__(self, recipes: Iterable[Recipe]):
        self._recipes: Dict[str, Recipe] = {}
        for recipe in recipes:
            if recipe.name in self._recipes:
                raise ConfigurationError(f"Duplicate recipe: {recipe.name}")
            self._recipes[recipe.name] = recipe
        if not self._recipes:
            raise ConfigurationError("Recipe catalog is empty")

    @classmethod
    def default(cls) -> 'RecipeCatalog':
        return cls.from_mapping(DEFAULT_RECIPES)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Sequence]) -> 'RecipeCatalog':
        """Build from ``{recipe name: [ingredient, ...]}``"""
        if not isinstance(mapping, Mapping):
            raise ConfigurationError("Recipe catalog must be a mapping of name to ingredients")
        recipes = []
        for name, ingredients in mapping.items():
            if isinstance(ingredients, (str, bytes)) or not isinstance(ingredients, Sequence):
                raise ConfigurationError(f"Ingredients of {name} must be a list")
            recipes.append(Recipe(str(name), tuple(parse_ingredient(i) for i in ingredients)))
        return cls(recipes)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'RecipeCatalog':
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Recipe file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        # Allow the table under a top-level "recipes" key
        if isinstance(data, dict) and isinstance(data.get('recipes'), dict):
            data = data['recipes']
        catalog = cls.from_mapping(data)
        logger.info(f"Loaded {len(catalog)} recipes from {path}")
        return catalog

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> 'RecipeCatalog':
        return cls.from_yaml(path) if path else cls.default()

    def __len__(self) -> int:
        return len(self._recipes)

    def __iter__(self):
        return iter(self._recipes.values())

    def __contains__(self, name: str) -> bool:
        return name in self._recipes

    def get(self, name: str) -> Recipe:
        try:
            return self._recipes[name]
        except KeyError:
            raise ConfigurationError(f"Unknown recipe: {name}") from None

    def names(self) -> List[str]:
        return list(self._recipes)

    def sequence(self, names: Optional[Sequence[str]] = None) -> List[Recipe]:
        """Recipes in the given order, or catalog order"""
        if names is None:
            return list(self._recipes.values())
        return [self.get(name) for name in names]

    def to_dataframe(self) -> pd.DataFrame:
        """Recipe x ingredient usage matrix"""
        rows = [
            {ingredient.value: ingredient in recipe.ingredients for ingredient in Ingredient}
            for recipe in self._recipes.values()
        ]
        df = pd.DataFrame(rows, index=self.names(), columns=[i.value for i in Ingredient])
        df.index.name = 'recipe'
        return df

    def ingredient_demand(self) -> pd.Series:
        """How many recipes need each ingredient, most contended first"""
        return self.to_dataframe().sum().astype(int).sort_values(ascending=False)
