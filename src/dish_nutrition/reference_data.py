#!/usr/bin/env python3
"""
Reference Data
Static lookup tables used by the estimation pipeline: nutrition per 100 g,
household serving sizes, unit volumes, ingredient densities, synonyms,
count weights and food-type keywords.

Tables are loaded once and frozen into read-only mappings so a single
ReferenceData instance can be shared by concurrent estimations. Table order
is significant wherever a lookup is first-match-wins.
"""

import math
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import pandas as pd

from dish_nutrition.api.error_handling import ReferenceDataError
from dish_nutrition.models import CanonicalUnit, NutritionVector, ServingDefinition

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_NUTRITION_TABLE = DATA_DIR / "nutrition_table.tsv"
DEFAULT_HOUSEHOLD_TABLE = DATA_DIR / "household_measurements.csv"

NUTRITION_COLUMNS = {
    "food_name": None,
    "energy_kcal": "calories",
    "protein_g": "protein",
    "carb_g": "carbs",
    "fat_g": "fat",
    "fibre_g": "fiber",
}

# Substituted when the nutrition table file cannot be used
FALLBACK_NUTRITION = {
    "rice": {"calories": 350, "protein": 7, "carbs": 78, "fat": 0.5, "fiber": 2.8},
    "wheat": {"calories": 320, "protein": 10.6, "carbs": 64.7, "fat": 1.5, "fiber": 11.2},
    "paneer": {"calories": 265, "protein": 18.3, "carbs": 3.1, "fat": 20.8, "fiber": 0},
    "potato": {"calories": 77, "protein": 2, "carbs": 17, "fat": 0.1, "fiber": 1.5},
    "tomato": {"calories": 20, "protein": 0.9, "carbs": 4.3, "fat": 0.2, "fiber": 1.2},
    "onion": {"calories": 40, "protein": 1.1, "carbs": 9.3, "fat": 0.1, "fiber": 1.7},
}

FALLBACK_HOUSEHOLD_MEASUREMENTS = {
    "Dry Rice Item": {"katori": 124},
    "Wet Rice Item": {"katori": 150},
    "Veg Gravy": {"katori": 150},
    "Veg Fry": {"katori": 100},
    "Non - Veg Gravy": {"katori": 150},
    "Non - Veg Fry": {"katori": 100},
    "Dals": {"katori": 150},
    "Wet Breakfast Item": {"katori": 130},
    "Dry Breakfast Item": {"katori": 100},
    "Chutneys": {"tbsp": 15},
    "Plain Flatbreads": {"piece": 50},
    "Stuffed Flatbreads": {"piece": 100},
    "Salads": {"katori": 100},
    "Raita": {"katori": 150},
    "Plain Soups": {"katori": 150},
    "Mixed Soups": {"cup": 250},
    "Hot Beverages": {"cup": 250},
    "Beverages": {"cup": 250},
    "Snacks": {"katori": 100},
    "Sweets": {"katori": 120},
}

# Millilitres per household volume unit
UNIT_VOLUMES_ML = {
    CanonicalUnit.CUP: 150,
    CanonicalUnit.KATORI: 150,
    CanonicalUnit.GLASS: 250,
    CanonicalUnit.TEASPOON: 5,
    CanonicalUnit.TABLESPOON: 15,
    CanonicalUnit.TEACUP: 100,
    CanonicalUnit.MILLILITER: 1,
    CanonicalUnit.LITER: 1000,
}

# g/ml, first key contained in the ingredient name wins
INGREDIENT_DENSITIES = {
    "water": 1.0,
    "milk": 1.03,
    "oil": 0.92,
    "ghee": 0.91,
    "butter": 0.96,
    "flour": 0.53,
    "rice": 0.75,
    "sugar": 0.85,
    "salt": 1.38,
    "paneer": 0.75,
    "tomato puree": 1.03,
    "chopped onion": 0.45,
    "cream": 0.98,
    "dal": 0.85,
    "lentil": 0.85,
    "atta": 0.53,
    "maida": 0.53,
    "besan": 0.45,
    "semolina": 0.7,
    "poha": 0.3,
    "curd": 1.03,
    "rajma": 0.77,
    "chickpeas": 0.75,
    "green peas": 0.65,
    "jaggery": 0.9,
    "powder": 0.5,
    "masala": 0.5,
    "seeds": 0.55,
}

INGREDIENT_SYNONYMS = {
    "tomatoes": "tomato",
    "tomato": "tomato",
    "onions": "onion",
    "onion": "onion",
    "paneer cubes": "paneer",
    "paneer": "paneer",
    "tomato puree": "tomato",
    "butter": "butter",
    "coriander leaves": "coriander leaves",
    "coriander powder": "coriander powder",
    "coriander seeds": "coriander powder",
    "red chilli powder": "chilli powder",
    "kashmiri red chilli powder": "chilli powder",
    "green chilli": "green chilli",
    "green chillies": "green chilli",
    "yogurt": "curd",
    "yoghurt": "curd",
    "dahi": "curd",
    "chole masala": "garam masala",
    "tea bags": "tea leaves",
    "eggplant": "brinjal",
    "baingan": "brinjal",
    "bhindi": "okra",
    "lady finger": "okra",
    "aloo": "potato",
    "gobi": "cauliflower",
    "palak": "spinach",
    "matar": "green peas",
    "dhania": "coriander leaves",
    "jeera": "cumin seeds",
    "haldi": "turmeric powder",
    "suji": "semolina",
    "sooji": "semolina",
    "rava": "semolina",
    "refined oil": "oil",
    "vegetable oil": "oil",
    "mustard oil": "oil",
    "desi ghee": "ghee",
}

# Grams per count unit, first key contained in the ingredient name wins
COUNT_WEIGHTS = {
    "tomato": {"small": 75, "medium": 125, "large": 175, "piece": 125},
    "onion": {"small": 60, "medium": 110, "large": 150, "piece": 110},
    "potato": {"small": 100, "medium": 150, "large": 200, "piece": 150},
    "garlic": {"piece": 5, "small": 4, "medium": 5, "large": 6},
    "ginger": {"piece": 15, "small": 10, "medium": 15, "large": 20},
    "green chilli": {"piece": 10, "small": 8, "medium": 10, "large": 12},
    "lemon": {"piece": 60, "small": 50, "medium": 60, "large": 70},
    "carrot": {"piece": 60, "small": 50, "medium": 60, "large": 80},
    "egg": {"piece": 50, "small": 40, "medium": 50, "large": 60},
    "cauliflower": {"piece": 600, "small": 400, "medium": 600, "large": 800},
    "capsicum": {"piece": 120, "small": 80, "medium": 120, "large": 160},
    "brinjal": {"piece": 150, "small": 100, "medium": 150, "large": 250},
    "bread": {"piece": 25},
    "tea": {"piece": 2},
}

GENERIC_COUNT_WEIGHTS = {"small": 50, "medium": 100, "large": 150, "piece": 100}

# Dish-name keyword -> food type; first keyword found in the name wins
FOOD_TYPE_KEYWORDS = (
    ("curry", "Veg Gravy"),
    ("masala", "Veg Gravy"),
    ("sabzi", "Veg Fry"),
    ("dal", "Dals"),
    ("rice", "Wet Rice Item"),
    ("pulao", "Wet Rice Item"),
    ("biryani", "Wet Rice Item"),
    ("roti", "Plain Flatbreads"),
    ("paratha", "Stuffed Flatbreads"),
    ("chicken", "Non - Veg Gravy"),
    ("mutton", "Non - Veg Gravy"),
    ("fish", "Non - Veg Gravy"),
    ("paneer", "Veg Gravy"),
    ("khichdi", "Wet Rice Item"),
    ("naan", "Plain Flatbreads"),
    ("raita", "Raita"),
    ("chutney", "Chutneys"),
    ("soup", "Plain Soups"),
    ("salad", "Salads"),
    ("idli", "Wet Breakfast Item"),
    ("upma", "Wet Breakfast Item"),
    ("dosa", "Dry Breakfast Item"),
    ("poha", "Dry Breakfast Item"),
    ("pakora", "Snacks"),
    ("samosa", "Snacks"),
    ("halwa", "Sweets"),
    ("kheer", "Sweets"),
    ("ladoo", "Sweets"),
    ("lassi", "Beverages"),
)


def _freeze(table: Dict[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType({
        key: MappingProxyType(dict(value)) if isinstance(value, dict) else value
        for key, value in table.items()
    })


def load_nutrition_table(file_path: Union[str, Path]) -> Dict[str, NutritionVector]:
    """
    Parse a tab-separated nutrition table into per-100g nutrition vectors.

    Args:
        file_path: Path to the TSV file

    Returns:
        Mapping of lower-cased food name to nutrition per 100 g, in file order

    Raises:
        ReferenceDataError: If the file is unreadable or required columns are missing
    """
    try:
        frame = pd.read_csv(file_path, sep="\t", dtype=str, keep_default_na=False)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ReferenceDataError(f"Cannot read nutrition table {file_path}: {e}",
                                 details={"path": str(file_path)}) from e

    frame.columns = [str(column).strip() for column in frame.columns]
    missing = [column for column in NUTRITION_COLUMNS if column not in frame.columns]
    if missing:
        raise ReferenceDataError("Required columns not found in nutrition table",
                                 details={"path": str(file_path), "missing_columns": missing})

    # Qualifiers after a comma or parenthesis are dropped: "Onion, big" -> "onion"
    names = (frame["food_name"].str.lower().str.split(",").str[0]
             .str.split("(").str[0].str.strip())

    values = {}
    for column, nutrient in NUTRITION_COLUMNS.items():
        if nutrient:
            values[nutrient] = pd.to_numeric(frame[column].str.strip(), errors="coerce").fillna(0)

    table: Dict[str, NutritionVector] = {}
    for index, name in names.items():
        if not name:
            continue
        table[name] = NutritionVector.from_mapping(
            {nutrient: series.at[index] for nutrient, series in values.items()}
        )

    logger.info(f"Parsed nutrition table with {len(table)} entries from {file_path}")
    return table


def load_household_measurements(file_path: Union[str, Path]) -> Dict[str, Dict[str, float]]:
    """
    Parse the comma-separated household measurement table (category,unit,weight).

    Rows with an unparseable, non-positive or infinite weight are skipped; the first unit declared for a
    category stays first.
    """
    try:
        frame = pd.read_csv(file_path, dtype=str, keep_default_na=False, skipinitialspace=True)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ReferenceDataError(f"Cannot read household measurements {file_path}: {e}",
                                 details={"path": str(file_path)}) from e

    if frame.shape[1] < 3:
        raise ReferenceDataError("Household measurements need category, unit and weight columns",
                                 details={"path": str(file_path)})

    measurements: Dict[str, Dict[str, float]] = {}
    for row in frame.iloc[:, :3].itertuples(index=False):
        category, unit, weight = (str(item).strip() for item in row)
        if not (category and unit and weight):
            continue
        weight_value = pd.to_numeric(weight, errors="coerce")
        if pd.isna(weight_value) or not math.isfinite(weight_value) or weight_value <= 0:
            continue
        measurements.setdefault(category, {})[unit.lower()] = float(weight_value)

    logger.info(f"Parsed household measurements for {len(measurements)} categories")
    return measurements


@dataclass(frozen=True)
class ReferenceData:
    """Read-only reference tables injected into every pipeline component."""
    nutrition: Mapping[str, NutritionVector]
    household_measurements: Mapping[str, Mapping[str, float]]
    unit_volumes_ml: Mapping[CanonicalUnit, float] = field(default_factory=lambda: _freeze(UNIT_VOLUMES_ML))
    densities: Mapping[str, float] = field(default_factory=lambda: _freeze(INGREDIENT_DENSITIES))
    synonyms: Mapping[str, str] = field(default_factory=lambda: _freeze(INGREDIENT_SYNONYMS))
    count_weights: Mapping[str, Mapping[str, float]] = field(default_factory=lambda: _freeze(COUNT_WEIGHTS))
    generic_count_weights: Mapping[str, float] = field(default_factory=lambda: _freeze(GENERIC_COUNT_WEIGHTS))
    food_type_keywords: Tuple[Tuple[str, str], ...] = FOOD_TYPE_KEYWORDS

    @classmethod
    def build(cls, nutrition: Dict[str, Any],
              household_measurements: Optional[Dict[str, Dict[str, float]]] = None,
              **tables) -> "ReferenceData":
        """
        Build frozen reference data from plain dictionaries.

        Nutrition values may be NutritionVector instances or mappings of
        nutrient name to value. Extra keyword tables (densities, synonyms, ...)
        replace the built-in defaults.
        """
        frozen_nutrition = MappingProxyType({
            str(name).lower().strip(): (value if isinstance(value, NutritionVector)
                                        else NutritionVector.from_mapping(value))
            for name, value in nutrition.items()
        })
        for name, table in list(tables.items()):
            if isinstance(table, dict):
                tables[name] = _freeze(table)
        if "food_type_keywords" in tables:
            tables["food_type_keywords"] = tuple(tuple(rule) for rule in tables["food_type_keywords"])
        return cls(
            nutrition=frozen_nutrition,
            household_measurements=_freeze(household_measurements
                                           if household_measurements is not None
                                           else FALLBACK_HOUSEHOLD_MEASUREMENTS),
            **tables,
        )

    @classmethod
    def load(cls, nutrition_path: Optional[Union[str, Path]] = None,
             household_path: Optional[Union[str, Path]] = None) -> "ReferenceData":
        """
        Load reference data from files, substituting built-in tables on failure.

        Args:
            nutrition_path: TSV nutrition table (defaults to the bundled table)
            household_path: CSV household measurements (defaults to the bundled table)
        """
        nutrition_path = nutrition_path or DEFAULT_NUTRITION_TABLE
        household_path = household_path or DEFAULT_HOUSEHOLD_TABLE

        try:
            nutrition = load_nutrition_table(nutrition_path)
        except ReferenceDataError as e:
            logger.error(f"Error parsing nutrition database: {e.message}; using built-in minimal table")
            nutrition = {name: NutritionVector.from_mapping(values)
                         for name, values in FALLBACK_NUTRITION.items()}

        try:
            household = load_household_measurements(household_path)
        except ReferenceDataError as e:
            logger.error(f"Error parsing household measurements: {e.message}; using built-in table")
            household = FALLBACK_HOUSEHOLD_MEASUREMENTS

        return cls.build(nutrition, household)

    def serving_for(self, category: str) -> Optional[ServingDefinition]:
        """Return the first declared serving unit for a category, if any."""
        units = self.household_measurements.get(category)
        if not units:
            return None
        unit, grams = next(iter(units.items()))
        return ServingDefinition(unit=unit, grams=float(grams))

    def summary(self) -> Dict[str, int]:
        return {
            "nutrition_entries": len(self.nutrition),
            "food_types": len(self.household_measurements),
            "synonyms": len(self.synonyms),
            "densities": len(self.densities),
        }
