#!/usr/bin/env python3
"""
Data models shared by the nutrition estimation pipeline.
Immutable records for raw recipe lines, parsed quantities, standardized
ingredients, nutrition vectors and the final estimation result.
"""

import math
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")

NUTRIENT_FIELDS = ("calories", "protein", "carbs", "fat", "fiber")


class CanonicalUnit(Enum):
    """Closed set of units every quantity normalizes to."""
    GRAM = "gram"
    KILOGRAM = "kilogram"
    MILLILITER = "milliliter"
    LITER = "liter"
    TEASPOON = "teaspoon"
    TABLESPOON = "tablespoon"
    CUP = "cup"
    KATORI = "katori"
    GLASS = "glass"
    TEACUP = "teacup"
    PIECE = "piece"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    PINCH = "pinch"


VOLUME_UNITS = frozenset({
    CanonicalUnit.TEASPOON, CanonicalUnit.TABLESPOON, CanonicalUnit.CUP,
    CanonicalUnit.KATORI, CanonicalUnit.GLASS, CanonicalUnit.TEACUP,
    CanonicalUnit.MILLILITER, CanonicalUnit.LITER,
})

COUNT_UNITS = frozenset({
    CanonicalUnit.PIECE, CanonicalUnit.SMALL, CanonicalUnit.MEDIUM, CanonicalUnit.LARGE,
})


@dataclass(frozen=True)
class ConfidenceNote:
    """Non-fatal annotation recorded when a fallback path was taken."""
    stage: str  # recipe, quantity, unit, conversion, resolution, nutrition, classification, serving
    subject: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class Estimate(Generic[T]):
    """A computed value together with the degraded-confidence notes behind it."""
    value: T
    notes: Tuple[ConfidenceNote, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.notes)


@dataclass(frozen=True)
class RawIngredientLine:
    """One ingredient line as produced by a recipe source."""
    ingredient: str
    quantity: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawIngredientLine":
        return cls(
            ingredient=str(data.get("ingredient", "") or ""),
            quantity=str(data.get("quantity", "") or ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class ParsedQuantity:
    """Numeric value and canonical unit parsed from free text."""
    value: float
    unit: CanonicalUnit

    def __post_init__(self):
        if not math.isfinite(self.value) or self.value < 0:
            raise ValueError(f"Quantity value must be a non-negative finite number, got {self.value}")


@dataclass(frozen=True)
class StandardizedIngredient:
    """Ingredient with its canonical name and weight in grams."""
    raw_ingredient: str
    canonical_name: str
    raw_quantity: str
    grams: float
    household_measure: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NutritionVector:
    """Calories (kcal) and macronutrients (g); every field is always present."""
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0

    def __add__(self, other: "NutritionVector") -> "NutritionVector":
        return NutritionVector(*(getattr(self, f) + getattr(other, f) for f in NUTRIENT_FIELDS))

    def scaled(self, factor: float) -> "NutritionVector":
        return NutritionVector(*(getattr(self, f) * factor for f in NUTRIENT_FIELDS))

    def map(self, func) -> "NutritionVector":
        return NutritionVector(*(func(getattr(self, f)) for f in NUTRIENT_FIELDS))

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "NutritionVector":
        """Build a vector from a mapping, defaulting missing or invalid fields to 0."""
        values = []
        for name in NUTRIENT_FIELDS:
            try:
                value = float(data.get(name, 0) or 0)
            except (TypeError, ValueError):
                value = 0.0
            values.append(value if math.isfinite(value) and value > 0 else 0.0)
        return cls(*values)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class DishTotals:
    """Whole-dish nutrition plus the total ingredient weight."""
    nutrition: NutritionVector
    total_weight_g: float


@dataclass(frozen=True)
class ServingDefinition:
    """Standard household serving for a food-type category."""
    unit: str
    grams: float


@dataclass(frozen=True)
class ServingNutrition:
    """Nutrition rescaled to one standard serving."""
    nutrition: NutritionVector
    serving_unit: str
    serving_size_g: float


@dataclass
class EstimationResult:
    """Final per-dish result; failures keep the same shape with an error."""
    dish_name: str
    dish_type: str
    nutrition_per_serving: NutritionVector
    serving_unit: str
    ingredients_used: List[Dict[str, str]]
    total_dish_weight_g: float
    serving_size_g: float
    confidence_notes: List[ConfidenceNote] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, dish_name: str, error: str,
                notes: Optional[List[ConfidenceNote]] = None) -> "EstimationResult":
        return cls(
            dish_name=dish_name,
            dish_type="Unknown",
            nutrition_per_serving=NutritionVector(),
            serving_unit="serving",
            ingredients_used=[],
            total_dish_weight_g=0.0,
            serving_size_g=0.0,
            confidence_notes=list(notes or []),
            error=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary; `error` only appears on failure."""
        data = {
            "dish_name": self.dish_name,
            "dish_type": self.dish_type,
            "nutrition_per_serving": self.nutrition_per_serving.to_dict(),
            "serving_unit": self.serving_unit,
            "ingredients_used": [dict(item) for item in self.ingredients_used],
            "total_dish_weight_g": self.total_dish_weight_g,
            "serving_size_g": self.serving_size_g,
            "confidence_notes": [note.to_dict() for note in self.confidence_notes],
        }
        if self.error is not None:
            data["error"] = self.error
        return data
