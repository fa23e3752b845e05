#!/usr/bin/env python3
"""
Mass converter: expresses any parsed quantity as grams and renders gram
weights back into household measures.
"""

import logging
from typing import List, Mapping, Optional

from dish_nutrition.models import CanonicalUnit, ConfidenceNote, Estimate, VOLUME_UNITS, COUNT_UNITS
from dish_nutrition.reference_data import ReferenceData

logger = logging.getLogger(__name__)

DEFAULT_DENSITY = 1.0
UNKNOWN_UNIT_GRAMS = 10.0
PINCH_GRAMS = 1.0
LIGHT_PINCH_GRAMS = 0.5
PINCH_HEAVY_KEYWORDS = ("salt", "powder", "masala", "spice")

FAT_KEYWORDS = ("oil", "ghee", "butter")
LIQUID_KEYWORDS = ("milk", "water", "juice", "cream")
ML_PER_CUP = 240
PANEER_GRAMS_PER_CUP = 180


def _first_containing(table: Mapping[str, object], name: str) -> Optional[str]:
    """Return the first table key contained in the name, in table order."""
    for key in table:
        if key in name:
            return key
    return None


class MassConverter:
    """Converts (value, unit, ingredient) triples to grams."""

    def __init__(self, reference_data: ReferenceData):
        self.reference_data = reference_data

    def convert(self, value: float, unit: CanonicalUnit, ingredient_name: str) -> Estimate:
        """
        Convert a quantity to grams.

        Args:
            value: Parsed numeric amount
            unit: Canonical unit of the amount
            ingredient_name: Canonical ingredient name used for density and count lookups

        Returns:
            Estimate whose value is a non-negative weight in grams
        """
        name = (ingredient_name or "").lower().strip()

        if unit == CanonicalUnit.GRAM:
            return Estimate(value)
        if unit == CanonicalUnit.KILOGRAM:
            return Estimate(value * 1000)
        if unit in VOLUME_UNITS:
            return self._convert_volume(value, unit, name)
        if unit in COUNT_UNITS:
            return self._convert_count(value, unit, name)
        if unit == CanonicalUnit.PINCH:
            heavy = any(keyword in name for keyword in PINCH_HEAVY_KEYWORDS)
            return Estimate(value * (PINCH_GRAMS if heavy else LIGHT_PINCH_GRAMS))

        note = self._note(name, f"No conversion for unit '{unit.value}', assuming {UNKNOWN_UNIT_GRAMS:g} g each")
        return Estimate(value * UNKNOWN_UNIT_GRAMS, (note,))

    def _convert_volume(self, value: float, unit: CanonicalUnit, name: str) -> Estimate:
        milliliters = value * self.reference_data.unit_volumes_ml[unit]
        notes: List[ConfidenceNote] = []

        key = _first_containing(self.reference_data.densities, name) if name else None
        if key is None:
            density = DEFAULT_DENSITY
            notes.append(self._note(name, f"No density for '{name}', assuming {DEFAULT_DENSITY} g/ml"))
        else:
            density = self.reference_data.densities[key]

        return Estimate(milliliters * density, tuple(notes))

    def _convert_count(self, value: float, unit: CanonicalUnit, name: str) -> Estimate:
        size = unit.value
        key = _first_containing(self.reference_data.count_weights, name) if name else None
        if key is not None:
            weights = self.reference_data.count_weights[key]
            weight = weights.get(size, weights.get("piece"))
            if weight is not None:
                return Estimate(value * weight)

        generic = self.reference_data.generic_count_weights
        weight = generic.get(size, generic["piece"])
        note = self._note(name, f"No count weight for '{name}', assuming {weight:g} g per {size}")
        return Estimate(value * weight, (note,))

    def to_household_measure(self, grams: float, ingredient_name: str) -> str:
        """
        Render a gram weight as a kitchen measure.

        Args:
            grams: Weight in grams
            ingredient_name: Canonical ingredient name

        Returns:
            Human readable measure such as "2.0 teaspoons" or "medium piece"
        """
        name = (ingredient_name or "").lower()
        densities = self.reference_data.densities

        if any(keyword in name for keyword in FAT_KEYWORDS):
            density = densities.get(name, 0.9)
            teaspoons = grams / (density * 5)
            if teaspoons < 3:
                return f"{teaspoons:.1f} teaspoons"
            return f"{teaspoons / 3:.1f} tablespoons"

        if any(keyword in name for keyword in LIQUID_KEYWORDS):
            milliliters = grams / densities.get(name, 1.0)
            if milliliters < 30:
                return f"{milliliters / 5:.1f} teaspoons"
            if milliliters < 100:
                return f"{milliliters / 15:.1f} tablespoons"
            if milliliters < 500:
                return f"{milliliters / ML_PER_CUP:.2f} cups"
            return f"{milliliters / 1000:.2f} liters"

        if "paneer" in name:
            return f"{grams / PANEER_GRAMS_PER_CUP:.2f} cup cubes"

        if "onion" in name or "tomato" in name:
            if grams < 100:
                return "small piece"
            if grams < 150:
                return "medium piece"
            return "large piece"

        if grams < 10:
            return f"{grams:.1f} grams"
        return f"{round(grams)} grams"

    @staticmethod
    def _note(subject: str, message: str) -> ConfidenceNote:
        logger.warning(message)
        return ConfidenceNote("conversion", subject, message)
