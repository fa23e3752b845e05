#!/usr/bin/env python3
"""
Nutrition Calculator
Per-ingredient nutrition lookup and whole-dish totals.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

from dish_nutrition.models import (
    ConfidenceNote, DishTotals, Estimate, NutritionVector, StandardizedIngredient
)
from dish_nutrition.reference_data import ReferenceData

logger = logging.getLogger(__name__)


def round_half_up(value: float, places: int = 1) -> float:
    """Round to a fixed number of decimals, halves away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _fat_estimate(grams: float) -> NutritionVector:
    return NutritionVector(calories=9 * grams, fat=grams)


def _sugar_estimate(grams: float) -> NutritionVector:
    return NutritionVector(calories=4 * grams, carbs=grams)


def _zero_estimate(grams: float) -> NutritionVector:
    return NutritionVector()


def _generic_estimate(grams: float) -> NutritionVector:
    return NutritionVector(
        calories=2 * grams,
        protein=0.05 * grams,
        carbs=0.1 * grams,
        fat=0.02 * grams,
        fiber=0.01 * grams,
    )


# Heuristics for names missing from the table, first match wins
FALLBACK_RULES = (
    (("oil", "ghee", "butter"), _fat_estimate),
    (("sugar", "jaggery"), _sugar_estimate),
    (("salt", "spices"), _zero_estimate),
)


class NutritionCalculator:
    """Computes nutrition for ingredients and dishes."""

    def __init__(self, reference_data: ReferenceData):
        self.reference_data = reference_data

    def lookup(self, ingredient_name: str, grams: float) -> Estimate:
        """
        Get nutrition values for an ingredient weight.

        Args:
            ingredient_name: Canonical ingredient name
            grams: Weight in grams

        Returns:
            Estimate whose value is a NutritionVector for the given weight
        """
        per_100g = self.reference_data.nutrition.get(ingredient_name)
        if per_100g is not None:
            return Estimate(per_100g.scaled(grams / 100))

        message = f"Ingredient '{ingredient_name}' not found in nutrition database"
        logger.warning(message)
        note = ConfidenceNote("nutrition", ingredient_name, message)

        for keywords, estimate in FALLBACK_RULES:
            if any(keyword in ingredient_name for keyword in keywords):
                return Estimate(estimate(grams), (note,))
        return Estimate(_generic_estimate(grams), (note,))

    def calculate_totals(self, ingredients: Iterable[StandardizedIngredient]) -> Estimate:
        """
        Sum nutrition over a dish.

        Nutrients are rounded to one decimal after summing; the total weight
        is the exact sum of ingredient grams.

        Args:
            ingredients: Standardized ingredients of one dish

        Returns:
            Estimate whose value is DishTotals
        """
        total = NutritionVector()
        notes: List[ConfidenceNote] = []
        grams: List[float] = []

        for ingredient in ingredients:
            contribution = self.lookup(ingredient.canonical_name, ingredient.grams)
            total = total + contribution.value
            notes.extend(contribution.notes)
            grams.append(ingredient.grams)

        totals = DishTotals(nutrition=total.map(round_half_up), total_weight_g=sum(grams))
        return Estimate(totals, tuple(notes))
