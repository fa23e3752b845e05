#!/usr/bin/env python3
"""
Serving Size Extrapolator
Scales whole-dish nutrition down to one standard household serving.
"""

import logging
from typing import List

from dish_nutrition.models import ConfidenceNote, Estimate, NutritionVector, ServingDefinition, ServingNutrition
from dish_nutrition.nutrition_calculator import round_half_up
from dish_nutrition.reference_data import ReferenceData

logger = logging.getLogger(__name__)

# A recipe is assumed to feed this many people
ASSUMED_SERVINGS_PER_RECIPE = 4
DEFAULT_SERVING = ServingDefinition(unit="serving", grams=100.0)


class ServingSizeExtrapolator:
    """Extrapolates dish totals to a standard serving."""

    def __init__(self, reference_data: ReferenceData):
        self.reference_data = reference_data

    def extrapolate(self, nutrition: NutritionVector, food_type: str, total_weight: float) -> Estimate:
        """
        Extrapolate nutrition to the standard serving size of a food type.

        Args:
            nutrition: Whole-dish nutrition totals
            food_type: Classified food type
            total_weight: Whole-dish weight in grams

        Returns:
            Estimate whose value is ServingNutrition

        Raises:
            ZeroDivisionError: If the dish weighs nothing
        """
        notes: List[ConfidenceNote] = []

        serving = self.reference_data.serving_for(food_type)
        if serving is None:
            message = f"No standard serving size for {food_type}, using default of {DEFAULT_SERVING.grams:g}g"
            logger.warning(message)
            notes.append(ConfidenceNote("serving", food_type, message))
            serving = DEFAULT_SERVING

        expected_weight = serving.grams * ASSUMED_SERVINGS_PER_RECIPE
        if total_weight < expected_weight * 0.5 or total_weight > expected_weight * 2:
            message = (f"Calculated total weight ({total_weight:g}g) differs significantly from expected "
                       f"weight for {ASSUMED_SERVINGS_PER_RECIPE} servings ({expected_weight:g}g)")
            logger.warning(message)
            notes.append(ConfidenceNote("serving", food_type, message))

        ratio = serving.grams / total_weight
        per_serving = nutrition.map(lambda value: round_half_up(value * ratio))

        return Estimate(
            ServingNutrition(nutrition=per_serving, serving_unit=serving.unit, serving_size_g=serving.grams),
            tuple(notes),
        )
