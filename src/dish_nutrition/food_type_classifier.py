#!/usr/bin/env python3
"""
Food-type classifier.
Assigns a dish to one household-serving category, first from keywords in
the dish name and otherwise from its ingredient profile.
"""

import logging
from typing import Sequence

from dish_nutrition.models import ConfidenceNote, Estimate, StandardizedIngredient
from dish_nutrition.reference_data import ReferenceData

logger = logging.getLogger(__name__)

GRAVY_MARKERS = ("tomato", "onion", "cream", "coconut milk")
MEAT_MARKERS = ("chicken", "mutton", "fish", "egg")
MAIN_INGREDIENT_MIN_GRAMS = 100


class FoodTypeClassifier:
    """Rule-based dish classifier."""

    def __init__(self, reference_data: ReferenceData):
        self.reference_data = reference_data

    def classify(self, dish_name: str, ingredients: Sequence[StandardizedIngredient]) -> Estimate:
        """
        Classify a dish into a food type.

        Args:
            dish_name: Name of the dish
            ingredients: Standardized ingredients of the dish

        Returns:
            Estimate whose value is the food-type category
        """
        normalized = (dish_name or "").lower()
        for keyword, food_type in self.reference_data.food_type_keywords:
            if keyword in normalized:
                logger.info(f"Classified {dish_name} as {food_type} based on name")
                return Estimate(food_type)

        has_gravy = any(
            marker in ingredient.canonical_name
            for ingredient in ingredients
            for marker in GRAVY_MARKERS
        )
        main_ingredients = [
            ingredient.canonical_name for ingredient in ingredients
            if ingredient.grams > MAIN_INGREDIENT_MIN_GRAMS
        ]

        def has_main(*markers: str) -> bool:
            return any(marker in name for name in main_ingredients for marker in markers)

        if has_main(*MEAT_MARKERS):
            food_type = "Non - Veg Gravy" if has_gravy else "Non - Veg Fry"
        elif has_main("dal", "lentil"):
            food_type = "Dals"
        elif has_main("rice"):
            food_type = "Wet Rice Item"
        elif has_main("paneer"):
            food_type = "Veg Gravy" if has_gravy else "Veg Fry"
        else:
            food_type = "Veg Gravy" if has_gravy else "Veg Fry"
            message = (f"No keyword or main ingredient identified '{dish_name}', "
                       f"defaulting to {food_type} (gravy markers: {has_gravy})")
            logger.warning(message)
            return Estimate(food_type, (ConfidenceNote("classification", dish_name, message),))

        logger.info(f"Classified {dish_name} as {food_type} based on ingredients")
        return Estimate(food_type)
