#!/usr/bin/env python3
"""
Ingredient standardizer: resolves the name, parses the quantity and converts
it to grams for each raw recipe line.
"""

import logging
from typing import Iterable, List, Optional

from dish_nutrition.ingredient_resolver import IngredientNameResolver
from dish_nutrition.mass_converter import MassConverter
from dish_nutrition.models import ConfidenceNote, Estimate, RawIngredientLine, StandardizedIngredient
from dish_nutrition.quantity_parser import QuantityParser
from dish_nutrition.reference_data import ReferenceData

logger = logging.getLogger(__name__)


class IngredientStandardizer:
    """Turns raw recipe lines into standardized ingredients."""

    def __init__(self, reference_data: ReferenceData, quantity_parser: Optional[QuantityParser] = None):
        self.resolver = IngredientNameResolver(reference_data)
        self.quantity_parser = quantity_parser or QuantityParser()
        self.converter = MassConverter(reference_data)

    def standardize(self, line: RawIngredientLine) -> Estimate:
        """
        Standardize one ingredient line.

        Args:
            line: Raw ingredient and quantity text

        Returns:
            Estimate whose value is a StandardizedIngredient
        """
        name = self.resolver.resolve(line.ingredient)
        quantity = self.quantity_parser.parse(line.quantity)
        grams = self.converter.convert(quantity.value.value, quantity.value.unit, name.value)

        ingredient = StandardizedIngredient(
            raw_ingredient=line.ingredient,
            canonical_name=name.value,
            raw_quantity=line.quantity,
            grams=grams.value,
            household_measure=self.converter.to_household_measure(grams.value, name.value),
        )
        logger.debug(f"Standardized '{line.ingredient}' ({line.quantity}) -> "
                     f"{ingredient.canonical_name}, {ingredient.grams:.1f} g")
        return Estimate(ingredient, name.notes + quantity.notes + grams.notes)

    def standardize_all(self, lines: Iterable[RawIngredientLine]) -> Estimate:
        ingredients: List[StandardizedIngredient] = []
        notes: List[ConfidenceNote] = []
        for line in lines:
            result = self.standardize(line)
            ingredients.append(result.value)
            notes.extend(result.notes)
        return Estimate(ingredients, tuple(notes))
