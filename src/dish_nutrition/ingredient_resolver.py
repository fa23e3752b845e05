#!/usr/bin/env python3
"""
Ingredient name resolver.
Maps free-text ingredient names ("Red Chilli Powder", "Spinach (Palak)")
onto keys of the nutrition table.
"""

import logging

from dish_nutrition.models import ConfidenceNote, Estimate
from dish_nutrition.reference_data import ReferenceData

logger = logging.getLogger(__name__)


class IngredientNameResolver:
    """Resolves ingredient names to canonical nutrition keys."""

    def __init__(self, reference_data: ReferenceData):
        self.reference_data = reference_data
        # Synonym targets are canonical even when the nutrition table lacks them
        self.canonical_targets = frozenset(reference_data.synonyms.values())

    def resolve(self, raw_name: str) -> Estimate:
        """
        Resolve a raw ingredient name.

        Lookup order: exact key, synonym, substring in either direction (table
        order), then the first word that is a key (which covers the trailing
        word). Unresolved names come back lower-cased with a confidence note.

        Args:
            raw_name: Ingredient name as written in the recipe

        Returns:
            Estimate whose value is the canonical name
        """
        name = (raw_name or "").lower().strip()
        nutrition = self.reference_data.nutrition

        if name in nutrition:
            return Estimate(name)

        synonym = self.reference_data.synonyms.get(name)
        if synonym:
            return Estimate(synonym)
        if name in self.canonical_targets:
            return Estimate(name)

        if name:
            for key in nutrition:
                if key in name or name in key:
                    logger.info(f"Mapped '{name}' to '{key}'")
                    return Estimate(key)

            words = name.split()
            if len(words) > 1:
                for word in words:
                    if word in nutrition:
                        logger.info(f"Mapped '{name}' to '{word}'")
                        return Estimate(word)

        message = f"Could not standardize ingredient name: '{name}'"
        logger.warning(message)
        return Estimate(name, (ConfidenceNote("resolution", name, message),))
