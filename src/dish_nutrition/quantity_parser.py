#!/usr/bin/env python3
"""
Quantity parser for free-text recipe quantities.
Turns strings such as "1/2 tsp", "250g", "3 medium" or "to taste" into a
numeric value and a canonical unit. Parsing never fails: unreadable text
degrades to one piece and records a confidence note.
"""

import math
import re
import logging
from typing import Optional, Tuple

from dish_nutrition.models import CanonicalUnit, ConfidenceNote, Estimate, ParsedQuantity

logger = logging.getLogger(__name__)


class UnitNormalizer:
    """Maps the text left after the number to exactly one canonical unit."""

    # Whole-token variants, checked in order; "teacup" precedes "cup"
    UNIT_TOKENS = (
        (CanonicalUnit.TABLESPOON, ("tablespoons", "tablespoon", "tbsp", "tbs")),
        (CanonicalUnit.TEASPOON, ("teaspoons", "teaspoon", "tsp")),
        (CanonicalUnit.TEACUP, ("teacups", "teacup", "tea cup", "tea cups")),
        (CanonicalUnit.CUP, ("cups", "cup")),
        (CanonicalUnit.KATORI, ("katoris", "katori", "bowls", "bowl")),
        (CanonicalUnit.GLASS, ("glasses", "glass")),
        (CanonicalUnit.KILOGRAM, ("kilograms", "kilogram", "kilos", "kilo", "kgs", "kg")),
        (CanonicalUnit.GRAM, ("grams", "gram", "gms", "gm", "gr", "g")),
        (CanonicalUnit.MILLILITER, ("milliliters", "milliliter", "millilitres", "millilitre", "ml")),
        (CanonicalUnit.LITER, ("liters", "liter", "litres", "litre", "ltr", "l")),
        (CanonicalUnit.SMALL, ("small",)),
        (CanonicalUnit.MEDIUM, ("medium",)),
        (CanonicalUnit.LARGE, ("large", "big")),
        (CanonicalUnit.PIECE, ("pieces", "piece", "pcs", "pc", "nos", "no")),
        (CanonicalUnit.PINCH, ("pinches", "pinch")),
    )

    SIZE_DESCRIPTORS = (
        ("small", CanonicalUnit.SMALL),
        ("medium", CanonicalUnit.MEDIUM),
        ("large", CanonicalUnit.LARGE),
    )

    PIECE_KEYWORDS = ("clove", "whole", "piece", "inch", "sprig", "stick")

    def __init__(self):
        self._compile_patterns()

    def _compile_patterns(self):
        """Compile one whole-token pattern per canonical unit."""
        self.unit_patterns = []
        for unit, variants in self.UNIT_TOKENS:
            alternatives = "|".join(re.escape(variant) for variant in variants)
            # Digits count as a boundary so "250g" leaves "g" and "2tbsp" leaves "tbsp"
            pattern = re.compile(rf"(?<![a-z])(?:{alternatives})\.?(?![a-z])")
            self.unit_patterns.append((pattern, unit))

    def normalize(self, unit_text: str) -> Estimate:
        """
        Normalize unit text to a canonical unit.

        Args:
            unit_text: Residual quantity text, e.g. "tsp", "g", "medium"

        Returns:
            Estimate whose value is a CanonicalUnit
        """
        text = (unit_text or "").lower().strip()

        for pattern, unit in self.unit_patterns:
            if pattern.search(text):
                return Estimate(unit)

        # Units glued to other characters, e.g. "gms." or "250gm"
        if "g" in text and "kg" not in text:
            return Estimate(CanonicalUnit.GRAM)
        if "ml" in text:
            return Estimate(CanonicalUnit.MILLILITER)

        for size, unit in self.SIZE_DESCRIPTORS:
            if size in text:
                return Estimate(unit)

        if any(keyword in text for keyword in self.PIECE_KEYWORDS):
            return Estimate(CanonicalUnit.PIECE)

        if not text:
            return Estimate(CanonicalUnit.PIECE)

        note = ConfidenceNote("unit", text, f"Unrecognized unit '{text}', assuming piece")
        logger.warning(note.message)
        return Estimate(CanonicalUnit.PIECE, (note,))


class QuantityParser:
    """Parser for free-text ingredient quantities."""

    def __init__(self, unit_normalizer: Optional[UnitNormalizer] = None):
        """
        Initialize quantity parser.

        Args:
            unit_normalizer: Normalizer for the residual unit text
        """
        self.unit_normalizer = unit_normalizer or UnitNormalizer()
        self.fraction_pattern = re.compile(r"(\d+)\s*/\s*(\d+)")
        self.number_pattern = re.compile(r"\d+(?:\.\d+)?|\.\d+")

    def parse(self, quantity_text: str) -> Estimate:
        """
        Parse quantity text into a ParsedQuantity.

        Args:
            quantity_text: Raw quantity string (e.g., "2 tbsp", "250g", "1/2 tsp")

        Returns:
            Estimate whose value is a ParsedQuantity
        """
        text = (quantity_text or "").lower().strip()

        if "to taste" in text:
            return Estimate(ParsedQuantity(1.0, CanonicalUnit.PINCH))

        fraction = self._match_fraction(text)
        if fraction:
            value, matched = fraction
            return self._with_unit(value, text.replace(matched, "", 1))

        number_match = self.number_pattern.search(text)
        value = float(number_match.group(0)) if number_match else None
        if value is None or not math.isfinite(value):
            note = ConfidenceNote("quantity", quantity_text or "",
                                  f"Could not parse quantity '{quantity_text}', assuming 1 piece")
            logger.warning(note.message)
            return Estimate(ParsedQuantity(1.0, CanonicalUnit.PIECE), (note,))

        return self._with_unit(value, text.replace(number_match.group(0), "", 1))

    def _match_fraction(self, text: str) -> Optional[Tuple[float, str]]:
        """Find the first N/M fraction with a non-zero denominator and a finite value."""
        for match in self.fraction_pattern.finditer(text):
            numerator, denominator = float(match.group(1)), float(match.group(2))
            if not denominator:
                continue
            value = numerator / denominator
            if math.isfinite(value):
                return value, match.group(0)
        return None

    def _with_unit(self, value: float, unit_text: str) -> Estimate:
        unit = self.unit_normalizer.normalize(unit_text.strip())
        return Estimate(ParsedQuantity(value, unit.value), unit.notes)
