#!/usr/bin/env python3
"""
Tests for serving size extrapolation
"""

import pytest

from dish_nutrition.models import NutritionVector
from dish_nutrition.serving_extrapolator import ASSUMED_SERVINGS_PER_RECIPE, ServingSizeExtrapolator


class TestServingSizeExtrapolator:

    @pytest.fixture(autouse=True)
    def _extrapolator(self, reference_data):
        self.extrapolator = ServingSizeExtrapolator(reference_data)

    def test_scales_to_category_serving(self):
        totals = NutritionVector(calories=800, protein=40, carbs=60, fat=20, fiber=8)
        result = self.extrapolator.extrapolate(totals, "Veg Gravy", 600)
        serving = result.value
        assert serving.serving_unit == "katori"
        assert serving.serving_size_g == 150
        assert serving.nutrition == NutritionVector(calories=200, protein=10, carbs=15, fat=5, fiber=2)
        assert not result.degraded

    def test_first_declared_unit_is_used(self):
        result = self.extrapolator.extrapolate(NutritionVector(calories=100), "Chutneys", 60)
        assert result.value.serving_unit == "tbsp"
        assert result.value.serving_size_g == 15

    def test_unknown_category_defaults_to_100g(self):
        result = self.extrapolator.extrapolate(NutritionVector(calories=400), "Space Food", 400)
        assert result.value.serving_unit == "serving"
        assert result.value.serving_size_g == 100
        assert result.value.nutrition.calories == 100
        assert result.degraded

    def test_unexpected_weight_is_advisory(self):
        expected = 150 * ASSUMED_SERVINGS_PER_RECIPE
        result = self.extrapolator.extrapolate(NutritionVector(calories=3000), "Veg Gravy", expected * 3)
        assert result.value.nutrition.calories == pytest.approx(250)
        assert result.notes[0].stage == "serving"

    def test_results_rounded_to_one_decimal(self):
        result = self.extrapolator.extrapolate(NutritionVector(calories=1000), "Veg Gravy", 700)
        assert result.value.nutrition.calories == 214.3

    def test_scale_invariance(self):
        totals = NutritionVector(calories=1086.4, protein=58.2, carbs=40.6, fat=80.4, fiber=7.6)
        single = self.extrapolator.extrapolate(totals, "Veg Gravy", 840.45).value.nutrition
        double = self.extrapolator.extrapolate(totals.scaled(2), "Veg Gravy", 1680.9).value.nutrition
        for field, value in single.to_dict().items():
            assert getattr(double, field) == pytest.approx(value, abs=0.1)

    def test_zero_weight_raises(self):
        with pytest.raises(ZeroDivisionError):
            self.extrapolator.extrapolate(NutritionVector(), "Veg Gravy", 0)
