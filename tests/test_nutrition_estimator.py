#!/usr/bin/env python3
"""
End-to-end tests for the estimation pipeline
"""

import json
import math

import pytest

from dish_nutrition import nutrition_estimator
from dish_nutrition.models import NutritionVector
from dish_nutrition.nutrition_estimator import DEFAULT_DISHES, NutritionEstimator
from dish_nutrition.recipe_fetcher import RecipeFetcher, RecipeSource, StaticRecipeSource

ROUNDING_TOLERANCE = 0.1 + 1e-9

PANEER_MASALA = [
    ("Paneer", "250g"),
    ("Onion", "120g"),
    ("Tomato", "180g"),
    ("Butter", "30g"),
    ("Cream", "40g"),
    ("Garam Masala", "5g"),
]


class BrokenRecipeSource(RecipeSource):

    def fetch(self, dish_name):
        raise RuntimeError("recipe store offline")


class ContentlessResponse:
    """Chat completion reply whose message carries no text, as on a refusal."""

    status_code = 200

    def raise_for_status(self):
        pass

    def json(self):
        return {"choices": [{"message": {"content": None}}]}


class ContentlessSession:

    def __init__(self):
        self.headers = {}

    def post(self, url, json=None, headers=None, timeout=None):
        return ContentlessResponse()


class TestEstimate:

    def test_paneer_butter_masala(self, estimator):
        result = estimator.estimate("Paneer Butter Masala")
        assert result.success
        assert result.dish_type == "Veg Gravy"
        assert result.nutrition_per_serving.calories > 0
        assert result.serving_unit == "katori"
        assert result.serving_size_g == 150
        assert result.ingredients_used[0] == {"ingredient": "Paneer", "quantity": "1.39 cup cubes"}

    def test_unknown_dish_uses_generic_recipe(self, estimator):
        result = estimator.estimate("Unknown Exotic Dish 12345")
        assert result.success
        assert result.dish_type != "Unknown"
        assert result.ingredients_used
        assert any(note.stage == "recipe" for note in result.confidence_notes)

    def test_sample_dishes_are_non_negative_and_finite(self, estimator):
        for dish in DEFAULT_DISHES:
            result = estimator.estimate(dish)
            assert result.success, result.error
            assert result.total_dish_weight_g > 0
            for value in result.nutrition_per_serving.to_dict().values():
                assert value >= 0 and math.isfinite(value), dish

    def test_sample_classifications(self, estimator):
        assert estimator.estimate("Dal Makhani").dish_type == "Dals"
        assert estimator.estimate("Palak Paneer").dish_type == "Veg Gravy"
        assert estimator.estimate("Aloo Gobi").dish_type == "Veg Gravy"

    def test_result_dict_shape(self, estimator):
        data = estimator.estimate("Aloo Gobi").to_dict()
        assert set(data) == {
            "dish_name", "dish_type", "nutrition_per_serving", "serving_unit", "ingredients_used",
            "total_dish_weight_g", "serving_size_g", "confidence_notes",
        }
        assert set(data["nutrition_per_serving"]) == {"calories", "protein", "carbs", "fat", "fiber"}
        json.dumps(data)


class TestFailures:

    def test_zero_weight_dish_fails_uniformly(self, reference_data, config):
        estimator = NutritionEstimator(
            reference_data=reference_data,
            recipe_source=StaticRecipeSource({"Air": [("Water", "0g")]}),
            config=config,
        )
        result = estimator.estimate("Air")
        assert not result.success
        assert result.error
        assert result.dish_type == "Unknown"
        assert result.nutrition_per_serving == NutritionVector()
        assert result.ingredients_used == []
        assert result.to_dict()["error"] == result.error

    def test_contentless_reply_uses_keyword_template(self, reference_data, config):
        fetcher = RecipeFetcher(use_api=True, api_key="test-key", session=ContentlessSession(),
                                max_retries=1, retry_delay=0)
        result = NutritionEstimator(reference_data, fetcher, config).estimate("Paneer Tikka")
        assert result.success, result.error
        assert result.dish_type != "Unknown"
        assert result.ingredients_used[0]["ingredient"] == "Paneer"
        assert any(note.stage == "recipe" for note in result.confidence_notes)

    def test_recipe_source_fault_is_captured(self, reference_data, config):
        estimator = NutritionEstimator(reference_data, BrokenRecipeSource(), config)
        result = estimator.estimate("Anything")
        assert result.error == "recipe store offline"
        assert result.serving_unit == "serving"


class TestScaleInvariance:

    def test_doubled_recipe_gives_same_serving(self, reference_data, config):
        doubled = [(name, f"{int(quantity[:-1]) * 2}g") for name, quantity in PANEER_MASALA]
        estimator = NutritionEstimator(
            reference_data=reference_data,
            recipe_source=StaticRecipeSource({"Paneer Masala": PANEER_MASALA, "Double Paneer Masala": doubled}),
            config=config,
        )
        single = estimator.estimate("Paneer Masala")
        double = estimator.estimate("Double Paneer Masala")

        assert single.success and double.success
        assert single.dish_type == double.dish_type
        assert double.total_dish_weight_g == pytest.approx(2 * single.total_dish_weight_g)
        for field, value in single.nutrition_per_serving.to_dict().items():
            assert getattr(double.nutrition_per_serving, field) == pytest.approx(value, abs=ROUNDING_TOLERANCE), field


class TestEstimateMany:

    def test_order_is_preserved(self, estimator):
        dishes = ["Aloo Gobi", "Dal Makhani", "Unknown Exotic Dish 12345", "Palak Paneer"]
        results = estimator.estimate_many(dishes, max_workers=3)
        assert [result.dish_name for result in results] == dishes

    def test_empty_batch(self, estimator):
        assert estimator.estimate_many([]) == []

    def test_batch_matches_single_estimates(self, estimator):
        single = estimator.estimate("Chole Bhature").to_dict()
        batch = estimator.estimate_many(["Chole Bhature", "Chole Bhature"], max_workers=2)
        assert [result.to_dict() for result in batch] == [single, single]


class TestCommandLine:

    def test_main_writes_results(self, tmp_path, monkeypatch, capsys):
        output = tmp_path / "results.json"
        monkeypatch.setattr("sys.argv", ["dish-nutrition", "Aloo Gobi", "Unknown Dish", "-o", str(output)])
        assert nutrition_estimator.main() == 0

        saved = json.loads(output.read_text())
        assert [item["dish_name"] for item in saved] == ["Aloo Gobi", "Unknown Dish"]
        assert "Results for Aloo Gobi" in capsys.readouterr().out
