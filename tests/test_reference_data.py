#!/usr/bin/env python3
"""
Tests for reference table loading
"""

import pytest

from dish_nutrition.api.error_handling import ReferenceDataError
from dish_nutrition.models import NutritionVector
from dish_nutrition.reference_data import (
    FALLBACK_NUTRITION, ReferenceData, load_household_measurements, load_nutrition_table
)


class TestBundledTables:

    def test_names_are_reduced_and_lower_cased(self, reference_data):
        assert "onion" in reference_data.nutrition
        assert "rajma" in reference_data.nutrition
        assert "onion, big" not in reference_data.nutrition
        assert reference_data.nutrition["onion"].calories == 40

    def test_table_order_is_preserved(self, reference_data):
        names = list(reference_data.nutrition)
        assert names.index("coconut milk") < names.index("milk")
        assert names.index("butter") < names.index("salt")

    def test_serving_for_category(self, reference_data):
        serving = reference_data.serving_for("Veg Gravy")
        assert serving.unit == "katori"
        assert serving.grams == 150
        assert reference_data.serving_for("Space Food") is None

    def test_tables_are_read_only(self, reference_data):
        with pytest.raises(TypeError):
            reference_data.densities["water"] = 2.0
        with pytest.raises(TypeError):
            reference_data.household_measurements["Veg Gravy"]["katori"] = 1

    def test_summary(self, reference_data):
        summary = reference_data.summary()
        assert summary["nutrition_entries"] == len(reference_data.nutrition)
        assert summary["food_types"] == 20


class TestLoading:

    def test_numeric_failures_become_zero(self, tmp_path):
        table = tmp_path / "nutrition.tsv"
        table.write_text(
            "food_name\tenergy_kcal\tprotein_g\tcarb_g\tfat_g\tfibre_g\n"
            "Mystery (dried)\tn/a\t2.5\t\t1\t-3\n"
        )
        loaded = load_nutrition_table(table)
        assert loaded == {"mystery": NutritionVector(calories=0, protein=2.5, carbs=0, fat=1, fiber=0)}

    def test_missing_column_raises(self, tmp_path):
        table = tmp_path / "nutrition.tsv"
        table.write_text("food_name\tenergy_kcal\nRice\t350\n")
        with pytest.raises(ReferenceDataError) as exc_info:
            load_nutrition_table(table)
        assert "fat_g" in exc_info.value.details["missing_columns"]

    def test_missing_files_fall_back_to_builtin_tables(self, tmp_path):
        data = ReferenceData.load(tmp_path / "absent.tsv", tmp_path / "absent.csv")
        assert set(data.nutrition) == set(FALLBACK_NUTRITION)
        assert data.serving_for("Dals").grams == 150

    def test_malformed_nutrition_table_falls_back(self, tmp_path):
        table = tmp_path / "nutrition.tsv"
        table.write_text("name\tcalories\nRice\t350\n")
        data = ReferenceData.load(table)
        assert set(data.nutrition) == set(FALLBACK_NUTRITION)

    def test_household_rows_with_bad_or_non_positive_weight_are_skipped(self, tmp_path):
        table = tmp_path / "household.csv"
        table.write_text(
            "category,unit,weight\n"
            "Soup,bowl,abc\n"
            "Soup,katori,-150\n"
            "Soup,plate,0\n"
            "Soup,cup,200\n"
            "Soup,glass,250\n"
            "Tea,cup,120\n"
        )
        loaded = load_household_measurements(table)
        assert list(loaded["Soup"].items()) == [("cup", 200.0), ("glass", 250.0)]
        assert loaded["Tea"] == {"cup": 120.0}

    def test_build_from_plain_mappings(self):
        data = ReferenceData.build({"Rice": {"calories": 350}}, {"Snacks": {"piece": 30}})
        assert data.nutrition["rice"].calories == 350
        assert data.serving_for("Snacks").unit == "piece"
