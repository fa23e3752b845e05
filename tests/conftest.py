#!/usr/bin/env python3
"""
Shared fixtures for the nutrition estimator tests.
"""

import pytest

from dish_nutrition.config import EstimatorConfig
from dish_nutrition.nutrition_estimator import NutritionEstimator
from dish_nutrition.recipe_fetcher import RecipeFetcher
from dish_nutrition.reference_data import ReferenceData


@pytest.fixture(scope="session")
def reference_data():
    return ReferenceData.load()


@pytest.fixture
def config():
    return EstimatorConfig()


@pytest.fixture
def estimator(reference_data, config):
    return NutritionEstimator(
        reference_data=reference_data,
        recipe_source=RecipeFetcher(use_api=False),
        config=config,
    )
