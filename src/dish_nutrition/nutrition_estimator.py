#!/usr/bin/env python3
"""
Nutrition Estimator
Orchestrates recipe fetching, ingredient standardization, nutrition
aggregation, food-type classification and serving extrapolation for a dish.
"""

import sys
import json
import logging
import argparse
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from dish_nutrition.config import EstimatorConfig
from dish_nutrition.food_type_classifier import FoodTypeClassifier
from dish_nutrition.ingredient_standardizer import IngredientStandardizer
from dish_nutrition.models import ConfidenceNote, EstimationResult
from dish_nutrition.nutrition_calculator import NutritionCalculator
from dish_nutrition.recipe_fetcher import RecipeFetcher, RecipeSource
from dish_nutrition.reference_data import ReferenceData
from dish_nutrition.serving_extrapolator import ServingSizeExtrapolator

logger = logging.getLogger(__name__)

DEFAULT_DISHES = [
    "Paneer Butter Masala",
    "Dal Makhani",
    "Chole Bhature",
    "Palak Paneer",
    "Aloo Gobi",
]


class PipelineState(Enum):
    FETCHING = "fetching"
    STANDARDIZING = "standardizing"
    AGGREGATING = "aggregating"
    CLASSIFYING = "classifying"
    EXTRAPOLATING = "extrapolating"
    DONE = "done"
    FAILED = "failed"


class NutritionEstimator:
    """Estimates per-serving nutrition for named dishes."""

    def __init__(self, reference_data: Optional[ReferenceData] = None,
                 recipe_source: Optional[RecipeSource] = None,
                 config: Optional[EstimatorConfig] = None):
        """
        Initialize the estimator.

        Args:
            reference_data: Shared read-only lookup tables (loaded from config paths if omitted)
            recipe_source: Source of raw ingredient lines (RecipeFetcher from config if omitted)
            config: Estimator configuration (environment defaults if omitted)
        """
        self.config = config or EstimatorConfig.from_env()
        self.reference_data = reference_data or ReferenceData.load(
            self.config.nutrition_table_path, self.config.household_measurements_path
        )
        self.recipe_source = recipe_source or RecipeFetcher(
            use_api=self.config.use_recipe_api,
            api_key=self.config.openai_api_key,
            api_url=self.config.recipe_api_url,
            model=self.config.recipe_api_model,
            timeout=self.config.recipe_api_timeout,
            max_retries=self.config.recipe_api_max_retries,
        )

        self.standardizer = IngredientStandardizer(self.reference_data)
        self.calculator = NutritionCalculator(self.reference_data)
        self.classifier = FoodTypeClassifier(self.reference_data)
        self.extrapolator = ServingSizeExtrapolator(self.reference_data)

        logger.info(f"Initialized NutritionEstimator with {len(self.reference_data.nutrition)} foods")

    def estimate(self, dish_name: str) -> EstimationResult:
        """
        Estimate nutrition for a dish.

        Never raises: any fault is reported through the error field of an
        otherwise uniform result.

        Args:
            dish_name: Name of the dish

        Returns:
            EstimationResult for one standard serving
        """
        notes: List[ConfidenceNote] = []
        state = PipelineState.FETCHING

        try:
            logger.info(f"Estimating nutrition for: {dish_name}")
            recipe = self.recipe_source.fetch_with_notes(dish_name)
            notes.extend(recipe.notes)

            state = PipelineState.STANDARDIZING
            standardized = self.standardizer.standardize_all(recipe.value)
            ingredients = standardized.value
            notes.extend(standardized.notes)

            state = PipelineState.AGGREGATING
            totals = self.calculator.calculate_totals(ingredients)
            notes.extend(totals.notes)

            state = PipelineState.CLASSIFYING
            food_type = self.classifier.classify(dish_name, ingredients)
            notes.extend(food_type.notes)

            state = PipelineState.EXTRAPOLATING
            serving = self.extrapolator.extrapolate(
                totals.value.nutrition, food_type.value, totals.value.total_weight_g
            )
            notes.extend(serving.notes)

            state = PipelineState.DONE
            logger.info(f"Successfully estimated nutrition for {dish_name}")
            return EstimationResult(
                dish_name=dish_name,
                dish_type=food_type.value,
                nutrition_per_serving=serving.value.nutrition,
                serving_unit=serving.value.serving_unit,
                ingredients_used=[
                    {"ingredient": item.raw_ingredient, "quantity": item.household_measure}
                    for item in ingredients
                ],
                total_dish_weight_g=totals.value.total_weight_g,
                serving_size_g=serving.value.serving_size_g,
                confidence_notes=notes,
            )

        except Exception as e:
            logger.error(f"Error estimating nutrition for {dish_name} while {state.value}: {e}")
            return EstimationResult.failure(dish_name, str(e) or type(e).__name__, notes)

    def estimate_many(self, dish_names: Sequence[str], max_workers: Optional[int] = None) -> List[EstimationResult]:
        """
        Estimate several dishes in parallel.

        Args:
            dish_names: Dish names to estimate
            max_workers: Thread pool size (config default if omitted)

        Returns:
            Results in the same order as dish_names
        """
        if not dish_names:
            return []

        workers = max(1, min(max_workers or self.config.batch_max_workers, len(dish_names)))
        results: Dict[int, EstimationResult] = {}

        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(self.estimate, dish_name): index
                for index, dish_name in enumerate(dish_names)
            }
            for future in as_completed(future_to_index):
                results[future_to_index[future]] = future.result()

        return [results[index] for index in range(len(dish_names))]


def main():
    """Estimate nutrition for dishes from the command line."""
    parser = argparse.ArgumentParser(description='Estimate per-serving nutrition for Indian dishes')
    parser.add_argument('dishes', nargs='*', help='Dish names (defaults to the bundled sample dishes)')
    parser.add_argument('--use-api', action='store_true', help='Fetch recipes from the chat completion API')
    parser.add_argument('--output', '-o', default='nutrition_results.json', help='Output JSON file')
    parser.add_argument('--workers', type=int, help='Number of worker threads')
    parser.add_argument('--config', help='Configuration file (JSON)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose logging')

    args = parser.parse_args()

    config = EstimatorConfig.from_json(args.config) if args.config else EstimatorConfig.from_env()
    if args.use_api:
        config.use_recipe_api = True
    if args.workers:
        config.batch_max_workers = max(1, args.workers)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    estimator = NutritionEstimator(config=config)
    dishes = args.dishes or DEFAULT_DISHES
    results = estimator.estimate_many(dishes)

    for dish, result in zip(dishes, results):
        print(f"\nResults for {dish}:")
        print(json.dumps(result.to_dict(), indent=2))

    output_path = Path(args.output)
    with open(output_path, 'w') as f:
        json.dump([result.to_dict() for result in results], f, indent=2)
    print(f"\nResults saved to {output_path}")

    return 0 if all(result.success for result in results) else 1


if __name__ == "__main__":
    sys.exit(main())
