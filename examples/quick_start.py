#!/usr/bin/env python3
"""
Quick start guide for the Dish Nutrition Estimator.
Minimal example to estimate nutrition for a few dishes.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / 'src'))

from dish_nutrition.config import EstimatorConfig
from dish_nutrition.nutrition_estimator import NutritionEstimator


def quick_start():
    """Minimal example to estimate one dish."""

    print("Dish Nutrition Estimator - Quick Start")
    print("=" * 40)

    # 1. Initialize the estimator (bundled tables, sample recipes)
    print("1. Initializing estimator...")
    estimator = NutritionEstimator(config=EstimatorConfig())

    # 2. Estimate a dish
    dish_name = "Palak Paneer"
    print(f"2. Estimating: {dish_name}")
    result = estimator.estimate(dish_name)

    # 3. Display the results
    print(f"\n3. Results:")
    if not result.success:
        print(f"   Estimation failed: {result.error}")
        return

    print(f"   Dish type: {result.dish_type}")
    print(f"   Serving: 1 {result.serving_unit} ({result.serving_size_g:g} g)")
    print(f"   Whole dish weight: {result.total_dish_weight_g:.0f} g")

    nutrition = result.nutrition_per_serving
    print(f"\nPer serving:")
    print("-" * 30)
    print(f"Calories: {nutrition.calories} kcal")
    print(f"Protein:  {nutrition.protein} g")
    print(f"Carbs:    {nutrition.carbs} g")
    print(f"Fat:      {nutrition.fat} g")
    print(f"Fiber:    {nutrition.fiber} g")

    print(f"\nIngredients used:")
    for i, item in enumerate(result.ingredients_used, 1):
        print(f"{i}. {item['ingredient']}: {item['quantity']}")

    if result.confidence_notes:
        print(f"\nLow-confidence steps:")
        for note in result.confidence_notes:
            print(f"- [{note.stage}] {note.message}")


def simple_batch_example():
    """Simple batch estimation example."""

    print("\n" + "=" * 40)
    print("Batch Estimation Example")
    print("=" * 40)

    estimator = NutritionEstimator(config=EstimatorConfig())
    dishes = ["Dal Makhani", "Chole Bhature", "Chicken Curry", "Gajar Halwa"]

    print(f"Estimating {len(dishes)} dishes...")
    results = estimator.estimate_many(dishes, max_workers=4)

    for result in results:
        calories = result.nutrition_per_serving.calories
        print(f"  {result.dish_name:<15} {result.dish_type:<16} {calories:>7.1f} kcal per {result.serving_unit}")


def command_line_usage():
    """Show command line usage."""

    print("\n" + "=" * 40)
    print("Command Line Usage")
    print("=" * 40)

    print("# Estimate the bundled sample dishes")
    print("dish-nutrition")
    print("")
    print("# Estimate specific dishes with 8 worker threads")
    print("dish-nutrition \"Rajma Chawal\" \"Masala Dosa\" --workers 8 --output results.json")
    print("")
    print("# Fetch recipes from the chat completion API (needs OPENAI_API_KEY)")
    print("dish-nutrition \"Malai Kofta\" --use-api")
    print("")
    print("# Run the HTTP service")
    print("dish-nutrition-api")
    print("curl -X POST localhost:8000/nutrition -H 'Content-Type: application/json' \\")
    print("    -d '{\"dishName\": \"Aloo Gobi\"}'")


if __name__ == "__main__":
    quick_start()
    simple_batch_example()
    command_line_usage()
