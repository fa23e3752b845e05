#!/usr/bin/env python3
"""
Recipe Fetcher
Supplies raw (ingredient, quantity) lines for a dish name from bundled sample
recipes, an optional OpenAI-compatible chat completion service, or keyword
driven templates. A recipe is always returned, even for unknown dishes.
"""

import re
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from dish_nutrition.api.error_handling import RecipeSourceError, retry_external_call
from dish_nutrition.models import ConfidenceNote, Estimate, RawIngredientLine

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-3.5-turbo"

SYSTEM_PROMPT = "You are a helpful cooking assistant that provides ingredient lists for Indian dishes."
USER_PROMPT = ("Give me just the ingredients list with approximate quantities for {dish}. "
               "Format as JSON array with 'ingredient' and 'quantity' fields.")

SAMPLE_RECIPES: Dict[str, Tuple[Tuple[str, str], ...]] = {
    "paneer butter masala": (
        ("Paneer", "250g"),
        ("Butter", "2 tbsp"),
        ("Tomato", "3 medium"),
        ("Onion", "1 large"),
        ("Cream", "2 tbsp"),
        ("Garam Masala", "1 tsp"),
        ("Red Chilli Powder", "1 tsp"),
        ("Turmeric Powder", "1/2 tsp"),
        ("Salt", "to taste"),
    ),
    "dal makhani": (
        ("Black Urad Dal", "1 cup"),
        ("Rajma (Red Kidney Beans)", "1/4 cup"),
        ("Onion", "1 medium"),
        ("Tomato", "2 medium"),
        ("Ginger", "1 inch piece"),
        ("Garlic", "4-5 cloves"),
        ("Green Chilli", "2"),
        ("Butter", "2 tbsp"),
        ("Cream", "2 tbsp"),
        ("Garam Masala", "1 tsp"),
        ("Cumin Seeds", "1 tsp"),
        ("Salt", "to taste"),
    ),
    "chole bhature": (
        ("Chickpeas (Chole)", "2 cups"),
        ("Onion", "2 medium"),
        ("Tomato", "3 medium"),
        ("Ginger", "1 inch piece"),
        ("Garlic", "5-6 cloves"),
        ("Green Chilli", "2-3"),
        ("Tea Bags", "1"),
        ("Chole Masala", "2 tbsp"),
        ("Cumin Seeds", "1 tsp"),
        ("Dried Mango Powder (Amchur)", "1 tsp"),
        ("All-Purpose Flour (Maida)", "2 cups"),
        ("Yogurt", "1/4 cup"),
        ("Baking Soda", "1/4 tsp"),
        ("Oil", "for deep frying"),
        ("Salt", "to taste"),
    ),
    "palak paneer": (
        ("Spinach (Palak)", "500g"),
        ("Paneer", "250g"),
        ("Onion", "1 medium"),
        ("Tomato", "1 medium"),
        ("Ginger", "1 inch piece"),
        ("Garlic", "4-5 cloves"),
        ("Green Chilli", "2"),
        ("Cream", "2 tbsp"),
        ("Garam Masala", "1 tsp"),
        ("Cumin Seeds", "1 tsp"),
        ("Turmeric Powder", "1/2 tsp"),
        ("Red Chilli Powder", "1 tsp"),
        ("Salt", "to taste"),
    ),
    "aloo gobi": (
        ("Potato", "2 medium"),
        ("Cauliflower", "1 small"),
        ("Onion", "1 medium"),
        ("Tomato", "1 medium"),
        ("Ginger", "1 inch piece"),
        ("Garlic", "3-4 cloves"),
        ("Green Chilli", "2"),
        ("Cumin Seeds", "1 tsp"),
        ("Turmeric Powder", "1/2 tsp"),
        ("Red Chilli Powder", "1 tsp"),
        ("Coriander Powder", "1 tsp"),
        ("Garam Masala", "1/2 tsp"),
        ("Salt", "to taste"),
    ),
}

# Dish-name keyword -> template, first match wins
KEYWORD_TEMPLATES = (
    ("paneer", (
        ("Paneer", "250g"),
        ("Onion", "1 medium"),
        ("Tomato", "2 medium"),
        ("Ginger", "1 inch piece"),
        ("Garlic", "3-4 cloves"),
        ("Green Chilli", "2"),
        ("Spices", "2 tsp"),
    )),
    ("chicken", (
        ("Chicken", "500g"),
        ("Onion", "2 medium"),
        ("Tomato", "2 medium"),
        ("Ginger", "1 inch piece"),
        ("Garlic", "5-6 cloves"),
        ("Spices", "2 tbsp"),
    )),
    ("dal", (
        ("Lentils", "1 cup"),
        ("Onion", "1 medium"),
        ("Tomato", "1 medium"),
        ("Spices", "1 tbsp"),
    )),
)

GENERIC_TEMPLATE = (
    ("Main Ingredient", "250g"),
    ("Onion", "1 medium"),
    ("Tomato", "2 medium"),
    ("Spices", "2 tsp"),
)

JSON_ARRAY_PATTERN = re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL)
INGREDIENT_LINE_PATTERN = re.compile(r"[-•]?\s*([^:]+):\s*(.+)")


def _as_lines(pairs: Sequence[Tuple[str, str]]) -> List[RawIngredientLine]:
    return [RawIngredientLine(ingredient, quantity) for ingredient, quantity in pairs]


def _lines_from_json(items: Any) -> List[RawIngredientLine]:
    if not isinstance(items, list):
        return []
    lines = [RawIngredientLine.from_dict(item) for item in items if isinstance(item, dict)]
    return [line for line in lines if line.ingredient.strip()]


def parse_recipe_content(content: str) -> List[RawIngredientLine]:
    """
    Extract ingredient lines from a chat completion reply.

    Tries the whole reply as JSON, then the first JSON array embedded in it,
    then "Ingredient: Quantity" lines.

    Args:
        content: Text returned by the completion service

    Returns:
        Parsed ingredient lines, possibly empty
    """
    try:
        parsed = json.loads(content)
    except ValueError:
        logger.warning("Failed to parse JSON from API response, attempting manual parsing")
    else:
        if isinstance(parsed, list):
            return _lines_from_json(parsed)

    match = JSON_ARRAY_PATTERN.search(content)
    if match:
        try:
            return _lines_from_json(json.loads(match.group(0)))
        except ValueError:
            logger.warning("Embedded JSON array in API response is malformed")

    lines = []
    for text_line in content.splitlines():
        line_match = INGREDIENT_LINE_PATTERN.match(text_line.strip())
        if line_match:
            lines.append(RawIngredientLine(line_match.group(1).strip(), line_match.group(2).strip()))
    return lines


class RecipeSource(ABC):
    """Anything that can list the raw ingredients of a dish."""

    @abstractmethod
    def fetch(self, dish_name: str) -> List[RawIngredientLine]:
        """Return the raw ingredient lines for a dish; never empty."""

    def fetch_with_notes(self, dish_name: str) -> Estimate:
        return Estimate(self.fetch(dish_name))


class RecipeFetcher(RecipeSource):
    """Recipe source backed by sample recipes, a chat completion API and templates."""

    def __init__(self, use_api: bool = False, api_key: Optional[str] = None,
                 api_url: str = DEFAULT_API_URL, model: str = DEFAULT_MODEL,
                 timeout: float = 30.0, max_retries: int = 3, retry_delay: float = 1.0,
                 session: Optional[requests.Session] = None):
        """
        Initialize recipe fetcher.

        Args:
            use_api: Query the completion service before falling back to templates
            api_key: Bearer token for the completion service
            api_url: Chat completion endpoint
            model: Model name sent with each request
            timeout: Per-request timeout in seconds
            max_retries: Attempts per dish before giving up on the service
            retry_delay: Initial backoff between attempts in seconds
            session: HTTP session to reuse
        """
        self.use_api = use_api
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "Dish-Nutrition-Estimator/1.0"})

        self._request_with_retry = retry_external_call(
            max_attempts=max_retries, base_delay=retry_delay
        )(self._request_completion)

    def fetch(self, dish_name: str) -> List[RawIngredientLine]:
        return self.fetch_with_notes(dish_name).value

    def fetch_with_notes(self, dish_name: str) -> Estimate:
        """
        Fetch the recipe for a dish.

        Args:
            dish_name: Name of the dish

        Returns:
            Estimate whose value is a non-empty list of RawIngredientLine
        """
        normalized = (dish_name or "").lower().strip()

        if not self.use_api and normalized in SAMPLE_RECIPES:
            logger.info(f"Using sample recipe for {dish_name}")
            return Estimate(_as_lines(SAMPLE_RECIPES[normalized]))

        notes: List[ConfidenceNote] = []
        if self.use_api and self.api_key:
            try:
                lines = self.fetch_from_api(dish_name)
                if lines:
                    return Estimate(lines)
                notes.append(self._note(dish_name, "Recipe service returned no ingredients"))
            except RecipeSourceError as e:
                logger.error(f"Error fetching recipe: {e.message}")
                notes.append(ConfidenceNote("recipe", dish_name, f"Recipe service failed: {e.message}"))
        elif self.use_api:
            notes.append(self._note(dish_name, "Recipe service enabled without an API key"))

        for keyword, template in KEYWORD_TEMPLATES:
            if keyword in normalized:
                notes.append(self._note(dish_name, f"No recipe found, using the {keyword} template"))
                return Estimate(_as_lines(template), tuple(notes))

        notes.append(self._note(dish_name, "No recipe found, using the generic template"))
        return Estimate(_as_lines(GENERIC_TEMPLATE), tuple(notes))

    def fetch_from_api(self, dish_name: str) -> List[RawIngredientLine]:
        """
        Ask the completion service for an ingredient list.

        Raises:
            RecipeSourceError: If the service keeps failing after retries
        """
        logger.info(f"Fetching recipe for {dish_name} using {self.model}")
        content = self._request_with_retry(dish_name)
        return parse_recipe_content(content)

    def _request_completion(self, dish_name: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": USER_PROMPT.format(dish=dish_name)},
            ],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = self.session.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            status_code = e.response.status_code if e.response is not None else None
            raise RecipeSourceError(f"Recipe service request failed: {e}", source=self.api_url,
                                    status_code=status_code) from e

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RecipeSourceError(f"Unexpected recipe service response: {e}", source=self.api_url,
                                    status_code=response.status_code) from e

        # Refusals and tool-call replies carry no text content
        if not isinstance(content, str):
            raise RecipeSourceError("Recipe service reply has no text content", source=self.api_url,
                                    status_code=response.status_code)
        return content

    @staticmethod
    def _note(dish_name: str, message: str) -> ConfidenceNote:
        logger.warning(f"{message} ({dish_name})")
        return ConfidenceNote("recipe", dish_name, message)


class StaticRecipeSource(RecipeSource):
    """Recipe source over an in-memory mapping of dish name to ingredient pairs."""

    def __init__(self, recipes: Dict[str, Sequence[Tuple[str, str]]],
                 default: Sequence[Tuple[str, str]] = GENERIC_TEMPLATE):
        self.recipes = {name.lower().strip(): tuple(pairs) for name, pairs in recipes.items()}
        self.default = tuple(default)

    def fetch(self, dish_name: str) -> List[RawIngredientLine]:
        return _as_lines(self.recipes.get((dish_name or "").lower().strip(), self.default))
